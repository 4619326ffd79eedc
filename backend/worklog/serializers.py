# worklog/serializers.py

from rest_framework import serializers
from .models import TaskLog
from . import services
from .validators import validate_description, validate_duration, validate_tags


class TaskLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskLog
        fields = [
            'id', 'account', 'task_description', 'duration', 'tags',
            'points', 'ai_feedback', 'scoring_method',
            'status', 'created_at', 'completed_at'
        ]
        read_only_fields = fields


class TaskLogCreateSerializer(serializers.Serializer):
    """
    Input for logging a new session. Points are computed server-side;
    clients never send them.
    """
    identity = serializers.CharField(max_length=255)
    # Raw values; the shared validators in validate() do the real checks
    task_description = serializers.CharField(allow_blank=True, trim_whitespace=False)
    duration = serializers.JSONField(required=False, default=0)
    tags = serializers.JSONField(required=False, default=list)

    def validate(self, attrs):
        attrs['task_description'] = validate_description(attrs.get('task_description'))
        attrs['duration'] = validate_duration(attrs.get('duration'))
        attrs['tags'] = validate_tags(attrs.get('tags'))
        return attrs

    def create(self, validated_data):
        return services.create_task_log(
            identity=validated_data['identity'],
            task_description=validated_data['task_description'],
            duration=validated_data['duration'],
            tags=validated_data['tags'],
        )

    def to_representation(self, instance):
        return TaskLogSerializer(instance).data


class BatchDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )


class InsightRequestSerializer(serializers.Serializer):
    identity = serializers.CharField(max_length=255)
