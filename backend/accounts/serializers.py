from rest_framework import serializers
from .models import Account


class AccountSyncSerializer(serializers.Serializer):
    """
    Payload pushed by the client after the identity provider signs a user in.
    """
    identity = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    display_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')

    def create(self, validated_data):
        return Account.objects.sync(
            external_id=validated_data['identity'],
            email=validated_data['email'],
            display_name=validated_data.get('display_name', ''),
        )


class AccountSerializer(serializers.ModelSerializer):
    """
    Ledger state plus the derived level/progress block the dashboard renders.
    """
    identity = serializers.CharField(source='external_id', read_only=True)
    level = serializers.SerializerMethodField()
    daily_goal_reached = serializers.BooleanField(read_only=True)
    last_insight = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = (
            'id',
            'identity',
            'email',
            'display_name',
            'total_points',
            'daily_xp',
            'daily_goal',
            'daily_goal_reached',
            'streak',
            'last_log_date',
            'level',
            'last_insight',
            'created_at',
        )
        read_only_fields = fields

    def get_level(self, obj):
        return obj.progress.to_dict()

    def get_last_insight(self, obj):
        insight = obj.last_insight
        if insight is None:
            return None
        return {
            'feedback': insight['feedback'],
            'rating': insight['rating'],
            'generatedAt': serializers.DateTimeField().to_representation(insight['generatedAt']),
        }
