from django.shortcuts import get_object_or_404
from rest_framework import serializers

from accounts.models import Account
from .models import Reminder


class ReminderSerializer(serializers.ModelSerializer):
    identity = serializers.CharField(write_only=True, max_length=255)

    class Meta:
        model = Reminder
        fields = (
            'id', 'identity', 'account', 'user_email', 'message',
            'scheduled_time', 'status', 'attempts', 'sent_at', 'created_at'
        )
        read_only_fields = (
            'id', 'account', 'user_email', 'status', 'attempts', 'sent_at', 'created_at'
        )

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError("Reminder message must not be empty.")
        return value.strip()

    def validate(self, attrs):
        # Only the message and time of a pending reminder can change
        if self.instance is not None:
            attrs.pop('identity', None)
            if self.instance.status != Reminder.Status.PENDING:
                raise serializers.ValidationError("Reminder was already sent.")
        return attrs

    def create(self, validated_data):
        account = get_object_or_404(Account, external_id=validated_data.pop('identity'))
        return Reminder.objects.create(
            account=account,
            user_email=account.email,
            **validated_data,
        )
