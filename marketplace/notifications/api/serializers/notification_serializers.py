from rest_framework import serializers

from marketplace.notifications.domain.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "type", "title", "message", "data", "is_read", "read_at", "created_at"]
        read_only_fields = fields


class CreateNotificationRequestSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=Notification.TYPE_CHOICES)
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    data = serializers.DictField(required=False, default=dict)


class MarkReadRequestSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    mark_all = serializers.BooleanField(required=False, default=False)


class NotificationQuerySerializer(serializers.Serializer):
    unread = serializers.BooleanField(required=False, default=False)


class MarkReadResponseSerializer(serializers.Serializer):
    marked = serializers.IntegerField()


class UnreadCountResponseSerializer(serializers.Serializer):
    unread = serializers.IntegerField()
