from rest_framework import serializers
from apps.users.serializers import PublicWorkerSerializer, UserSummarySerializer
from core.constants import BOOKING_STATUS_CHOICES
from .models import Booking, Message, Review


class BookingSerializer(serializers.ModelSerializer):
    job_title = serializers.ReadOnlyField(source='job.title')
    job_status = serializers.ReadOnlyField(source='job.status')
    worker = PublicWorkerSerializer(read_only=True)
    customer = UserSummarySerializer(read_only=True)
    status = serializers.ChoiceField(choices=BOOKING_STATUS_CHOICES, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'job', 'job_title', 'job_status', 'bid', 'worker', 'customer',
            'agreed_amount', 'status', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'booking', 'sender', 'body', 'is_read', 'created_at']
        read_only_fields = ['id', 'booking', 'sender', 'is_read', 'created_at']


class MessageCreateSerializer(serializers.Serializer):
    body = serializers.CharField(allow_blank=True, trim_whitespace=False)


class ConversationSerializer(BookingSerializer):
    last_message = serializers.CharField(read_only=True, allow_null=True)
    last_message_at = serializers.DateTimeField(read_only=True, allow_null=True)
    unread_count = serializers.IntegerField(read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ['last_message', 'last_message_at', 'unread_count']
        read_only_fields = fields


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserSummarySerializer(read_only=True)
    reviewee = UserSummarySerializer(read_only=True)
    job_title = serializers.ReadOnlyField(source='booking.job.title')

    class Meta:
        model = Review
        fields = ['id', 'booking', 'job_title', 'reviewer', 'reviewee', 'rating', 'comment', 'created_at']
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default='')
