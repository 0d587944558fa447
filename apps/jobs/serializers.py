from rest_framework import serializers
from apps.users.serializers import PublicWorkerSerializer, UserSummarySerializer
from core.constants import JOB_STATUS_CHOICES, BID_STATUS_CHOICES
from .models import Category, Job, Bid


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class JobSerializer(serializers.ModelSerializer):
    category = CategorySerializer(read_only=True)
    customer = UserSummarySerializer(read_only=True)
    status = serializers.ChoiceField(choices=JOB_STATUS_CHOICES, read_only=True)
    booking_id = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            'id', 'title', 'description', 'category', 'customer',
            'budget_min', 'budget_max', 'city', 'province', 'address',
            'status', 'booking_id', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_booking_id(self, obj):
        booking = getattr(obj, 'booking', None)
        return booking.id if booking else None


class JobCreateSerializer(serializers.Serializer):
    category_id = serializers.IntegerField()
    budget_min = serializers.DecimalField(max_digits=12, decimal_places=2)
    budget_max = serializers.DecimalField(max_digits=12, decimal_places=2)
    city = serializers.CharField(max_length=100)
    province = serializers.CharField(max_length=100)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')


class JobTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice for choice, _ in JOB_STATUS_CHOICES])
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')


class BidSerializer(serializers.ModelSerializer):
    worker = PublicWorkerSerializer(read_only=True)
    job_title = serializers.ReadOnlyField(source='job.title')
    status = serializers.ChoiceField(choices=BID_STATUS_CHOICES, read_only=True)
    within_budget = serializers.ReadOnlyField()

    class Meta:
        model = Bid
        fields = [
            'id', 'job', 'job_title', 'worker', 'amount', 'proposal',
            'estimated_duration', 'status', 'within_budget', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class BidSubmitSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    proposal = serializers.CharField(allow_blank=True)
    estimated_duration = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
