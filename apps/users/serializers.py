from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Worker

User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name']
        read_only_fields = fields


class PublicWorkerSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    services = serializers.SlugRelatedField(many=True, read_only=True, slug_field='name')

    class Meta:
        model = Worker
        fields = ['id', 'user', 'city', 'province', 'services', 'experience_years', 'bio']
        read_only_fields = fields
        ref_name = 'PublicWorker'
