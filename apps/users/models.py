from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils import timezone


class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)

    @property
    def is_worker(self):
        return hasattr(self, 'worker')


class Worker(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='worker')
    city = models.CharField(max_length=100, blank=True, default='')
    province = models.CharField(max_length=100, blank=True, default='')
    services = models.ManyToManyField('jobs.Category', blank=True, related_name='workers')
    bio = models.TextField(blank=True, default='')
    experience_years = models.PositiveSmallIntegerField(default=0)
    join_date = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"Worker: {self.user.username} ({self.city or 'no city'})"

    @property
    def display_name(self):
        return self.user.get_full_name() or self.user.username
