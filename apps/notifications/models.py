from django.db import models
from django.conf import settings
from django.utils import timezone
from core.constants import DELIVERY_STATUS_CHOICES


class Notification(models.Model):
    """A user-facing notification produced from a lifecycle event."""
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    event_type = models.CharField(max_length=40, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    job = models.ForeignKey('jobs.Job', on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    bid = models.ForeignKey('jobs.Bid', on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    is_read = models.BooleanField(default=False)
    delivery_status = models.CharField(max_length=10, choices=DELIVERY_STATUS_CHOICES, default='pending')
    delivery_error = models.TextField(blank=True, default='')
    attempts = models.PositiveSmallIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.event_type} to {self.recipient.username} - {self.delivery_status}"

    def mark_as_sent(self):
        self.delivery_status = 'sent'
        self.delivery_error = ''
        self.attempts += 1
        self.sent_at = timezone.now()
        self.save(update_fields=['delivery_status', 'delivery_error', 'attempts', 'sent_at'])

    def mark_as_failed(self, error_message):
        self.delivery_status = 'failed'
        self.delivery_error = error_message
        self.attempts += 1
        self.save(update_fields=['delivery_status', 'delivery_error', 'attempts'])
