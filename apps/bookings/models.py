from django.db import models
from django.conf import settings
from core.constants import BOOKING_STATUS_CHOICES


class Booking(models.Model):
    job = models.OneToOneField('jobs.Job', on_delete=models.PROTECT, related_name='booking')
    bid = models.OneToOneField('jobs.Bid', on_delete=models.PROTECT, related_name='booking')
    worker = models.ForeignKey('users.Worker', on_delete=models.PROTECT, related_name='bookings')
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='customer_bookings')
    # Copied from the accepted bid; never updated afterwards.
    agreed_amount = models.DecimalField(max_digits=12, decimal_places=2, editable=False)
    status = models.CharField(max_length=20, choices=BOOKING_STATUS_CHOICES, default='confirmed')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Booking #{self.pk} for job #{self.job_id} ({self.status})"

    def is_party(self, user_id):
        return user_id in (self.customer_id, self.worker.user_id)

    def other_party_id(self, user_id):
        return self.worker.user_id if user_id == self.customer_id else self.customer_id


class Message(models.Model):
    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='sent_messages')
    body = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message #{self.pk} in booking #{self.booking_id}"


class Review(models.Model):
    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name='reviews')
    reviewer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='reviews_given')
    reviewee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='reviews_received')
    rating = models.PositiveSmallIntegerField(choices=[(i, i) for i in range(1, 6)])  # 1 to 5 stars
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        unique_together = ('booking', 'reviewer')

    def __str__(self):
        return f"Review by {self.reviewer.username} on booking #{self.booking_id} ({self.rating}/5)"
