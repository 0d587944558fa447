from django.db import models
from django.conf import settings
from django.db.models import Q
from django.utils import timezone
from core.constants import JOB_STATUS_CHOICES, BID_STATUS_CHOICES, BOOKED_JOB_STATUSES
from apps.users.models import Worker


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Categories'

    def __str__(self):
        return self.name


class Job(models.Model):
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='jobs')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='jobs')
    title = models.CharField(max_length=200, blank=True, default='')
    description = models.TextField(blank=True, default='')
    budget_min = models.DecimalField(max_digits=12, decimal_places=2)
    budget_max = models.DecimalField(max_digits=12, decimal_places=2)
    city = models.CharField(max_length=100, db_index=True)
    province = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, default='open', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=Q(budget_min__gte=0) & Q(budget_max__gte=models.F('budget_min')),
                name='jobs_job_budget_range_valid',
            ),
        ]

    def __str__(self):
        return f"{self.title or f'Job #{self.pk}'} - {self.customer.username}"

    @property
    def is_open(self):
        return self.status == 'open'

    @property
    def is_booked(self):
        return self.status in BOOKED_JOB_STATUSES


class Bid(models.Model):
    job = models.ForeignKey(Job, on_delete=models.PROTECT, related_name='bids')
    worker = models.ForeignKey(Worker, on_delete=models.PROTECT, related_name='bids')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    proposal = models.TextField()
    estimated_duration = models.CharField(max_length=100, blank=True, default='')
    status = models.CharField(max_length=20, choices=BID_STATUS_CHOICES, default='pending', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            # A job resolves into at most one accepted bid.
            models.UniqueConstraint(
                fields=['job'],
                condition=Q(status='accepted'),
                name='jobs_bid_one_accepted_per_job',
            ),
            # Withdrawing frees the worker's slot on the job; nothing else does.
            models.UniqueConstraint(
                fields=['job', 'worker'],
                condition=~Q(status='withdrawn'),
                name='jobs_bid_one_live_bid_per_worker',
            ),
        ]

    def __str__(self):
        return f"Bid #{self.pk} by {self.worker.user.username} on job #{self.job_id} ({self.status})"

    @property
    def within_budget(self):
        return self.job.budget_min <= self.amount <= self.job.budget_max


class JobCompletion(models.Model):
    job = models.OneToOneField(Job, on_delete=models.CASCADE, related_name='completion')
    customer_confirmed = models.BooleanField(default=False)
    worker_confirmed = models.BooleanField(default=False)
    customer_confirmed_at = models.DateTimeField(null=True, blank=True)
    worker_confirmed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Completion status for job #{self.job_id}"

    @property
    def both_confirmed(self):
        return self.customer_confirmed and self.worker_confirmed

    def mark_customer_confirmed(self):
        self.customer_confirmed = True
        self.customer_confirmed_at = timezone.now()
        self.save(update_fields=['customer_confirmed', 'customer_confirmed_at', 'updated_at'])

    def mark_worker_confirmed(self):
        self.worker_confirmed = True
        self.worker_confirmed_at = timezone.now()
        self.save(update_fields=['worker_confirmed', 'worker_confirmed_at', 'updated_at'])


class Dispute(models.Model):
    job = models.ForeignKey(Job, on_delete=models.PROTECT, related_name='disputes')
    raised_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='raised_disputes')
    reason = models.CharField(max_length=200, blank=True, default='')
    description = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Dispute #{self.pk} - job #{self.job_id}"
