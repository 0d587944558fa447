from decimal import Decimal, InvalidOperation

from rest_framework import permissions

from core.exceptions import ValidationError


class IsWorker(permissions.BasePermission):
    message = "Complete your worker profile before using worker features."

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'worker')


def is_job_party(user, job):
    """True when ``user`` is the job's customer or the booked worker."""
    if user is None or not user.is_authenticated:
        return False
    if job.customer_id == user.pk:
        return True
    booking = getattr(job, 'booking', None)
    return booking is not None and booking.worker.user_id == user.pk


def parse_amount(value, field_name):
    """Coerce request input to a finite Decimal or raise ValidationError."""
    if value is None or isinstance(value, bool) or str(value).strip() == '':
        raise ValidationError(f"{field_name} is required.")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number.")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number.")
    return amount
