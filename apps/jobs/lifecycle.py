"""Job Lifecycle Manager.

Owns every change to ``Job.status``. A status is only ever moved with a
conditional UPDATE on the row (``WHERE status = <expected>``) so two requests
racing on the same job cannot both win; the loser sees zero rows updated and
gets an error instead of silently overwriting.

    open --accept--> assigned --start--> in_progress --both confirm--> completed
      |                  |                    |
      +--cancel-->  cancelled     +--dispute-->  disputed (frozen)

``assigned`` is only reachable through bid acceptance, see ``apps.jobs.acceptance``.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.notifications.dispatcher import emit
from apps.notifications.events import JOB_CANCELLED, LifecycleEvent
from core.constants import JOB_STATUS_CHOICES
from core.exceptions import Forbidden, InvalidState, InvalidTransition, JobNotOpen, NotFound, ValidationError
from core.utils import is_job_party, parse_amount
from . import ledger
from .models import Category, Job, JobCompletion, Dispute

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    'open': ('assigned', 'cancelled'),
    'assigned': ('in_progress', 'disputed'),
    'in_progress': ('completed', 'disputed'),
    'completed': (),
    'cancelled': (),
    'disputed': (),
}


def get_job(job_id):
    try:
        return Job.objects.select_related('category', 'customer', 'booking__worker__user').get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFound("Job not found.")


def _clean_job_fields(category_id, budget_min, budget_max, city, province, address='', title='', description=''):
    budget_min = parse_amount(budget_min, 'budget_min')
    budget_max = parse_amount(budget_max, 'budget_max')
    if budget_min < 0 or budget_max < 0:
        raise ValidationError("Budget cannot be negative.")
    if budget_min > budget_max:
        raise ValidationError("Minimum budget cannot be greater than maximum budget.")

    city = (city or '').strip()
    province = (province or '').strip()
    if not city:
        raise ValidationError("City is required.")
    if not province:
        raise ValidationError("Province is required.")

    try:
        category = Category.objects.get(pk=category_id, is_active=True)
    except (Category.DoesNotExist, ValueError, TypeError):
        raise NotFound("Category not found.")

    return {
        'category': category,
        'title': (title or '').strip(),
        'description': (description or '').strip(),
        'budget_min': budget_min,
        'budget_max': budget_max,
        'city': city,
        'province': province,
        'address': (address or '').strip(),
    }


def create_job(customer, category_id, budget_min, budget_max, city, province, address='', title='', description=''):
    fields = _clean_job_fields(
        category_id, budget_min, budget_max, city, province,
        address=address, title=title, description=description,
    )
    job = Job.objects.create(customer=customer, **fields)
    logger.info(f"Job {job.id} posted by user {customer.id} in {job.category.name}, {job.city}")
    return job


def update_job(job_id, actor, **changes):
    """Edit the details of an open job.

    Only the customer who posted the job may edit it. Fields left out of
    ``changes`` keep their current values, and the result is validated the
    same way as a new job. Bids already placed are left as they are.
    """
    job = get_job(job_id)
    if job.customer_id != actor.pk:
        raise Forbidden("Only the customer who posted this job can edit it.")
    if job.status != 'open':
        raise InvalidState("Only open jobs can be edited.")

    current = {
        'category_id': job.category_id,
        'budget_min': job.budget_min,
        'budget_max': job.budget_max,
        'city': job.city,
        'province': job.province,
        'address': job.address,
        'title': job.title,
        'description': job.description,
    }
    current.update(changes)
    fields = _clean_job_fields(**current)

    # Matches nothing once acceptance or cancellation has moved the job out of open.
    updated = Job.objects.filter(pk=job.pk, status='open').update(updated_at=timezone.now(), **fields)
    if not updated:
        raise InvalidState("Only open jobs can be edited.")
    logger.info(f"Job {job.id} edited by customer {actor.id}: {', '.join(sorted(changes)) or 'no fields'}")
    return get_job(job.pk)


def _move(job, target):
    """Compare-and-swap ``job.status`` from its current value to ``target``."""
    current = job.status
    if target not in ALLOWED_TRANSITIONS.get(current, ()):
        raise InvalidTransition(current, target)
    updated = Job.objects.filter(pk=job.pk, status=current).update(status=target, updated_at=timezone.now())
    if not updated:
        job.refresh_from_db(fields=['status'])
        raise InvalidTransition(job.status, target)
    job.status = target
    logger.info(f"Job {job.id} moved from {current} to {target}")
    return job


def _require_party(job, actor):
    if not is_job_party(actor, job):
        raise Forbidden("Only the customer or the booked worker can change this job.")


def assign(job):
    """Move an open job to ``assigned``. Must run inside the acceptance transaction."""
    updated = Job.objects.filter(pk=job.pk, status='open').update(status='assigned', updated_at=timezone.now())
    if not updated:
        raise JobNotOpen()
    job.status = 'assigned'
    return job


def start_work(job, actor):
    _require_party(job, actor)
    with transaction.atomic():
        _move(job, 'in_progress')
        Booking.objects.filter(job_id=job.pk).update(status='in_progress', updated_at=timezone.now())
    return job


def confirm_completion(job, actor):
    """Record one side's confirmation; the job completes once both have confirmed."""
    _require_party(job, actor)
    if job.status != 'in_progress':
        raise InvalidTransition(job.status, 'completed')

    with transaction.atomic():
        # Serializes the two confirmations so exactly one of them completes the job.
        job = Job.objects.select_for_update().select_related('booking__worker').get(pk=job.pk)
        if job.status != 'in_progress':
            raise InvalidTransition(job.status, 'completed')

        completion, _ = JobCompletion.objects.get_or_create(job=job)
        if actor.pk == job.customer_id:
            if completion.customer_confirmed:
                raise InvalidState("You have already confirmed completion of this job.")
            completion.mark_customer_confirmed()
            logger.info(f"Customer confirmed completion of job {job.id}")
        else:
            if completion.worker_confirmed:
                raise InvalidState("You have already confirmed completion of this job.")
            completion.mark_worker_confirmed()
            logger.info(f"Worker confirmed completion of job {job.id}")

        if completion.both_confirmed:
            _move(job, 'completed')
            Booking.objects.filter(job_id=job.pk).update(status='completed', updated_at=timezone.now())
    return job


def cancel(job, actor):
    """Cancel an open job. Every pending bid on it is rejected in the same transaction."""
    if job.customer_id != actor.pk:
        raise Forbidden("Only the customer who posted this job can cancel it.")
    if job.status != 'open':
        raise InvalidTransition(job.status, 'cancelled')

    with transaction.atomic():
        job = Job.objects.select_for_update().get(pk=job.pk)
        _move(job, 'cancelled')
        pending = ledger.close_bids(ledger.lock_pending_bids(job))

        events = [
            LifecycleEvent(
                type=JOB_CANCELLED,
                job_id=job.pk,
                recipient_id=bid.worker.user_id,
                bid_id=bid.pk,
                payload={'job_title': job.title, 'amount': str(bid.amount)},
            )
            for bid in pending
        ]
        transaction.on_commit(lambda: emit(events))

    logger.info(f"Job {job.id} cancelled by customer, {len(pending)} pending bid(s) closed")
    return job


def raise_dispute(job, actor, reason='', description=''):
    """Freeze a booked job. Resolution happens outside the marketplace."""
    _require_party(job, actor)
    with transaction.atomic():
        _move(job, 'disputed')
        dispute = Dispute.objects.create(
            job=job,
            raised_by=actor,
            reason=(reason or '').strip(),
            description=(description or '').strip(),
        )
    logger.warning(f"Dispute {dispute.id} raised on job {job.id} by user {actor.id}: {dispute.reason}")
    return job


def transition(job_id, actor, target_status, reason='', description=''):
    job = get_job(job_id)
    _require_party(job, actor)
    if target_status not in dict(JOB_STATUS_CHOICES):
        raise InvalidTransition(job.status, target_status)

    if target_status == 'cancelled':
        return cancel(job, actor)
    if target_status == 'in_progress':
        return start_work(job, actor)
    if target_status == 'completed':
        return confirm_completion(job, actor)
    if target_status == 'disputed':
        return raise_dispute(job, actor, reason=reason, description=description)
    # 'open' is never re-entered and 'assigned' belongs to bid acceptance.
    raise InvalidTransition(job.status, target_status)
