"""Bid ledger: submitting, withdrawing and rejecting bids.

A worker holds at most one live bid per job. Withdrawing a pending bid frees
the slot for a new submission; a rejected bid stays on the ledger and keeps
the slot. Accepting a bid is handled by ``apps.jobs.acceptance``.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.notifications.dispatcher import emit
from apps.notifications.events import BID_RECEIVED, BID_REJECTED, LifecycleEvent
from core.exceptions import DuplicateBid, Forbidden, InvalidState, JobNotOpen, NotFound, ValidationError
from core.utils import parse_amount
from . import catalog
from .models import Bid, Job

logger = logging.getLogger(__name__)


def get_bid(bid_id):
    try:
        return Bid.objects.select_related('job', 'worker__user').get(pk=bid_id)
    except (Bid.DoesNotExist, ValueError, TypeError):
        raise NotFound("Bid not found.")


def _has_live_bid(job, worker):
    return Bid.objects.filter(job=job, worker=worker).exclude(status='withdrawn').exists()


def submit(job, worker, amount, proposal, estimated_duration=''):
    if job.status != 'open':
        raise JobNotOpen()

    amount = parse_amount(amount, 'amount')
    if amount <= 0:
        raise ValidationError("Bid amount must be greater than 0.")
    proposal = (proposal or '').strip()
    min_length = settings.BID_PROPOSAL_MIN_LENGTH
    if len(proposal) < min_length:
        raise ValidationError(f"Proposal must be at least {min_length} characters.")

    if job.customer_id == worker.user_id:
        raise Forbidden("You cannot bid on your own job.")
    if not catalog.is_eligible(worker, job):
        raise Forbidden(f"You can only bid on {job.category.name} jobs in your city.")
    if _has_live_bid(job, worker):
        raise DuplicateBid()

    with transaction.atomic():
        # Acceptance and cancellation lock the same row, so no bid can slip in after the job closes.
        locked = Job.objects.select_for_update().get(pk=job.pk)
        if locked.status != 'open':
            raise JobNotOpen()
        # Submits by the same worker queue on the lock; the later one sees the earlier bid here.
        if _has_live_bid(locked, worker):
            raise DuplicateBid()
        try:
            with transaction.atomic():
                bid = Bid.objects.create(
                    job=locked,
                    worker=worker,
                    amount=amount,
                    proposal=proposal,
                    estimated_duration=(estimated_duration or '').strip(),
                )
        except IntegrityError:
            raise DuplicateBid()

        event = LifecycleEvent(
            type=BID_RECEIVED,
            job_id=job.pk,
            recipient_id=job.customer_id,
            bid_id=bid.pk,
            payload={
                'job_title': job.title,
                'amount': str(amount),
                'worker_name': worker.display_name,
            },
        )
        transaction.on_commit(lambda: emit([event]))

    logger.info(f"Worker {worker.id} bid {amount} on job {job.id} (bid {bid.id})")
    return bid


def withdraw(bid, worker):
    if bid.worker_id != worker.pk:
        raise Forbidden("You can only withdraw your own bids.")
    if bid.status != 'pending':
        raise InvalidState("Cannot withdraw a bid that has already been processed.")

    updated = Bid.objects.filter(pk=bid.pk, status='pending').update(status='withdrawn', updated_at=timezone.now())
    if not updated:
        bid.refresh_from_db(fields=['status'])
        raise InvalidState("Cannot withdraw a bid that has already been processed.")
    bid.status = 'withdrawn'
    logger.info(f"Worker {worker.id} withdrew bid {bid.id} on job {bid.job_id}")
    return bid


def reject(bid, customer):
    job = bid.job
    if job.customer_id != customer.pk:
        raise Forbidden("Only the customer who posted this job can reject its bids.")
    if bid.status != 'pending':
        raise InvalidState("This bid has already been processed.")

    with transaction.atomic():
        updated = Bid.objects.filter(pk=bid.pk, status='pending').update(status='rejected', updated_at=timezone.now())
        if not updated:
            bid.refresh_from_db(fields=['status'])
            raise InvalidState("This bid has already been processed.")
        bid.status = 'rejected'

        event = LifecycleEvent(
            type=BID_REJECTED,
            job_id=job.pk,
            recipient_id=bid.worker.user_id,
            bid_id=bid.pk,
            payload={'job_title': job.title, 'amount': str(bid.amount)},
        )
        transaction.on_commit(lambda: emit([event]))

    logger.info(f"Customer {customer.id} rejected bid {bid.id} on job {job.id}")
    return bid


def lock_pending_bids(job):
    """Pending bids on ``job``, row-locked until the surrounding transaction ends."""
    return list(
        Bid.objects.select_for_update().filter(job_id=job.pk, status='pending').select_related('worker')
    )


def close_bids(bids, now=None):
    """Reject every bid in ``bids`` that is still pending.

    Returns only the bids this call moved to rejected. A bid withdrawn in the
    meantime keeps its status and is left out of the result.
    """
    now = now or timezone.now()
    closed = []
    for bid in bids:
        updated = Bid.objects.filter(pk=bid.pk, status='pending').update(status='rejected', updated_at=now)
        if updated:
            bid.status = 'rejected'
            closed.append(bid)
    return closed


def list_for_job(job):
    return job.bids.select_related('worker__user').order_by('-created_at', '-id')


def list_for_worker(worker):
    return worker.bids.select_related('job__category').order_by('-created_at', '-id')
