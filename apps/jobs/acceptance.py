"""Acceptance coordinator.

Accepting a bid is the only way a job leaves ``open`` for ``assigned``. In a
single transaction it:

1. moves the job open -> assigned (the conditional update is the point where
   concurrent accepts are decided: exactly one sees a row updated),
2. marks the chosen bid accepted,
3. rejects every other pending bid on the job,
4. creates the booking from the accepted bid.

Notifications go out only after the transaction commits. A dispatcher failure
is logged and never undoes the acceptance.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.notifications.dispatcher import emit
from apps.notifications.events import BID_ACCEPTED, BID_REJECTED, JOB_ASSIGNED, LifecycleEvent
from core.exceptions import Forbidden, JobNotOpen, NotFound
from . import ledger, lifecycle
from .models import Bid, Job

logger = logging.getLogger(__name__)


def accept_bid(bid_id, customer):
    try:
        bid = Bid.objects.select_related('job', 'worker__user').get(pk=bid_id)
    except (Bid.DoesNotExist, ValueError, TypeError):
        raise NotFound("Bid not found.")

    if bid.job.customer_id != customer.pk:
        raise Forbidden("Only the customer who posted this job can accept its bids.")
    if bid.job.status != 'open' or bid.status != 'pending':
        raise JobNotOpen()

    try:
        with transaction.atomic():
            job = Job.objects.select_for_update().get(pk=bid.job_id)
            if job.status != 'open':
                raise JobNotOpen()

            lifecycle.assign(job)

            now = timezone.now()
            updated = Bid.objects.filter(pk=bid.pk, status='pending').update(status='accepted', updated_at=now)
            if not updated:
                # The bid was withdrawn after we read it; undo the assignment.
                raise JobNotOpen()
            bid.status = 'accepted'

            losers = ledger.close_bids(ledger.lock_pending_bids(job), now=now)

            booking = Booking.objects.create(
                job=job,
                bid=bid,
                worker=bid.worker,
                customer_id=job.customer_id,
                agreed_amount=bid.amount,
            )

            events = _acceptance_events(job, bid, losers)
            transaction.on_commit(lambda: emit(events))
    except IntegrityError:
        # Another acceptance committed first; the unique constraints caught it.
        raise JobNotOpen()

    logger.info(
        f"Customer {customer.id} accepted bid {bid.id} on job {job.id}; "
        f"booking {booking.id} created, {len(losers)} other bid(s) rejected"
    )
    return booking


def _acceptance_events(job, bid, losers):
    worker_name = bid.worker.display_name
    events = [
        LifecycleEvent(
            type=BID_ACCEPTED,
            job_id=job.pk,
            recipient_id=bid.worker.user_id,
            bid_id=bid.pk,
            payload={'job_title': job.title, 'amount': str(bid.amount)},
        ),
    ]
    events.extend(
        LifecycleEvent(
            type=BID_REJECTED,
            job_id=job.pk,
            recipient_id=loser.worker.user_id,
            bid_id=loser.pk,
            payload={'job_title': job.title, 'amount': str(loser.amount)},
        )
        for loser in losers
    )
    events.append(
        LifecycleEvent(
            type=JOB_ASSIGNED,
            job_id=job.pk,
            recipient_id=job.customer_id,
            bid_id=bid.pk,
            payload={'job_title': job.title, 'amount': str(bid.amount), 'worker_name': worker_name},
        )
    )
    return events
