"""Booking & messaging gate.

Customer and worker can only talk once a booking exists. Before that, no bid
status unlocks messaging. A cancelled job closes the conversation.
"""
import logging

from django.db.models import Count, F, OuterRef, Q, Subquery

from apps.notifications.dispatcher import emit
from apps.notifications.events import NEW_MESSAGE, LifecycleEvent
from core.exceptions import Forbidden, NotFound, ValidationError
from .models import Booking, Message

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def can_message(actor_id, booking_id):
    """Whether ``actor_id`` may message in ``booking_id``. Ids may be ints or numeric strings."""
    try:
        actor_id = int(actor_id)
        booking = Booking.objects.select_related('job', 'worker').filter(pk=int(booking_id)).first()
    except (ValueError, TypeError):
        return False
    if booking is None:
        return False
    if booking.job.status == 'cancelled':
        return False
    return booking.is_party(actor_id)


def get_booking(booking_id, user):
    try:
        booking = Booking.objects.select_related('job__category', 'worker__user', 'customer', 'bid').get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFound("Booking not found.")
    if not booking.is_party(user.pk):
        raise Forbidden("You are not part of this booking.")
    return booking


def bookings_for_user(user):
    return Booking.objects.filter(
        Q(customer=user) | Q(worker__user=user)
    ).select_related('job__category', 'worker__user', 'customer').order_by('-created_at', '-id')


def send_message(booking_id, sender, body):
    booking = get_booking(booking_id, sender)
    if not can_message(sender.pk, booking.pk):
        raise Forbidden("Messaging is closed for this booking.")

    body = (body or '').strip()
    if not body:
        raise ValidationError("Message cannot be empty.")
    if len(body) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message cannot be longer than {MAX_MESSAGE_LENGTH} characters.")

    message = Message.objects.create(booking=booking, sender=sender, body=body)
    logger.info(f"User {sender.id} sent message {message.id} in booking {booking.id}")

    emit([
        LifecycleEvent(
            type=NEW_MESSAGE,
            job_id=booking.job_id,
            recipient_id=booking.other_party_id(sender.pk),
            payload={'job_title': booking.job.title, 'booking_id': booking.pk},
        )
    ])
    return message


def list_messages(booking_id, reader):
    """Conversation for a booking, oldest first. Marks the other side's messages as read."""
    booking = get_booking(booking_id, reader)
    booking.messages.filter(is_read=False).exclude(sender=reader).update(is_read=True)
    return booking.messages.select_related('sender').all()


def inbox(user):
    """The user's bookings as conversations, most recent message first.

    Each booking carries ``last_message``, ``last_message_at`` and
    ``unread_count`` (messages from the other party not yet read). Bookings
    without messages come last.
    """
    latest = Message.objects.filter(booking=OuterRef('pk')).order_by('-created_at', '-id')
    return bookings_for_user(user).annotate(
        last_message=Subquery(latest.values('body')[:1]),
        last_message_at=Subquery(latest.values('created_at')[:1]),
        unread_count=Count(
            'messages',
            filter=Q(messages__is_read=False) & ~Q(messages__sender_id=user.pk),
        ),
    ).order_by(F('last_message_at').desc(nulls_last=True), '-id')
