"""Notification Dispatcher.

The marketplace core hands lifecycle events to the dispatcher after its
transaction commits. The dispatcher persists a ``Notification`` per event and
then tries to deliver it by email and SMS. Delivery is outside the core's
consistency boundary: failures are recorded on the notification, logged, and
picked up later by the ``retry_notifications`` management command.

The dispatcher class is configurable through ``settings.NOTIFICATION_DISPATCHER``.
"""
import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils.module_loading import import_string
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from .events import (
    BID_ACCEPTED, BID_REJECTED, BID_RECEIVED, JOB_ASSIGNED, JOB_CANCELLED, NEW_MESSAGE, REVIEW_RECEIVED
)
from .models import Notification

User = get_user_model()

logger = logging.getLogger(__name__)

PHONE_NUMBER_RE = re.compile(r'^\+\d{9,15}$')

TEMPLATES = {
    BID_ACCEPTED: (
        'Your bid was accepted!',
        'Your bid of Rs{amount} for "{job_title}" was accepted. You can now chat with the customer.',
    ),
    BID_REJECTED: (
        'Bid not selected',
        'Your bid of Rs{amount} for "{job_title}" was not selected.',
    ),
    BID_RECEIVED: (
        'New bid on your job',
        'You received a new bid of Rs{amount} on "{job_title}".',
    ),
    JOB_ASSIGNED: (
        'Job assigned',
        '"{job_title}" has been assigned to {worker_name} for Rs{amount}.',
    ),
    JOB_CANCELLED: (
        'Job cancelled',
        '"{job_title}" was cancelled by the customer. Your bid is closed.',
    ),
    NEW_MESSAGE: (
        'New message',
        'You have a new message about "{job_title}".',
    ),
    REVIEW_RECEIVED: (
        'New review',
        'You received a {rating}-star review for "{job_title}".',
    ),
}


class _SafeFormat(dict):
    def __missing__(self, key):
        return ''


def render(event):
    title, body = TEMPLATES.get(event.type, ('Marketplace update', 'There is an update on one of your jobs.'))
    return title, body.format_map(_SafeFormat(event.payload))


def send_sms(phone_number, body):
    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        return False
    if not PHONE_NUMBER_RE.match(phone_number):
        logger.warning(f"Skipping SMS, invalid phone number format: {phone_number}")
        return False
    client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    client.messages.create(
        body=body,
        from_=settings.TWILIO_PHONE_NUMBER,
        to=phone_number,
    )
    return True


class NotificationDispatcher:

    def dispatch(self, events):
        notifications = []
        for event in events:
            notification = self.record(event)
            if notification is not None:
                self.deliver(notification)
                notifications.append(notification)
        return notifications

    def record(self, event):
        try:
            recipient = User.objects.get(pk=event.recipient_id)
        except User.DoesNotExist:
            logger.error(f"Dropping {event.type} event for job {event.job_id}: recipient {event.recipient_id} not found")
            return None
        title, message = render(event)
        return Notification.objects.create(
            recipient=recipient,
            event_type=event.type,
            title=title,
            message=message,
            data=event.as_dict(),
            job_id=event.job_id,
            bid_id=event.bid_id,
        )

    def deliver(self, notification):
        user = notification.recipient
        try:
            if user.email:
                send_mail(
                    subject=notification.title,
                    message=notification.message,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    recipient_list=[user.email],
                    fail_silently=False,
                )
            if user.phone_number:
                send_sms(user.phone_number, notification.message)
        except TwilioRestException as e:
            logger.error(f"Failed to send SMS for notification {notification.id} to {user.phone_number}: {str(e)}")
            notification.mark_as_failed(str(e))
            return False
        except Exception as e:
            logger.error(f"Failed to deliver notification {notification.id} to user {user.id}: {str(e)}")
            notification.mark_as_failed(str(e))
            return False
        notification.mark_as_sent()
        logger.info(f"Delivered {notification.event_type} notification {notification.id} to user {user.id}")
        return True


def get_dispatcher():
    return import_string(settings.NOTIFICATION_DISPATCHER)()


def emit(events):
    """Hand events to the dispatcher. Never raises."""
    events = list(events)
    if not events:
        return
    try:
        get_dispatcher().dispatch(events)
    except Exception:
        logger.exception(f"Notification dispatch failed for {len(events)} event(s); committed state is unaffected")
