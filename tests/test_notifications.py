"""Tests for the notification dispatcher and the retry command."""
import pytest
from django.core import mail
from django.core.management import call_command
from django.test import override_settings

from apps.notifications import dispatcher
from apps.notifications.events import BID_ACCEPTED, JOB_ASSIGNED, LifecycleEvent
from apps.notifications.models import Notification


@pytest.fixture
def event(job, w1):
    return LifecycleEvent(
        type=BID_ACCEPTED,
        job_id=job.id,
        recipient_id=w1.user_id,
        payload={'job_title': job.title, 'amount': '6000'},
    )


def smtp_down(**kwargs):
    raise OSError("SMTP unavailable")


class RecordingDispatcher:
    received = []

    def dispatch(self, events):
        RecordingDispatcher.received.extend(events)


class FakeTwilio:
    sent = []

    def __init__(self, sid, token):
        self.messages = self

    def create(self, body, from_, to):
        FakeTwilio.sent.append((to, body))


class TestDispatcher:

    def test_records_and_emails(self, event, w1):
        notifications = dispatcher.NotificationDispatcher().dispatch([event])

        assert len(notifications) == 1
        notification = Notification.objects.get()
        assert notification.recipient == w1.user
        assert notification.title == 'Your bid was accepted!'
        assert 'Rs6000' in notification.message
        assert notification.data['type'] == 'bid-accepted'
        assert notification.delivery_status == 'sent'
        assert notification.attempts == 1
        assert mail.outbox[0].to == [w1.user.email]

    def test_missing_payload_keys_render_blank(self, job, customer):
        event = LifecycleEvent(type=JOB_ASSIGNED, job_id=job.id, recipient_id=customer.id)
        title, message = dispatcher.render(event)
        assert title == 'Job assigned'
        assert '{' not in message

    def test_unknown_recipient_is_dropped(self, job):
        event = LifecycleEvent(type=BID_ACCEPTED, job_id=job.id, recipient_id=777777)
        assert dispatcher.NotificationDispatcher().dispatch([event]) == []
        assert not Notification.objects.exists()

    def test_email_failure_marks_failed(self, event, monkeypatch):
        monkeypatch.setattr(dispatcher, 'send_mail', smtp_down)
        dispatcher.NotificationDispatcher().dispatch([event])

        notification = Notification.objects.get()
        assert notification.delivery_status == 'failed'
        assert 'SMTP unavailable' in notification.delivery_error
        assert notification.attempts == 1

    @override_settings(TWILIO_ACCOUNT_SID='AC123', TWILIO_AUTH_TOKEN='token', TWILIO_PHONE_NUMBER='+15550000000')
    def test_sms_sent_when_configured(self, job, make_worker, monkeypatch):
        worker = make_worker('texter', phone_number='+923001234567')
        monkeypatch.setattr(dispatcher, 'TwilioClient', FakeTwilio)
        FakeTwilio.sent = []

        dispatcher.NotificationDispatcher().dispatch([
            LifecycleEvent(type=BID_ACCEPTED, job_id=job.id, recipient_id=worker.user_id,
                           payload={'job_title': job.title, 'amount': '6000'}),
        ])

        assert FakeTwilio.sent == [('+923001234567', Notification.objects.get().message)]

    @override_settings(TWILIO_ACCOUNT_SID='AC123', TWILIO_AUTH_TOKEN='token')
    def test_sms_skips_malformed_numbers(self, monkeypatch):
        monkeypatch.setattr(dispatcher, 'TwilioClient', FakeTwilio)
        FakeTwilio.sent = []
        assert dispatcher.send_sms('03001234567', 'hello') is False
        assert FakeTwilio.sent == []

    def test_sms_skipped_without_credentials(self):
        assert dispatcher.send_sms('+923001234567', 'hello') is False

    def test_emit_never_raises(self, event, monkeypatch):
        def explode():
            raise RuntimeError("dispatcher misconfigured")

        monkeypatch.setattr(dispatcher, 'get_dispatcher', explode)
        dispatcher.emit([event])

    @override_settings(NOTIFICATION_DISPATCHER='tests.test_notifications.RecordingDispatcher')
    def test_dispatcher_is_configurable(self, event):
        RecordingDispatcher.received = []
        dispatcher.emit([event])
        assert RecordingDispatcher.received == [event]
        assert not Notification.objects.exists()


class TestRetryCommand:

    def test_redelivers_failed(self, event, monkeypatch):
        monkeypatch.setattr(dispatcher, 'send_mail', smtp_down)
        dispatcher.NotificationDispatcher().dispatch([event])
        monkeypatch.undo()

        call_command('retry_notifications')

        notification = Notification.objects.get()
        assert notification.delivery_status == 'sent'
        assert notification.attempts == 2
        assert notification.delivery_error == ''

    @override_settings(NOTIFICATION_MAX_ATTEMPTS=1)
    def test_gives_up_after_max_attempts(self, event, monkeypatch):
        monkeypatch.setattr(dispatcher, 'send_mail', smtp_down)
        dispatcher.NotificationDispatcher().dispatch([event])
        monkeypatch.undo()

        call_command('retry_notifications')

        notification = Notification.objects.get()
        assert notification.delivery_status == 'failed'
        assert notification.attempts == 1
