import logging

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.notifications.dispatcher import get_dispatcher
from apps.notifications.models import Notification

logger = logging.getLogger('apps.notifications')


class Command(BaseCommand):
    help = "Re-deliver notifications whose email/SMS delivery failed."

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=100, help="Maximum number of notifications to retry")

    def handle(self, *args, **options):
        pending = Notification.objects.filter(
            delivery_status__in=['pending', 'failed'],
            attempts__lt=settings.NOTIFICATION_MAX_ATTEMPTS,
        ).select_related('recipient').order_by('created_at', 'id')[:options['limit']]

        dispatcher = get_dispatcher()
        delivered = failed = 0
        for notification in pending:
            if dispatcher.deliver(notification):
                delivered += 1
            else:
                failed += 1

        logger.info(f"Notification retry finished: {delivered} delivered, {failed} failed")
        self.stdout.write(self.style.SUCCESS(f"Delivered {delivered} notification(s), {failed} still failing."))
