"""
Management command to relay outbox events to subscribers.
"""
import logging
import time

from django.core.management.base import BaseCommand
from django.db import transaction

from commerce.infra.outbox import OutboxRepository

logger = logging.getLogger("commerce.events")


def relay_pending(outbox: OutboxRepository, limit: int) -> int:
    """Publish pending events in creation order; returns how many were sent."""
    relayed = 0
    for event in outbox.get_unprocessed_events(limit=limit):
        with transaction.atomic():
            # Subscribers (notifications, webhooks) tail the commerce.events log.
            logger.info(
                event.event_type,
                extra={
                    "store_id": str(event.store_id) if event.store_id else None,
                    "order_id": event.event_data.get("order_id") or str(event.aggregate_id),
                    "operation": "event_published",
                    "status": event.event_data.get("to_status") or event.event_data.get("status"),
                },
            )
            outbox.mark_processed(event.id)
        relayed += 1
    return relayed


class Command(BaseCommand):
    help = 'Publish pending outbox events'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=100,
            help='Maximum number of events to publish in one run',
        )
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Run in loop (for production)',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=3,
            help='Interval between loops in seconds',
        )

    def handle(self, *args, **options):
        limit = options['limit']
        interval = options['interval']
        outbox = OutboxRepository()

        if not options['loop']:
            relayed = relay_pending(outbox, limit)
            self.stdout.write(self.style.SUCCESS(f'Published {relayed} events'))
            return

        self.stdout.write(f'Starting relay in loop mode (interval: {interval}s)')
        while True:
            try:
                relayed = relay_pending(outbox, limit)
                if relayed > 0:
                    self.stdout.write(self.style.SUCCESS(f'Published {relayed} events'))
                time.sleep(interval)
            except KeyboardInterrupt:
                self.stdout.write(self.style.WARNING('Stopped by user'))
                break
