"""
Transactional outbox: domain events are written in the same transaction as
the state change they describe. Delivery to subscribers happens elsewhere.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from django.db import models, transaction
from django.utils import timezone

from commerce.domain.events import DomainEvent
from commerce.infra.models import TimeStampedModel
import logging


logger = logging.getLogger(__name__)


class OutboxEvent(TimeStampedModel):
    """Outbox event for transactional outbox pattern."""
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    store_id = models.UUIDField(null=True, blank=True)
    aggregate_id = models.UUIDField()
    aggregate_type = models.CharField(max_length=50)
    event_type = models.CharField(max_length=100)
    event_data = models.JSONField()
    processed = models.BooleanField(default=False)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=("processed", "created_at")),
            models.Index(fields=("aggregate_id", "aggregate_type")),
        ]


class OutboxRepository:
    """Repository for outbox events."""

    @transaction.atomic
    def add_event(self, event: DomainEvent, aggregate_type: str) -> UUID:
        """Add event to outbox (within transaction)."""
        if not event.occurred_at:
            event.occurred_at = timezone.now().isoformat()
        event_data = self._serialize_event(event)

        outbox_event = OutboxEvent.objects.create(
            store_id=getattr(event, "store_id", None),
            aggregate_id=event.aggregate_id,
            aggregate_type=aggregate_type,
            event_type=event.event_type,
            event_data=event_data,
        )
        logger.info(
            "outbox_event_added",
            extra={"operation": event.event_type, "order_id": str(event.aggregate_id)},
        )
        return outbox_event.id

    def get_unprocessed_events(self, limit: int = 100) -> list[OutboxEvent]:
        """Get unprocessed events."""
        return list(
            OutboxEvent.objects
            .filter(processed=False)
            .order_by("created_at")[:limit]
        )

    def mark_processed(self, event_id: UUID) -> None:
        """Mark event as processed."""
        OutboxEvent.objects.filter(id=event_id).update(
            processed=True,
            processed_at=timezone.now(),
        )

    def _serialize_event(self, event: DomainEvent) -> dict:
        """Serialize event to dict."""
        data = {
            "event_id": str(event.event_id),
            "aggregate_id": str(event.aggregate_id),
            "event_type": event.event_type,
            "version": event.version.value,
            "occurred_at": event.occurred_at,
        }
        for key, value in event.__dict__.items():
            if key in data:
                continue
            if isinstance(value, (UUID, Decimal)):
                data[key] = str(value)
            elif isinstance(value, Enum):
                data[key] = value.value
            else:
                data[key] = value
        return data
