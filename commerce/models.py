"""
Expose ORM models for Django's auto-discovery while keeping real definitions
under the infra package.
"""

from commerce.infra.models import (
    DiscountORM,
    InvoiceORM,
    OrderLineItemORM,
    OrderORM,
    StoreORM,
)
from commerce.infra.outbox import OutboxEvent
