"""Stock quantity helpers shared by stock adjustments and purchases"""
import logging
from decimal import Decimal

from django.db import transaction

from .models import StockItem, StockMovement

logger = logging.getLogger(__name__)


def update_quantity(item, new_quantity=None, movement_type='adjustment', reference_type='', reference_id='',
                    notes='', user=None, delta=None):
    """
    Set the on-hand quantity of `item` and record the movement.

    Pass `delta` instead of `new_quantity` to move stock relative to the locked
    row, so concurrent receipts and removals are applied on top of each other.
    The movement quantity is the absolute difference between the old and new
    quantity; a zero difference still records an adjustment so that the
    history shows the check.
    """
    if new_quantity is not None:
        new_quantity = Decimal(str(new_quantity))
        if new_quantity < 0:
            raise ValueError("Stock quantity cannot be negative")
    elif delta is None:
        raise ValueError("Either a new quantity or a delta is required")

    with transaction.atomic():
        item = StockItem.objects.select_for_update().get(pk=item.pk)
        if new_quantity is None:
            new_quantity = item.quantity + Decimal(str(delta))
            if new_quantity < 0:
                raise ValueError(f"Insufficient stock for {item.name}: {item.quantity} available")
        difference = new_quantity - item.quantity
        item.quantity = new_quantity
        item.save(update_fields=['quantity', 'last_updated'])

        movement = StockMovement.objects.create(
            stock_item=item,
            movement_type=movement_type,
            quantity=abs(difference),
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id else '',
            notes=notes,
            created_by=user if user and user.is_authenticated else None,
        )

    logger.info(f"Stock {item.name}: {movement_type} {difference:+} -> {item.quantity} ({item.status})")
    return item, movement


def add_stock(item, quantity, reference_type='', reference_id='', notes='', user=None):
    """Increase stock by `quantity` (purchases received)"""
    return update_quantity(
        item, delta=Decimal(str(quantity)), movement_type='in',
        reference_type=reference_type, reference_id=reference_id, notes=notes, user=user
    )


def remove_stock(item, quantity, reference_type='', reference_id='', notes='', user=None):
    """Decrease stock by `quantity`, refusing to go below zero"""
    return update_quantity(
        item, delta=-Decimal(str(quantity)), movement_type='out',
        reference_type=reference_type, reference_id=reference_id, notes=notes, user=user
    )
