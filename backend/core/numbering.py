"""
Document number generation.

Numbers follow PREFIX + YY + MM + NNN (e.g. QT2508002) and restart every month.
Account transactions use a running TXN000001 sequence instead.
"""
import logging
import re

from django.db import IntegrityError, transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

QUOTATION_PREFIX = 'QT'
SALES_ORDER_PREFIX = 'SO'
INVOICE_PREFIX = 'INV'
CASH_SALE_PREFIX = 'CS'
PAYMENT_PREFIX = 'PN'
EXPENSE_PREFIX = 'EN'
PURCHASE_PREFIX = 'PO'
TRANSACTION_PREFIX = 'TXN'


def get_period_prefix(prefix, today=None):
    today = today or timezone.localdate()
    return f"{prefix}{today.strftime('%y')}{today.strftime('%m')}"


def generate_next_number(model, field, prefix, today=None):
    """
    Next number for `field` on `model` within the current month.

    The latest existing number for the month is looked up by prefix; its last three
    digits are incremented. Numbers that do not match the pattern are ignored.
    """
    period_prefix = get_period_prefix(prefix, today)
    pattern = re.compile(rf'^{re.escape(prefix)}\d{{4}}(\d{{3,}})$')

    existing = model.objects.filter(
        **{f'{field}__startswith': period_prefix}
    ).values_list(field, flat=True)

    last_number = 0
    for value in existing:
        match = pattern.match(value or '')
        if match:
            last_number = max(last_number, int(match.group(1)))

    return f"{period_prefix}{str(last_number + 1).zfill(3)}"


def generate_transaction_number(model):
    """TXN + 6 digit sequence, continuing from the most recent transaction"""
    last = model.objects.order_by('-id').values_list('transaction_number', flat=True).first()
    next_number = 1
    if last:
        try:
            next_number = int(last.replace(TRANSACTION_PREFIX, '')) + 1
        except ValueError:
            logger.warning(f"Unparseable transaction number {last}, restarting sequence from count")
            next_number = model.objects.count() + 1
    return f"{TRANSACTION_PREFIX}{str(next_number).zfill(6)}"


NUMBER_SAVE_ATTEMPTS = 5


def save_with_number(instance, field, generate, save, *args, **kwargs):
    """
    Save `instance`, assigning `generate()` to `field` when it is blank.

    Two concurrent saves can compute the same number; the loser hits the unique
    constraint inside a savepoint and retries with a freshly generated number.
    """
    if getattr(instance, field):
        return save(*args, **kwargs)

    for attempt in range(1, NUMBER_SAVE_ATTEMPTS + 1):
        setattr(instance, field, generate())
        try:
            with transaction.atomic():
                return save(*args, **kwargs)
        except IntegrityError:
            if attempt == NUMBER_SAVE_ATTEMPTS:
                setattr(instance, field, '')
                raise
            logger.warning(f"{type(instance).__name__} number {getattr(instance, field)} was taken, retrying")
