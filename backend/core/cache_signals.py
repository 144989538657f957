"""
Cache invalidation signals
Automatically invalidate report caches when financial data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_reports_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

REPORT_SOURCE_MODELS = {
    'Quotation', 'SalesOrder', 'Invoice', 'CashSale',
    'Payment', 'Expense', 'Purchase', 'AccountTransaction',
}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk repair commands to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_reports_on_change(sender, instance, **kwargs):
    """Invalidate report caches when documents, payments or expenses change"""
    if is_suspended():
        return

    if sender.__name__ in REPORT_SOURCE_MODELS:
        try:
            invalidate_reports_cache()
        except Exception as e:
            logger.warning(f"Error invalidating reports cache for {sender.__name__}: {e}")
