"""
Payment monitor.

Every saved payment (new or updated) re-runs the progression rules for the
document it was paid to. The work is deferred until the surrounding
transaction commits so the payment is visible to the percentage checks.
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Payment

logger = logging.getLogger(__name__)


def payment_document_numbers(payment):
    """Distinct document numbers a payment points at, paid_to first"""
    numbers = []
    for value in (payment.paid_to, payment.quotation_number):
        value = (value or '').strip()
        if value and value not in numbers:
            numbers.append(value)
    return numbers


def process_payment(payment_id, document_numbers, user=None):
    """Apply the progression rules for each document number; failures are logged, not raised"""
    from backend.sales.workflow import evaluate_progression

    results = {}
    for number in document_numbers:
        try:
            steps = evaluate_progression(number, user=user)
        except Exception as e:
            logger.error(f"Payment monitor failed for {number} (payment {payment_id}): {e}", exc_info=True)
            results[number] = [f"error: {e}"]
            continue
        if steps:
            logger.info(f"Payment {payment_id} progressed {number}: {', '.join(steps)}")
        results[number] = steps
    return results


@receiver(post_save, sender=Payment, dispatch_uid='payments_progress_documents')
def progress_documents_on_payment(sender, instance, created, raw=False, **kwargs):
    if raw:
        return

    from backend.sales.workflow import workflow_setting
    if not workflow_setting('PAYMENT_MONITOR_ENABLED'):
        return

    if instance.status != 'completed':
        logger.debug(f"Payment {instance.payment_number} is {instance.status}; no progression")
        return

    numbers = payment_document_numbers(instance)
    if not numbers:
        logger.warning(f"Payment {instance.payment_number} has no document reference; skipping progression")
        return

    payment_id = instance.pk
    user = instance.created_by
    transaction.on_commit(lambda: process_payment(payment_id, numbers, user=user))
