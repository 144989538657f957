"""
Account bookkeeping for payments, expenses and purchases.

Every payment is money in, every expense or purchase is money out. Each
movement is written as an AccountTransaction on the account the money went
through and the account's running balance is updated in the same transaction.
"""
import logging
from decimal import Decimal

from django.db import transaction

from backend.core.numbering import generate_transaction_number, save_with_number
from .models import AccountTransaction, AccountBalance, Payment, Expense

logger = logging.getLogger(__name__)

PAYMENT_METHOD_ACCOUNTS = {
    'cash': 'cash',
    'cooperative_bank': 'cooperative_bank',
    'bank': 'cooperative_bank',
    'bank_transfer': 'cooperative_bank',
    'credit': 'credit',
    'credit_card': 'credit',
    'cheque': 'cheque',
    'check': 'cheque',
}

ACCOUNT_DEBITED_ACCOUNTS = {
    'cash': 'cash',
    'cooperative_bank': 'cooperative_bank',
    'bank': 'cooperative_bank',
    'credit': 'credit',
    'cheque': 'cheque',
    'check': 'cheque',
}


def map_payment_method_to_account_type(payment_method):
    """Account a payment method settles into; unknown methods go to cash"""
    return PAYMENT_METHOD_ACCOUNTS.get((payment_method or '').strip().lower(), 'cash')


def map_account_debited_to_account_type(account_debited):
    return ACCOUNT_DEBITED_ACCOUNTS.get((account_debited or '').strip().lower(), 'cash')


def create_account_transaction(account_type, transaction_type, amount, description, reference_type,
                               reference_id=None, user=None):
    """
    Record money moving in or out of `account_type` and update its balance.

    Returns the created AccountTransaction; `balance_after` holds the account
    balance including this transaction.
    """
    amount = Decimal(str(amount))
    if transaction_type not in ('in', 'out'):
        raise ValueError(f"Invalid transaction type: {transaction_type}")

    with transaction.atomic():
        balance, _ = AccountBalance.objects.select_for_update().get_or_create(account_type=account_type)
        if transaction_type == 'in':
            balance.current_balance += amount
        else:
            balance.current_balance -= amount

        account_transaction = AccountTransaction(
            account_type=account_type,
            transaction_type=transaction_type,
            amount=amount,
            description=description or '',
            reference_type=reference_type,
            reference_id=reference_id,
            balance_after=balance.current_balance,
            created_by=user if user and user.is_authenticated else None,
        )
        save_with_number(
            account_transaction, 'transaction_number',
            lambda: generate_transaction_number(AccountTransaction), account_transaction.save
        )
        balance.last_transaction = account_transaction
        balance.save(update_fields=['current_balance', 'last_transaction', 'updated_at'])

    logger.info(
        f"{account_transaction.transaction_number}: {transaction_type} {amount} on {account_type} "
        f"({reference_type} {reference_id}) -> balance {balance.current_balance}"
    )
    return account_transaction


def net_recorded(reference_type, reference_id):
    """Net amount (in minus out) recorded per account for a reference"""
    net = {}
    rows = AccountTransaction.objects.filter(
        reference_type=reference_type, reference_id=reference_id
    ).values_list('account_type', 'transaction_type', 'amount')
    for account_type, transaction_type, amount in rows:
        signed = amount if transaction_type == 'in' else -amount
        net[account_type] = net.get(account_type, Decimal('0')) + signed
    return net


def reverse_transactions(reference_type, reference_id, description=None, user=None):
    """
    Offset whatever is still recorded for a reference, one transaction per account.

    Running it again is a no-op since the net per account is already zero.
    """
    reversals = []
    with transaction.atomic():
        for account_type, net in net_recorded(reference_type, reference_id).items():
            if net == 0:
                continue
            reversals.append(create_account_transaction(
                account_type,
                'out' if net > 0 else 'in',
                abs(net),
                description or f"Reversal of {reference_type} {reference_id}",
                reference_type,
                reference_id,
                user=user,
            ))
    return reversals


def create_payment_with_transaction(user=None, **payment_data):
    """Create a payment and the matching money-in transaction"""
    with transaction.atomic():
        if not payment_data.get('account_credited'):
            payment_data['account_credited'] = map_payment_method_to_account_type(payment_data.get('payment_method'))
        payment = Payment.objects.create(created_by=user if user and user.is_authenticated else None, **payment_data)
        record_payment_transaction(payment, user=user)
    return payment


def record_payment_transaction(payment, user=None):
    """Money-in transaction for a completed payment; a no-op if already recorded"""
    if payment.status != 'completed':
        return None
    if any(net > 0 for net in net_recorded('payment', payment.id).values()):
        return None
    return create_account_transaction(
        payment.account_credited or map_payment_method_to_account_type(payment.payment_method),
        'in',
        payment.amount,
        payment.description or f"Payment received {payment.payment_number}",
        'payment',
        payment.id,
        user=user,
    )


def create_expense_with_transaction(user=None, **expense_data):
    """Create an expense and the matching money-out transaction"""
    with transaction.atomic():
        expense = Expense.objects.create(created_by=user if user and user.is_authenticated else None, **expense_data)
        record_expense_transaction(expense, user=user)
    return expense


def record_expense_transaction(expense, user=None):
    return create_account_transaction(
        map_account_debited_to_account_type(expense.account_debited),
        'out',
        expense.amount,
        expense.description or f"Expense {expense.expense_number}",
        'expense',
        expense.id,
        user=user,
    )


def resync_payment_transaction(payment, user=None):
    """Offset what was recorded for an edited payment and record its current values"""
    with transaction.atomic():
        reverse_transactions('payment', payment.id, f"Adjustment of {payment.payment_number}", user=user)
        return record_payment_transaction(payment, user=user)


def resync_expense_transaction(expense, user=None):
    with transaction.atomic():
        reverse_transactions('expense', expense.id, f"Adjustment of {expense.expense_number}", user=user)
        return record_expense_transaction(expense, user=user)


def record_purchase_transaction(purchase, user=None):
    """Money-out transaction for a purchase, on the account its payment method maps to"""
    return create_account_transaction(
        map_payment_method_to_account_type(purchase.payment_method),
        'out',
        purchase.total_amount,
        purchase.notes or f"Purchase {purchase.purchase_order_number}",
        'purchase',
        purchase.id,
        user=user,
    )


def resync_purchase_transaction(purchase, user=None):
    with transaction.atomic():
        reverse_transactions('purchase', purchase.id, f"Adjustment of {purchase.purchase_order_number}", user=user)
        if purchase.status == 'cancelled':
            return None
        return record_purchase_transaction(purchase, user=user)
