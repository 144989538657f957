import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Sum
from django.shortcuts import get_object_or_404
from .models import Payment, Expense, ExpenseCategory, AccountTransaction, AccountBalance, ACCOUNT_TYPE_CHOICES
from .serializers import (
    PaymentSerializer, ExpenseSerializer, ExpenseCategorySerializer,
    AccountTransactionSerializer, AccountBalanceSerializer
)
from .filters import PaymentFilter, ExpenseFilter, AccountTransactionFilter
from .accounts import (
    create_payment_with_transaction, create_expense_with_transaction,
    resync_payment_transaction, resync_expense_transaction, reverse_transactions,
)
from backend.core.utils import create_audit_log, paginated_response

logger = logging.getLogger(__name__)

# Fields whose change means the recorded account movement no longer matches
PAYMENT_ACCOUNT_FIELDS = ('amount', 'status', 'account_credited', 'payment_method')
EXPENSE_ACCOUNT_FIELDS = ('amount', 'account_debited')


def _snapshot(instance, fields):
    return {name: getattr(instance, name) for name in fields}


# Payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list_create(request):
    """List payments or record a new payment (posting it to its account)"""
    if request.method == 'GET':
        queryset = Payment.objects.select_related('client', 'invoice', 'created_by')
        queryset = PaymentFilter(request.query_params, queryset=queryset).qs.order_by('-date_paid', '-id')
        response = paginated_response(request, queryset, PaymentSerializer)
        response['total_amount'] = str(
            queryset.filter(status='completed').aggregate(total=Sum('amount'))['total'] or 0
        )
        return Response(response)

    serializer = PaymentSerializer(data=request.data)
    if serializer.is_valid():
        payment = create_payment_with_transaction(user=request.user, **serializer.validated_data)
        create_audit_log(
            request=request,
            action='payment_add',
            model_name='Payment',
            object_id=payment.id,
            object_name=payment.client.name,
            object_reference=payment.paid_to or payment.quotation_number,
            changes={
                'payment_number': payment.payment_number,
                'amount': str(payment.amount),
                'payment_method': payment.payment_method,
                'status': payment.status,
            }
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk):
    """Retrieve, update or delete a payment"""
    payment = get_object_or_404(Payment.objects.select_related('client', 'invoice', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(PaymentSerializer(payment).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PaymentSerializer(payment, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            before = _snapshot(payment, PAYMENT_ACCOUNT_FIELDS)
            with transaction.atomic():
                payment = serializer.save()
                after = _snapshot(payment, PAYMENT_ACCOUNT_FIELDS)
                if before != after:
                    resync_payment_transaction(payment, user=request.user)
            if before != after:
                create_audit_log(
                    request=request,
                    action='update',
                    model_name='Payment',
                    object_id=payment.id,
                    object_name=payment.client.name,
                    object_reference=payment.payment_number,
                    changes={
                        name: {'old': str(before[name]), 'new': str(after[name])}
                        for name in PAYMENT_ACCOUNT_FIELDS if before[name] != after[name]
                    }
                )
            return Response(PaymentSerializer(payment).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        payment_id = payment.id
        payment_number = payment.payment_number
        client_name = payment.client.name
        amount = str(payment.amount)
        with transaction.atomic():
            reverse_transactions('payment', payment_id, f"Deleted payment {payment_number}", user=request.user)
            payment.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Payment',
            object_id=payment_id,
            object_name=client_name,
            object_reference=payment_number,
            changes={'amount': amount}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Expense views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def expense_list_create(request):
    """List expenses (?type=client|company) or record a new expense"""
    if request.method == 'GET':
        queryset = Expense.objects.select_related('client', 'category', 'created_by')
        queryset = ExpenseFilter(request.query_params, queryset=queryset).qs.order_by('-date_created', '-id')
        response = paginated_response(request, queryset, ExpenseSerializer)
        response['total_amount'] = str(queryset.aggregate(total=Sum('amount'))['total'] or 0)
        return Response(response)

    serializer = ExpenseSerializer(data=request.data)
    if serializer.is_valid():
        expense = create_expense_with_transaction(user=request.user, **serializer.validated_data)
        create_audit_log(
            request=request,
            action='expense_add',
            model_name='Expense',
            object_id=expense.id,
            object_name=expense.client.name if expense.client else expense.department,
            object_reference=expense.expense_number,
            changes={
                'expense_type': expense.expense_type,
                'amount': str(expense.amount),
                'account_debited': expense.account_debited,
            }
        )
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_detail(request, pk):
    """Retrieve, update or delete an expense"""
    expense = get_object_or_404(Expense.objects.select_related('client', 'category', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(ExpenseSerializer(expense).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            before = _snapshot(expense, EXPENSE_ACCOUNT_FIELDS)
            with transaction.atomic():
                expense = serializer.save()
                if before != _snapshot(expense, EXPENSE_ACCOUNT_FIELDS):
                    resync_expense_transaction(expense, user=request.user)
            return Response(ExpenseSerializer(expense).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        expense_id = expense.id
        expense_number = expense.expense_number
        amount = str(expense.amount)
        with transaction.atomic():
            reverse_transactions('expense', expense_id, f"Deleted expense {expense_number}", user=request.user)
            expense.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Expense',
            object_id=expense_id,
            object_reference=expense_number,
            changes={'amount': amount}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def expense_category_list_create(request):
    """List expense categories (?type=client|company) or create one"""
    if request.method == 'GET':
        queryset = ExpenseCategory.objects.all()
        category_type = request.query_params.get('type')
        if category_type:
            queryset = queryset.filter(category_type=category_type)
        if request.query_params.get('active') in ('1', 'true'):
            queryset = queryset.filter(is_active=True)
        serializer = ExpenseCategorySerializer(queryset, many=True)
        return Response(serializer.data)

    serializer = ExpenseCategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_category_detail(request, pk):
    category = get_object_or_404(ExpenseCategory, pk=pk)

    if request.method == 'GET':
        return Response(ExpenseCategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Account views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_transaction_list(request):
    """Account ledger, newest first"""
    queryset = AccountTransaction.objects.select_related('created_by')
    queryset = AccountTransactionFilter(request.query_params, queryset=queryset).qs.order_by('-transaction_date', '-id')
    return Response(paginated_response(request, queryset, AccountTransactionSerializer, default_limit=25))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_balance_list(request):
    """Current balance of every account; accounts without activity show zero"""
    balances = {balance.account_type: balance for balance in AccountBalance.objects.select_related('last_transaction')}
    data = []
    for account_type, label in ACCOUNT_TYPE_CHOICES:
        balance = balances.get(account_type)
        if balance is None:
            data.append({
                'id': None,
                'account_type': account_type,
                'account_name': label,
                'current_balance': '0.00',
                'last_transaction_number': None,
                'updated_at': None,
            })
        else:
            data.append(AccountBalanceSerializer(balance).data)
    return Response(data)
