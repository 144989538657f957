import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import Purchase
from .serializers import PurchaseSerializer
from .filters import PurchaseFilter
from backend.core.utils import create_audit_log, paginated_response
from backend.inventory.utils import add_stock
from backend.payments.accounts import record_purchase_transaction, resync_purchase_transaction, reverse_transactions

logger = logging.getLogger(__name__)


def _split_items(request):
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_list_create(request):
    """List purchases (?type=credit|cash|all, ?view=client|general) or create a purchase"""
    if request.method == 'GET':
        queryset = Purchase.objects.select_related('supplier', 'client', 'created_by').prefetch_related(
            'items', 'items__stock_item'
        )
        queryset = PurchaseFilter(request.query_params, queryset=queryset).qs.order_by('-purchase_date', '-id')
        response = paginated_response(request, queryset, PurchaseSerializer)
        response['total_amount'] = str(
            queryset.exclude(status='cancelled').aggregate(total=Sum('total_amount'))['total'] or 0
        )
        return Response(response)

    data, items_data = _split_items(request)
    serializer = PurchaseSerializer(data=data, context={'items_data': items_data, 'request': request})
    if serializer.is_valid():
        with transaction.atomic():
            purchase = serializer.save(created_by=request.user)
            record_purchase_transaction(purchase, user=request.user)
        create_audit_log(
            request=request,
            action='create',
            model_name='Purchase',
            object_id=purchase.id,
            object_name=purchase.supplier.name,
            object_reference=purchase.purchase_order_number,
            changes={'total_amount': str(purchase.total_amount), 'payment_method': purchase.payment_method}
        )
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purchase_detail(request, pk):
    """Retrieve, update or delete a purchase"""
    purchase = get_object_or_404(Purchase.objects.select_related('supplier', 'client', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(PurchaseSerializer(purchase).data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = PurchaseSerializer(
            purchase,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            before = (purchase.total_amount, purchase.payment_method)
            with transaction.atomic():
                purchase = serializer.save()
                if before != (purchase.total_amount, purchase.payment_method):
                    resync_purchase_transaction(purchase, user=request.user)
            return Response(PurchaseSerializer(purchase).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if purchase.status == 'received':
            return Response(
                {'error': 'A received purchase cannot be deleted; its stock has already been added'},
                status=status.HTTP_400_BAD_REQUEST
            )
        purchase_id = purchase.id
        purchase_number = purchase.purchase_order_number
        supplier_name = purchase.supplier.name
        with transaction.atomic():
            reverse_transactions('purchase', purchase_id, f"Deleted purchase {purchase_number}", user=request.user)
            purchase.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Purchase',
            object_id=purchase_id,
            object_name=supplier_name,
            object_reference=purchase_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_receive(request, pk):
    """Mark a pending purchase as received and add its items to stock"""
    with transaction.atomic():
        purchase = get_object_or_404(Purchase.objects.select_for_update(), pk=pk)
        if purchase.status != 'pending':
            return Response(
                {'error': f"Only pending purchases can be received; {purchase.purchase_order_number} is {purchase.status}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        received = []
        for item in purchase.items.select_related('stock_item'):
            if item.stock_item is None:
                continue
            stock_item, _ = add_stock(
                item.stock_item,
                item.quantity,
                reference_type='purchase',
                reference_id=purchase.id,
                notes=f"Received on {purchase.purchase_order_number}",
                user=request.user,
            )
            received.append({'stock_item': stock_item.id, 'name': stock_item.name, 'quantity': str(item.quantity)})

        purchase.status = 'received'
        purchase.received_at = timezone.now()
        purchase.save(update_fields=['status', 'received_at', 'updated_at'])

    create_audit_log(
        request=request,
        action='stock_purchase',
        model_name='Purchase',
        object_id=purchase.id,
        object_reference=purchase.purchase_order_number,
        changes={'items': received}
    )
    logger.info(f"Purchase {purchase.purchase_order_number} received: {len(received)} stock items updated")
    return Response(PurchaseSerializer(purchase).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_cancel(request, pk):
    """Cancel a pending purchase and reverse its account transaction"""
    with transaction.atomic():
        purchase = get_object_or_404(Purchase.objects.select_for_update(), pk=pk)
        if purchase.status != 'pending':
            return Response(
                {'error': f"Only pending purchases can be cancelled; {purchase.purchase_order_number} is {purchase.status}"},
                status=status.HTTP_400_BAD_REQUEST
            )
        purchase.status = 'cancelled'
        purchase.save(update_fields=['status', 'updated_at'])
        reverse_transactions('purchase', purchase.id, f"Cancelled purchase {purchase.purchase_order_number}", user=request.user)

    create_audit_log(
        request=request,
        action='status_change',
        model_name='Purchase',
        object_id=purchase.id,
        object_reference=purchase.purchase_order_number,
        changes={'old_status': 'pending', 'new_status': 'cancelled'}
    )
    return Response(PurchaseSerializer(purchase).data)
