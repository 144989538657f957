import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import Quotation, SalesOrder, Invoice, CashSale
from .serializers import (
    QuotationSerializer, SalesOrderSerializer, InvoiceSerializer, CashSaleSerializer
)
from .filters import QuotationFilter, SalesOrderFilter, InvoiceFilter, CashSaleFilter
from . import workflow
from .dedupe import merge_duplicate_sales_orders, cleanup_duplicate_cash_sales
from backend.core.permissions import IsAdminRole
from backend.core.utils import create_audit_log, paginated_response

logger = logging.getLogger(__name__)


def _split_items(request):
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


def _list_create(request, model, serializer_class, filter_class, page_context=None):
    """Shared list/create behaviour for sales documents"""
    if request.method == 'GET':
        queryset = model.objects.select_related('client', 'created_by').prefetch_related('items', 'items__stock_item')
        queryset = filter_class(request.query_params, queryset=queryset).qs
        queryset = queryset.order_by('-date_created', '-id')
        return Response(paginated_response(request, queryset, serializer_class, page_context=page_context))

    data, items_data = _split_items(request)
    serializer = serializer_class(data=data, context={'items_data': items_data or [], 'request': request})
    if serializer.is_valid():
        document = serializer.save(created_by=request.user)
        create_audit_log(
            request=request,
            action='create',
            model_name=model.__name__,
            object_id=document.id,
            object_name=document.client.name,
            object_reference=document.number,
            changes={'grand_total': str(document.grand_total), 'items': document.items.count()}
        )
        return Response(serializer_class(document).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _detail(request, model, serializer_class, pk):
    """Shared retrieve/update/delete behaviour for sales documents"""
    document = get_object_or_404(model.objects.select_related('client', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(document).data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = serializer_class(
            document,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            old_status = document.status
            document = serializer.save()
            if old_status != document.status:
                create_audit_log(
                    request=request,
                    action='status_change',
                    model_name=model.__name__,
                    object_id=document.id,
                    object_reference=document.number,
                    changes={'old_status': old_status, 'new_status': document.status}
                )
            return Response(serializer_class(document).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        document_id = str(document.id)
        number = document.number
        client_name = document.client.name
        grand_total = str(document.grand_total)
        document.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name=model.__name__,
            object_id=document_id,
            object_name=client_name,
            object_reference=number,
            changes={'grand_total': grand_total}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


def _convert(request, source, convert, serializer_class):
    """Run a workflow conversion and report it the same way for every endpoint"""
    try:
        created = convert(source, user=request.user)
    except workflow.WorkflowError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='document_convert',
        model_name=type(created).__name__,
        object_id=created.id,
        object_name=created.client.name,
        object_reference=created.number,
        changes={'from': source.number, 'to': created.number}
    )
    return Response(serializer_class(created).data, status=status.HTTP_201_CREATED)


# Quotation views
def _quotation_payment_context(quotations):
    return {'payment_summaries': workflow.payment_summaries_for(quotations)}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quotation_list_create(request):
    """List quotations with their payment status or create a new quotation"""
    return _list_create(request, Quotation, QuotationSerializer, QuotationFilter, page_context=_quotation_payment_context)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quotation_detail(request, pk):
    """Retrieve, update or delete a quotation"""
    return _detail(request, Quotation, QuotationSerializer, pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quotation_payment_status(request, pk):
    """Payment summary and the next workflow step for a quotation"""
    quotation = get_object_or_404(Quotation, pk=pk)
    summary = workflow.check_payment_requirements(quotation.quotation_number, quotation.grand_total)
    sales_order = workflow.find_sales_order(quotation)

    data = summary.as_dict()
    data.update({
        'quotation_number': quotation.quotation_number,
        'status': quotation.status,
        'sales_order': sales_order.order_number if sales_order else None,
        'next_steps': workflow.evaluate_progression(quotation.quotation_number, dry_run=True),
        'invoice_threshold': float(workflow.invoice_threshold()),
        'cash_sale_threshold': float(workflow.cash_sale_threshold()),
    })
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quotation_proceed_to_sales_order(request, pk):
    """Convert a paid quotation into a sales order"""
    quotation = get_object_or_404(Quotation, pk=pk)
    return _convert(request, quotation, workflow.proceed_to_sales_order, SalesOrderSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quotation_proceed_to_cash_sale(request, pk):
    """Take a fully paid quotation through its sales order to a cash sale"""
    quotation = get_object_or_404(Quotation, pk=pk)
    return _convert(request, quotation, workflow.proceed_to_cash_sale, CashSaleSerializer)


# SalesOrder views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sales_order_list_create(request):
    """List all sales orders or create a new sales order"""
    return _list_create(request, SalesOrder, SalesOrderSerializer, SalesOrderFilter)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sales_order_detail(request, pk):
    """Retrieve, update or delete a sales order"""
    return _detail(request, SalesOrder, SalesOrderSerializer, pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sales_order_proceed_to_invoice(request, pk):
    """Convert a sales order into an invoice"""
    sales_order = get_object_or_404(SalesOrder, pk=pk)
    return _convert(request, sales_order, workflow.proceed_to_invoice, InvoiceSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sales_order_proceed_to_cash_sale(request, pk):
    """Convert a fully paid sales order into a cash sale"""
    sales_order = get_object_or_404(SalesOrder, pk=pk)
    return _convert(request, sales_order, workflow.proceed_to_cash_sale_from_sales_order, CashSaleSerializer)


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    """List all invoices or create a new invoice"""
    return _list_create(request, Invoice, InvoiceSerializer, InvoiceFilter)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete an invoice"""
    return _detail(request, Invoice, InvoiceSerializer, pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invoice_proceed_to_cash_sale(request, pk):
    """Convert a fully paid invoice into a cash sale"""
    invoice = get_object_or_404(Invoice, pk=pk)
    return _convert(request, invoice, workflow.proceed_to_cash_sale_from_invoice, CashSaleSerializer)


# CashSale views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def cash_sale_list_create(request):
    """List all cash sales or record a new cash sale"""
    return _list_create(request, CashSale, CashSaleSerializer, CashSaleFilter)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cash_sale_detail(request, pk):
    """Retrieve, update or delete a cash sale"""
    return _detail(request, CashSale, CashSaleSerializer, pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def cleanup_duplicates(request):
    """Merge duplicate sales orders and remove duplicate cash sales"""
    dry_run = str(request.data.get('dry_run', 'false')).lower() in ('1', 'true', 'yes')

    sales_orders = merge_duplicate_sales_orders(dry_run=dry_run)
    cash_sales = cleanup_duplicate_cash_sales(dry_run=dry_run)

    if not dry_run and (sales_orders.deleted or cash_sales.deleted):
        create_audit_log(
            request=request,
            action='duplicate_cleanup',
            model_name='SalesOrder',
            object_id='bulk',
            changes={
                'sales_orders_deleted': sales_orders.deleted,
                'cash_sales_deleted': cash_sales.deleted,
            }
        )
        logger.info(
            f"Duplicate cleanup by {request.user.username}: "
            f"{sales_orders.deleted} sales orders, {cash_sales.deleted} cash sales removed"
        )

    return Response({
        'dry_run': dry_run,
        'sales_orders': sales_orders.as_dict(),
        'cash_sales': cash_sales.as_dict(),
    })
