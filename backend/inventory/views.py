from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from decimal import Decimal, InvalidOperation
from .models import StockItem, StockMovement
from .serializers import StockItemSerializer, StockMovementSerializer
from .filters import StockItemFilter
from .utils import update_quantity
from backend.core.utils import create_audit_log, paginated_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_item_list_create(request):
    """List stock items or create a new one"""
    if request.method == 'GET':
        queryset = StockItem.objects.select_related('supplier')
        filterset = StockItemFilter(request.query_params, queryset=queryset)
        queryset = filterset.qs.order_by('name', 'id')
        return Response(paginated_response(request, queryset, StockItemSerializer, default_limit=25))
    else:
        serializer = StockItemSerializer(data=request.data)
        if serializer.is_valid():
            item = serializer.save()
            if item.quantity > 0:
                StockMovement.objects.create(
                    stock_item=item,
                    movement_type='in',
                    quantity=item.quantity,
                    reference_type='opening',
                    notes='Opening stock',
                    created_by=request.user,
                )
            create_audit_log(
                request=request,
                action='create',
                model_name='StockItem',
                object_id=item.id,
                object_name=item.name,
                changes={'quantity': str(item.quantity), 'unit_price': str(item.unit_price)}
            )
            return Response(StockItemSerializer(item).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def stock_item_detail(request, pk):
    """Retrieve, update or delete a stock item"""
    item = get_object_or_404(StockItem.objects.select_related('supplier'), pk=pk)

    if request.method == 'GET':
        serializer = StockItemSerializer(item)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy()
        # Quantity changes go through the adjust endpoint so they leave a movement
        data.pop('quantity', None)
        serializer = StockItemSerializer(item, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        item_id = str(item.id)
        item_name = item.name
        item.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='StockItem',
            object_id=item_id,
            object_name=item_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_item_adjust(request, pk):
    """Set a new on-hand quantity for a stock item and record the movement"""
    item = get_object_or_404(StockItem, pk=pk)

    try:
        new_quantity = Decimal(str(request.data.get('quantity')))
    except (InvalidOperation, TypeError, ValueError):
        return Response({'error': 'A numeric quantity is required'}, status=status.HTTP_400_BAD_REQUEST)

    movement_type = request.data.get('movement_type', 'adjustment')
    if movement_type not in dict(StockMovement.MOVEMENT_TYPE_CHOICES):
        return Response({'error': f'Invalid movement type: {movement_type}'}, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = item.quantity
    try:
        item, movement = update_quantity(
            item,
            new_quantity,
            movement_type=movement_type,
            reference_type=request.data.get('reference_type', 'manual'),
            reference_id=request.data.get('reference_id', ''),
            notes=request.data.get('notes', ''),
            user=request.user,
        )
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='StockItem',
        object_id=item.id,
        object_name=item.name,
        changes={
            'old_quantity': str(old_quantity),
            'new_quantity': str(item.quantity),
            'movement_type': movement_type,
        }
    )
    return Response({
        'item': StockItemSerializer(item).data,
        'movement': StockMovementSerializer(movement).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_item_movements(request, pk):
    """Movement history for a stock item"""
    item = get_object_or_404(StockItem, pk=pk)
    movements = item.movements.select_related('created_by').order_by('-date_created', '-id')
    return Response(paginated_response(request, movements, StockMovementSerializer, default_limit=50))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_low(request):
    """Items at or below their reorder level, including those out of stock"""
    items = StockItem.objects.select_related('supplier').filter(
        quantity__lte=F('reorder_level')
    ).order_by('quantity', 'name')
    serializer = StockItemSerializer(items, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_search(request):
    """Quick stock lookup by name or SKU for document item rows"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response([])
    items = StockItem.objects.filter(
        Q(name__icontains=query) | Q(sku__icontains=query)
    ).order_by('name')[:20]
    serializer = StockItemSerializer(items, many=True)
    return Response(serializer.data)
