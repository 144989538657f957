from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from .models import RegisteredEntity
from .serializers import RegisteredEntitySerializer, RegisteredEntityLookupSerializer
from .filters import RegisteredEntityFilter
from backend.core.utils import create_audit_log, paginated_response

SORT_FIELDS = {
    'name': 'name',
    '-name': '-name',
    'date_added': 'date_added',
    '-date_added': '-date_added',
    'last_transaction': 'last_transaction',
    '-last_transaction': '-last_transaction',
}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def entity_list_create(request):
    """List registered entities or register a new client/supplier"""
    if request.method == 'GET':
        filterset = RegisteredEntityFilter(request.query_params, queryset=RegisteredEntity.objects.all())
        queryset = filterset.qs

        sort = request.query_params.get('sort', 'name')
        queryset = queryset.order_by(SORT_FIELDS.get(sort, 'name'), 'id')

        return Response(paginated_response(request, queryset, RegisteredEntitySerializer, default_limit=25))
    else:
        serializer = RegisteredEntitySerializer(data=request.data)
        if serializer.is_valid():
            entity = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='RegisteredEntity',
                object_id=entity.id,
                object_name=entity.name,
                changes={'type': entity.type, 'phone': entity.phone}
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def entity_detail(request, pk):
    """Retrieve, update or delete a registered entity"""
    entity = get_object_or_404(RegisteredEntity, pk=pk)

    if request.method == 'GET':
        serializer = RegisteredEntitySerializer(entity)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RegisteredEntitySerializer(entity, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        entity_id = str(entity.id)
        entity_name = entity.name
        try:
            entity.delete()
        except ProtectedError:
            return Response(
                {'error': f"{entity_name} has documents or payments and cannot be deleted; mark it inactive instead"},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request,
            action='delete',
            model_name='RegisteredEntity',
            object_id=entity_id,
            object_name=entity_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def entity_search(request):
    """Quick lookup by name (optionally restricted to a type) for document forms"""
    name = request.query_params.get('name', '').strip()
    entity_type = request.query_params.get('type', None)

    queryset = RegisteredEntity.objects.filter(status='active')
    if name:
        queryset = queryset.filter(name__icontains=name)
    if entity_type:
        queryset = queryset.filter(type=entity_type)

    serializer = RegisteredEntityLookupSerializer(queryset.order_by('name')[:20], many=True)
    return Response(serializer.data)
