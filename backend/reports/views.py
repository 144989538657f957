import logging
from datetime import datetime, timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.utils import timezone

from .summaries import build_sales_summary, build_account_summary, build_financial_summary
from .exports import EXPORTS, export_queryset, render_csv, render_pdf

logger = logging.getLogger('backend.reports')


def _date_range(request, default_days=30):
    """date_from/date_to query params as ISO strings; defaults to the last `default_days` days"""
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)

    if not date_from:
        date_from = (timezone.localdate() - timedelta(days=default_days))
    else:
        date_from = datetime.strptime(date_from, '%Y-%m-%d').date()

    if not date_to:
        date_to = timezone.localdate()
    else:
        date_to = datetime.strptime(date_to, '%Y-%m-%d').date()

    return date_from.isoformat(), date_to.isoformat()


def _invalid_date():
    return Response({'error': 'Dates must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_summary(request):
    """Count and value per document type in a date range"""
    try:
        date_from, date_to = _date_range(request)
    except ValueError:
        return _invalid_date()
    return Response(build_sales_summary(date_from, date_to))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_summary(request):
    """Per-client receivables"""
    return Response(build_account_summary(timezone.localdate().isoformat()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def financial_summary(request):
    """Revenue, expenses and net profit in a date range"""
    try:
        date_from, date_to = _date_range(request)
    except ValueError:
        return _invalid_date()
    return Response(build_financial_summary(date_from, date_to))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_report(request, kind):
    """Export a list report as CSV (default) or PDF (?format=pdf)"""
    if kind not in EXPORTS:
        return Response(
            {'error': f"Unknown report '{kind}'. Available: {', '.join(sorted(EXPORTS))}"},
            status=status.HTTP_404_NOT_FOUND
        )

    export_format = request.query_params.get('format', 'csv').lower()
    if export_format not in ('csv', 'pdf'):
        return Response({'error': "format must be 'csv' or 'pdf'"}, status=status.HTTP_400_BAD_REQUEST)

    queryset = export_queryset(kind, request.query_params)
    stamp = timezone.localdate().strftime('%Y%m%d')
    filename = f"{kind}-{stamp}.{export_format}"

    if export_format == 'pdf':
        response = HttpResponse(render_pdf(kind, queryset), content_type='application/pdf')
    else:
        response = HttpResponse(render_csv(kind, queryset), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    logger.info(f"{request.user.username} exported {kind} as {export_format}")
    return response
