"""
Test suite for Reports module
Tests: sales summary, account summary, financial summary and CSV/PDF exports
"""
from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.sales import workflow
from backend.sales.models import SalesOrder, Invoice, CashSale
from .exports import EXPORTS, export_queryset, render_csv


class ReportsTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)


class SalesSummaryTests(ReportsTestCase):

    def test_counts_and_conversion_rate(self):
        converted = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(converted, amount=Decimal('100.00'))
        workflow.proceed_to_sales_order(converted)
        TestDataFactory.create_quotation(client=converted.client)

        response = self.client.get('/api/v1/reports/sales-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        documents = response.data['documents']
        self.assertEqual(documents['quotations']['count'], 2)
        self.assertEqual(documents['quotations']['value'], 2000.0)
        self.assertEqual(
            documents['quotations']['by_status'],
            {'converted_to_sales_order': 1, 'pending': 1}
        )
        self.assertEqual(documents['sales_orders']['count'], 1)
        self.assertEqual(documents['invoices']['count'], 0)
        self.assertEqual(response.data['conversion_rate'], 50.0)

    def test_cancelled_documents_are_left_out(self):
        SalesOrder.objects.create(client=TestDataFactory.create_client(), grand_total=Decimal('750.00'), status='cancelled')
        response = self.client.get('/api/v1/reports/sales-summary/')
        self.assertEqual(response.data['documents']['sales_orders']['count'], 0)
        self.assertEqual(response.data['conversion_rate'], 0.0)

    def test_date_range(self):
        TestDataFactory.create_quotation()
        response = self.client.get('/api/v1/reports/sales-summary/?date_from=2020-01-01&date_to=2020-01-31')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], {'from': '2020-01-01', 'to': '2020-01-31'})
        self.assertEqual(response.data['documents']['quotations']['count'], 0)

    def test_invalid_date(self):
        response = self.client.get('/api/v1/reports/sales-summary/?date_from=01-01-2024')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AccountSummaryTests(ReportsTestCase):

    def test_account_statuses(self):
        today = timezone.localdate()
        alpha = TestDataFactory.create_client(name='Alpha Homes')
        beta = TestDataFactory.create_client(name='Beta Builders')
        gamma = TestDataFactory.create_client(name='Gamma Interiors')

        Invoice.objects.create(
            client=alpha, grand_total=Decimal('1000.00'), paid_amount=Decimal('400.00'),
            balance_amount=Decimal('600.00'), due_date=today - timedelta(days=1), status='partially_paid',
        )
        Invoice.objects.create(
            client=beta, grand_total=Decimal('500.00'), paid_amount=Decimal('600.00'),
            balance_amount=Decimal('-100.00'), due_date=today + timedelta(days=5), status='paid',
        )
        Invoice.objects.create(
            client=gamma, grand_total=Decimal('300.00'), due_date=today + timedelta(days=5),
            balance_amount=Decimal('300.00'),
        )
        TestDataFactory.create_payment(client=alpha, amount=Decimal('400.00'), quotation_number='QT2501001')

        response = self.client.get('/api/v1/reports/account-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        accounts = {row['client_name']: row for row in response.data['accounts']}
        self.assertEqual(accounts['Alpha Homes']['status'], 'overdue')
        self.assertEqual(accounts['Alpha Homes']['balance'], 600.0)
        self.assertIsNotNone(accounts['Alpha Homes']['last_payment_date'])
        self.assertEqual(accounts['Beta Builders']['status'], 'credit')
        self.assertEqual(accounts['Gamma Interiors']['status'], 'current')
        self.assertIsNone(accounts['Gamma Interiors']['last_payment_date'])

        totals = response.data['totals']
        self.assertEqual(totals['total_amount'], 1800.0)
        self.assertEqual(totals['total_paid'], 1000.0)
        self.assertEqual(totals['balance'], 800.0)
        self.assertEqual(totals['overdue_clients'], 1)

    def test_cancelled_invoices_are_ignored(self):
        Invoice.objects.create(client=TestDataFactory.create_client(), grand_total=Decimal('900.00'), status='cancelled')
        response = self.client.get('/api/v1/reports/account-summary/')
        self.assertEqual(response.data['accounts'], [])


class FinancialSummaryTests(ReportsTestCase):

    def test_revenue_expenses_and_profit(self):
        quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(quotation, amount=Decimal('500.00'))
        TestDataFactory.create_payment(quotation, amount=Decimal('300.00'), status='pending')
        CashSale.objects.create(client=quotation.client, grand_total=Decimal('1000.00'), amount_paid=Decimal('1000.00'))
        TestDataFactory.create_expense(expense_type='client', client=quotation.client, amount=Decimal('100.00'))
        TestDataFactory.create_expense(expense_type='company', amount=Decimal('200.00'))
        TestDataFactory.create_purchase(items=[(None, 1, '400.00')])
        TestDataFactory.create_purchase(items=[(None, 1, '999.00')], status='cancelled')

        response = self.client.get('/api/v1/reports/financial-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['revenue'], {'payments': 500.0, 'cash_sales': 1000.0, 'total': 1500.0})
        self.assertEqual(response.data['expenses'], {'client': 100.0, 'company': 200.0, 'total': 300.0})
        self.assertEqual(response.data['purchases'], 400.0)
        self.assertEqual(response.data['net_profit'], 1200.0)
        self.assertIn('generated_at', response.data)

    def test_empty_period(self):
        response = self.client.get('/api/v1/reports/financial-summary/?date_from=2020-01-01&date_to=2020-01-02')
        self.assertEqual(response.data['net_profit'], 0.0)


class ExportTests(ReportsTestCase):

    def setUp(self):
        super().setUp()
        self.quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(self.quotation, amount=Decimal('500.00'), reference_number='MPX123')
        TestDataFactory.create_payment(self.quotation, amount=Decimal('300.00'), status='pending')

    def test_every_export_has_columns(self):
        for kind, spec in EXPORTS.items():
            self.assertTrue(spec.headers(), kind)
            self.assertTrue(spec.total_label.startswith('Total'), kind)

    def test_quotations_csv(self):
        response = self.client.get('/api/v1/reports/export/quotations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        stamp = timezone.localdate().strftime('%Y%m%d')
        self.assertEqual(response['Content-Disposition'], f'attachment; filename="quotations-{stamp}.csv"')

        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'Quotations Report')
        self.assertTrue(lines[1].startswith('Generated: '))
        self.assertTrue(lines[3].startswith('Number,Date,Client'))
        self.assertIn(self.quotation.quotation_number, lines[4])
        self.assertIn('Total Quotations Value: KES 1,000.00', lines[-1])

    def test_payments_total_counts_completed_only(self):
        content = render_csv('payments', export_queryset('payments', {}))
        self.assertIn('MPX123', content)
        self.assertIn('Total Payments: KES 500.00', content)

    def test_export_respects_filters(self):
        queryset = export_queryset('payments', {'status': 'pending'})
        self.assertEqual(queryset.count(), 1)

        response = self.client.get('/api/v1/reports/export/payments/?status=pending')
        self.assertIn('Total Payments: KES 0.00', response.content.decode())

    def test_expense_exports_split_by_type(self):
        TestDataFactory.create_expense(expense_type='company', amount=Decimal('250.00'), department='Workshop')
        self.assertEqual(export_queryset('client-expenses', {}).count(), 0)
        self.assertEqual(export_queryset('company-expenses', {}).count(), 1)

    def test_pdf_export(self):
        response = self.client.get('/api/v1/reports/export/invoices/?format=pdf')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_unknown_report(self):
        response = self.client.get('/api/v1/reports/export/stock/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unsupported_format(self):
        response = self.client.get('/api/v1/reports/export/quotations/?format=xlsx')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/export/quotations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
