"""
Test suite for the sales workflow
Tests: totals, payment requirements, conversions, progression, duplicate cleanup and the API
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Quotation, SalesOrder, Invoice, CashSale
from .totals import calculate_document_totals, money
from . import workflow
from .dedupe import merge_duplicate_sales_orders, cleanup_duplicate_cash_sales


class DocumentTotalsTests(TestCase):
    """Section, labour and VAT totals"""

    def test_totals_with_worktop_labour_and_vat(self):
        items = [
            {'category': 'cabinet', 'quantity': 2, 'unit_price': '500'},
            {'category': 'worktop', 'quantity': 1, 'unit_price': '400'},
            {'category': 'accessories', 'quantity': 1, 'unit_price': '300'},
        ]
        totals = calculate_document_totals(
            items,
            include={'worktop': True, 'accessories': False},
            labour_percentage=30,
            worktop_labor_qty=2,
            worktop_labor_unit_price=50,
            vat_percentage=16,
        )
        self.assertEqual(totals.section_totals['cabinet'], Decimal('1000.00'))
        self.assertEqual(totals.section_totals['worktop'], Decimal('400.00'))
        # Excluded section does not count
        self.assertEqual(totals.section_totals['accessories'], Decimal('0.00'))
        self.assertEqual(totals.worktop_labour, Decimal('100.00'))
        self.assertEqual(totals.labour_total, Decimal('400.00'))
        self.assertEqual(totals.total_amount, Decimal('1800.00'))
        self.assertEqual(totals.vat_amount, Decimal('288.00'))
        self.assertEqual(totals.grand_total, Decimal('2088.00'))

    def test_section_labour_percentage_overrides_general(self):
        items = [
            {'category': 'cabinet', 'quantity': 1, 'unit_price': '1000'},
            {'category': 'accessories', 'quantity': 1, 'unit_price': '200'},
        ]
        totals = calculate_document_totals(
            items,
            include={'accessories': True},
            labour_percentage=30,
            section_labour_percentages={'cabinet': 10, 'accessories': None},
            vat_percentage=0,
        )
        self.assertEqual(totals.section_labour['cabinet'], Decimal('100.00'))
        self.assertEqual(totals.section_labour['accessories'], Decimal('60.00'))
        self.assertEqual(totals.labour_total, Decimal('160.00'))
        self.assertEqual(totals.grand_total, Decimal('1360.00'))

    def test_cabinet_always_counts(self):
        totals = calculate_document_totals(
            [{'category': 'cabinet', 'quantity': 1, 'unit_price': '250'}],
            include={'cabinet': False},
            labour_percentage=0,
            vat_percentage=0,
        )
        self.assertEqual(totals.grand_total, Decimal('250.00'))

    def test_money_rounds_half_up(self):
        self.assertEqual(money('10.005'), Decimal('10.01'))
        self.assertEqual(money(None), Decimal('0.00'))

    def test_document_recalculates_from_items(self):
        quotation = TestDataFactory.create_quotation(
            items=[
                {'description': 'Base unit', 'quantity': Decimal('2'), 'unit_price': Decimal('750.00')},
            ],
            labour_percentage=Decimal('10'),
            vat_percentage=Decimal('16'),
        )
        self.assertEqual(quotation.cabinet_total, Decimal('1500.00'))
        self.assertEqual(quotation.labour_total, Decimal('150.00'))
        self.assertEqual(quotation.vat_amount, Decimal('264.00'))
        self.assertEqual(quotation.grand_total, Decimal('1914.00'))
        self.assertTrue(quotation.quotation_number.startswith('QT'))


class PaymentRequirementsTests(TestCase):
    """Payment summaries against quotation numbers"""

    def setUp(self):
        self.quotation = TestDataFactory.create_quotation()

    def test_no_payments(self):
        summary = workflow.check_payment_requirements(self.quotation.quotation_number)
        self.assertFalse(summary.has_payments)
        self.assertEqual(summary.total_paid, Decimal('0.00'))
        self.assertEqual(summary.payment_percentage, Decimal('0'))
        self.assertEqual(summary.quotation_total, Decimal('1000.00'))

    def test_completed_payments_are_summed(self):
        TestDataFactory.create_payment(self.quotation, amount=Decimal('300.00'))
        TestDataFactory.create_payment(self.quotation, amount=Decimal('200.00'))
        summary = workflow.check_payment_requirements(self.quotation.quotation_number)
        self.assertTrue(summary.has_payments)
        self.assertEqual(summary.total_paid, Decimal('500.00'))
        self.assertEqual(summary.payment_percentage, Decimal('50'))

    def test_pending_payments_are_ignored(self):
        TestDataFactory.create_payment(self.quotation, amount=Decimal('500.00'), status='pending')
        summary = workflow.check_payment_requirements(self.quotation.quotation_number)
        self.assertFalse(summary.has_payments)

    def test_payment_matched_by_paid_to_only(self):
        TestDataFactory.create_payment(self.quotation, amount=Decimal('250.00'), quotation_number='')
        summary = workflow.check_payment_requirements(self.quotation.quotation_number)
        self.assertEqual(summary.total_paid, Decimal('250.00'))

    def test_zero_total_gives_zero_percentage(self):
        summary = workflow.check_payment_requirements('QT-MISSING', Decimal('0'))
        self.assertEqual(summary.payment_percentage, Decimal('0'))

    def test_bulk_summaries(self):
        other = TestDataFactory.create_quotation(client=self.quotation.client)
        TestDataFactory.create_payment(self.quotation, amount=Decimal('800.00'))
        summaries = workflow.payment_summaries_for([self.quotation, other])
        self.assertEqual(summaries[self.quotation.quotation_number].total_paid, Decimal('800.00'))
        self.assertEqual(summaries[self.quotation.quotation_number].payment_percentage, Decimal('80'))
        self.assertFalse(summaries[other.quotation_number].has_payments)
        self.assertEqual(summaries[self.quotation.quotation_number].as_dict()['payment_percentage'], 80.0)


class ConversionTests(TestCase):
    """Quotation -> sales order -> invoice -> cash sale"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.quotation = TestDataFactory.create_quotation(user=self.user)

    def pay(self, amount):
        return TestDataFactory.create_payment(self.quotation, amount=Decimal(amount))

    def test_sales_order_requires_payment(self):
        with self.assertRaises(workflow.WorkflowError):
            workflow.proceed_to_sales_order(self.quotation, user=self.user)
        self.assertFalse(SalesOrder.objects.exists())

    def test_sales_order_copies_quotation(self):
        self.pay('100.00')
        order = workflow.proceed_to_sales_order(self.quotation, user=self.user)

        self.quotation.refresh_from_db()
        self.assertEqual(order.quotation, self.quotation)
        self.assertEqual(order.original_quotation_number, self.quotation.quotation_number)
        self.assertEqual(order.grand_total, self.quotation.grand_total)
        self.assertEqual(order.items.count(), 1)
        self.assertEqual(order.created_by, self.user)
        self.assertEqual(self.quotation.status, 'converted_to_sales_order')
        self.assertTrue(order.order_number.startswith('SO'))

    def test_closed_quotations_are_not_converted(self):
        self.pay('100.00')
        for closed_status in ('rejected', 'expired'):
            Quotation.objects.filter(pk=self.quotation.pk).update(status=closed_status)
            with self.assertRaises(workflow.WorkflowError):
                workflow.proceed_to_sales_order(self.quotation)
        self.assertFalse(SalesOrder.objects.exists())

    def test_sales_order_conversion_is_idempotent(self):
        self.pay('100.00')
        first = workflow.proceed_to_sales_order(self.quotation)
        second = workflow.proceed_to_sales_order(self.quotation)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(SalesOrder.objects.count(), 1)

    def test_invoice_below_threshold(self):
        self.pay('500.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        with self.assertRaises(workflow.WorkflowError):
            workflow.proceed_to_invoice(order)
        self.assertFalse(Invoice.objects.exists())

    def test_invoice_at_threshold(self):
        self.pay('800.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        invoice = workflow.proceed_to_invoice(order)

        order.refresh_from_db()
        self.assertEqual(invoice.sales_order, order)
        self.assertEqual(invoice.paid_amount, Decimal('800.00'))
        self.assertEqual(invoice.balance_amount, Decimal('200.00'))
        self.assertEqual(invoice.status, 'partially_paid')
        self.assertEqual(invoice.due_date, timezone.localdate() + timedelta(days=30))
        self.assertEqual(invoice.original_quotation_number, self.quotation.quotation_number)
        self.assertEqual(order.status, 'converted_to_invoice')

        # Second run returns the same invoice
        self.assertEqual(workflow.proceed_to_invoice(order).pk, invoice.pk)
        self.assertEqual(Invoice.objects.count(), 1)

    @override_settings(SALES_WORKFLOW={'INVOICE_PAYMENT_PERCENTAGE': 40})
    def test_invoice_threshold_is_configurable(self):
        self.pay('500.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        invoice = workflow.proceed_to_invoice(order)
        self.assertEqual(invoice.paid_amount, Decimal('500.00'))

    def test_cash_sale_goes_through_sales_order(self):
        self.pay('1000.00')
        cash_sale = workflow.proceed_to_cash_sale(self.quotation, user=self.user)

        order = SalesOrder.objects.get()
        self.assertEqual(cash_sale.sales_order, order)
        self.assertEqual(cash_sale.quotation, self.quotation)
        self.assertEqual(cash_sale.original_order_number, order.order_number)
        self.assertEqual(cash_sale.amount_paid, Decimal('1000.00'))
        self.assertEqual(cash_sale.balance_amount, Decimal('0.00'))
        self.assertEqual(cash_sale.items.count(), 1)
        order.refresh_from_db()
        self.assertEqual(order.status, 'converted_to_cash_sale')

    def test_cash_sale_requires_full_payment(self):
        self.pay('800.00')
        with self.assertRaises(workflow.WorkflowError):
            workflow.proceed_to_cash_sale(self.quotation)
        self.assertFalse(SalesOrder.objects.exists())
        self.assertFalse(CashSale.objects.exists())

    def test_cash_sale_from_invoice(self):
        self.pay('800.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        invoice = workflow.proceed_to_invoice(order)
        self.pay('200.00')

        cash_sale = workflow.proceed_to_cash_sale_from_invoice(invoice)
        invoice.refresh_from_db()
        self.assertEqual(cash_sale.invoice, invoice)
        self.assertEqual(cash_sale.sales_order, order)
        self.assertEqual(cash_sale.original_invoice_number, invoice.invoice_number)
        self.assertEqual(invoice.status, 'converted_to_cash_sale')
        self.assertEqual(invoice.paid_amount, Decimal('1000.00'))
        self.assertEqual(invoice.balance_amount, Decimal('0.00'))

    def test_sales_order_with_invoice_converts_through_invoice(self):
        self.pay('800.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        invoice = workflow.proceed_to_invoice(order)
        self.pay('200.00')

        cash_sale = workflow.proceed_to_cash_sale_from_sales_order(order)
        self.assertEqual(cash_sale.invoice, invoice)
        self.assertEqual(CashSale.objects.count(), 1)

    def test_cancelled_sales_order_cannot_convert(self):
        self.pay('1000.00')
        order = workflow.proceed_to_sales_order(self.quotation)
        order.status = 'cancelled'
        order.save()
        with self.assertRaises(workflow.WorkflowError):
            workflow.proceed_to_invoice(order)


class ProgressionTests(TestCase):
    """Payment-driven progression rules"""

    def setUp(self):
        self.quotation = TestDataFactory.create_quotation()

    def pay(self, amount, quotation=None):
        return TestDataFactory.create_payment(quotation or self.quotation, amount=Decimal(amount))

    def test_unpaid_quotation_does_not_move(self):
        self.assertEqual(workflow.evaluate_progression(self.quotation.quotation_number), [])

    def test_unknown_document_number(self):
        self.assertEqual(workflow.evaluate_progression('QT0000999'), [])

    def test_partial_payment_creates_sales_order(self):
        self.pay('500.00')
        steps = workflow.evaluate_progression(self.quotation.quotation_number)
        self.assertEqual(steps, ['sales_order'])
        self.assertEqual(SalesOrder.objects.count(), 1)
        self.assertFalse(Invoice.objects.exists())

    def test_invoice_threshold_creates_invoice(self):
        self.pay('750.00')
        steps = workflow.evaluate_progression(self.quotation.quotation_number)
        self.assertEqual(steps, ['sales_order', 'invoice'])
        self.assertEqual(Invoice.objects.count(), 1)

    def test_full_payment_creates_cash_sale(self):
        self.pay('1000.00')
        steps = workflow.evaluate_progression(self.quotation.quotation_number)
        self.assertEqual(steps, ['sales_order', 'cash_sale'])
        self.assertEqual(CashSale.objects.count(), 1)
        self.assertFalse(Invoice.objects.exists())

    def test_dry_run_creates_nothing(self):
        self.pay('800.00')
        steps = workflow.evaluate_progression(self.quotation.quotation_number, dry_run=True)
        self.assertEqual(steps, ['sales_order', 'invoice'])
        self.assertFalse(SalesOrder.objects.exists())

    def test_progression_from_sales_order_number(self):
        self.pay('500.00')
        workflow.evaluate_progression(self.quotation.quotation_number)
        order = SalesOrder.objects.get()

        self.pay('300.00')
        steps = workflow.evaluate_progression(order.order_number)
        self.assertEqual(steps, ['invoice'])

    def test_open_invoice_is_kept_in_sync(self):
        self.pay('800.00')
        workflow.evaluate_progression(self.quotation.quotation_number)
        self.pay('100.00')

        steps = workflow.evaluate_progression(self.quotation.quotation_number)
        invoice = Invoice.objects.get()
        self.assertEqual(steps, [])
        self.assertEqual(invoice.paid_amount, Decimal('900.00'))
        self.assertEqual(invoice.balance_amount, Decimal('100.00'))

    def test_repeated_progression_creates_no_duplicates(self):
        self.pay('1000.00')
        workflow.evaluate_progression(self.quotation.quotation_number)
        self.assertEqual(workflow.evaluate_progression(self.quotation.quotation_number), [])
        self.assertEqual(SalesOrder.objects.count(), 1)
        self.assertEqual(CashSale.objects.count(), 1)

    def test_process_all_quotations(self):
        unpaid = TestDataFactory.create_quotation(client=self.quotation.client)
        self.pay('500.00')

        results = workflow.process_all_quotations()
        self.assertEqual(results, {self.quotation.quotation_number: ['sales_order']})
        self.assertFalse(SalesOrder.objects.filter(original_quotation_number=unpaid.quotation_number).exists())

        # Nothing left to do on a second pass
        self.assertEqual(workflow.process_all_quotations(), {})

    def test_catch_up_pass_survives_unexpected_errors(self):
        other = TestDataFactory.create_quotation(client=self.quotation.client)
        self.pay('100.00')
        self.pay('100.00', quotation=other)
        real_evaluate = workflow.evaluate_progression

        def broken_for_first(number, **kwargs):
            if number == self.quotation.quotation_number:
                raise IntegrityError('duplicate key')
            return real_evaluate(number, **kwargs)

        with mock.patch.object(workflow, 'evaluate_progression', side_effect=broken_for_first):
            results = workflow.process_all_quotations()

        self.assertEqual(results[self.quotation.quotation_number], ['error: duplicate key'])
        self.assertEqual(results[other.quotation_number], ['sales_order'])
        self.assertTrue(SalesOrder.objects.filter(quotation=other).exists())

    def test_converted_quotation_without_sales_order_is_skipped(self):
        self.quotation.status = 'converted_to_cash_sale'
        self.quotation.save()
        self.pay('1000.00')
        self.assertEqual(workflow.evaluate_progression(self.quotation.quotation_number), [])

    def test_fix_incorrectly_converted_quotations(self):
        self.quotation.status = 'converted_to_cash_sale'
        self.quotation.save()
        self.pay('1000.00')

        results = workflow.fix_incorrectly_converted_quotations()
        self.assertEqual(results, {self.quotation.quotation_number: ['reset', 'sales_order', 'cash_sale']})
        order = SalesOrder.objects.get()
        self.assertEqual(order.quotation, self.quotation)
        self.assertEqual(CashSale.objects.get().sales_order, order)

    def test_fix_incorrectly_converted_dry_run(self):
        self.quotation.status = 'converted_to_cash_sale'
        self.quotation.save()
        self.pay('800.00')

        results = workflow.fix_incorrectly_converted_quotations(dry_run=True)
        self.assertEqual(results, {self.quotation.quotation_number: ['reset', 'sales_order', 'invoice']})
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'converted_to_cash_sale')
        self.assertFalse(SalesOrder.objects.exists())


class DuplicateCleanupTests(TestCase):
    """Merging duplicate sales orders and cash sales"""

    def setUp(self):
        self.quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(self.quotation, amount=Decimal('500.00'))
        self.order = workflow.proceed_to_sales_order(self.quotation)
        self.duplicate = SalesOrder.objects.create(
            client=self.quotation.client,
            quotation=self.quotation,
            original_quotation_number=self.quotation.quotation_number,
            grand_total=self.order.grand_total,
        )

    def test_merge_repoints_and_deletes(self):
        invoice = Invoice.objects.create(
            client=self.quotation.client,
            sales_order=self.duplicate,
            grand_total=self.order.grand_total,
        )
        result = merge_duplicate_sales_orders()

        invoice.refresh_from_db()
        self.assertEqual(result.deleted, 1)
        self.assertEqual(result.repointed_invoices, 1)
        self.assertEqual(invoice.sales_order, self.order)
        self.assertFalse(SalesOrder.objects.filter(pk=self.duplicate.pk).exists())
        self.assertTrue(SalesOrder.objects.filter(pk=self.order.pk).exists())

    def create_invoice(self, sales_order):
        return Invoice.objects.create(
            client=self.quotation.client,
            sales_order=sales_order,
            grand_total=self.order.grand_total,
        )

    def test_merge_keeps_earliest_invoice(self):
        first = self.create_invoice(self.order)
        self.create_invoice(self.duplicate)
        SalesOrder.objects.filter(pk=self.duplicate.pk).update(status='converted_to_invoice')

        result = merge_duplicate_sales_orders()

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'converted_to_invoice')
        self.assertEqual(list(self.order.invoices.values_list('pk', flat=True)), [first.pk])
        self.assertEqual(Invoice.objects.count(), 1)
        self.assertEqual(result.removed_invoices, 1)
        self.assertEqual(result.repointed_invoices, 0)

    def test_merge_moves_cash_sale_onto_kept_invoice(self):
        first = self.create_invoice(self.order)
        second = self.create_invoice(self.duplicate)
        cash_sale = CashSale.objects.create(
            client=self.quotation.client,
            sales_order=self.duplicate,
            invoice=second,
            grand_total=self.order.grand_total,
        )

        result = merge_duplicate_sales_orders()

        self.order.refresh_from_db()
        cash_sale.refresh_from_db()
        first.refresh_from_db()
        self.assertEqual(self.order.status, 'converted_to_cash_sale')
        self.assertEqual(cash_sale.sales_order, self.order)
        self.assertEqual(cash_sale.invoice, first)
        self.assertEqual(first.status, 'converted_to_cash_sale')
        self.assertEqual(result.repointed_cash_sales, 1)
        self.assertFalse(Invoice.objects.filter(pk=second.pk).exists())

    def test_merge_dry_run_reports_conflicts(self):
        self.create_invoice(self.order)
        self.create_invoice(self.duplicate)
        result = merge_duplicate_sales_orders(dry_run=True)
        self.assertEqual(result.as_dict()['removed_invoices'], 1)
        self.assertEqual(Invoice.objects.count(), 2)

    def test_merge_dry_run(self):
        result = merge_duplicate_sales_orders(dry_run=True)
        self.assertEqual(result.deleted, 1)
        self.assertEqual(result.as_dict()['groups'][0]['keep'], self.order.order_number)
        self.assertEqual(SalesOrder.objects.count(), 2)

    def test_cash_sale_cleanup_keeps_lowest_id(self):
        client = self.quotation.client
        first = CashSale.objects.create(client=client, grand_total=Decimal('500.00'))
        CashSale.objects.create(client=client, grand_total=Decimal('500.00'))
        CashSale.objects.create(client=client, grand_total=Decimal('700.00'))

        result = cleanup_duplicate_cash_sales()
        self.assertEqual(result.deleted, 1)
        self.assertEqual(
            list(CashSale.objects.filter(grand_total=Decimal('500.00')).values_list('pk', flat=True)),
            [first.pk]
        )
        self.assertEqual(CashSale.objects.count(), 2)

    def test_cleanup_command(self):
        out = StringIO()
        call_command('cleanup_duplicate_sales_orders', stdout=out)
        self.assertIn('Removed 1 duplicate sales orders', out.getvalue())
        self.assertEqual(SalesOrder.objects.count(), 1)


class WorkflowCommandTests(TestCase):
    """Catch-up and repair commands"""

    def test_process_existing_quotations_dry_run(self):
        quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(quotation, amount=Decimal('1000.00'))

        out = StringIO()
        call_command('process_existing_quotations', '--dry-run', stdout=out)
        self.assertIn(f'{quotation.quotation_number}: sales_order -> cash_sale', out.getvalue())
        self.assertFalse(SalesOrder.objects.exists())

    def test_process_existing_quotations(self):
        quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(quotation, amount=Decimal('800.00'))

        out = StringIO()
        call_command('process_existing_quotations', stdout=out)
        self.assertIn('Processed 1 quotations', out.getvalue())
        self.assertEqual(Invoice.objects.count(), 1)

    def test_fix_converted_quotations_nothing_to_do(self):
        out = StringIO()
        call_command('fix_converted_quotations', stdout=out)
        self.assertIn('No incorrectly converted quotations found', out.getvalue())


class SalesAPITests(TestCase):
    """Sales document endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_client()

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/quotations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_quotation_with_items(self):
        data = {
            'client': self.customer.id,
            'labour_percentage': '0',
            'vat_percentage': '0',
            'items': [
                {'description': 'Tall unit', 'quantity': '3', 'unit_price': '500.00'},
            ],
        }
        response = self.client.post('/api/v1/quotations/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['grand_total'], '1500.00')
        self.assertEqual(len(response.data['items']), 1)
        self.assertTrue(
            AuditLog.objects.filter(action='create', object_reference=response.data['quotation_number']).exists()
        )

    def test_create_quotation_rejects_bad_item(self):
        data = {
            'client': self.customer.id,
            'items': [{'description': 'Tall unit', 'quantity': '0', 'unit_price': '500.00'}],
        }
        response = self.client.post('/api/v1/quotations/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_list_includes_payment_status(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_payment(quotation, amount=Decimal('500.00'))

        response = self.client.get('/api/v1/quotations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        row = response.data['results'][0]
        self.assertEqual(row['total_paid'], '500.00')
        self.assertTrue(row['has_payments'])
        self.assertEqual(row['payment_percentage'], 50.0)

    def test_search_by_number(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_quotation()
        response = self.client.get(f'/api/v1/quotations/?search={quotation.quotation_number}')
        self.assertEqual(response.data['count'], 1)

    def test_payment_status_endpoint(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_payment(quotation, amount=Decimal('400.00'))

        response = self.client.get(f'/api/v1/quotations/{quotation.id}/payment-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_paid'], '400.00')
        self.assertEqual(response.data['next_steps'], ['sales_order'])
        self.assertIsNone(response.data['sales_order'])

    def test_proceed_to_sales_order_without_payment(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        response = self.client.post(f'/api/v1/quotations/{quotation.id}/proceed-to-sales-order/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_proceed_to_sales_order(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_payment(quotation, amount=Decimal('100.00'))

        response = self.client.post(f'/api/v1/quotations/{quotation.id}/proceed-to-sales-order/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['original_quotation_number'], quotation.quotation_number)
        self.assertTrue(
            AuditLog.objects.filter(action='document_convert', object_reference=response.data['order_number']).exists()
        )

    def test_proceed_to_invoice_below_threshold(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_payment(quotation, amount=Decimal('500.00'))
        order = workflow.proceed_to_sales_order(quotation)

        response = self.client.post(f'/api/v1/sales-orders/{order.id}/proceed-to-invoice/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_proceed_to_cash_sale(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        TestDataFactory.create_payment(quotation, amount=Decimal('1000.00'))

        response = self.client.post(f'/api/v1/quotations/{quotation.id}/proceed-to-cash-sale/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount_paid'], '1000.00')
        self.assertEqual(SalesOrder.objects.count(), 1)

    def test_update_status_is_audited(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'status': 'accepted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='status_change', object_reference=quotation.quotation_number).exists())

    def test_delete_quotation(self):
        quotation = TestDataFactory.create_quotation(client=self.customer)
        response = self.client.delete(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Quotation.objects.filter(pk=quotation.pk).exists())

    def test_invoice_overdue_filter(self):
        overdue = Invoice.objects.create(
            client=self.customer,
            grand_total=Decimal('1000.00'),
            balance_amount=Decimal('1000.00'),
            due_date=timezone.localdate() - timedelta(days=1),
        )
        Invoice.objects.create(
            client=self.customer,
            grand_total=Decimal('1000.00'),
            balance_amount=Decimal('1000.00'),
            due_date=timezone.localdate() + timedelta(days=10),
        )
        response = self.client.get('/api/v1/invoices/?overdue=true')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['invoice_number'], overdue.invoice_number)
        self.assertTrue(response.data['results'][0]['is_overdue'])

    def test_cleanup_duplicates_admin_only(self):
        response = self.client.post('/api/v1/sales/cleanup-duplicates/', {'dry_run': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cleanup_duplicates(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        CashSale.objects.create(client=self.customer, grand_total=Decimal('500.00'))
        CashSale.objects.create(client=self.customer, grand_total=Decimal('500.00'))

        response = self.client.post('/api/v1/sales/cleanup-duplicates/', {'dry_run': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cash_sales']['deleted'], 1)
        self.assertEqual(CashSale.objects.count(), 1)
        self.assertTrue(AuditLog.objects.filter(action='duplicate_cleanup').exists())
