"""
Test suite for payments, expenses and accounts
Tests: account mapping, ledger postings, payment/expense CRUD, balances and the payment monitor
"""
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.sales.models import SalesOrder, Invoice, CashSale
from .models import Payment, Expense, AccountTransaction, AccountBalance
from .accounts import (
    map_payment_method_to_account_type, map_account_debited_to_account_type,
    create_account_transaction, create_payment_with_transaction, create_expense_with_transaction,
    reverse_transactions, resync_payment_transaction, net_recorded,
)
from .monitor import payment_document_numbers, process_payment


def balance_of(account_type):
    return AccountBalance.objects.get(account_type=account_type).current_balance


class AccountMappingTests(TestCase):

    def test_payment_methods(self):
        self.assertEqual(map_payment_method_to_account_type('cash'), 'cash')
        self.assertEqual(map_payment_method_to_account_type('bank_transfer'), 'cooperative_bank')
        self.assertEqual(map_payment_method_to_account_type('Cheque'), 'cheque')
        self.assertEqual(map_payment_method_to_account_type('credit'), 'credit')

    def test_unknown_methods_fall_back_to_cash(self):
        self.assertEqual(map_payment_method_to_account_type('mpesa'), 'cash')
        self.assertEqual(map_payment_method_to_account_type(None), 'cash')
        self.assertEqual(map_account_debited_to_account_type('petty'), 'cash')

    def test_account_debited(self):
        self.assertEqual(map_account_debited_to_account_type('bank'), 'cooperative_bank')
        self.assertEqual(map_account_debited_to_account_type('check'), 'cheque')


class AccountLedgerTests(TestCase):
    """Account transactions and running balances"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_client()

    def test_transactions_update_balance(self):
        first = create_account_transaction('cash', 'in', Decimal('1000.00'), 'Opening', 'sale')
        second = create_account_transaction('cash', 'out', Decimal('250.00'), 'Fuel', 'expense')

        self.assertEqual(first.balance_after, Decimal('1000.00'))
        self.assertEqual(second.balance_after, Decimal('750.00'))
        self.assertEqual(balance_of('cash'), Decimal('750.00'))
        self.assertEqual(AccountBalance.objects.get(account_type='cash').last_transaction, second)

    def test_transaction_numbers_are_sequential(self):
        first = create_account_transaction('cash', 'in', 10, 'a', 'sale')
        second = create_account_transaction('cheque', 'in', 10, 'b', 'sale')
        self.assertEqual(first.transaction_number, 'TXN000001')
        self.assertEqual(second.transaction_number, 'TXN000002')

    def test_invalid_transaction_type(self):
        with self.assertRaises(ValueError):
            create_account_transaction('cash', 'sideways', 10, 'bad', 'sale')

    def test_payment_posts_money_in(self):
        payment = create_payment_with_transaction(
            user=self.user,
            client=self.customer,
            quotation_number='QT0000001',
            amount=Decimal('500.00'),
            payment_method='bank_transfer',
        )
        self.assertEqual(payment.account_credited, 'cooperative_bank')
        self.assertEqual(payment.created_by, self.user)
        txn = AccountTransaction.objects.get(reference_type='payment', reference_id=payment.id)
        self.assertEqual(txn.transaction_type, 'in')
        self.assertEqual(balance_of('cooperative_bank'), Decimal('500.00'))

    def test_pending_payment_posts_nothing(self):
        create_payment_with_transaction(
            client=self.customer, quotation_number='QT0000001', amount=Decimal('500.00'), status='pending'
        )
        self.assertFalse(AccountTransaction.objects.exists())

    def test_expense_posts_money_out(self):
        expense = create_expense_with_transaction(
            user=self.user, expense_type='company', amount=Decimal('300.00'), account_debited='cheque'
        )
        txn = AccountTransaction.objects.get(reference_type='expense', reference_id=expense.id)
        self.assertEqual(txn.transaction_type, 'out')
        self.assertEqual(balance_of('cheque'), Decimal('-300.00'))

    def test_reversal_is_idempotent(self):
        payment = create_payment_with_transaction(
            client=self.customer, quotation_number='QT0000001', amount=Decimal('500.00')
        )
        reverse_transactions('payment', payment.id)
        self.assertEqual(reverse_transactions('payment', payment.id), [])
        self.assertEqual(balance_of('cash'), Decimal('0.00'))
        self.assertEqual(net_recorded('payment', payment.id), {'cash': Decimal('0.00')})

    def test_resync_after_amount_change(self):
        payment = create_payment_with_transaction(
            client=self.customer, quotation_number='QT0000001', amount=Decimal('500.00')
        )
        payment.amount = Decimal('700.00')
        payment.save()
        resync_payment_transaction(payment)
        # Running it twice leaves the balance where it is
        resync_payment_transaction(payment)

        self.assertEqual(balance_of('cash'), Decimal('700.00'))
        self.assertEqual(net_recorded('payment', payment.id)['cash'], Decimal('700.00'))

    def test_resync_after_account_change(self):
        payment = create_payment_with_transaction(
            client=self.customer, quotation_number='QT0000001', amount=Decimal('500.00')
        )
        payment.account_credited = 'cheque'
        payment.save()
        resync_payment_transaction(payment)

        self.assertEqual(balance_of('cash'), Decimal('0.00'))
        self.assertEqual(balance_of('cheque'), Decimal('500.00'))


class PaymentAPITests(TestCase):
    """Payment endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.quotation = TestDataFactory.create_quotation()

    def post_payment(self, amount='500.00', **extra):
        data = {
            'client': self.quotation.client.id,
            'quotation_number': self.quotation.quotation_number,
            'amount': amount,
            'payment_method': 'cash',
        }
        data.update(extra)
        return self.client.post('/api/v1/payments/', data, format='json')

    def test_create_payment(self):
        response = self.post_payment()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['payment_number'].startswith('PN'))
        self.assertEqual(response.data['account_credited'], 'cash')
        self.assertEqual(response.data['created_by_username'], self.user.username)
        self.assertEqual(balance_of('cash'), Decimal('500.00'))
        self.assertTrue(AuditLog.objects.filter(action='payment_add', object_reference=self.quotation.quotation_number).exists())

    def test_payment_needs_document_reference(self):
        response = self.client.post('/api/v1/payments/', {
            'client': self.quotation.client.id,
            'amount': '100.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_amount_must_be_positive(self):
        response = self.post_payment(amount='0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_invoice_payment_fills_document_numbers(self):
        invoice = Invoice.objects.create(
            client=self.quotation.client,
            grand_total=Decimal('1000.00'),
            original_quotation_number=self.quotation.quotation_number,
        )
        response = self.client.post('/api/v1/payments/', {
            'client': self.quotation.client.id,
            'invoice': invoice.id,
            'amount': '100.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['paid_to'], invoice.invoice_number)
        self.assertEqual(response.data['quotation_number'], self.quotation.quotation_number)
        self.assertEqual(response.data['invoice_number'], invoice.invoice_number)

    def test_list_payments_with_total(self):
        TestDataFactory.create_payment(self.quotation, amount=Decimal('300.00'))
        TestDataFactory.create_payment(self.quotation, amount=Decimal('200.00'))
        TestDataFactory.create_payment(self.quotation, amount=Decimal('900.00'), status='pending')

        response = self.client.get('/api/v1/payments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('500.00'))

        response = self.client.get(f'/api/v1/payments/?document={self.quotation.quotation_number}&status=pending')
        self.assertEqual(response.data['count'], 1)

    def test_update_amount_resyncs_account(self):
        payment_id = self.post_payment().data['id']
        response = self.client.patch(f'/api/v1/payments/{payment_id}/', {'amount': '650.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(balance_of('cash'), Decimal('650.00'))
        self.assertTrue(AuditLog.objects.filter(action='update', model_name='Payment').exists())

    def test_completing_pending_payment_posts_it(self):
        payment_id = self.post_payment(status='pending').data['id']
        self.assertFalse(AccountTransaction.objects.exists())

        self.client.patch(f'/api/v1/payments/{payment_id}/', {'status': 'completed'}, format='json')
        self.assertEqual(balance_of('cash'), Decimal('500.00'))

    def test_delete_reverses_account(self):
        payment_id = self.post_payment().data['id']
        response = self.client.delete(f'/api/v1/payments/{payment_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Payment.objects.filter(pk=payment_id).exists())
        self.assertEqual(balance_of('cash'), Decimal('0.00'))


class PaymentMonitorTests(TestCase):
    """Documents progress once a payment is committed"""

    def setUp(self):
        self.quotation = TestDataFactory.create_quotation()

    def test_document_numbers(self):
        payment = Payment(paid_to='SO2501001', quotation_number='QT2501001')
        self.assertEqual(payment_document_numbers(payment), ['SO2501001', 'QT2501001'])
        payment = Payment(paid_to='QT2501001', quotation_number='QT2501001')
        self.assertEqual(payment_document_numbers(payment), ['QT2501001'])

    def test_partial_payment_creates_sales_order(self):
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_payment(self.quotation, amount=Decimal('100.00'))
        self.assertEqual(SalesOrder.objects.filter(quotation=self.quotation).count(), 1)

    def test_threshold_payment_creates_invoice(self):
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_payment(self.quotation, amount=Decimal('800.00'))
        self.assertEqual(Invoice.objects.count(), 1)

    def test_follow_up_payment_completes_sale(self):
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_payment(self.quotation, amount=Decimal('800.00'))
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_payment(self.quotation, amount=Decimal('200.00'))

        invoice = Invoice.objects.get()
        self.assertEqual(invoice.status, 'converted_to_cash_sale')
        self.assertEqual(CashSale.objects.get().invoice, invoice)

    def test_pending_payment_is_ignored(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            TestDataFactory.create_payment(self.quotation, amount=Decimal('1000.00'), status='pending')
        self.assertEqual(callbacks, [])
        self.assertFalse(SalesOrder.objects.exists())

    @override_settings(SALES_WORKFLOW={'PAYMENT_MONITOR_ENABLED': False})
    def test_monitor_can_be_disabled(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            TestDataFactory.create_payment(self.quotation, amount=Decimal('1000.00'))
        self.assertEqual(callbacks, [])

    def test_api_payment_triggers_progression(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        with self.captureOnCommitCallbacks(execute=True):
            response = client.post('/api/v1/payments/', {
                'client': self.quotation.client.id,
                'quotation_number': self.quotation.quotation_number,
                'amount': '1000.00',
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(CashSale.objects.count(), 1)

    def test_balance_paid_to_sales_order_number(self):
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_payment(self.quotation, amount=Decimal('100.00'))
        sales_order = SalesOrder.objects.get(quotation=self.quotation)

        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        with self.captureOnCommitCallbacks(execute=True):
            response = client.post('/api/v1/payments/', {
                'client': self.quotation.client.id,
                'paid_to': sales_order.order_number,
                'amount': '900.00',
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quotation_number'], self.quotation.quotation_number)
        self.assertEqual(CashSale.objects.get().sales_order, sales_order)

    def test_process_payment_reports_steps(self):
        TestDataFactory.create_payment(self.quotation, amount=Decimal('100.00'))
        results = process_payment(1, [self.quotation.quotation_number, 'QT0000999'])
        self.assertEqual(results, {self.quotation.quotation_number: ['sales_order'], 'QT0000999': []})


class ExpenseAPITests(TestCase):
    """Expense and expense category endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_company_expense(self):
        category = TestDataFactory.create_expense_category(name='Rent')
        response = self.client.post('/api/v1/expenses/', {
            'expense_type': 'company',
            'category': category.id,
            'amount': '1200.00',
            'description': 'Workshop rent',
            'account_debited': 'cooperative_bank',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category_name'], 'Rent')
        self.assertEqual(balance_of('cooperative_bank'), Decimal('-1200.00'))
        self.assertTrue(AuditLog.objects.filter(action='expense_add').exists())

    def test_client_expense_requires_client(self):
        response = self.client.post('/api/v1/expenses/', {
            'expense_type': 'client',
            'amount': '100.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('client', response.data)

    def test_filter_by_type(self):
        customer = TestDataFactory.create_client()
        TestDataFactory.create_expense(expense_type='client', client=customer, amount=Decimal('50.00'))
        TestDataFactory.create_expense(expense_type='company', amount=Decimal('80.00'))

        response = self.client.get('/api/v1/expenses/?type=client')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('50.00'))

    def test_update_and_delete_expense(self):
        expense_id = self.client.post('/api/v1/expenses/', {
            'expense_type': 'company', 'amount': '100.00', 'account_debited': 'cash',
        }, format='json').data['id']

        self.client.patch(f'/api/v1/expenses/{expense_id}/', {'amount': '150.00'}, format='json')
        self.assertEqual(balance_of('cash'), Decimal('-150.00'))

        response = self.client.delete(f'/api/v1/expenses/{expense_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Expense.objects.filter(pk=expense_id).exists())
        self.assertEqual(balance_of('cash'), Decimal('0.00'))

    def test_expense_categories(self):
        TestDataFactory.create_expense_category(name='Fuel', category_type='client')
        TestDataFactory.create_expense_category(name='Rent', category_type='company')

        response = self.client.get('/api/v1/expense-categories/?type=client')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['Fuel'])


class AccountAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_balances_list_every_account(self):
        create_account_transaction('cash', 'in', Decimal('400.00'), 'Sale', 'sale')

        response = self.client.get('/api/v1/accounts/balances/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        balances = {row['account_type']: row for row in response.data}
        self.assertEqual(set(balances), {'cash', 'cooperative_bank', 'credit', 'cheque'})
        self.assertEqual(Decimal(balances['cash']['current_balance']), Decimal('400.00'))
        self.assertEqual(balances['cash']['last_transaction_number'], 'TXN000001')
        self.assertEqual(balances['cheque']['current_balance'], '0.00')

    def test_transaction_ledger(self):
        create_account_transaction('cash', 'in', Decimal('400.00'), 'Sale', 'sale')
        create_account_transaction('cheque', 'out', Decimal('100.00'), 'Supplies', 'expense')

        response = self.client.get('/api/v1/accounts/transactions/?account=cash')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['transaction_type'], 'in')
