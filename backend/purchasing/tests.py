"""
Test suite for Purchasing module
Tests: purchase totals, creation with items, receiving into stock, cancellation and account postings
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.models import StockMovement
from backend.payments.models import AccountBalance, AccountTransaction
from backend.purchasing.models import Purchase


def balance_of(account_type):
    return AccountBalance.objects.get(account_type=account_type).current_balance


class PurchaseModelTests(TestCase):
    """Purchase and PurchaseItem model methods"""

    def setUp(self):
        self.supplier = TestDataFactory.create_supplier()
        self.board = TestDataFactory.create_stock_item(name='MDF board')

    def test_purchase_number(self):
        purchase = TestDataFactory.create_purchase(supplier=self.supplier)
        self.assertTrue(purchase.purchase_order_number.startswith('PO'))
        self.assertEqual(str(purchase), purchase.purchase_order_number)

    def test_item_total_and_purchase_total(self):
        purchase = TestDataFactory.create_purchase(
            supplier=self.supplier,
            items=[(self.board, '2.5', '1200.00'), (None, 1, '350.00')]
        )
        self.assertEqual(purchase.items.get(stock_item=self.board).total_price, Decimal('3000.00'))
        self.assertEqual(purchase.total_amount, Decimal('3350.00'))
        self.assertEqual(purchase.get_total(), Decimal('3350.00'))


class PurchaseAPITests(TestCase):
    """Purchase endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier()
        self.board = TestDataFactory.create_stock_item(name='MDF board', quantity=Decimal('10.00'))

    def create_purchase(self, payment_method='cash', items=None):
        data = {
            'supplier': self.supplier.id,
            'payment_method': payment_method,
            'items': items or [
                {'stock_item': self.board.id, 'quantity': '5', 'unit_price': '100.00'},
            ],
        }
        return self.client.post('/api/v1/purchases/', data, format='json')

    def test_create_purchase(self):
        response = self.create_purchase()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '500.00')
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['items'][0]['description'], 'MDF board')
        self.assertEqual(balance_of('cash'), Decimal('-500.00'))
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Purchase').exists())

    def test_purchase_needs_items(self):
        response = self.client.post('/api/v1/purchases/', {'supplier': self.supplier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_item_needs_stock_item_or_description(self):
        response = self.create_purchase(items=[{'quantity': '1', 'unit_price': '10.00'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_supplier_must_be_a_supplier(self):
        customer = TestDataFactory.create_client()
        response = self.client.post('/api/v1/purchases/', {
            'supplier': customer.id,
            'items': [{'description': 'Hinges', 'quantity': '1', 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('supplier', response.data)

    def test_receive_adds_stock(self):
        purchase_id = self.create_purchase().data['id']
        response = self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'received')
        self.assertIsNotNone(response.data['received_at'])

        self.board.refresh_from_db()
        self.assertEqual(self.board.quantity, Decimal('15.00'))
        movement = StockMovement.objects.get(stock_item=self.board, reference_type='purchase')
        self.assertEqual(movement.movement_type, 'in')
        self.assertEqual(movement.quantity, Decimal('5.00'))
        self.assertTrue(AuditLog.objects.filter(action='stock_purchase').exists())

    def test_receive_twice_is_rejected(self):
        purchase_id = self.create_purchase().data['id']
        self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        response = self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.board.refresh_from_db()
        self.assertEqual(self.board.quantity, Decimal('15.00'))

    def test_received_purchase_cannot_be_deleted(self):
        purchase_id = self.create_purchase().data['id']
        self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        response = self.client.delete(f'/api/v1/purchases/{purchase_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_received_purchase_items_are_locked(self):
        purchase_id = self.create_purchase().data['id']
        self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        response = self.client.patch(f'/api/v1/purchases/{purchase_id}/', {
            'items': [{'stock_item': self.board.id, 'quantity': '50', 'unit_price': '100.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_reverses_account(self):
        purchase_id = self.create_purchase().data['id']
        response = self.client.post(f'/api/v1/purchases/{purchase_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(balance_of('cash'), Decimal('0.00'))

        # A cancelled purchase cannot be received
        response = self.client.post(f'/api/v1/purchases/{purchase_id}/receive/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_changing_items_resyncs_account(self):
        purchase_id = self.create_purchase().data['id']
        response = self.client.patch(f'/api/v1/purchases/{purchase_id}/', {
            'items': [{'stock_item': self.board.id, 'quantity': '8', 'unit_price': '100.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_amount'], '800.00')
        self.assertEqual(balance_of('cash'), Decimal('-800.00'))

    def test_changing_payment_method_moves_account(self):
        purchase_id = self.create_purchase().data['id']
        self.client.patch(f'/api/v1/purchases/{purchase_id}/', {'payment_method': 'credit'}, format='json')
        self.assertEqual(balance_of('cash'), Decimal('0.00'))
        self.assertEqual(balance_of('credit'), Decimal('-500.00'))

    def test_delete_pending_purchase(self):
        purchase_id = self.create_purchase().data['id']
        response = self.client.delete(f'/api/v1/purchases/{purchase_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Purchase.objects.filter(pk=purchase_id).exists())
        self.assertEqual(balance_of('cash'), Decimal('0.00'))
        self.assertEqual(AccountTransaction.objects.filter(reference_type='purchase').count(), 2)

    def test_list_filters_by_type_and_view(self):
        customer = TestDataFactory.create_client()
        TestDataFactory.create_purchase(supplier=self.supplier, items=[(self.board, 1, 100)])
        TestDataFactory.create_purchase(
            supplier=self.supplier, items=[(self.board, 2, 100)], payment_method='credit', client=customer
        )

        response = self.client.get('/api/v1/purchases/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('300.00'))

        response = self.client.get('/api/v1/purchases/?type=credit')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['client_name'], customer.name)

        response = self.client.get('/api/v1/purchases/?type=cash&view=general')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['total_amount'], '100.00')
