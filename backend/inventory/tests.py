"""
Test suite for Inventory module
Tests: stock status, quantity helpers, stock endpoints and adjustments
"""
from decimal import Decimal
from unittest import mock

from django.db.models import F
from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import StockItem, StockMovement
from .utils import update_quantity, add_stock, remove_stock


class StockItemModelTests(TestCase):

    def test_status_follows_quantity(self):
        item = TestDataFactory.create_stock_item(quantity=Decimal('10'), reorder_level=Decimal('2'))
        self.assertEqual(item.status, 'in_stock')

        item.quantity = Decimal('2')
        item.save(update_fields=['quantity'])
        item.refresh_from_db()
        self.assertEqual(item.status, 'low_stock')

        item.quantity = Decimal('0')
        item.save()
        self.assertEqual(item.status, 'out_of_stock')


class StockUtilsTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.item = TestDataFactory.create_stock_item(quantity=Decimal('10'))

    def test_update_quantity_records_difference(self):
        item, movement = update_quantity(self.item, '4', notes='Count', user=self.user)
        self.assertEqual(item.quantity, Decimal('4'))
        self.assertEqual(movement.movement_type, 'adjustment')
        self.assertEqual(movement.quantity, Decimal('6'))
        self.assertEqual(movement.created_by, self.user)

    def test_negative_quantity_rejected(self):
        with self.assertRaises(ValueError):
            update_quantity(self.item, '-1')

    def test_add_and_remove_stock(self):
        add_stock(self.item, 5, reference_type='purchase', reference_id=7)
        item, movement = remove_stock(self.item, 3)

        self.assertEqual(item.quantity, Decimal('12'))
        self.assertEqual(movement.movement_type, 'out')
        self.assertTrue(StockMovement.objects.filter(reference_type='purchase', reference_id='7').exists())

    def test_remove_more_than_available(self):
        with self.assertRaises(ValueError):
            remove_stock(self.item, 11)
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity, Decimal('10.00'))

    def concurrent_change(self, quantity):
        """select_for_update stand-in that lets another writer move the stock first"""
        real_select_for_update = StockItem.objects.select_for_update

        def locked_after_change():
            StockItem.objects.filter(pk=self.item.pk).update(quantity=F('quantity') + quantity)
            return real_select_for_update()

        return mock.patch.object(StockItem.objects, 'select_for_update', side_effect=locked_after_change)

    def test_add_stock_builds_on_locked_quantity(self):
        with self.concurrent_change(5):
            item, movement = add_stock(self.item, 5, reference_type='purchase')
        self.assertEqual(item.quantity, Decimal('20.00'))
        self.assertEqual(movement.quantity, Decimal('5.00'))

    def test_remove_stock_checks_locked_quantity(self):
        with self.concurrent_change(-8):
            with self.assertRaises(ValueError):
                remove_stock(self.item, 5)
        # The failed removal rolls back with everything done under the lock
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity, Decimal('10.00'))


class StockAPITests(TestCase):
    """Stock endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_with_opening_stock(self):
        response = self.client.post('/api/v1/stock/', {
            'name': 'Soft-close hinge',
            'sku': 'HNG-01',
            'unit_price': '150.00',
            'quantity': '40',
            'reorder_level': '10',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'in_stock')
        item = StockItem.objects.get(sku='HNG-01')
        self.assertEqual(item.movements.get().reference_type, 'opening')

    def test_blank_skus_do_not_clash(self):
        for name in ('Glue', 'Screws'):
            response = self.client.post('/api/v1/stock/', {'name': name, 'sku': ''}, format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_update_ignores_quantity(self):
        item = TestDataFactory.create_stock_item(quantity=Decimal('5'))
        response = self.client.patch(f'/api/v1/stock/{item.id}/', {'quantity': '99', 'unit_price': '120.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal('5.00'))
        self.assertEqual(item.unit_price, Decimal('120.00'))

    def test_adjust(self):
        item = TestDataFactory.create_stock_item(quantity=Decimal('5'))
        response = self.client.post(f'/api/v1/stock/{item.id}/adjust/', {'quantity': '8', 'notes': 'Recount'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['quantity'], '8.00')
        self.assertEqual(response.data['movement']['quantity'], '3.00')
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(item.id)).exists())

    def test_adjust_rejects_bad_input(self):
        item = TestDataFactory.create_stock_item()
        response = self.client.post(f'/api/v1/stock/{item.id}/adjust/', {'quantity': 'lots'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/stock/{item.id}/adjust/', {'quantity': '-2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock(self):
        low = TestDataFactory.create_stock_item(name='Edge tape', quantity=Decimal('1'), reorder_level=Decimal('5'))
        TestDataFactory.create_stock_item(name='Handles', quantity=Decimal('50'), reorder_level=Decimal('5'))

        response = self.client.get('/api/v1/stock/low-stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [low.id])

    def test_search_and_movements(self):
        item = TestDataFactory.create_stock_item(name='Walnut veneer')
        update_quantity(item, 3)

        response = self.client.get('/api/v1/stock/search/?q=walnut')
        self.assertEqual([row['id'] for row in response.data], [item.id])

        response = self.client.get(f'/api/v1/stock/{item.id}/movements/')
        self.assertEqual(response.data['count'], 1)
