"""
Test suite for registered entities (clients and suppliers)
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.sales import workflow
from .models import RegisteredEntity


class RegisteredEntityAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_register_client(self):
        response = self.client.post('/api/v1/registered-entities/', {
            'name': '  Jane Wanjiru ',
            'type': 'client',
            'phone': '0712345678',
            'location': 'Karen',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Jane Wanjiru')

    def test_blank_name_rejected(self):
        response = self.client.post('/api/v1/registered-entities/', {'name': '   ', 'type': 'client'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_type_and_search(self):
        TestDataFactory.create_client(name='Otieno Builders')
        TestDataFactory.create_supplier(name='Timber Mart')

        response = self.client.get('/api/v1/registered-entities/?type=supplier')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Timber Mart')

        response = self.client.get('/api/v1/registered-entities/?search=otieno')
        self.assertEqual(response.data['count'], 1)

    def test_quick_search_skips_inactive(self):
        TestDataFactory.create_client(name='Active Homes')
        TestDataFactory.create_client(name='Archived Homes', status='inactive')

        response = self.client.get('/api/v1/registered-entities/search/?name=homes&type=client')
        self.assertEqual([row['name'] for row in response.data], ['Active Homes'])

    def test_delete_client_without_documents(self):
        customer = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/registered-entities/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(RegisteredEntity.objects.filter(pk=customer.pk).exists())

    def test_client_with_documents_is_protected(self):
        quotation = TestDataFactory.create_quotation()
        response = self.client.delete(f'/api/v1/registered-entities/{quotation.client.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_conversion_touches_last_transaction(self):
        quotation = TestDataFactory.create_quotation()
        TestDataFactory.create_payment(quotation, amount=Decimal('100.00'))
        workflow.proceed_to_sales_order(quotation)

        response = self.client.get(f'/api/v1/registered-entities/{quotation.client.id}/')
        self.assertIsNotNone(response.data['last_transaction'])
