"""
Test suite for core: numbering, authentication, users, settings, audit logs and search
"""
from datetime import date
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.payments.models import AccountTransaction
from backend.sales.models import Quotation
from .models import User, AuditLog
from .numbering import generate_next_number, generate_transaction_number, get_period_prefix, save_with_number
from .utils import create_audit_log


class NumberingTests(TestCase):

    def test_period_prefix(self):
        self.assertEqual(get_period_prefix('QT', date(2025, 8, 14)), 'QT2508')

    def test_first_number_of_month(self):
        self.assertEqual(generate_next_number(Quotation, 'quotation_number', 'QT', today=date(2025, 8, 1)), 'QT2508001')

    def test_continues_from_highest_number(self):
        client = TestDataFactory.create_client()
        TestDataFactory.create_quotation(client=client, quotation_number='QT2508001')
        TestDataFactory.create_quotation(client=client, quotation_number='QT2508009')
        TestDataFactory.create_quotation(client=client, quotation_number='QT2507042')

        self.assertEqual(generate_next_number(Quotation, 'quotation_number', 'QT', today=date(2025, 8, 20)), 'QT2508010')
        self.assertEqual(generate_next_number(Quotation, 'quotation_number', 'QT', today=date(2025, 9, 1)), 'QT2509001')

    def test_ignores_malformed_numbers(self):
        TestDataFactory.create_quotation(quotation_number='QT2508-OLD')
        self.assertEqual(generate_next_number(Quotation, 'quotation_number', 'QT', today=date(2025, 8, 1)), 'QT2508001')

    def test_transaction_numbers(self):
        self.assertEqual(generate_transaction_number(AccountTransaction), 'TXN000001')

    def test_taken_number_is_regenerated(self):
        taken = TestDataFactory.create_quotation(quotation_number='QT2508001')
        with mock.patch('backend.sales.models.generate_next_number', side_effect=['QT2508001', 'QT2508002']):
            quotation = Quotation.objects.create(client=taken.client)
        self.assertEqual(quotation.quotation_number, 'QT2508002')
        self.assertEqual(Quotation.objects.count(), 2)

    def test_gives_up_after_repeated_clashes(self):
        taken = TestDataFactory.create_quotation(quotation_number='QT2508001')
        quotation = Quotation(client=taken.client)
        with self.assertRaises(IntegrityError):
            save_with_number(quotation, 'quotation_number', lambda: 'QT2508001', quotation.save)
        self.assertEqual(quotation.quotation_number, '')
        self.assertEqual(Quotation.objects.count(), 1)


class AuthTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_ignores_requested_role(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newclerk',
            'email': 'newclerk@test.com',
            'password': 'Kitchen-Cab1nets!',
            'password_confirm': 'Kitchen-Cab1nets!',
            'role': 'superadmin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(User.objects.get(username='newclerk').role, 'none')

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newclerk',
            'password': 'Kitchen-Cab1nets!',
            'password_confirm': 'Different-Pass1!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login(self):
        TestDataFactory.create_user(username='clerk', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'clerk', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_inactive_user(self):
        TestDataFactory.create_user(username='gone', password='testpass123', is_active=False)
        response = self.client.post('/api/v1/auth/login/', {'username': 'gone', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_for_sales_user(self):
        user = TestDataFactory.create_user(role='sales', sections=['sales', 'payments'])
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertEqual(response.data['sections'], ['sales', 'payments'])
        self.assertEqual(response.data['action_buttons'], ['view'])

    def test_me_for_admin_role(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='ceo'))
        response = self.client.get('/api/v1/auth/me/')
        self.assertTrue(response.data['is_admin'])
        self.assertIn('reports', response.data['sections'])
        self.assertIn('delete', response.data['action_buttons'])


class UserAndSettingTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_users_require_admin_role(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='finance'))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_role_manages_users(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='deputy_ceo'))
        response = self.client.post('/api/v1/users/', {
            'username': 'designer',
            'password': 'Kitchen-Cab1nets!',
            'password_confirm': 'Kitchen-Cab1nets!',
            'role': 'design',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'design')

        user_id = response.data['id']
        response = self.client.patch(f'/api/v1/users/{user_id}/', {'sections': ['sales']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(User.objects.get(pk=user_id).get_sections(), ['sales'])

    def test_settings(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/settings/', {'key': 'company_name', 'value': 'Acme Kitchens'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/settings/')
        self.assertEqual([row['key'] for row in response.data], ['company_name'])


class AuditLogTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log(self):
        log = create_audit_log(user=self.user, action='create', model_name='Quotation', object_id=5,
                               object_reference='QT2508001')
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, self.user)

    def test_missing_fields_skip_logging(self):
        self.assertIsNone(create_audit_log(user=self.user, action='create', model_name='Quotation'))
        self.assertFalse(AuditLog.objects.exists())

    def test_users_see_only_their_logs(self):
        create_audit_log(user=self.user, action='create', model_name='Quotation', object_id=1)
        other_log = create_audit_log(user=self.other, action='delete', model_name='Payment', object_id=2)

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/audit-logs/{other_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/audit-logs/?action=delete')
        self.assertEqual([row['model_name'] for row in response.data], ['Payment'])


class GlobalSearchTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quotations'], [])
        self.assertEqual(len(response.data), 7)

    def test_search_by_client_and_number(self):
        customer = TestDataFactory.create_client(name='Kamau Interiors')
        quotation = TestDataFactory.create_quotation(client=customer)

        response = self.client.get('/api/v1/search/?q=kamau')
        self.assertEqual(response.data['entities'][0]['name'], 'Kamau Interiors')
        self.assertEqual(response.data['quotations'][0]['number'], quotation.quotation_number)
        self.assertEqual(response.data['quotations'][0]['document_type'], 'quotation')

        response = self.client.get(f'/api/v1/search/?q={quotation.quotation_number}')
        self.assertEqual(len(response.data['quotations']), 1)
