"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.core.models import Setting
from backend.parties.models import RegisteredEntity
from backend.inventory.models import StockItem
from backend.sales.models import Quotation, QuotationItem
from backend.payments.models import Payment, Expense, ExpenseCategory
from backend.purchasing.models import Purchase, PurchaseItem
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='sales', is_staff=False,
                    is_superuser=False, **extra):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser,
            **extra
        )

    @staticmethod
    def create_admin(username=None):
        return TestDataFactory.create_user(username=username, role='superadmin', is_staff=True)

    @staticmethod
    def create_client(name=None, phone=None, **extra):
        """Create a registered client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return RegisteredEntity.objects.create(
            name=name,
            type='client',
            phone=phone or f'07{random.randint(10000000, 99999999)}',
            location=extra.pop('location', 'Nairobi'),
            **extra
        )

    @staticmethod
    def create_supplier(name=None, **extra):
        """Create a registered supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return RegisteredEntity.objects.create(
            name=name,
            type='supplier',
            phone=f'07{random.randint(10000000, 99999999)}',
            **extra
        )

    @staticmethod
    def create_stock_item(name=None, quantity=Decimal('10.00'), reorder_level=Decimal('2.00'),
                          unit_price=Decimal('100.00'), **extra):
        """Create a stock item"""
        if not name:
            name = f'Item_{TestDataFactory.random_string(6)}'
        return StockItem.objects.create(
            name=name,
            quantity=quantity,
            reorder_level=reorder_level,
            unit_price=unit_price,
            **extra
        )

    @staticmethod
    def create_quotation(client=None, user=None, items=None, labour_percentage=Decimal('0'),
                         vat_percentage=Decimal('0'), status='pending', **extra):
        """
        Create a quotation with items and calculated totals.

        Labour and VAT default to zero so the grand total equals the item
        total (one cabinet item of 1,000 unless `items` is given).
        """
        if client is None:
            client = TestDataFactory.create_client()
        if items is None:
            items = [{'description': 'Base cabinet', 'quantity': Decimal('1'), 'unit_price': Decimal('1000.00')}]
        quotation = Quotation.objects.create(
            client=client,
            created_by=user,
            labour_percentage=labour_percentage,
            vat_percentage=vat_percentage,
            status=status,
            **extra
        )
        for item in items:
            QuotationItem.objects.create(quotation=quotation, **item)
        quotation.recalculate_totals()
        return quotation

    @staticmethod
    def create_payment(quotation=None, amount=Decimal('500.00'), client=None, paid_to=None, status='completed',
                       payment_method='cash', user=None, **extra):
        """Create a payment against a quotation (or any document number via paid_to)"""
        if client is None:
            client = quotation.client if quotation is not None else TestDataFactory.create_client()
        quotation_number = quotation.quotation_number if quotation is not None else ''
        return Payment.objects.create(
            client=client,
            quotation_number=extra.pop('quotation_number', quotation_number),
            paid_to=paid_to if paid_to is not None else quotation_number,
            amount=amount,
            payment_method=payment_method,
            status=status,
            created_by=user,
            **extra
        )

    @staticmethod
    def create_expense_category(name=None, category_type='company'):
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return ExpenseCategory.objects.create(name=name, category_type=category_type)

    @staticmethod
    def create_expense(amount=Decimal('200.00'), expense_type='company', client=None, account_debited='cash', **extra):
        return Expense.objects.create(
            amount=amount,
            expense_type=expense_type,
            client=client,
            account_debited=account_debited,
            description=extra.pop('description', 'Test expense'),
            **extra
        )

    @staticmethod
    def create_purchase(supplier=None, user=None, items=None, payment_method='cash', **extra):
        """Create a pending purchase; each item is (stock_item, quantity, unit_price)"""
        if supplier is None:
            supplier = TestDataFactory.create_supplier()
        purchase = Purchase.objects.create(
            supplier=supplier,
            created_by=user,
            payment_method=payment_method,
            purchase_date=extra.pop('purchase_date', timezone.localdate()),
            **extra
        )
        for stock_item, quantity, unit_price in items or []:
            PurchaseItem.objects.create(
                purchase=purchase,
                stock_item=stock_item,
                description=stock_item.name if stock_item else 'Sundry item',
                quantity=Decimal(str(quantity)),
                unit_price=Decimal(str(unit_price)),
            )
        purchase.recalculate_total()
        return purchase

    @staticmethod
    def create_setting(key=None, value='test_value'):
        """Create a test setting"""
        if not key:
            key = f'setting_{TestDataFactory.random_string(6)}'
        return Setting.objects.create(key=key, value=value)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
