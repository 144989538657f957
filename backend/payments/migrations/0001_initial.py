# Generated manually
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

ACCOUNT_TYPE_CHOICES = [('cash', 'Cash'), ('cooperative_bank', 'Cooperative Bank'), ('credit', 'Credit'), ('cheque', 'Cheque')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
        ('sales', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('quotation_number', models.CharField(blank=True, db_index=True, max_length=50)),
                ('paid_to', models.CharField(blank=True, db_index=True, max_length=50)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('payment_method', models.CharField(choices=[('cash', 'Cash'), ('mpesa', 'M-Pesa'), ('bank_transfer', 'Bank Transfer'), ('cooperative_bank', 'Cooperative Bank'), ('cheque', 'Cheque'), ('credit', 'Credit'), ('card', 'Card')], default='cash', max_length=30)),
                ('account_credited', models.CharField(blank=True, choices=ACCOUNT_TYPE_CHOICES, max_length=30)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('description', models.TextField(blank=True)),
                ('date_paid', models.DateTimeField(default=django.utils.timezone.now)),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('pending', 'Pending'), ('cancelled', 'Cancelled')], default='completed', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='parties.registeredentity')),
                ('invoice', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to='sales.invoice')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-date_paid', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_payment_status'),
                    models.Index(fields=['-date_paid'], name='idx_payment_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExpenseCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('category_type', models.CharField(choices=[('client', 'Client'), ('company', 'Company')], default='company', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'expense_categories',
                'ordering': ['name'],
                'verbose_name_plural': 'expense categories',
                'unique_together': {('name', 'category_type')},
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('expense_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('expense_type', models.CharField(choices=[('client', 'Client'), ('company', 'Company')], default='company', max_length=20)),
                ('department', models.CharField(blank=True, max_length=100)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.TextField(blank=True)),
                ('receipt_number', models.CharField(blank=True, max_length=100)),
                ('account_debited', models.CharField(choices=ACCOUNT_TYPE_CHOICES, default='cash', max_length=30)),
                ('date_created', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='expenses', to='payments.expensecategory')),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='expenses', to='parties.registeredentity')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='expenses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'expenses',
                'ordering': ['-date_created', '-id'],
                'indexes': [
                    models.Index(fields=['expense_type'], name='idx_expense_type'),
                    models.Index(fields=['-date_created'], name='idx_expense_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccountTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_number', models.CharField(max_length=50, unique=True)),
                ('account_type', models.CharField(choices=ACCOUNT_TYPE_CHOICES, max_length=30)),
                ('transaction_type', models.CharField(choices=[('in', 'Money In'), ('out', 'Money Out')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.TextField(blank=True)),
                ('reference_type', models.CharField(choices=[('payment', 'Payment'), ('expense', 'Expense'), ('purchase', 'Purchase'), ('sale', 'Sale')], max_length=20)),
                ('reference_id', models.PositiveIntegerField(blank=True, null=True)),
                ('transaction_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('balance_after', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='account_transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'account_transactions',
                'ordering': ['-transaction_date', '-id'],
                'indexes': [
                    models.Index(fields=['account_type', '-transaction_date'], name='idx_txn_account_date'),
                    models.Index(fields=['reference_type', 'reference_id'], name='idx_txn_reference'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccountBalance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('account_type', models.CharField(choices=ACCOUNT_TYPE_CHOICES, max_length=30, unique=True)),
                ('current_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('last_transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='payments.accounttransaction')),
            ],
            options={
                'db_table': 'account_balances',
                'ordering': ['account_type'],
            },
        ),
    ]
