# Generated manually
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RegisteredEntity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('client', 'Client'), ('supplier', 'Supplier')], default='client', max_length=20)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('pin', models.CharField(blank=True, help_text='KRA PIN', max_length=50)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('address', models.TextField(blank=True)),
                ('company', models.CharField(blank=True, max_length=255)),
                ('contact_person', models.CharField(blank=True, max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20)),
                ('date_added', models.DateTimeField(auto_now_add=True)),
                ('last_transaction', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'db_table': 'registered_entities',
                'ordering': ['name'],
                'verbose_name_plural': 'registered entities',
                'indexes': [
                    models.Index(fields=['type'], name='idx_entity_type'),
                    models.Index(fields=['name'], name='idx_entity_name'),
                ],
            },
        ),
    ]
