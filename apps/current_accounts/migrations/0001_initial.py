import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
        ('motorcycles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CurrentAccount',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('organization_id', models.CharField(db_index=True, help_text='Organization (dealership) that owns this account.', max_length=64)),
                ('total_amount', models.DecimalField(decimal_places=2, help_text='Sale price being financed, before the down payment.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('down_payment', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Amount paid up front.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('remaining_amount', models.DecimalField(decimal_places=2, help_text='Outstanding balance. Negative after an overpayment.', max_digits=15)),
                ('number_of_installments', models.PositiveIntegerField(help_text='Number of scheduled installments.', validators=[django.core.validators.MinValueValidator(1)])),
                ('installment_amount', models.DecimalField(decimal_places=2, help_text='Periodic installment (computed or supplied at origination).', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('payment_frequency', models.CharField(choices=[('WEEKLY', 'Weekly'), ('BIWEEKLY', 'Biweekly'), ('MONTHLY', 'Monthly'), ('QUARTERLY', 'Quarterly'), ('ANNUALLY', 'Annually')], default='MONTHLY', help_text='Length of one billing period.', max_length=16)),
                ('interest_rate', models.DecimalField(decimal_places=4, default=Decimal('0'), help_text='Annual interest rate as a decimal fraction (0.30 = 30%).', max_digits=7, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('start_date', models.DateField(help_text='Plan start date (period 0).')),
                ('next_due_date', models.DateField(blank=True, help_text='Due date of the next expected installment.', null=True)),
                ('end_date', models.DateField(blank=True, help_text='Due date of the last scheduled installment.', null=True)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('PAID_OFF', 'Paid off'), ('OVERDUE', 'Overdue'), ('DEFAULTED', 'Defaulted'), ('CANCELLED', 'Cancelled')], db_index=True, default='ACTIVE', help_text='Account lifecycle status.', max_length=16)),
                ('currency', models.CharField(default='ARS', help_text='ISO currency code.', max_length=3)),
                ('reminder_lead_time_days', models.PositiveIntegerField(blank=True, help_text='Days before a due date to remind the client.', null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(help_text='The financed client.', on_delete=django.db.models.deletion.PROTECT, related_name='current_accounts', to='clients.client')),
                ('motorcycle', models.ForeignKey(help_text='The financed motorcycle.', on_delete=django.db.models.deletion.PROTECT, related_name='current_accounts', to='motorcycles.motorcycle')),
            ],
            options={
                'db_table': 'current_accounts',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['organization_id', 'status'], name='idx_account_org_status')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status', 'CANCELLED'), _negated=True), fields=('motorcycle',), name='uniq_current_account_motorcycle')],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('organization_id', models.CharField(db_index=True, help_text="Copied from the account's organization.", max_length=64)),
                ('amount_paid', models.DecimalField(decimal_places=2, help_text='Amount received.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('payment_date', models.DateTimeField(help_text='When the payment was made.')),
                ('payment_method', models.CharField(blank=True, default='', max_length=50)),
                ('transaction_reference', models.CharField(blank=True, help_text='External reference (bank transfer id, receipt number).', max_length=100, null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('is_down_payment', models.BooleanField(default=False, help_text='Down payments never advance the due date.')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('current_account', models.ForeignKey(help_text='The account this payment was applied to.', on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='current_accounts.currentaccount')),
            ],
            options={
                'db_table': 'current_account_payments',
                'ordering': ['-payment_date'],
                'constraints': [models.UniqueConstraint(condition=models.Q(('transaction_reference__isnull', False)), fields=('organization_id', 'transaction_reference'), name='uniq_payment_transaction_reference')],
            },
        ),
    ]
