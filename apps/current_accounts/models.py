"""
Current account and payment models for the dealership financing engine.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class PaymentFrequency(models.TextChoices):
    WEEKLY = 'WEEKLY', 'Weekly'
    BIWEEKLY = 'BIWEEKLY', 'Biweekly'
    MONTHLY = 'MONTHLY', 'Monthly'
    QUARTERLY = 'QUARTERLY', 'Quarterly'
    ANNUALLY = 'ANNUALLY', 'Annually'


class AccountStatus(models.TextChoices):
    """
    Lifecycle status of a current account.

    The financing engine only produces ACTIVE and PAID_OFF. The other
    values are set by external processes and are stored as plain strings,
    so the column accepts them without the engine interpreting them.
    """

    ACTIVE = 'ACTIVE', 'Active'
    PAID_OFF = 'PAID_OFF', 'Paid off'
    OVERDUE = 'OVERDUE', 'Overdue'
    DEFAULTED = 'DEFAULTED', 'Defaulted'
    CANCELLED = 'CANCELLED', 'Cancelled'


class CurrentAccount(models.Model):
    """
    A dealer-financed sale paid in installments.

    Created once by the originator; afterwards only the payment ledger
    changes its financial fields.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.PROTECT,
        related_name='current_accounts',
        help_text="The financed client."
    )
    motorcycle = models.ForeignKey(
        'motorcycles.Motorcycle',
        on_delete=models.PROTECT,
        related_name='current_accounts',
        help_text="The financed motorcycle."
    )
    organization_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Organization (dealership) that owns this account."
    )
    total_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Sale price being financed, before the down payment.",
    )
    down_payment = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Amount paid up front.",
    )
    remaining_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="Outstanding balance. Negative after an overpayment.",
    )
    number_of_installments = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Number of scheduled installments."
    )
    installment_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Periodic installment (computed or supplied at origination).",
    )
    payment_frequency = models.CharField(
        max_length=16,
        choices=PaymentFrequency.choices,
        default=PaymentFrequency.MONTHLY,
        help_text="Length of one billing period."
    )
    interest_rate = models.DecimalField(
        max_digits=7,
        decimal_places=4,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Annual interest rate as a decimal fraction (0.30 = 30%).",
    )
    start_date = models.DateField(
        help_text="Plan start date (period 0)."
    )
    next_due_date = models.DateField(
        null=True,
        blank=True,
        help_text="Due date of the next expected installment."
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        help_text="Due date of the last scheduled installment."
    )
    status = models.CharField(
        max_length=16,
        choices=AccountStatus.choices,
        default=AccountStatus.ACTIVE,
        db_index=True,
        help_text="Account lifecycle status."
    )
    currency = models.CharField(
        max_length=3,
        default='ARS',
        help_text="ISO currency code."
    )
    reminder_lead_time_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Days before a due date to remind the client."
    )
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'current_accounts'
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['organization_id', 'status'],
                name='idx_account_org_status'
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['motorcycle'],
                condition=~Q(status='CANCELLED'),
                name='uniq_current_account_motorcycle',
            ),
        ]

    def __str__(self):
        return (
            f"Current account {self.pk} - Client: {self.client_id} "
            f"- Remaining: {self.remaining_amount}"
        )

    @property
    def financed_amount(self):
        """Principal financed through installments."""
        return self.total_amount - self.down_payment

    @property
    def is_paid_off(self):
        return self.status == AccountStatus.PAID_OFF


class Payment(models.Model):
    """A payment received against a current account. Never modified."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    current_account = models.ForeignKey(
        CurrentAccount,
        on_delete=models.CASCADE,
        related_name='payments',
        help_text="The account this payment was applied to."
    )
    organization_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Copied from the account's organization."
    )
    amount_paid = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Amount received.",
    )
    payment_date = models.DateTimeField(
        help_text="When the payment was made."
    )
    payment_method = models.CharField(max_length=50, blank=True, default='')
    transaction_reference = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text="External reference (bank transfer id, receipt number)."
    )
    notes = models.TextField(blank=True, default='')
    is_down_payment = models.BooleanField(
        default=False,
        help_text="Down payments never advance the due date."
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'current_account_payments'
        ordering = ['-payment_date']
        constraints = [
            models.UniqueConstraint(
                fields=['organization_id', 'transaction_reference'],
                condition=Q(transaction_reference__isnull=False),
                name='uniq_payment_transaction_reference',
            ),
        ]

    def __str__(self):
        return (
            f"Payment {self.pk} - Account: {self.current_account_id} "
            f"- Amount: {self.amount_paid}"
        )
