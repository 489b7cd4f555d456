"""
Current account serializers for the financing engine.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.current_accounts.models import (
    AccountStatus,
    CurrentAccount,
    Payment,
    PaymentFrequency,
)


class CreateCurrentAccountSerializer(serializers.Serializer):
    """Serializer for current account creation request."""

    client_id = serializers.IntegerField(
        min_value=1,
        help_text="Client's ID.",
    )
    motorcycle_id = serializers.IntegerField(
        min_value=1,
        help_text="Motorcycle's ID.",
    )
    organization_id = serializers.CharField(
        max_length=64,
        help_text="Owning organization.",
    )
    total_amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        help_text="Sale price before the down payment.",
    )
    down_payment = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0'),
        default=Decimal('0.00'),
        help_text="Amount paid up front.",
    )
    number_of_installments = serializers.IntegerField(
        min_value=1,
        max_value=600,
        help_text="Number of installments.",
    )
    installment_amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False,
        allow_null=True,
        default=None,
        help_text="Installment amount. Computed when omitted.",
    )
    payment_frequency = serializers.ChoiceField(
        choices=PaymentFrequency.choices,
        help_text="Billing period length.",
    )
    interest_rate = serializers.DecimalField(
        max_digits=7,
        decimal_places=4,
        min_value=Decimal('0'),
        default=Decimal('0'),
        help_text="Annual rate as a decimal fraction (0.30 = 30%).",
    )
    start_date = serializers.DateField(
        help_text="Plan start date.",
    )
    currency = serializers.CharField(
        min_length=3,
        max_length=3,
        default='ARS',
    )
    reminder_lead_time_days = serializers.IntegerField(
        min_value=0,
        required=False,
        allow_null=True,
        default=None,
    )
    status = serializers.ChoiceField(
        choices=AccountStatus.choices,
        required=False,
        allow_null=True,
        default=None,
    )
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        default='',
    )

    def validate(self, attrs):
        if attrs['down_payment'] > attrs['total_amount']:
            raise serializers.ValidationError({
                'down_payment': 'Down payment cannot exceed the total amount.',
            })
        return attrs


class RecordPaymentSerializer(serializers.Serializer):
    """Serializer for payment recording request."""

    amount_paid = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        help_text="Amount received.",
    )
    payment_date = serializers.DateTimeField(
        required=False,
        allow_null=True,
        default=None,
        help_text="When the payment was made. Defaults to now.",
    )
    payment_method = serializers.CharField(
        max_length=50,
        required=False,
        allow_blank=True,
        default='',
    )
    transaction_reference = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        allow_null=True,
        default=None,
    )
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        default='',
    )
    is_down_payment = serializers.BooleanField(default=False)


class UpdateCurrentAccountSerializer(serializers.Serializer):
    """Serializer for account metadata updates (all fields optional)."""

    status = serializers.ChoiceField(
        choices=AccountStatus.choices,
        required=False,
    )
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
    )
    reminder_lead_time_days = serializers.IntegerField(
        min_value=0,
        required=False,
        allow_null=True,
    )


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for a recorded payment."""

    class Meta:
        model = Payment
        fields = (
            'id', 'current_account', 'organization_id', 'amount_paid',
            'payment_date', 'payment_method', 'transaction_reference',
            'notes', 'is_down_payment', 'created_at',
        )
        read_only_fields = fields


class CurrentAccountSerializer(serializers.ModelSerializer):
    """Serializer for a current account in list responses."""

    client_name = serializers.CharField(source='client.full_name', read_only=True)
    motorcycle = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = CurrentAccount
        fields = (
            'id', 'client', 'client_name', 'motorcycle', 'organization_id',
            'total_amount', 'down_payment', 'remaining_amount',
            'number_of_installments', 'installment_amount',
            'payment_frequency', 'interest_rate', 'start_date',
            'next_due_date', 'end_date', 'status', 'currency',
            'reminder_lead_time_days', 'notes', 'created_at', 'updated_at',
        )
        read_only_fields = fields


class CurrentAccountDetailSerializer(CurrentAccountSerializer):
    """Serializer for a current account with its payment history."""

    payments = PaymentSerializer(many=True, read_only=True)

    class Meta(CurrentAccountSerializer.Meta):
        fields = CurrentAccountSerializer.Meta.fields + ('payments',)
        read_only_fields = fields


class ScheduleRowSerializer(serializers.Serializer):
    """Serializer for one row of an amortization schedule."""

    installment_number = serializers.IntegerField()
    opening_balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest = serializers.DecimalField(max_digits=15, decimal_places=2)
    principal = serializers.DecimalField(max_digits=15, decimal_places=2)
    installment_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    closing_balance = serializers.DecimalField(max_digits=15, decimal_places=2)


class AccountListFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the account list. Blank values are ignored."""

    organization_id = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=AccountStatus.choices, required=False)
    client_id = serializers.IntegerField(min_value=1, required=False)
