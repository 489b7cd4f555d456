"""
Current account service layer.

Contains account origination, payment application and the read-side
queries around them. This is the core business logic of the
financing engine.
"""

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.db.models import Prefetch
from django.utils import timezone

from apps.clients.models import Client
from apps.core.exceptions import (
    AccountAlreadySettledError,
    ClientNotFoundError,
    CurrentAccountNotFoundError,
    InvalidInputError,
    MotorcycleNotFoundError,
    operation_failed,
    persistence_error_from,
)
from apps.core.utils import (
    advance_due_date,
    build_amortization_schedule,
    calculate_installment,
    calculate_payment_dates,
    round_money,
    to_decimal,
)
from apps.current_accounts.models import (
    AccountStatus,
    CurrentAccount,
    Payment,
    PaymentFrequency,
)
from apps.current_accounts.tasks import schedule_invalidation
from apps.motorcycles.models import Motorcycle

logger = logging.getLogger(__name__)

# (marker in the driver message, offending field, message)
KNOWN_CONSTRAINTS = (
    (
        'uniq_current_account_motorcycle',
        'motorcycle',
        'This motorcycle already has an open current account.',
    ),
    (
        'current_accounts.motorcycle_id',
        'motorcycle',
        'This motorcycle already has an open current account.',
    ),
    (
        'uniq_payment_transaction_reference',
        'transaction_reference',
        'A payment with this transaction reference already exists.',
    ),
    (
        'current_account_payments.transaction_reference',
        'transaction_reference',
        'A payment with this transaction reference already exists.',
    ),
)


def _raise_for_field_errors(errors: dict) -> None:
    """Raise a single InvalidInputError listing every offending field."""
    if errors:
        listed = '; '.join(f"{field}: {message}" for field, message in errors.items())
        raise InvalidInputError(detail=f"Invalid fields: {listed}")


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date_parser.isoparse(value).date()
    raise ValueError(f"Unsupported date value: {value!r}")


class AccountOriginationService:
    """Turns a financed sale into a persisted CurrentAccount."""

    # Installment sum vs financed amount tolerance (one cent)
    MISMATCH_TOLERANCE = Decimal('0.01')

    # interest_rate column: DecimalField(max_digits=7, decimal_places=4)
    RATE_PLACES = Decimal('0.0001')
    MAX_INTEREST_RATE = Decimal('999.9999')

    @classmethod
    def create_account(
        cls,
        client_id: int,
        motorcycle_id: int,
        organization_id: str,
        total_amount,
        down_payment,
        number_of_installments: int,
        payment_frequency: str,
        start_date,
        installment_amount=None,
        interest_rate=0,
        currency: str = 'ARS',
        reminder_lead_time_days: Optional[int] = None,
        status: Optional[str] = None,
        notes: str = '',
    ) -> dict:
        """
        Create a current account for a financed sale.

        Steps:
            1. Validate the financing terms (no database access)
            2. Confirm the client and the motorcycle exist
            3. Compute the installment when the caller did not supply one
            4. Compare installments against the financed amount (warning only)
            5. Compute the next and final due dates
            6. Persist the account and queue cache invalidation

        Returns:
            Dict with success flag. On success: account, message and
            warnings. On failure: error_code, message and status_code.
        """
        try:
            terms = cls._validate_terms(
                client_id=client_id,
                motorcycle_id=motorcycle_id,
                organization_id=organization_id,
                total_amount=total_amount,
                down_payment=down_payment,
                number_of_installments=number_of_installments,
                payment_frequency=payment_frequency,
                start_date=start_date,
                installment_amount=installment_amount,
                interest_rate=interest_rate,
                status=status,
            )
            account, warnings = cls._originate(
                terms,
                currency=currency,
                reminder_lead_time_days=reminder_lead_time_days,
                notes=notes or '',
            )
        except (InvalidInputError, ClientNotFoundError, MotorcycleNotFoundError) as exc:
            logger.info("Current account creation rejected: %s", exc.detail)
            return operation_failed(exc)
        except DatabaseError as exc:
            logger.exception("Database error while creating current account")
            return operation_failed(persistence_error_from(exc, KNOWN_CONSTRAINTS))

        return {
            'success': True,
            'account': account,
            'message': 'Current account created successfully.',
            'warnings': warnings,
        }

    @classmethod
    def _validate_terms(
        cls,
        client_id,
        motorcycle_id,
        organization_id,
        total_amount,
        down_payment,
        number_of_installments,
        payment_frequency,
        start_date,
        installment_amount,
        interest_rate,
        status,
    ) -> dict:
        """Normalize the request and collect every invalid field."""
        errors = {}
        terms = {}

        for field, value in (('client_id', client_id), ('motorcycle_id', motorcycle_id)):
            if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                terms[field] = value
            else:
                errors[field] = 'Must be a positive integer id.'

        if not organization_id:
            errors['organization_id'] = 'Organization is required.'
        terms['organization_id'] = organization_id

        for field, value in (
            ('total_amount', total_amount),
            ('down_payment', down_payment),
            ('interest_rate', interest_rate if interest_rate is not None else 0),
        ):
            try:
                amount = to_decimal(value)
            except (InvalidOperation, TypeError, ValueError):
                errors[field] = 'Must be a number.'
                continue
            if not amount.is_finite():
                errors[field] = 'Must be a number.'
            elif amount < 0:
                errors[field] = 'Cannot be negative.'
            elif field == 'interest_rate':
                # Same precision as the stored column, so schedules
                # recomputed later use the rate the installment used
                if amount <= cls.MAX_INTEREST_RATE:
                    amount = amount.quantize(cls.RATE_PLACES, rounding=ROUND_HALF_UP)
                if amount > cls.MAX_INTEREST_RATE:
                    errors[field] = f'Cannot exceed {cls.MAX_INTEREST_RATE}.'
                else:
                    terms[field] = amount
            else:
                terms[field] = amount

        if (
            'total_amount' in terms
            and 'down_payment' in terms
            and terms['down_payment'] > terms['total_amount']
        ):
            errors['down_payment'] = 'Down payment cannot exceed the total amount.'

        if (
            isinstance(number_of_installments, int)
            and not isinstance(number_of_installments, bool)
            and number_of_installments >= 1
        ):
            terms['number_of_installments'] = number_of_installments
        else:
            errors['number_of_installments'] = 'Must be a positive integer.'

        if installment_amount is None:
            terms['installment_amount'] = None
        else:
            try:
                amount = to_decimal(installment_amount)
                if amount.is_finite():
                    amount = round_money(amount)
                if not amount.is_finite() or amount <= 0:
                    errors['installment_amount'] = 'Must be at least 0.01.'
                else:
                    terms['installment_amount'] = amount
            except (InvalidOperation, TypeError, ValueError):
                errors['installment_amount'] = 'Must be at least 0.01.'

        if payment_frequency in PaymentFrequency.values:
            terms['payment_frequency'] = payment_frequency
        else:
            errors['payment_frequency'] = f'Unsupported payment frequency: {payment_frequency!r}.'

        try:
            terms['start_date'] = _parse_date(start_date)
        except (ValueError, OverflowError):
            errors['start_date'] = 'Invalid start date.'

        if status is None:
            terms['status'] = AccountStatus.ACTIVE
        elif status in AccountStatus.values:
            terms['status'] = status
        else:
            errors['status'] = f'Unsupported status: {status!r}.'

        _raise_for_field_errors(errors)
        return terms

    @classmethod
    @transaction.atomic
    def _originate(cls, terms: dict, currency, reminder_lead_time_days, notes):
        client_id = terms['client_id']
        motorcycle_id = terms['motorcycle_id']

        if not Client.objects.filter(pk=client_id).exists():
            raise ClientNotFoundError(
                detail=f"Client with ID {client_id} not found."
            )
        if not Motorcycle.objects.filter(pk=motorcycle_id).exists():
            raise MotorcycleNotFoundError(
                detail=f"Motorcycle with ID {motorcycle_id} not found."
            )

        total_amount = round_money(terms['total_amount'])
        down_payment = round_money(terms['down_payment'])
        remaining_amount = total_amount - down_payment
        number_of_installments = terms['number_of_installments']
        frequency = terms['payment_frequency']
        interest_rate = terms['interest_rate']

        installment_amount = terms['installment_amount']
        if installment_amount is None:
            installment_amount = round_money(calculate_installment(
                remaining_amount, interest_rate, number_of_installments, frequency,
            ))

        warnings = cls._check_installment_consistency(
            remaining_amount, installment_amount, number_of_installments,
        )

        next_due_date, end_date = calculate_payment_dates(
            terms['start_date'], number_of_installments, frequency,
        )

        account = CurrentAccount.objects.create(
            client_id=client_id,
            motorcycle_id=motorcycle_id,
            organization_id=terms['organization_id'],
            total_amount=total_amount,
            down_payment=down_payment,
            remaining_amount=remaining_amount,
            number_of_installments=number_of_installments,
            installment_amount=installment_amount,
            payment_frequency=frequency,
            interest_rate=interest_rate,
            start_date=terms['start_date'],
            next_due_date=next_due_date,
            end_date=end_date,
            status=terms['status'],
            currency=currency or 'ARS',
            reminder_lead_time_days=reminder_lead_time_days,
            notes=notes,
        )

        schedule_invalidation()

        logger.info(
            "Current account %s created for client %d: total=%s, down=%s, "
            "installments=%d x %s %s, next_due=%s, end=%s",
            account.pk,
            client_id,
            total_amount,
            down_payment,
            number_of_installments,
            installment_amount,
            frequency,
            next_due_date,
            end_date,
        )

        return account, warnings

    @classmethod
    def _check_installment_consistency(
        cls,
        remaining_amount: Decimal,
        installment_amount: Decimal,
        number_of_installments: int,
    ) -> list:
        """Warn when the installments do not add up to the financed amount."""
        expected = installment_amount * number_of_installments
        difference = abs(remaining_amount - expected)
        if difference <= cls.MISMATCH_TOLERANCE:
            return []

        logger.warning(
            "Installments (%d x %s = %s) do not match the financed amount %s "
            "(difference %s)",
            number_of_installments,
            installment_amount,
            expected,
            remaining_amount,
            difference,
        )
        return [
            f"Installments add up to {expected}, financed amount is "
            f"{remaining_amount} (difference {difference})."
        ]


class PaymentLedgerService:
    """Applies received payments to current accounts."""

    @classmethod
    def record_payment(
        cls,
        account_id,
        amount_paid,
        payment_date=None,
        payment_method: str = '',
        transaction_reference: Optional[str] = None,
        notes: str = '',
        is_down_payment: bool = False,
    ) -> dict:
        """
        Record one payment against one account.

        The account row is locked for the whole read-modify-write; the
        payment insert and the account update commit or roll back
        together.

        Returns:
            Dict with success flag. On success: payment, account and
            message. On failure: error_code, message and status_code.
        """
        try:
            amount_paid = cls._validate_amount(amount_paid)
            payment_date = cls._coerce_payment_date(payment_date)
            payment, account = cls._apply_payment(
                account_id=account_id,
                amount_paid=amount_paid,
                payment_date=payment_date,
                payment_method=payment_method or '',
                transaction_reference=transaction_reference or None,
                notes=notes or '',
                is_down_payment=bool(is_down_payment),
            )
        except (
            InvalidInputError,
            CurrentAccountNotFoundError,
            AccountAlreadySettledError,
        ) as exc:
            logger.info(
                "Payment against account %s rejected: %s", account_id, exc.detail,
            )
            return operation_failed(exc)
        except DatabaseError as exc:
            logger.exception("Database error while recording payment on %s", account_id)
            return operation_failed(persistence_error_from(exc, KNOWN_CONSTRAINTS))

        return {
            'success': True,
            'payment': payment,
            'account': account,
            'message': 'Payment recorded successfully.',
        }

    @staticmethod
    def _validate_amount(amount_paid) -> Decimal:
        # Sub-cent amounts round to zero and are rejected
        try:
            amount = to_decimal(amount_paid)
            if amount.is_finite():
                amount = round_money(amount)
        except (InvalidOperation, TypeError, ValueError):
            amount = None
        if amount is None or not amount.is_finite() or amount <= 0:
            _raise_for_field_errors({'amount_paid': 'Must be at least 0.01.'})
        return amount

    @staticmethod
    def _coerce_payment_date(payment_date) -> Optional[datetime]:
        if payment_date is None:
            return None
        try:
            if isinstance(payment_date, str):
                payment_date = date_parser.isoparse(payment_date)
            elif not isinstance(payment_date, datetime):
                if not isinstance(payment_date, date):
                    raise ValueError(payment_date)
                payment_date = datetime.combine(payment_date, datetime.min.time())
        except (ValueError, OverflowError):
            _raise_for_field_errors({'payment_date': 'Invalid payment date.'})

        if timezone.is_naive(payment_date):
            payment_date = timezone.make_aware(payment_date)
        return payment_date

    @staticmethod
    def next_account_state(
        remaining_amount: Decimal,
        amount_paid: Decimal,
        status: str,
        next_due_date: Optional[date],
        frequency: str,
        is_down_payment: bool = False,
    ) -> tuple:
        """
        Compute the account state after a payment.

        The balance is not floored at zero: overpayments leave it
        negative. An account that reaches zero or below is PAID_OFF with
        no next due date. Otherwise the status read is kept, and the due
        date advances one period unless the payment is a down payment or
        no due date is set.

        Returns:
            Tuple of (remaining_amount, status, next_due_date).
        """
        new_remaining = remaining_amount - amount_paid

        if new_remaining <= 0:
            return new_remaining, AccountStatus.PAID_OFF, None

        if is_down_payment or next_due_date is None:
            return new_remaining, status, next_due_date

        return new_remaining, status, advance_due_date(next_due_date, frequency)

    @classmethod
    @transaction.atomic
    def _apply_payment(
        cls,
        account_id,
        amount_paid: Decimal,
        payment_date: Optional[datetime],
        payment_method: str,
        transaction_reference: Optional[str],
        notes: str,
        is_down_payment: bool,
    ):
        try:
            account = CurrentAccount.objects.select_for_update().get(pk=account_id)
        except (CurrentAccount.DoesNotExist, DjangoValidationError, ValueError):
            raise CurrentAccountNotFoundError(
                detail=f"Current account with ID {account_id} not found."
            )

        if account.status == AccountStatus.PAID_OFF:
            raise AccountAlreadySettledError(
                detail=f"Current account {account.pk} is already settled."
            )

        previous_remaining = account.remaining_amount
        try:
            new_remaining, new_status, new_next_due_date = cls.next_account_state(
                remaining_amount=previous_remaining,
                amount_paid=amount_paid,
                status=account.status,
                next_due_date=account.next_due_date,
                frequency=account.payment_frequency,
                is_down_payment=is_down_payment,
            )
        except ValueError as exc:
            raise InvalidInputError(detail=str(exc))

        payment = Payment.objects.create(
            current_account=account,
            organization_id=account.organization_id,
            amount_paid=amount_paid,
            payment_date=payment_date or timezone.now(),
            payment_method=payment_method,
            transaction_reference=transaction_reference,
            notes=notes,
            is_down_payment=is_down_payment,
        )

        account.remaining_amount = new_remaining
        account.status = new_status
        account.next_due_date = new_next_due_date
        account.save(update_fields=[
            'remaining_amount', 'status', 'next_due_date', 'updated_at',
        ])

        schedule_invalidation(account.pk)

        logger.info(
            "Payment %s applied to account %s: paid=%s, remaining %s -> %s, "
            "status=%s, next_due=%s",
            payment.pk,
            account.pk,
            amount_paid,
            previous_remaining,
            new_remaining,
            new_status,
            new_next_due_date,
        )

        return payment, account


class CurrentAccountService:
    """Service for current account retrieval and metadata updates."""

    # Financial fields belong to the ledger; only these may be edited
    UPDATABLE_FIELDS = ('status', 'notes', 'reminder_lead_time_days')

    @staticmethod
    def list_accounts(
        organization_id: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ):
        """
        Retrieve current accounts, newest first.

        Empty filters are ignored.

        Returns:
            QuerySet of CurrentAccount instances.
        """
        accounts = CurrentAccount.objects.select_related('client', 'motorcycle')

        if organization_id:
            accounts = accounts.filter(organization_id=organization_id)
        if status:
            accounts = accounts.filter(status=status)
        if client_id:
            accounts = accounts.filter(client_id=client_id)

        return accounts.order_by('-created_at')

    @staticmethod
    def get_account(account_id) -> CurrentAccount:
        """
        Retrieve one account with its payments, latest payment first.

        Raises:
            CurrentAccountNotFoundError: If the account does not exist.
        """
        payments = Payment.objects.order_by('-payment_date', '-created_at')
        try:
            return (
                CurrentAccount.objects
                .select_related('client', 'motorcycle')
                .prefetch_related(Prefetch('payments', queryset=payments))
                .get(pk=account_id)
            )
        except (CurrentAccount.DoesNotExist, DjangoValidationError, ValueError):
            raise CurrentAccountNotFoundError(
                detail=f"Current account with ID {account_id} not found."
            )

    @classmethod
    @transaction.atomic
    def update_account(cls, account_id, **changes) -> CurrentAccount:
        """
        Update account metadata (status, notes, reminder lead time).

        Raises:
            InvalidInputError: If a non-editable field, an unknown
                status or PAID_OFF is given. Only the ledger pays off.
            CurrentAccountNotFoundError: If the account does not exist.
            AccountAlreadySettledError: If the status of a PAID_OFF
                account would change.
        """
        errors = {
            field: 'This field cannot be changed.'
            for field in changes
            if field not in cls.UPDATABLE_FIELDS
        }
        if 'status' in changes and changes['status'] not in AccountStatus.values:
            errors['status'] = f"Unsupported status: {changes['status']!r}."
        elif changes.get('status') == AccountStatus.PAID_OFF:
            errors['status'] = 'Accounts are paid off by recording payments.'
        _raise_for_field_errors(errors)

        try:
            account = CurrentAccount.objects.select_for_update().get(pk=account_id)
        except (CurrentAccount.DoesNotExist, DjangoValidationError, ValueError):
            raise CurrentAccountNotFoundError(
                detail=f"Current account with ID {account_id} not found."
            )

        if 'status' in changes and account.status == AccountStatus.PAID_OFF:
            raise AccountAlreadySettledError(
                detail=f"Current account {account.pk} is already settled; "
                "its status cannot change."
            )

        if not changes:
            return account

        for field, value in changes.items():
            setattr(account, field, value)
        account.save(update_fields=[*changes.keys(), 'updated_at'])

        schedule_invalidation(account.pk)

        logger.info(
            "Current account %s updated: %s", account.pk, sorted(changes),
        )
        return account

    @classmethod
    def get_schedule(cls, account_id) -> list:
        """Amortization schedule of an account's financed amount."""
        account = cls.get_account(account_id)
        return build_amortization_schedule(
            account.financed_amount,
            account.interest_rate,
            account.number_of_installments,
            account.payment_frequency,
        )
