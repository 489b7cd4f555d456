"""
Tests for listing, viewing and updating current accounts, and for the
amortization schedule endpoint.
"""

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.clients.models import Client
from apps.core.exceptions import (
    AccountAlreadySettledError,
    CurrentAccountNotFoundError,
    InvalidInputError,
)
from apps.current_accounts.models import CurrentAccount, Payment
from apps.current_accounts.services import (
    CurrentAccountService,
    PaymentLedgerService,
)
from apps.motorcycles.models import Motorcycle


class AccountQueryTestMixin:

    def setUp(self):
        cache.clear()
        self.api = APIClient()
        self.client_a = Client.objects.create(
            first_name='Martín', last_name='Sosa', organization_id='org-a',
        )
        self.client_b = Client.objects.create(
            first_name='Julia', last_name='Paz', organization_id='org-b',
        )
        self._chassis = 0

    def make_account(self, client, **overrides):
        self._chassis += 1
        motorcycle = Motorcycle.objects.create(
            brand='Bajaj',
            model='Rouser NS200',
            year=2023,
            chassis_number=f'CH-Q-{self._chassis:04d}',
            organization_id=client.organization_id,
        )
        fields = {
            'client': client,
            'motorcycle': motorcycle,
            'organization_id': client.organization_id,
            'total_amount': Decimal('6000.00'),
            'down_payment': Decimal('0.00'),
            'remaining_amount': Decimal('6000.00'),
            'number_of_installments': 6,
            'installment_amount': Decimal('1000.00'),
            'payment_frequency': 'MONTHLY',
            'start_date': date(2024, 1, 1),
            'next_due_date': date(2024, 2, 1),
            'end_date': date(2024, 6, 1),
        }
        fields.update(overrides)
        return CurrentAccount.objects.create(**fields)


class ListAccountsTests(AccountQueryTestMixin, TestCase):
    """GET /api/current-accounts."""

    url = '/api/current-accounts'

    def test_lists_newest_first(self):
        first = self.make_account(self.client_a)
        second = self.make_account(self.client_a)
        CurrentAccount.objects.filter(pk=first.pk).update(
            created_at=timezone.now() - timedelta(days=1),
        )

        response = self.api.get(self.url)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['count'], 2)
        self.assertEqual(
            [row['id'] for row in data['results']],
            [str(second.pk), str(first.pk)],
        )
        self.assertEqual(data['results'][0]['client_name'], 'Martín Sosa')

    def test_filters_by_organization_status_and_client(self):
        active = self.make_account(self.client_a)
        self.make_account(self.client_a, status='OVERDUE')
        self.make_account(self.client_b)

        response = self.api.get(self.url, {'organization_id': 'org-a', 'status': 'ACTIVE'})
        ids = [row['id'] for row in response.json()['results']]
        self.assertEqual(ids, [str(active.pk)])

        response = self.api.get(self.url, {'client_id': self.client_b.pk})
        self.assertEqual(response.json()['count'], 1)

    def test_blank_filters_are_ignored(self):
        self.make_account(self.client_a)
        self.make_account(self.client_b)
        response = self.api.get(self.url, {'organization_id': ''})
        self.assertEqual(response.json()['count'], 2)

    def test_unknown_status_filter_returns_400(self):
        response = self.api.get(self.url, {'status': 'FROZEN'})
        self.assertEqual(response.status_code, 400)

    def test_pagination(self):
        for _ in range(12):
            self.make_account(self.client_a)

        response = self.api.get(self.url)
        data = response.json()
        self.assertEqual(data['count'], 12)
        self.assertEqual(len(data['results']), 10)
        self.assertIsNotNone(data['next'])

        response = self.api.get(self.url, {'page_size': 5, 'page': 3})
        self.assertEqual(len(response.json()['results']), 2)

    def test_listing_reflects_new_payment(self):
        account = self.make_account(self.client_a)
        self.api.get(self.url)

        with self.captureOnCommitCallbacks(execute=True):
            PaymentLedgerService.record_payment(
                account_id=account.pk, amount_paid=Decimal('1000.00'),
            )

        response = self.api.get(self.url)
        self.assertEqual(response.json()['results'][0]['remaining_amount'], '5000.00')


class AccountDetailTests(AccountQueryTestMixin, TestCase):
    """GET and PATCH /api/current-accounts/<id>."""

    def url(self, account_id):
        return f'/api/current-accounts/{account_id}'

    def test_detail_includes_payments_latest_first(self):
        account = self.make_account(self.client_a)
        for day, amount in ((3, '1000.00'), (20, '500.00'), (10, '250.00')):
            Payment.objects.create(
                current_account=account,
                organization_id='org-a',
                amount_paid=Decimal(amount),
                payment_date=timezone.make_aware(datetime(2024, 2, day, 10, 0)),
            )

        response = self.api.get(self.url(account.pk))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['id'], str(account.pk))
        self.assertEqual(
            [payment['amount_paid'] for payment in data['payments']],
            ['500.00', '250.00', '1000.00'],
        )

    def test_unknown_account_returns_404(self):
        response = self.api.get(self.url(uuid.uuid4()))
        self.assertEqual(response.status_code, 404)
        self.assertTrue(response.json()['error'])

    def test_patch_updates_metadata(self):
        account = self.make_account(self.client_a)
        response = self.api.patch(
            self.url(account.pk),
            {'status': 'DEFAULTED', 'notes': 'Handed to collections', 'reminder_lead_time_days': 3},
            format='json',
        )
        self.assertEqual(response.status_code, 200)

        account.refresh_from_db()
        self.assertEqual(account.status, 'DEFAULTED')
        self.assertEqual(account.notes, 'Handed to collections')
        self.assertEqual(account.reminder_lead_time_days, 3)

    def test_patch_ignores_financial_fields(self):
        account = self.make_account(self.client_a)
        response = self.api.patch(
            self.url(account.pk),
            {'remaining_amount': '0.00', 'notes': 'checked'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)

        account.refresh_from_db()
        self.assertEqual(account.remaining_amount, Decimal('6000.00'))
        self.assertEqual(account.notes, 'checked')

    def test_patch_drops_cached_detail(self):
        account = self.make_account(self.client_a)
        self.api.get(self.url(account.pk))

        with self.captureOnCommitCallbacks(execute=True):
            self.api.patch(self.url(account.pk), {'status': 'OVERDUE'}, format='json')

        response = self.api.get(self.url(account.pk))
        self.assertEqual(response.json()['status'], 'OVERDUE')

    def test_patch_paid_off_status_returns_400(self):
        account = self.make_account(self.client_a)
        response = self.api.patch(self.url(account.pk), {'status': 'PAID_OFF'}, format='json')
        self.assertEqual(response.status_code, 400)

        account.refresh_from_db()
        self.assertEqual(account.status, 'ACTIVE')

    def test_patch_reopening_paid_off_account_returns_409(self):
        account = self.make_account(
            self.client_a,
            status='PAID_OFF',
            remaining_amount=Decimal('0.00'),
            next_due_date=None,
        )
        response = self.api.patch(self.url(account.pk), {'status': 'ACTIVE'}, format='json')
        self.assertEqual(response.status_code, 409)

        account.refresh_from_db()
        self.assertEqual(account.status, 'PAID_OFF')

    def test_patch_unknown_account_returns_404(self):
        response = self.api.patch(self.url(uuid.uuid4()), {'notes': 'x'}, format='json')
        self.assertEqual(response.status_code, 404)


class UpdateAccountServiceTests(AccountQueryTestMixin, TestCase):
    """CurrentAccountService.update_account."""

    def test_rejects_financial_fields(self):
        account = self.make_account(self.client_a)
        with self.assertRaises(InvalidInputError) as ctx:
            CurrentAccountService.update_account(
                account.pk, remaining_amount=Decimal('0.00'), next_due_date=None,
            )
        self.assertIn('remaining_amount', str(ctx.exception.detail))
        self.assertIn('next_due_date', str(ctx.exception.detail))

    def test_rejects_unknown_status(self):
        account = self.make_account(self.client_a)
        with self.assertRaises(InvalidInputError):
            CurrentAccountService.update_account(account.pk, status='FROZEN')

    def test_cannot_mark_paid_off(self):
        account = self.make_account(self.client_a)
        with self.assertRaises(InvalidInputError) as ctx:
            CurrentAccountService.update_account(account.pk, status='PAID_OFF')
        self.assertIn('status', str(ctx.exception.detail))

        account.refresh_from_db()
        self.assertEqual(account.status, 'ACTIVE')
        self.assertEqual(account.next_due_date, date(2024, 2, 1))

    def test_paid_off_status_cannot_change(self):
        account = self.make_account(
            self.client_a,
            status='PAID_OFF',
            remaining_amount=Decimal('0.00'),
            next_due_date=None,
        )
        with self.assertRaises(AccountAlreadySettledError):
            CurrentAccountService.update_account(account.pk, status='ACTIVE')

        account.refresh_from_db()
        self.assertEqual(account.status, 'PAID_OFF')

    def test_paid_off_account_notes_still_editable(self):
        account = self.make_account(
            self.client_a,
            status='PAID_OFF',
            remaining_amount=Decimal('0.00'),
            next_due_date=None,
        )
        updated = CurrentAccountService.update_account(account.pk, notes='Title delivered')
        self.assertEqual(updated.notes, 'Title delivered')
        self.assertEqual(updated.status, 'PAID_OFF')

    def test_unknown_account(self):
        with self.assertRaises(CurrentAccountNotFoundError):
            CurrentAccountService.update_account(uuid.uuid4(), notes='x')

    def test_no_changes_returns_account(self):
        account = self.make_account(self.client_a)
        updated = CurrentAccountService.update_account(account.pk)
        self.assertEqual(updated.pk, account.pk)


class AmortizationScheduleViewTests(AccountQueryTestMixin, TestCase):
    """GET /api/current-accounts/<id>/schedule."""

    def test_schedule_for_interest_bearing_account(self):
        account = self.make_account(
            self.client_a,
            total_amount=Decimal('15000.00'),
            down_payment=Decimal('3000.00'),
            remaining_amount=Decimal('12000.00'),
            number_of_installments=12,
            installment_amount=Decimal('1066.19'),
            interest_rate=Decimal('0.1200'),
        )
        response = self.api.get(f'/api/current-accounts/{account.pk}/schedule')
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertEqual(data['account_id'], str(account.pk))
        self.assertEqual(len(data['schedule']), 12)
        self.assertEqual(data['schedule'][0]['opening_balance'], '12000.00')
        self.assertEqual(data['schedule'][0]['interest'], '120.00')
        self.assertEqual(data['schedule'][-1]['closing_balance'], '0.00')

    def test_schedule_ignores_payments_made(self):
        account = self.make_account(self.client_a)
        PaymentLedgerService.record_payment(
            account_id=account.pk, amount_paid=Decimal('1000.00'),
        )
        response = self.api.get(f'/api/current-accounts/{account.pk}/schedule')
        schedule = response.json()['schedule']
        self.assertEqual(len(schedule), 6)
        self.assertEqual(schedule[0]['opening_balance'], '6000.00')

    def test_unknown_account_returns_404(self):
        response = self.api.get(f'/api/current-accounts/{uuid.uuid4()}/schedule')
        self.assertEqual(response.status_code, 404)
