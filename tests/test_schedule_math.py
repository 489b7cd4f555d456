"""
Tests for period arithmetic and installment math using Decimal precision.
"""

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from apps.core.utils import (
    advance_due_date,
    build_amortization_schedule,
    calculate_installment,
    calculate_payment_dates,
    periods_per_year,
    round_money,
)


class PeriodsPerYearTests(SimpleTestCase):

    def test_known_frequencies(self):
        self.assertEqual(periods_per_year('WEEKLY'), 52)
        self.assertEqual(periods_per_year('BIWEEKLY'), 26)
        self.assertEqual(periods_per_year('MONTHLY'), 12)
        self.assertEqual(periods_per_year('QUARTERLY'), 4)
        self.assertEqual(periods_per_year('ANNUALLY'), 1)

    def test_unknown_frequency_defaults_to_monthly(self):
        with self.assertLogs('apps.core.utils', level='WARNING'):
            self.assertEqual(periods_per_year('DAILY'), 12)


class AdvanceDueDateTests(SimpleTestCase):
    """Fixed-day and calendar-month period advancement."""

    def test_weekly_adds_seven_days(self):
        self.assertEqual(
            advance_due_date(date(2024, 1, 1), 'WEEKLY'), date(2024, 1, 8),
        )

    def test_biweekly_crosses_year_end(self):
        self.assertEqual(
            advance_due_date(date(2024, 12, 25), 'BIWEEKLY'), date(2025, 1, 8),
        )

    def test_weekly_multiple_periods(self):
        self.assertEqual(
            advance_due_date(date(2024, 1, 1), 'WEEKLY', periods=3),
            date(2024, 1, 22),
        )

    def test_monthly_keeps_day_of_month(self):
        self.assertEqual(
            advance_due_date(date(2024, 1, 15), 'MONTHLY'), date(2024, 2, 15),
        )

    def test_month_end_clamps_to_leap_february(self):
        """Jan 31 + 1 month → Feb 29 in a leap year, never Mar 2."""
        self.assertEqual(
            advance_due_date(date(2024, 1, 31), 'MONTHLY'), date(2024, 2, 29),
        )

    def test_month_end_clamps_to_common_february(self):
        self.assertEqual(
            advance_due_date(date(2023, 1, 31), 'MONTHLY'), date(2023, 2, 28),
        )

    def test_multi_period_advance_is_anchored(self):
        """Two months from Jan 31 is Mar 31, not Feb 29 + 1 month."""
        self.assertEqual(
            advance_due_date(date(2024, 1, 31), 'MONTHLY', periods=2),
            date(2024, 3, 31),
        )

    def test_quarterly_clamps_month_end(self):
        self.assertEqual(
            advance_due_date(date(2024, 11, 30), 'QUARTERLY'), date(2025, 2, 28),
        )

    def test_annually_from_leap_day(self):
        self.assertEqual(
            advance_due_date(date(2024, 2, 29), 'ANNUALLY'), date(2025, 2, 28),
        )

    def test_zero_periods_is_identity(self):
        self.assertEqual(
            advance_due_date(date(2024, 5, 5), 'MONTHLY', periods=0),
            date(2024, 5, 5),
        )

    def test_unknown_frequency_raises(self):
        with self.assertRaises(ValueError):
            advance_due_date(date(2024, 1, 1), 'DAILY')


class CalculatePaymentDatesTests(SimpleTestCase):

    def test_single_installment_due_on_start(self):
        start = date(2024, 3, 10)
        self.assertEqual(
            calculate_payment_dates(start, 1, 'MONTHLY'), (start, start),
        )

    def test_weekly_sequence(self):
        start = date(2024, 1, 1)
        next_due, end = calculate_payment_dates(start, 5, 'WEEKLY')
        self.assertEqual(next_due, date(2024, 1, 8))
        self.assertEqual(end, date(2024, 1, 29))  # 7 * (5 - 1) days

    def test_monthly_sequence(self):
        next_due, end = calculate_payment_dates(date(2024, 1, 15), 12, 'MONTHLY')
        self.assertEqual(next_due, date(2024, 2, 15))
        self.assertEqual(end, date(2024, 12, 15))

    def test_month_end_start(self):
        next_due, end = calculate_payment_dates(date(2024, 1, 31), 3, 'MONTHLY')
        self.assertEqual(next_due, date(2024, 2, 29))
        self.assertEqual(end, date(2024, 3, 31))

    def test_zero_installments(self):
        self.assertEqual(
            calculate_payment_dates(date(2024, 1, 1), 0, 'MONTHLY'), (None, None),
        )


class CalculateInstallmentTests(SimpleTestCase):
    """PMT formula and its degenerate cases."""

    def test_zero_rate_is_even_split(self):
        installment = calculate_installment(Decimal('12000'), Decimal('0'), 12, 'MONTHLY')
        self.assertEqual(installment, Decimal('1000'))

    def test_zero_rate_is_not_rounded(self):
        installment = calculate_installment(Decimal('1000'), Decimal('0'), 3, 'MONTHLY')
        self.assertEqual(installment, Decimal('1000') / Decimal('3'))

    def test_standard_pmt(self):
        """12000 at 12%/year, monthly, 12 installments → 1066.19."""
        installment = calculate_installment(Decimal('12000'), Decimal('0.12'), 12, 'MONTHLY')
        self.assertIsInstance(installment, Decimal)
        self.assertEqual(round_money(installment), Decimal('1066.19'))

    def test_single_installment_with_interest(self):
        """n=1 → principal plus one period of interest."""
        installment = calculate_installment(Decimal('1000'), Decimal('0.12'), 1, 'MONTHLY')
        self.assertEqual(installment, Decimal('1010'))

    def test_rate_uses_frequency(self):
        weekly = calculate_installment(Decimal('10000'), Decimal('0.30'), 52, 'WEEKLY')
        annual = calculate_installment(Decimal('10000'), Decimal('0.30'), 1, 'ANNUALLY')
        self.assertGreater(weekly, Decimal('10000') / 52)
        self.assertEqual(annual, Decimal('13000'))

    def test_vanishing_rate_falls_back_to_even_split(self):
        """A rate too small to move (1+r)^n at 28 digits avoids dividing by zero."""
        installment = calculate_installment(Decimal('1200'), Decimal('1E-30'), 12, 'MONTHLY')
        self.assertEqual(installment, Decimal('100'))

    def test_non_positive_principal_returns_zero(self):
        self.assertEqual(calculate_installment(Decimal('0'), Decimal('0.1'), 12, 'MONTHLY'), 0)

    def test_negative_rate_raises(self):
        with self.assertRaises(ValueError):
            calculate_installment(Decimal('1000'), Decimal('-0.1'), 12, 'MONTHLY')

    def test_zero_installments_raises(self):
        with self.assertRaises(ValueError):
            calculate_installment(Decimal('1000'), Decimal('0.1'), 0, 'MONTHLY')

    def test_accepts_int_and_float_inputs(self):
        from_numbers = calculate_installment(12000, 0.12, 12, 'MONTHLY')
        from_decimals = calculate_installment(Decimal('12000'), Decimal('0.12'), 12, 'MONTHLY')
        self.assertEqual(from_numbers, from_decimals)


class AmortizationScheduleTests(SimpleTestCase):

    def test_schedule_closes_at_zero(self):
        schedule = build_amortization_schedule(Decimal('12000'), Decimal('0.12'), 12, 'MONTHLY')
        self.assertEqual(len(schedule), 12)
        self.assertEqual(schedule[0]['interest'], Decimal('120.00'))
        self.assertEqual(schedule[0]['installment_amount'], Decimal('1066.19'))
        self.assertEqual(schedule[-1]['closing_balance'], Decimal('0.00'))
        self.assertEqual(
            sum(row['principal'] for row in schedule), Decimal('12000.00'),
        )

    def test_rows_chain_balances(self):
        schedule = build_amortization_schedule(Decimal('5000'), Decimal('0.30'), 6, 'BIWEEKLY')
        for previous, current in zip(schedule, schedule[1:]):
            self.assertEqual(previous['closing_balance'], current['opening_balance'])

    def test_interest_free_last_row_absorbs_rounding(self):
        schedule = build_amortization_schedule(Decimal('1000'), Decimal('0'), 3, 'MONTHLY')
        self.assertEqual(
            [row['principal'] for row in schedule],
            [Decimal('333.33'), Decimal('333.33'), Decimal('333.34')],
        )
        self.assertTrue(all(row['interest'] == 0 for row in schedule))

    def test_nothing_financed(self):
        self.assertEqual(
            build_amortization_schedule(Decimal('0'), Decimal('0.1'), 12, 'MONTHLY'), [],
        )
