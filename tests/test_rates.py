from datetime import date
from decimal import Decimal

from conftest import certificate, stepped_certificate
from fintrack.rates import effective_rate, full_years_elapsed, monthly_income
from fintrack.records import StepDown


def test_step_downs_apply_from_start_of_contract_year():
    inv = stepped_certificate()
    assert effective_rate(inv, date(2023, 6, 1)) == Decimal("5.0")
    assert effective_rate(inv, date(2024, 6, 1)) == Decimal("4.0")
    assert effective_rate(inv, date(2025, 6, 1)) == Decimal("4.0")
    assert effective_rate(inv, date(2026, 6, 1)) == Decimal("3.0")
    assert effective_rate(inv, date(2027, 12, 31)) == Decimal("3.0")


def test_year_length_is_averaged_over_leap_years():
    # 365 days after 2023-01-01 is still short of 365.25
    inv = stepped_certificate()
    assert full_years_elapsed(inv.start_date, date(2024, 1, 1)) == 0
    assert effective_rate(inv, date(2024, 1, 1)) == Decimal("5.0")
    assert effective_rate(inv, date(2024, 1, 2)) == Decimal("4.0")


def test_before_start_uses_initial_rate():
    inv = stepped_certificate()
    assert effective_rate(inv, date(2022, 12, 31)) == Decimal("5.0")


def test_step_down_order_in_input_does_not_matter():
    inv = stepped_certificate(step_downs=(StepDown(4, Decimal("3.0")), StepDown(2, Decimal("4.0"))))
    assert effective_rate(inv, date(2026, 6, 1)) == Decimal("3.0")
    assert effective_rate(inv, date(2024, 6, 1)) == Decimal("4.0")


def test_step_can_raise_the_rate():
    inv = certificate(term_years=2, step_downs=(StepDown(2, Decimal("7.5")),))
    assert effective_rate(inv, date(2025, 3, 1)) == Decimal("7.5")


def test_monthly_income_is_unrounded():
    assert monthly_income(Decimal("12000"), Decimal("6.0")) == Decimal("60")
    assert monthly_income(Decimal("10000"), Decimal("4.0")).quantize(Decimal("0.0001")) == Decimal("33.3333")
