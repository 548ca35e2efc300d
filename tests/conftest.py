from datetime import date
from decimal import Decimal

import pytest

from fintrack.database import make_session_factory
from fintrack.ledger import SqlLedger
from fintrack.records import Investment, StepDown, new_id


def certificate(**overrides) -> Investment:
    """The 12 000 @ 6% one-year certificate starting 2024-01-15, unless overridden."""
    fields = dict(
        id=new_id(),
        start_date=date(2024, 1, 15),
        principal=Decimal("12000"),
        term_years=1,
        initial_rate=Decimal("6.0"),
        certificate_name="Bank CD",
    )
    fields.update(overrides)
    return Investment(**fields)


def stepped_certificate(**overrides) -> Investment:
    """5-year 10 000 @ 5%, stepping to 4% in year 2 and 3% in year 4."""
    fields = dict(
        start_date=date(2023, 1, 1),
        principal=Decimal("10000"),
        term_years=5,
        initial_rate=Decimal("5.0"),
        step_downs=(StepDown(2, Decimal("4.0")), StepDown(4, Decimal("3.0"))),
        certificate_name="Step CD",
    )
    fields.update(overrides)
    return certificate(**fields)


@pytest.fixture
def ledger():
    return SqlLedger(make_session_factory("sqlite://"))
