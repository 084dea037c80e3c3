"""
Name: Billing Rules Tests

Responsibilities:
  - Invoice tax and total derivation (explicit values win)
  - Line item totals and purchase lot totals
  - Subscription end dates per billing cycle (day clamped to month end)
"""

from datetime import date
from decimal import Decimal

import pytest
from bizops.application.billing import (
    SUBSCRIPTION_TYPES,
    add_months,
    complete_line_items,
    compute_end_date,
    compute_invoice_amounts,
    purchase_lot_total,
)

pytestmark = pytest.mark.unit


def test_invoice_amounts_are_derived():
    amounts = compute_invoice_amounts("100", "21")

    assert amounts.tax_amount == Decimal("21.00")
    assert amounts.total_amount == Decimal("121.00")


def test_invoice_amounts_respect_explicit_values():
    amounts = compute_invoice_amounts(100, 21, tax_amount=20, total_amount=125)

    assert amounts.tax_amount == Decimal("20.00")
    assert amounts.total_amount == Decimal("125.00")


def test_invoice_amounts_round_half_up():
    assert compute_invoice_amounts("10.05", "10").tax_amount == Decimal("1.01")


def test_line_items_total_only_when_missing():
    items = complete_line_items(
        [
            {"description": "a", "quantity": 2, "unit_price": "9.99"},
            {"description": "b", "quantity": 1, "unit_price": 5, "total_price": 4},
        ]
    )

    assert items[0]["total_price"] == Decimal("19.98")
    assert items[1]["total_price"] == 4


def test_purchase_lot_total():
    items = [
        {"quantity_ordered": 3, "unit_cost": Decimal("2.50")},
        {"quantity_ordered": 10, "unit_cost": Decimal("1.10")},
    ]
    assert purchase_lot_total(items) == Decimal("18.50")
    assert purchase_lot_total([]) == Decimal("0.00")


@pytest.mark.parametrize(
    "start,cycle,expected",
    [
        (date(2024, 1, 15), "monthly", date(2024, 2, 15)),
        (date(2024, 1, 31), "monthly", date(2024, 2, 29)),
        (date(2024, 11, 30), "quarterly", date(2025, 2, 28)),
        (date(2024, 2, 29), "yearly", date(2025, 2, 28)),
    ],
)
def test_compute_end_date(start, cycle, expected):
    assert compute_end_date(start, cycle) == expected


def test_add_months_crosses_year():
    assert add_months(date(2024, 12, 10), 1) == date(2025, 1, 10)


def test_subscription_catalog():
    assert SUBSCRIPTION_TYPES["STARLINK"]["defaultPrice"] == 99.00
    assert SUBSCRIPTION_TYPES["DOMAIN"]["billingCycle"] == "yearly"
    assert set(SUBSCRIPTION_TYPES) == {"STARLINK", "TALKIE_WALKIE", "DOMAIN", "HOSTING"}
