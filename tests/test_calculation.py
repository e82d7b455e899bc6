from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from pydantic import ValidationError as PydanticValidationError

from pahana.core.exceptions import ValidationError
from pahana.schemas.schemas import Item
from pahana.services.calculation_service import CalculationService, round2


def expected_charge(units):
    return Decimal(
        10 * min(units, 50)
        + 12 * min(max(units - 50, 0), 50)
        + 15 * max(units - 100, 0)
    )


@pytest.mark.parametrize("units", list(range(0, 260, 7)) + [49, 50, 51, 99, 100, 101])
def test_tiered_charge_matches_slab_formula(units):
    assert CalculationService.compute_tiered_charge(units) == expected_charge(units)


@pytest.mark.parametrize("units, charge", [
    (0, "0.00"),
    (50, "500.00"),
    (100, "1100.00"),
    (120, "1400.00"),
    (150, "1850.00"),
])
def test_tiered_charge_known_points(units, charge):
    assert CalculationService.compute_tiered_charge(units) == Decimal(charge)


def test_bill_with_units_and_one_item_line():
    pen = Item(code="PEN", name="Pen", unit_price=Decimal("25.00"))

    bill = CalculationService.calculate_bill("C001", 120, [(pen, 2)])

    assert bill.account_no == "C001"
    assert bill.units == 120
    assert bill.energy_charge == Decimal("1400.00")
    assert bill.item_total == Decimal("50.00")
    assert bill.tax == Decimal("217.50")
    assert bill.grand_total == Decimal("1667.50")
    assert len(bill.lines) == 1
    assert bill.lines[0].item_code == "PEN"
    assert bill.lines[0].line_total == Decimal("50.00")


def test_bill_without_items():
    bill = CalculationService.calculate_bill("C002", 50)

    assert bill.item_total == Decimal("0.00")
    assert bill.tax == Decimal("75.00")
    assert bill.grand_total == Decimal("575.00")
    assert bill.lines == []


def test_tax_rounds_half_up_at_the_cent():
    # 0.30 * 0.15 = 0.045, which half-even rounding would turn into 0.04
    chalk = Item(code="CH", name="Chalk", unit_price=Decimal("0.30"))

    bill = CalculationService.calculate_bill("C003", 0, [(chalk, 1)])

    assert bill.tax == Decimal("0.05")
    assert bill.grand_total == Decimal("0.35")


@pytest.mark.parametrize("units, price, quantity", [
    (0, "0.333", 3),
    (7, "19.99", 4),
    (101, "2.345", 7),
    (333, "0.01", 1),
])
def test_grand_total_is_sum_of_rounded_parts(units, price, quantity):
    # Priced beyond the cent, which the item schema would refuse
    item = SimpleNamespace(code="X", name="X", unit_price=Decimal(price))

    bill = CalculationService.calculate_bill("C004", units, [(item, quantity)])

    assert bill.grand_total == round2(bill.energy_charge + bill.item_total + bill.tax)
    assert bill.tax == round2((expected_charge(units) + Decimal(price) * quantity) * Decimal("0.15"))
    for amount in (bill.energy_charge, bill.item_total, bill.tax, bill.grand_total):
        assert amount == amount.quantize(Decimal("0.01"))


def test_bill_uses_given_id_and_timestamp():
    now = datetime(2024, 5, 1, 10, 30)

    bill = CalculationService.calculate_bill("C005", 10, bill_id="B42", now=now)

    assert bill.bill_id == "B42"
    assert bill.created_at == now


def test_fresh_bills_get_distinct_ids():
    ids = {CalculationService.calculate_bill("C006", 1).bill_id for _ in range(50)}

    assert len(ids) == 50
    assert all(bill_id.startswith("B") for bill_id in ids)


@pytest.mark.parametrize("price", ["2.345", "1e30", "-1"])
def test_item_price_outside_column_is_refused(price):
    with pytest.raises(PydanticValidationError):
        Item(code="X", name="X", unit_price=Decimal(price))


def test_amount_beyond_decimal_precision_is_a_validation_error():
    huge = SimpleNamespace(code="X", name="X", unit_price=Decimal("1e30"))

    with pytest.raises(ValidationError):
        CalculationService.calculate_bill("C007", 0, [(huge, 1)])

    with pytest.raises(ValidationError):
        round2(Decimal("1e40"))
