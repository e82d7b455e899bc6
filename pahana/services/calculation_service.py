from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Sequence, Tuple
from datetime import datetime
from ..core.exceptions import ValidationError
from ..core.identifiers import bill_ids
from ..core.logging import app_logger
from ..schemas.schemas import Bill, BillLine

CENT = Decimal('0.01')

# (band size, rate per unit); the last band is open ended
TARIFF_TIERS = (
    (50, Decimal('10.00')),
    (50, Decimal('12.00')),
    (None, Decimal('15.00')),
)

TAX_RATE = Decimal('0.15')

def round2(value) -> Decimal:
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Amount out of range: {value}")

class CalculationService:

    @staticmethod
    def compute_tiered_charge(units: int) -> Decimal:
        """
        Charge for ``units`` under the slab tariff: the first 50 units at
        10.00, the next 50 at 12.00 and everything above 100 at 15.00.
        """
        remaining = units
        total = Decimal('0')

        for capacity, rate in TARIFF_TIERS:
            if remaining <= 0:
                break
            in_tier = remaining if capacity is None else min(remaining, capacity)
            total += in_tier * rate
            remaining -= in_tier

        return total

    @staticmethod
    def calculate_bill(
        account_no: str,
        units: int,
        lines: Sequence[Tuple[object, int]] = (),
        bill_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Bill:
        """
        Build a bill from consumed units and ``(item, quantity)`` pairs.

        ``item`` is anything with ``code``, ``name`` and ``unit_price``.
        Tax is taken from the unrounded subtotal; the grand total is the
        rounded sum of the already rounded energy charge, item total and tax.
        """
        energy_charge = CalculationService.compute_tiered_charge(units)

        bill_lines = []
        item_total = Decimal('0')
        for item, quantity in lines:
            line_total = Decimal(item.unit_price) * quantity
            item_total += line_total
            bill_lines.append(BillLine(
                item_code=item.code,
                item_name=item.name,
                unit_price=item.unit_price,
                quantity=quantity,
                line_total=round2(line_total)
            ))

        tax = round2((energy_charge + item_total) * TAX_RATE)
        energy_charge = round2(energy_charge)
        item_total = round2(item_total)
        grand_total = round2(energy_charge + item_total + tax)

        bill = Bill(
            bill_id=bill_id or bill_ids.next_id(),
            account_no=account_no,
            created_at=now or datetime.now(),
            units=units,
            energy_charge=energy_charge,
            item_total=item_total,
            tax=tax,
            grand_total=grand_total,
            lines=bill_lines
        )

        app_logger.debug(f"Calculated bill {bill.bill_id} for account {account_no}: {grand_total} ({len(bill_lines)} items)")
        return bill
