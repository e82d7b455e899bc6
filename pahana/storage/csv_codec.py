"""
Line codec for the console variant's data files.

One record per line, fields joined by commas. A backslash or a comma inside
a field is written with a leading backslash; nothing else is escaped, so a
field can never hold a line break.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import MalformedRowError
from ..schemas.schemas import Bill, Customer, Item, User

ESCAPE = "\\"
SEPARATOR = ","

USER_FIELDS = 2
CUSTOMER_FIELDS = 5
ITEM_FIELDS = 3
BILL_FIELDS = 8


def escape(value) -> str:
    text = str(value)
    if "\n" in text or "\r" in text:
        raise ValueError("line breaks cannot be stored in a data file")
    return text.replace(ESCAPE, ESCAPE + ESCAPE).replace(SEPARATOR, ESCAPE + SEPARATOR)


def join_fields(values) -> str:
    return SEPARATOR.join(escape(v) for v in values)


def split_fields(line: str, arity: int, strict: bool = True) -> List[str]:
    """
    Scan ``line`` into unescaped fields.

    In strict mode a field count other than ``arity`` or a trailing lone
    backslash raises MalformedRowError. Otherwise short rows are padded with
    empty strings and surplus fields are kept.
    """
    fields = []
    current = []
    pending = False

    for char in line:
        if pending:
            current.append(char)
            pending = False
        elif char == ESCAPE:
            pending = True
        elif char == SEPARATOR:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))

    if strict:
        if pending:
            raise MalformedRowError("dangling escape at end of line")
        if len(fields) != arity:
            raise MalformedRowError(f"expected {arity} fields, found {len(fields)}")

    while len(fields) < arity:
        fields.append("")
    return fields


def _int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise MalformedRowError(f"{name} is not an integer: {value!r}")


def _decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise MalformedRowError(f"{name} is not a number: {value!r}")


def _record(model, **values):
    try:
        return model(**values)
    except PydanticValidationError as e:
        raise MalformedRowError(f"invalid {model.__name__.lower()}: {e.errors()[0]['msg']}")


# users.csv: username, password-hash
def dump_user(user: User) -> str:
    return join_fields([user.username, user.password_hash])


def load_user(line: str) -> User:
    username, password_hash = split_fields(line, USER_FIELDS)
    return _record(User, username=username, password_hash=password_hash)


# customers.csv: account-number, name, address, phone, units-consumed
def dump_customer(customer: Customer) -> str:
    return join_fields([
        customer.account_no, customer.name, customer.address, customer.phone, customer.units_consumed
    ])


def load_customer(line: str) -> Customer:
    account_no, name, address, phone, units = split_fields(line, CUSTOMER_FIELDS)
    return _record(
        Customer,
        account_no=account_no,
        name=name,
        address=address,
        phone=phone,
        units_consumed=_int(units, "units consumed"),
    )


# items.csv: code, name, unit-price
def dump_item(item: Item) -> str:
    return join_fields([item.code, item.name, item.unit_price])


def load_item(line: str) -> Item:
    code, name, price = split_fields(line, ITEM_FIELDS)
    return _record(Item, code=code, name=name, unit_price=_decimal(price, "unit price"))


# bills.csv: bill-id, account-number, timestamp, units, energy, items, tax, total
def dump_bill(bill: Bill) -> str:
    return join_fields([
        bill.bill_id, bill.account_no, bill.created_at.isoformat(), bill.units,
        bill.energy_charge, bill.item_total, bill.tax, bill.grand_total,
    ])


def load_bill(line: str) -> Bill:
    bill_id, account_no, created_at, units, energy, items, tax, total = split_fields(line, BILL_FIELDS)
    try:
        timestamp = datetime.fromisoformat(created_at)
    except ValueError:
        raise MalformedRowError(f"timestamp is not ISO-8601: {created_at!r}")
    return _record(
        Bill,
        bill_id=bill_id,
        account_no=account_no,
        created_at=timestamp,
        units=_int(units, "units"),
        energy_charge=_decimal(energy, "energy charge"),
        item_total=_decimal(items, "item total"),
        tax=_decimal(tax, "tax"),
        grand_total=_decimal(total, "grand total"),
    )
