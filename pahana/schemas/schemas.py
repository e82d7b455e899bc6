from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Optional, List
from datetime import datetime
from decimal import Decimal

def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value

# Column widths of the SQL tables; larger values would be truncated or rounded
PRICE_MAX_DIGITS = 10
MONEY_DECIMAL_PLACES = 2
MAX_UNITS = 10_000_000
MAX_QUANTITY = 10_000

Price = Annotated[Decimal, Field(ge=0, max_digits=PRICE_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)]
Units = Annotated[int, Field(ge=0, le=MAX_UNITS)]
Quantity = Annotated[int, Field(gt=0, le=MAX_QUANTITY)]

# User schemas
class User(BaseModel):
    username: str = Field(min_length=1)
    password_hash: str

    class Config:
        from_attributes = True

class UserLogin(BaseModel):
    username: str
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Customer schemas
class CustomerBase(BaseModel):
    account_no: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    units_consumed: Units = 0

class CustomerCreate(CustomerBase):
    pass

class CustomerUpdate(BaseModel):
    """Fields left out, null or blank keep their current value."""
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    units_consumed: Optional[Units] = None

    @field_validator("name", "address", "phone", mode="before")
    @classmethod
    def blank_keeps_current(cls, value):
        return _blank_to_none(value)

    def changes(self) -> dict:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}

class Customer(CustomerBase):
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Item schemas
class ItemBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1)
    unit_price: Price

class ItemCreate(ItemBase):
    pass

class ItemUpdate(BaseModel):
    """Fields left out, null or blank keep their current value."""
    name: Optional[str] = None
    unit_price: Optional[Price] = None

    @field_validator("name", "unit_price", mode="before")
    @classmethod
    def blank_keeps_current(cls, value):
        return _blank_to_none(value)

    def changes(self) -> dict:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}

class Item(ItemBase):
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Bill schemas
class BillLine(BaseModel):
    item_code: str
    item_name: str
    unit_price: Decimal
    quantity: Quantity
    line_total: Decimal

    class Config:
        from_attributes = True

class Bill(BaseModel):
    bill_id: str
    account_no: str
    created_at: datetime
    units: Units
    energy_charge: Decimal
    item_total: Decimal
    tax: Decimal
    grand_total: Decimal
    lines: List[BillLine] = []

    class Config:
        from_attributes = True

class BillResult(Bill):
    skipped_item_codes: List[str] = []

class BillLineRequest(BaseModel):
    item_code: str = Field(min_length=1)
    quantity: Quantity

class BillCalculateRequest(BaseModel):
    account_no: str = Field(min_length=1)
    # Single-item form, kept for the bills page
    item_code: Optional[str] = None
    quantity: Optional[Quantity] = None
    lines: List[BillLineRequest] = []

    @model_validator(mode="after")
    def check_single_item(self):
        if self.item_code and self.quantity is None:
            raise ValueError("quantity is required together with item_code")
        return self

    def requested_lines(self) -> List[BillLineRequest]:
        requested = list(self.lines)
        if self.item_code:
            requested.append(BillLineRequest(item_code=self.item_code, quantity=self.quantity))
        return requested

# CSV Import schemas
class CSVImportResponse(BaseModel):
    success: bool
    message: str
    imported_count: int
    skipped_count: int = 0
    errors: List[str] = []

# Statistics schemas
class DashboardStats(BaseModel):
    customer_count: int
    item_count: int
    bill_count: int
    billed_total: Decimal
    recent_bills: List[Bill]
