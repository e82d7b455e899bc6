from sqlalchemy import Column, Integer, String, Text, DECIMAL, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Stored as entered, compared lower-cased
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(64), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

class Customer(Base):
    __tablename__ = "customers"

    account_no = Column(String(50), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(String(20), nullable=False)
    units_consumed = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())

class Item(Base):
    __tablename__ = "items"

    code = Column(String(50), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    unit_price = Column(DECIMAL(10, 2), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

class Bill(Base):
    __tablename__ = "bills"

    bill_id = Column(String(32), primary_key=True, index=True)
    # Not a foreign key: bills outlive the customers they were issued to
    account_no = Column(String(50), nullable=False, index=True)
    created_at = Column(TIMESTAMP, nullable=False)
    units = Column(Integer, nullable=False)
    energy_charge = Column(DECIMAL(18, 2), nullable=False)
    item_total = Column(DECIMAL(18, 2), nullable=False)
    tax = Column(DECIMAL(18, 2), nullable=False)
    grand_total = Column(DECIMAL(18, 2), nullable=False)

    # Relationships
    lines = relationship(
        "BillLine",
        back_populates="bill",
        order_by="BillLine.id",
        cascade="all, delete-orphan",
    )

class BillLine(Base):
    __tablename__ = "bill_lines"

    id = Column(Integer, primary_key=True, index=True)
    bill_id = Column(String(32), ForeignKey("bills.bill_id"), nullable=False)
    # Copied from the item at billing time
    item_code = Column(String(50), nullable=False)
    item_name = Column(String(100), nullable=False)
    unit_price = Column(DECIMAL(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(DECIMAL(18, 2), nullable=False)

    # Relationships
    bill = relationship("Bill", back_populates="lines")
