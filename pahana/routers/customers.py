from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..auth import get_current_user
from ..core.database import get_db
from ..core.logging import app_logger
from ..schemas.schemas import (
    Customer as CustomerSchema,
    CustomerCreate,
    CustomerUpdate
)
from ..services.customer_service import CustomerService

router = APIRouter(
    prefix="/api/customers",
    tags=["Customers"],
    dependencies=[Depends(get_current_user)]
)

@router.get("", response_model=List[CustomerSchema])
async def get_customers(
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List customers"""
    customers = CustomerService.list(db, skip=skip, limit=limit, search=search)

    app_logger.info(f"Retrieved {len(customers)} customers")
    return customers

@router.get("/{account_no}", response_model=CustomerSchema)
async def get_customer(account_no: str, db: Session = Depends(get_db)):
    """Customer details"""
    return CustomerService.get(db, account_no)

@router.post("", response_model=CustomerSchema, status_code=status.HTTP_201_CREATED)
async def create_customer(customer: CustomerCreate, db: Session = Depends(get_db)):
    """Create a customer account"""
    return CustomerService.create(db, customer)

@router.put("/{account_no}", response_model=CustomerSchema)
async def update_customer(
    account_no: str,
    customer_update: CustomerUpdate,
    db: Session = Depends(get_db)
):
    """Update a customer; omitted fields keep their value"""
    return CustomerService.update(db, account_no, customer_update)

@router.delete("/{account_no}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(account_no: str, db: Session = Depends(get_db)):
    """Delete a customer"""
    CustomerService.delete(db, account_no)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
