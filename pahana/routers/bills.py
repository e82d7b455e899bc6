from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ..auth import get_current_user
from ..core.database import get_db
from ..core.logging import app_logger
from ..schemas.schemas import (
    Bill as BillSchema,
    BillCalculateRequest,
    BillResult
)
from ..services.billing_service import BillingService

router = APIRouter(
    prefix="/api/bills",
    tags=["Bills"],
    dependencies=[Depends(get_current_user)]
)

@router.get("", response_model=List[BillSchema])
async def get_bills(
    skip: int = 0,
    limit: int = 100,
    account_no: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List bills, newest first"""
    bills = BillingService.list(db, account_no=account_no, skip=skip, limit=limit)

    app_logger.info(f"Retrieved {len(bills)} bills")
    return bills

@router.post("/calculate", response_model=BillResult)
async def calculate_bill(request: BillCalculateRequest, db: Session = Depends(get_db)):
    """Calculate, store and return a bill for a customer"""
    return BillingService.create_bill(db, request.account_no, request.requested_lines())

@router.get("/{bill_id}", response_model=BillSchema)
async def get_bill(bill_id: str, db: Session = Depends(get_db)):
    """Bill details with its item lines"""
    return BillingService.get(db, bill_id)
