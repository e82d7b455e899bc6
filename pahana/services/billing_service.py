from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..core.exceptions import NotFoundError, StorageError
from ..core.logging import app_logger
from ..models.models import Bill, BillLine
from ..schemas.schemas import BillLineRequest, BillResult
from .calculation_service import CalculationService
from .customer_service import CustomerService
from .item_service import ItemService

class BillingService:

    @staticmethod
    def create_bill(
        db: Session,
        account_no: str,
        requested_lines: Sequence[BillLineRequest] = ()
    ) -> BillResult:
        """
        Bill a customer's consumed units plus the requested item lines.

        Lines naming an unknown item code are skipped and reported back
        instead of failing the whole bill.
        """
        customer = CustomerService.get(db, account_no)

        lines = []
        skipped = []
        for requested in requested_lines:
            item = ItemService.find(db, requested.item_code)
            if item is None:
                app_logger.warning(f"Skipping unknown item code {requested.item_code} on bill for {account_no}")
                skipped.append(requested.item_code)
                continue
            lines.append((item, requested.quantity))

        bill = CalculationService.calculate_bill(customer.account_no, customer.units_consumed, lines)

        try:
            db_bill = Bill(
                bill_id=bill.bill_id,
                account_no=bill.account_no,
                created_at=bill.created_at,
                units=bill.units,
                energy_charge=bill.energy_charge,
                item_total=bill.item_total,
                tax=bill.tax,
                grand_total=bill.grand_total,
                lines=[BillLine(**line.model_dump()) for line in bill.lines]
            )
            db.add(db_bill)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error storing bill: {str(e)}")
            raise StorageError("Could not store bill") from e

        app_logger.info(f"Created bill {bill.bill_id} for {account_no} with grand total {bill.grand_total}")

        return BillResult(**bill.model_dump(), skipped_item_codes=skipped)

    @staticmethod
    def list(
        db: Session,
        account_no: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Bill]:
        query = db.query(Bill)

        if account_no:
            query = query.filter(Bill.account_no == account_no)

        return query.order_by(Bill.created_at.desc(), Bill.bill_id.desc()).offset(skip).limit(limit).all()

    @staticmethod
    def get(db: Session, bill_id: str) -> Bill:
        bill = db.query(Bill).filter(Bill.bill_id == bill_id).first()
        if not bill:
            raise NotFoundError("Bill", bill_id)
        return bill

    @staticmethod
    def billed_total(db: Session) -> Decimal:
        total = db.query(func.sum(Bill.grand_total)).scalar()
        return Decimal(total or 0).quantize(Decimal('0.01'))
