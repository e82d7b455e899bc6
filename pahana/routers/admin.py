from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..core.database import get_db
from ..core.logging import app_logger
from ..models.models import Customer, Item, Bill
from ..schemas.schemas import Bill as BillSchema, CSVImportResponse, DashboardStats
from ..services.billing_service import BillingService
from ..services.csv_service import CSVService

router = APIRouter(
    prefix="/admin",
    tags=["Administration"],
    dependencies=[Depends(get_current_user)]
)

def _check_csv(file: UploadFile):
    if not file.filename or not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted")

@router.post("/import-customers", response_model=CSVImportResponse)
async def import_customers(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Import customer accounts from a CSV file with a header row"""
    _check_csv(file)
    content = await file.read()

    result = CSVService.import_customers(db, content)

    app_logger.info(f"Customer CSV import completed: {result.imported_count} records")
    return result

@router.post("/import-items", response_model=CSVImportResponse)
async def import_items(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Import catalog items from a CSV file with a header row"""
    _check_csv(file)
    content = await file.read()

    result = CSVService.import_items(db, content)

    app_logger.info(f"Item CSV import completed: {result.imported_count} records")
    return result

@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(db: Session = Depends(get_db)):
    """Totals for the dashboard"""
    return DashboardStats(
        customer_count=db.query(Customer).count(),
        item_count=db.query(Item).count(),
        bill_count=db.query(Bill).count(),
        billed_total=BillingService.billed_total(db),
        recent_bills=[BillSchema.model_validate(b) for b in BillingService.list(db, limit=5)]
    )
