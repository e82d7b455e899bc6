from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import BillingError
from ..schemas.schemas import (
    BillLineRequest,
    CustomerCreate,
    CustomerUpdate,
    ItemCreate,
    ItemUpdate
)
from ..services.billing_service import BillingService
from ..services.calculation_service import TAX_RATE
from ..services.customer_service import CustomerService
from ..services.item_service import ItemService

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["Pages"], include_in_schema=False)

def _error_message(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        return "; ".join(f"{err['loc'][-1]}: {err['msg']}" for err in exc.errors())
    return str(exc)

def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)

# Customers
def _customers_page(request: Request, db: Session, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "customers.html",
        {"customers": CustomerService.list(db, limit=1000), "error": error, "company": settings.COMPANY_NAME},
        status_code=status_code
    )

@router.get("/customers")
async def customers_page(request: Request, db: Session = Depends(get_db)):
    return _customers_page(request, db)

@router.post("/customers")
async def create_customer_from_form(
    request: Request,
    account_no: str = Form(...),
    name: str = Form(...),
    address: str = Form(...),
    phone: str = Form(...),
    units_consumed: int = Form(0),
    db: Session = Depends(get_db)
):
    try:
        CustomerService.create(db, CustomerCreate(
            account_no=account_no.strip(),
            name=name.strip(),
            address=address.strip(),
            phone=phone.strip(),
            units_consumed=units_consumed
        ))
    except (BillingError, PydanticValidationError) as e:
        return _customers_page(request, db, error=_error_message(e), status_code=400)
    return _redirect("/customers")

@router.post("/customers/{account_no}")
async def update_customer_from_form(
    request: Request,
    account_no: str,
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    units_consumed: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    try:
        CustomerService.update(db, account_no, CustomerUpdate(
            name=name,
            address=address,
            phone=phone,
            units_consumed=units_consumed.strip() if units_consumed and units_consumed.strip() else None
        ))
    except (BillingError, PydanticValidationError) as e:
        return _customers_page(request, db, error=_error_message(e), status_code=400)
    return _redirect("/customers")

@router.post("/customers/{account_no}/delete")
async def delete_customer_from_form(request: Request, account_no: str, db: Session = Depends(get_db)):
    try:
        CustomerService.delete(db, account_no)
    except BillingError as e:
        return _customers_page(request, db, error=str(e), status_code=400)
    return _redirect("/customers")

# Items
def _items_page(request: Request, db: Session, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "items.html",
        {"items": ItemService.list(db, limit=1000), "error": error, "company": settings.COMPANY_NAME},
        status_code=status_code
    )

@router.get("/items")
async def items_page(request: Request, db: Session = Depends(get_db)):
    return _items_page(request, db)

@router.post("/items")
async def create_item_from_form(
    request: Request,
    code: str = Form(...),
    name: str = Form(...),
    unit_price: str = Form(...),
    db: Session = Depends(get_db)
):
    try:
        ItemService.create(db, ItemCreate(code=code.strip(), name=name.strip(), unit_price=unit_price.strip()))
    except (BillingError, PydanticValidationError) as e:
        return _items_page(request, db, error=_error_message(e), status_code=400)
    return _redirect("/items")

@router.post("/items/{code}")
async def update_item_from_form(
    request: Request,
    code: str,
    name: Optional[str] = Form(None),
    unit_price: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    try:
        ItemService.update(db, code, ItemUpdate(name=name, unit_price=unit_price))
    except (BillingError, PydanticValidationError) as e:
        return _items_page(request, db, error=_error_message(e), status_code=400)
    return _redirect("/items")

@router.post("/items/{code}/delete")
async def delete_item_from_form(request: Request, code: str, db: Session = Depends(get_db)):
    try:
        ItemService.delete(db, code)
    except BillingError as e:
        return _items_page(request, db, error=str(e), status_code=400)
    return _redirect("/items")

# Bills
def _bills_page(request: Request, db: Session, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "bills.html",
        {
            "customers": CustomerService.list(db, limit=1000),
            "items": ItemService.list(db, limit=1000),
            "bills": BillingService.list(db, limit=20),
            "error": error,
            "company": settings.COMPANY_NAME
        },
        status_code=status_code
    )

@router.get("/bills")
async def bills_page(request: Request, db: Session = Depends(get_db)):
    return _bills_page(request, db)

@router.post("/bills/create")
async def create_bill_from_form(
    request: Request,
    account_no: str = Form(...),
    item_code: Optional[str] = Form(None),
    quantity: int = Form(1),
    db: Session = Depends(get_db)
):
    try:
        lines = [BillLineRequest(item_code=item_code, quantity=quantity)] if item_code else []
        bill = BillingService.create_bill(db, account_no, lines)
    except (BillingError, PydanticValidationError) as e:
        return _bills_page(request, db, error=_error_message(e), status_code=400)

    return templates.TemplateResponse(
        request,
        "invoice.html",
        {
            "bill": bill,
            "customer": CustomerService.get(db, account_no),
            "tax_percent": f"{TAX_RATE * 100:.0f}",
            "company": settings.COMPANY_NAME
        }
    )
