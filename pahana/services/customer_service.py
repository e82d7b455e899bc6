from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..core.exceptions import ConflictError, NotFoundError, StorageError
from ..core.logging import app_logger
from ..models.models import Customer
from ..schemas.schemas import CustomerCreate, CustomerUpdate

class CustomerService:

    @staticmethod
    def list(
        db: Session,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None
    ) -> List[Customer]:
        query = db.query(Customer)

        if search:
            search_filter = f"%{search}%"
            query = query.filter(
                (Customer.account_no.ilike(search_filter)) |
                (Customer.name.ilike(search_filter)) |
                (Customer.phone.ilike(search_filter))
            )

        return query.order_by(Customer.account_no).offset(skip).limit(limit).all()

    @staticmethod
    def find(db: Session, account_no: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.account_no == account_no).first()

    @staticmethod
    def get(db: Session, account_no: str) -> Customer:
        customer = CustomerService.find(db, account_no)
        if not customer:
            raise NotFoundError("Customer", account_no)
        return customer

    @staticmethod
    def create(db: Session, data: CustomerCreate) -> Customer:
        if CustomerService.find(db, data.account_no):
            raise ConflictError("Customer", data.account_no)

        try:
            customer = Customer(**data.model_dump())
            db.add(customer)
            db.commit()
            db.refresh(customer)
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error creating customer: {str(e)}")
            raise StorageError("Could not store customer") from e

        app_logger.info(f"Created customer {customer.account_no}: {customer.name}")
        return customer

    @staticmethod
    def update(db: Session, account_no: str, data: CustomerUpdate) -> Customer:
        customer = CustomerService.get(db, account_no)

        try:
            # Update only provided fields
            for field, value in data.changes().items():
                setattr(customer, field, value)
            db.commit()
            db.refresh(customer)
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error updating customer: {str(e)}")
            raise StorageError("Could not update customer") from e

        app_logger.info(f"Updated customer {customer.account_no}")
        return customer

    @staticmethod
    def delete(db: Session, account_no: str) -> None:
        customer = CustomerService.get(db, account_no)

        try:
            db.delete(customer)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error deleting customer: {str(e)}")
            raise StorageError("Could not delete customer") from e

        app_logger.info(f"Deleted customer {account_no}")
