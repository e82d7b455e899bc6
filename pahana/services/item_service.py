from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..core.exceptions import ConflictError, NotFoundError, StorageError
from ..core.logging import app_logger
from ..models.models import Item
from ..schemas.schemas import ItemCreate, ItemUpdate

class ItemService:

    @staticmethod
    def list(
        db: Session,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None
    ) -> List[Item]:
        query = db.query(Item)

        if search:
            search_filter = f"%{search}%"
            query = query.filter(
                (Item.code.ilike(search_filter)) |
                (Item.name.ilike(search_filter))
            )

        return query.order_by(Item.code).offset(skip).limit(limit).all()

    @staticmethod
    def find(db: Session, code: str) -> Optional[Item]:
        return db.query(Item).filter(Item.code == code).first()

    @staticmethod
    def get(db: Session, code: str) -> Item:
        item = ItemService.find(db, code)
        if not item:
            raise NotFoundError("Item", code)
        return item

    @staticmethod
    def create(db: Session, data: ItemCreate) -> Item:
        if ItemService.find(db, data.code):
            raise ConflictError("Item", data.code)

        try:
            item = Item(**data.model_dump())
            db.add(item)
            db.commit()
            db.refresh(item)
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error creating item: {str(e)}")
            raise StorageError("Could not store item") from e

        app_logger.info(f"Created item {item.code}: {item.name} @ {item.unit_price}")
        return item

    @staticmethod
    def update(db: Session, code: str, data: ItemUpdate) -> Item:
        item = ItemService.get(db, code)

        try:
            for field, value in data.changes().items():
                setattr(item, field, value)
            db.commit()
            db.refresh(item)
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error updating item: {str(e)}")
            raise StorageError("Could not update item") from e

        app_logger.info(f"Updated item {item.code}")
        return item

    @staticmethod
    def delete(db: Session, code: str) -> None:
        item = ItemService.get(db, code)

        try:
            db.delete(item)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error deleting item: {str(e)}")
            raise StorageError("Could not delete item") from e

        app_logger.info(f"Deleted item {code}")
