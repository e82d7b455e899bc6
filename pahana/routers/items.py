from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..auth import get_current_user
from ..core.database import get_db
from ..core.logging import app_logger
from ..schemas.schemas import (
    Item as ItemSchema,
    ItemCreate,
    ItemUpdate
)
from ..services.item_service import ItemService

router = APIRouter(
    prefix="/api/items",
    tags=["Items"],
    dependencies=[Depends(get_current_user)]
)

@router.get("", response_model=List[ItemSchema])
async def get_items(
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List catalog items"""
    items = ItemService.list(db, skip=skip, limit=limit, search=search)

    app_logger.info(f"Retrieved {len(items)} items")
    return items

@router.get("/{code}", response_model=ItemSchema)
async def get_item(code: str, db: Session = Depends(get_db)):
    """Item details"""
    return ItemService.get(db, code)

@router.post("", response_model=ItemSchema, status_code=status.HTTP_201_CREATED)
async def create_item(item: ItemCreate, db: Session = Depends(get_db)):
    """Add an item to the catalog"""
    return ItemService.create(db, item)

@router.put("/{code}", response_model=ItemSchema)
async def update_item(code: str, item_update: ItemUpdate, db: Session = Depends(get_db)):
    """Update an item; omitted fields keep their value"""
    return ItemService.update(db, code, item_update)

@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(code: str, db: Session = Depends(get_db)):
    """Remove an item from the catalog"""
    ItemService.delete(db, code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
