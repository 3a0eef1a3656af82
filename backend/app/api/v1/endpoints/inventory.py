import csv
import io
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from datetime import datetime
from typing import Optional

from app.api.deps import get_staff_user, get_current_admin
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError, StockError, ValidationError
from app.core.logging_config import logger
from app.models.inventory import InventoryItem, InventoryMovement, MovementType
from app.models.user import User
from app.schemas.inventory import ItemCreate, ItemUpdate, ItemResponse, MovementCreate, MovementResponse
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()

EXPORT_COLUMNS = [
    "name", "name_bn", "category", "unit", "unit_price", "current_quantity",
    "minimum_threshold", "total_value", "condition", "location", "supplier",
]


def item_payload(item: InventoryItem) -> dict:
    return ItemResponse.model_validate(item).model_dump(mode="json")


async def _get_item(db: AsyncSession, school_id: str, item_id: str, for_update: bool = False) -> InventoryItem:
    query = select(InventoryItem).where(InventoryItem.id == item_id, InventoryItem.school_id == school_id)
    if for_update:
        query = query.with_for_update()
    item = (await db.execute(query)).scalar_one_or_none()
    if not item:
        raise ResourceNotFoundError("Inventory item", item_id)
    return item


def apply_movement(current: int, movement_type: MovementType, quantity: int) -> int:
    """New quantity after a movement; raises on invalid quantities or insufficient stock"""
    if movement_type == MovementType.ADJUSTMENT:
        if quantity < 0:
            raise ValidationError("Adjustment quantity must be 0 or more", field="quantity")
        return quantity
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0", field="quantity")
    if movement_type == MovementType.IN:
        return current + quantity
    if quantity > current:
        raise StockError(available=current)
    return current - quantity


# ==================== Items ====================

@router.get("/items")
async def list_items(
    category: Optional[str] = None,
    condition: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(InventoryItem).where(InventoryItem.school_id == str(current_user.school_id))
    if category:
        query = query.where(InventoryItem.category == category)
    if condition:
        query = query.where(InventoryItem.condition == condition)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(InventoryItem.name.ilike(pattern), InventoryItem.name_bn.ilike(pattern)))
    query = query.order_by(InventoryItem.category, InventoryItem.name)

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=ItemResponse))


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    values = data.model_dump()
    values["condition"] = data.condition.value
    if values["minimum_threshold"] is None:
        values["minimum_threshold"] = settings.INVENTORY_DEFAULT_MIN_THRESHOLD

    item = InventoryItem(school_id=str(current_user.school_id), **values)
    db.add(item)
    await db.commit()
    await db.refresh(item)

    logger.info(f"[Inventory] Added '{item.name}' qty={item.current_quantity}")
    return success(item_payload(item))


@router.get("/items/{item_id}")
async def get_item(
    item_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_item(db, str(current_user.school_id), item_id)
    return success(item_payload(item))


@router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    data: ItemUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_item(db, str(current_user.school_id), item_id)
    values = data.model_dump(exclude_unset=True)
    if values.get("condition") is not None:
        values["condition"] = values["condition"].value
    for required in ("name", "category", "unit_price", "minimum_threshold", "unit", "condition"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    for field, value in values.items():
        setattr(item, field, value)
    await db.commit()
    await db.refresh(item)

    return success(item_payload(item))


@router.delete("/items/{item_id}")
async def delete_item(
    item_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_item(db, str(current_user.school_id), item_id)
    await db.delete(item)
    await db.commit()
    return success(message="Item deleted")


# ==================== Movements ====================

@router.post("/movements", status_code=status.HTTP_201_CREATED)
async def create_movement(
    data: MovementCreate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Stock in / out / adjustment.

    in: adds quantity (> 0); out: subtracts (> 0, never below zero);
    adjustment: sets the quantity (>= 0).
    """
    school_id = str(current_user.school_id)
    item = await _get_item(db, school_id, data.item_id, for_update=True)

    previous = item.current_quantity
    new_quantity = apply_movement(previous, data.type, data.quantity)

    item.current_quantity = new_quantity
    movement = InventoryMovement(
        school_id=school_id,
        item_id=item.id,
        type=data.type.value,
        quantity=data.quantity,
        previous_quantity=previous,
        new_quantity=new_quantity,
        reason=data.reason,
        reference=data.reference,
        performed_by=str(current_user.id),
    )
    db.add(movement)
    await db.commit()
    await db.refresh(movement)
    await db.refresh(item)

    logger.info(f"[Inventory] {data.type.value} {data.quantity} '{item.name}': {previous} -> {new_quantity}")
    return success({
        "movement": MovementResponse.model_validate(movement).model_dump(mode="json"),
        "item": item_payload(item),
    })


@router.get("/movements")
async def list_movements(
    item_id: Optional[str] = None,
    type: Optional[MovementType] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(InventoryMovement).where(InventoryMovement.school_id == str(current_user.school_id))
    if item_id:
        query = query.where(InventoryMovement.item_id == item_id)
    if type:
        query = query.where(InventoryMovement.type == type.value)
    query = query.order_by(InventoryMovement.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=MovementResponse))


# ==================== Reports ====================

@router.get("/low-stock")
async def low_stock_items(
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Items at or below their minimum threshold"""
    result = await db.execute(
        select(InventoryItem)
        .where(
            InventoryItem.school_id == str(current_user.school_id),
            InventoryItem.current_quantity <= InventoryItem.minimum_threshold,
        )
        .order_by(InventoryItem.current_quantity, InventoryItem.name)
    )
    return success([item_payload(item) for item in result.scalars().all()])


@router.get("/stats")
async def inventory_stats(
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(InventoryItem).where(InventoryItem.school_id == str(current_user.school_id))
    )
    items = list(result.scalars().all())

    categories = {}
    for item in items:
        categories[item.category] = categories.get(item.category, 0) + 1

    return success({
        "total_items": len(items),
        "total_value": round(sum(item.total_value for item in items), 2),
        "low_stock_items": sum(1 for item in items if item.is_low_stock),
        "out_of_stock_items": sum(1 for item in items if item.current_quantity == 0),
        "categories": categories,
    })


@router.get("/export")
async def export_items(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """All items as CSV"""
    result = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.school_id == str(current_user.school_id))
        .order_by(InventoryItem.category, InventoryItem.name)
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for item in result.scalars().all():
        writer.writerow([getattr(item, column) if getattr(item, column) is not None else "" for column in EXPORT_COLUMNS])

    filename = f"inventory-{datetime.utcnow().strftime('%Y%m%d')}.csv"
    # BOM so spreadsheet apps read the Bangla names as UTF-8
    return Response(
        content="﻿" + buffer.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
