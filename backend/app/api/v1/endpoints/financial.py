from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import date
from enum import Enum
from typing import Optional

from app.api.deps import get_current_admin
from app.core.database import get_db
from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.financial import LedgerEntry, LedgerEntryType, LedgerCategory, Budget, FeeStructure
from app.models.user import User
from app.schemas.financial import (
    LedgerEntryCreate,
    LedgerEntryUpdate,
    LedgerEntryResponse,
    BudgetCreate,
    BudgetResponse,
    FeeStructureCreate,
    FeeStructureUpdate,
    FeeStructureResponse,
)
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def _plain(values: dict) -> dict:
    return {k: v.value if isinstance(v, Enum) else v for k, v in values.items()}


def _in_window(query, start_date: Optional[date], end_date: Optional[date]):
    if start_date:
        query = query.where(LedgerEntry.transaction_date >= start_date)
    if end_date:
        query = query.where(LedgerEntry.transaction_date <= end_date)
    return query


async def _get_entry(db: AsyncSession, school_id: str, entry_id: str) -> LedgerEntry:
    result = await db.execute(
        select(LedgerEntry).where(LedgerEntry.id == entry_id, LedgerEntry.school_id == school_id)
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise ResourceNotFoundError("Transaction", entry_id)
    return entry


async def budget_payload(db: AsyncSession, budget: Budget) -> dict:
    """Budget with used/remaining amounts summed from expenses in its category and window"""
    spent = await db.execute(
        select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
            LedgerEntry.school_id == budget.school_id,
            LedgerEntry.type == LedgerEntryType.EXPENSE.value,
            LedgerEntry.category == budget.category,
            LedgerEntry.transaction_date >= budget.start_date,
            LedgerEntry.transaction_date <= budget.end_date,
        )
    )
    used = round(float(spent.scalar() or 0), 2)
    payload = BudgetResponse.model_validate(budget).model_dump(mode="json")
    payload["used_amount"] = used
    payload["remaining_amount"] = round(budget.total_amount - used, 2)
    payload["over_budget"] = used > budget.total_amount
    return payload


# ==================== Transactions ====================

@router.get("/transactions")
async def list_transactions(
    type_filter: Optional[LedgerEntryType] = Query(None, alias="type"),
    category: Optional[LedgerCategory] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    pagination: PaginationParams = Depends(pagination_params),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(LedgerEntry).where(LedgerEntry.school_id == str(admin.school_id))
    if type_filter:
        query = query.where(LedgerEntry.type == type_filter.value)
    if category:
        query = query.where(LedgerEntry.category == category.value)
    query = _in_window(query, start_date, end_date)
    query = query.order_by(LedgerEntry.transaction_date.desc(), LedgerEntry.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=LedgerEntryResponse))


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: LedgerEntryCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    values = _plain(data.model_dump())
    values["transaction_date"] = values["transaction_date"] or date.today()
    entry = LedgerEntry(school_id=str(admin.school_id), created_by=str(admin.id), **values)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info(f"[Finance] {entry.type} of {entry.amount} BDT ({entry.category}) recorded in school {admin.school_id}")
    return success(LedgerEntryResponse.model_validate(entry).model_dump(mode="json"))


@router.get("/transactions/{entry_id}")
async def get_transaction(
    entry_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    entry = await _get_entry(db, str(admin.school_id), entry_id)
    return success(LedgerEntryResponse.model_validate(entry).model_dump(mode="json"))


@router.put("/transactions/{entry_id}")
async def update_transaction(
    entry_id: str,
    data: LedgerEntryUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    entry = await _get_entry(db, str(admin.school_id), entry_id)
    values = _plain(data.model_dump(exclude_unset=True))
    for required in ("type", "category", "amount", "description", "payment_method", "transaction_date"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    for field, value in values.items():
        setattr(entry, field, value)
    await db.commit()
    await db.refresh(entry)
    return success(LedgerEntryResponse.model_validate(entry).model_dump(mode="json"))


@router.delete("/transactions/{entry_id}")
async def delete_transaction(
    entry_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    entry = await _get_entry(db, str(admin.school_id), entry_id)
    await db.delete(entry)
    await db.commit()
    return success(message="Transaction deleted")


@router.get("/summary")
async def financial_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Income, expense and balance, optionally limited to a date window"""
    query = _in_window(
        select(LedgerEntry.type, LedgerEntry.category, func.count(LedgerEntry.id), func.sum(LedgerEntry.amount))
        .where(LedgerEntry.school_id == str(admin.school_id)),
        start_date,
        end_date,
    ).group_by(LedgerEntry.type, LedgerEntry.category)

    totals = {LedgerEntryType.INCOME.value: 0.0, LedgerEntryType.EXPENSE.value: 0.0}
    by_category = {LedgerEntryType.INCOME.value: {}, LedgerEntryType.EXPENSE.value: {}}
    count = 0
    for entry_type, category, rows, amount in (await db.execute(query)).all():
        amount = round(float(amount or 0), 2)
        totals[entry_type] = round(totals[entry_type] + amount, 2)
        by_category[entry_type][category] = amount
        count += rows

    income = totals[LedgerEntryType.INCOME.value]
    expense = totals[LedgerEntryType.EXPENSE.value]
    return success({
        "total_income": income,
        "total_expense": expense,
        "balance": round(income - expense, 2),
        "transaction_count": count,
        "by_category": by_category,
    })


# ==================== Budgets ====================

@router.get("/budgets")
async def list_budgets(
    is_active: Optional[bool] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(Budget).where(Budget.school_id == str(admin.school_id))
    if is_active is not None:
        query = query.where(Budget.is_active.is_(is_active))
    result = await db.execute(query.order_by(Budget.start_date.desc(), Budget.name))
    return success([await budget_payload(db, budget) for budget in result.scalars().all()])


@router.post("/budgets", status_code=status.HTTP_201_CREATED)
async def create_budget(
    data: BudgetCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    if data.end_date < data.start_date:
        raise ValidationError("End date must be on or after the start date", field="end_date")

    budget = Budget(school_id=str(admin.school_id), created_by=str(admin.id), **_plain(data.model_dump()))
    db.add(budget)
    await db.commit()
    await db.refresh(budget)
    return success(await budget_payload(db, budget))


@router.delete("/budgets/{budget_id}")
async def delete_budget(
    budget_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Budget).where(Budget.id == budget_id, Budget.school_id == str(admin.school_id))
    )
    budget = result.scalar_one_or_none()
    if not budget:
        raise ResourceNotFoundError("Budget", budget_id)
    await db.delete(budget)
    await db.commit()
    return success(message="Budget deleted")


# ==================== Fee structures ====================

@router.get("/fee-structures")
async def list_fee_structures(
    class_name: Optional[str] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(FeeStructure).where(FeeStructure.school_id == str(admin.school_id))
    if class_name:
        query = query.where(FeeStructure.class_name == class_name)
    result = await db.execute(query.order_by(FeeStructure.class_name, FeeStructure.fee_type))
    return success([
        FeeStructureResponse.model_validate(fee).model_dump(mode="json") for fee in result.scalars().all()
    ])


@router.post("/fee-structures", status_code=status.HTTP_201_CREATED)
async def create_fee_structure(
    data: FeeStructureCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    existing = await db.execute(
        select(FeeStructure.id).where(
            FeeStructure.school_id == school_id,
            FeeStructure.class_name == data.class_name,
            FeeStructure.fee_type == data.fee_type,
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError(
            f"Class {data.class_name} already has a '{data.fee_type}' fee",
            field="fee_type",
        )

    fee = FeeStructure(school_id=school_id, created_by=str(admin.id), **_plain(data.model_dump()))
    db.add(fee)
    await db.commit()
    await db.refresh(fee)
    return success(FeeStructureResponse.model_validate(fee).model_dump(mode="json"))


@router.put("/fee-structures/{fee_id}")
async def update_fee_structure(
    fee_id: str,
    data: FeeStructureUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(FeeStructure).where(FeeStructure.id == fee_id, FeeStructure.school_id == str(admin.school_id))
    )
    fee = result.scalar_one_or_none()
    if not fee:
        raise ResourceNotFoundError("Fee structure", fee_id)

    values = _plain(data.model_dump(exclude_unset=True))
    for required in ("amount", "frequency", "is_active"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    for field, value in values.items():
        setattr(fee, field, value)
    await db.commit()
    await db.refresh(fee)
    return success(FeeStructureResponse.model_validate(fee).model_dump(mode="json"))
