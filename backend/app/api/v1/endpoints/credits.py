from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.api.deps import get_school_user, get_current_admin, get_staff_user, get_super_admin
from app.core.database import get_db
from app.core.exceptions import SchoolNotFoundError
from app.core.logging_config import logger
from app.models.credit import CreditPackage, CreditTransaction, CreditUsageLog, CreditTransactionType, PaymentMethod
from app.models.school import School
from app.models.user import User
from app.schemas.credit import (
    CreditBalanceResponse,
    CreditPackageCreate,
    CreditPackageResponse,
    CreditPurchase,
    CreditDeduct,
    CreditAdd,
    CreditTransactionResponse,
    CreditUsageResponse,
)
from app.services.email_service import email_service
from app.utils.credit_manager import credit_manager
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def active_packages(db: AsyncSession) -> list:
    result = await db.execute(
        select(CreditPackage)
        .where(CreditPackage.is_active.is_(True))
        .order_by(CreditPackage.price, CreditPackage.credits)
    )
    return [CreditPackageResponse.model_validate(p).model_dump(mode="json") for p in result.scalars().all()]


@router.get("/balance")
async def get_balance(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """School balance; created with the default credits on first access"""
    balance = await credit_manager.get_or_create_balance(db, current_user.school_id)
    await db.commit()
    return success(CreditBalanceResponse.model_validate(balance).model_dump(mode="json"))


@router.get("/packages")
async def list_packages(
    _: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    return success(await active_packages(db))


@router.post("/packages", status_code=status.HTTP_201_CREATED)
async def create_package(
    data: CreditPackageCreate,
    _: User = Depends(get_super_admin),
    db: AsyncSession = Depends(get_db)
):
    package = CreditPackage(**data.model_dump())
    db.add(package)
    await db.commit()
    await db.refresh(package)

    logger.info(f"[Credits] Package created: {package.name} ({package.credits} credits, ৳{package.price})")
    return success(CreditPackageResponse.model_validate(package).model_dump(mode="json"))


@router.post("/purchase")
async def purchase_package(
    data: CreditPurchase,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Buy a credit package.

    Free packages: once per school per calendar month.
    bKash / Nagad / Rocket / card: payment_number and transaction_id required.
    """
    transaction = await credit_manager.purchase_package(
        db,
        school_id=admin.school_id,
        package_id=data.package_id,
        payment_method=data.payment_method.value,
        user_id=admin.id,
        payment_number=data.payment_number,
        transaction_id=data.transaction_id,
    )
    await db.commit()

    if transaction.payment_method != PaymentMethod.FREE.value:
        await email_service.send_purchase_confirmation_email(
            admin.email,
            transaction.description or "Credit package",
            transaction.credits,
            transaction.amount,
            transaction.balance_after,
            transaction.transaction_id,
        )

    return success(
        {
            "transaction": CreditTransactionResponse.model_validate(transaction).model_dump(mode="json"),
            "credits_added": transaction.credits,
            "current_credits": transaction.balance_after,
        },
        message=f"{transaction.credits} ক্রেডিট যোগ করা হয়েছে",
    )


@router.post("/deduct")
async def deduct_credits(
    data: CreditDeduct,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Spend credits on a feature; fails with 402 and no change when the balance is short"""
    transaction = await credit_manager.deduct_credits(
        db,
        school_id=current_user.school_id,
        amount=data.amount,
        feature=data.feature,
        user_id=current_user.id,
        description=data.description,
        metadata=data.metadata,
    )
    await db.commit()

    return success({
        "transaction": CreditTransactionResponse.model_validate(transaction).model_dump(mode="json"),
        "credits_used": data.amount,
        "remaining_credits": transaction.balance_after,
    })


@router.post("/add")
async def add_credits(
    data: CreditAdd,
    super_admin: User = Depends(get_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Grant credits to any school (bonus, adjustment or refund)"""
    school = await db.get(School, data.school_id)
    if not school:
        raise SchoolNotFoundError(data.school_id)

    is_bonus = data.type == CreditTransactionType.BONUS.value
    transaction = await credit_manager.add_credits(
        db,
        school_id=school.id,
        credits=0 if is_bonus else data.amount,
        bonus=data.amount if is_bonus else 0,
        transaction_type=data.type,
        user_id=super_admin.id,
        payment_method=PaymentMethod.SYSTEM.value,
        description=data.reason or f"{data.type.title()} credits",
    )
    await db.commit()

    return success({
        "transaction": CreditTransactionResponse.model_validate(transaction).model_dump(mode="json"),
        "current_credits": transaction.balance_after,
    })


@router.get("/transactions")
async def list_transactions(
    type: Optional[CreditTransactionType] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(CreditTransaction).where(CreditTransaction.school_id == str(current_user.school_id))
    if type:
        query = query.where(CreditTransaction.type == type.value)
    query = query.order_by(CreditTransaction.created_at.desc())

    return success(await paginate(
        db, query, pagination.page, pagination.page_size, item_schema=CreditTransactionResponse
    ))


@router.get("/usage")
async def list_usage(
    feature: Optional[str] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(CreditUsageLog).where(CreditUsageLog.school_id == str(current_user.school_id))
    if feature:
        query = query.where(CreditUsageLog.feature == feature)
    query = query.order_by(CreditUsageLog.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=CreditUsageResponse))


@router.get("/stats")
async def get_stats(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await credit_manager.get_stats(db, current_user.school_id)
    await db.commit()
    return success(stats)
