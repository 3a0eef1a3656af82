from typing import Optional, Dict, Any, Union
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
import uuid as uuid_module

from app.models.credit import (
    CreditBalance,
    CreditPackage,
    CreditTransaction,
    CreditUsageLog,
    CreditTransactionType,
    PaymentMethod,
)
from app.core.config import settings
from app.core.exceptions import (
    InsufficientCreditsError,
    FreePackageAlreadyClaimedError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger


def to_str(value: Union[str, uuid_module.UUID, None]) -> Optional[str]:
    """Convert UUID to string if needed - SQLite needs strings"""
    if isinstance(value, uuid_module.UUID):
        return str(value)
    return value


def month_start(now: Optional[datetime] = None) -> datetime:
    """First instant of the current calendar month"""
    now = now or datetime.utcnow()
    return datetime(now.year, now.month, 1)


class CreditManager:
    """
    School credit ledger.

    - Balance is per school and never negative
    - Every balance change writes exactly one CreditTransaction
      with a consistent before/after
    - Deduction is a single conditional UPDATE, so concurrent spends
      cannot overdraw the balance

    Methods only flush; the caller owns the commit so credit changes can
    share a transaction with the rows they pay for.
    """

    @staticmethod
    async def get_or_create_balance(
        db: AsyncSession,
        school_id: Union[str, uuid_module.UUID]
    ) -> CreditBalance:
        """Get or create the credit balance for a school"""
        school_id = to_str(school_id)
        result = await db.execute(
            select(CreditBalance).where(CreditBalance.school_id == school_id)
        )
        balance = result.scalar_one_or_none()

        if not balance:
            balance = CreditBalance(
                school_id=school_id,
                current_credits=settings.DEFAULT_SCHOOL_CREDITS,
                bonus_credits=0,
                used_credits=0,
            )
            db.add(balance)
            await db.flush()
            logger.info(f"[Credits] Created balance for school {school_id} with {balance.current_credits} credits")

        return balance

    @staticmethod
    async def deduct_credits(
        db: AsyncSession,
        school_id: Union[str, uuid_module.UUID],
        amount: int,
        feature: str,
        user_id: Optional[Union[str, uuid_module.UUID]] = None,
        description: Optional[str] = None,
        document_id: Optional[Union[str, uuid_module.UUID]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> CreditTransaction:
        """
        Atomically deduct credits.

        Raises:
            ValidationError: amount is not positive
            InsufficientCreditsError: balance lower than amount (nothing changes)
        """
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than 0", field="amount")

        school_id = to_str(school_id)
        balance = await CreditManager.get_or_create_balance(db, school_id)

        result = await db.execute(
            update(CreditBalance)
            .where(
                CreditBalance.school_id == school_id,
                CreditBalance.current_credits >= amount,
            )
            .values(
                current_credits=CreditBalance.current_credits - amount,
                used_credits=CreditBalance.used_credits + amount,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(balance)

        if result.rowcount == 0:
            logger.warning(
                f"[Credits] Insufficient credits for school {school_id}: "
                f"required {amount}, available {balance.current_credits}"
            )
            raise InsufficientCreditsError(required=amount, available=balance.current_credits)

        balance_after = balance.current_credits
        transaction = CreditTransaction(
            school_id=school_id,
            user_id=to_str(user_id),
            type=CreditTransactionType.USAGE.value,
            credits=-amount,
            amount=0,
            payment_method=PaymentMethod.SYSTEM.value,
            status="completed",
            description=description or f"Credit usage for {feature}",
            balance_before=balance_after + amount,
            balance_after=balance_after,
        )
        usage_log = CreditUsageLog(
            school_id=school_id,
            user_id=to_str(user_id),
            feature=feature,
            credits_used=amount,
            description=description,
            document_id=to_str(document_id),
            extra_metadata=metadata,
        )
        db.add_all([transaction, usage_log])
        await db.flush()

        logger.log_credit_event("deduct", school_id, amount, balance_after, feature=feature)
        return transaction

    @staticmethod
    async def add_credits(
        db: AsyncSession,
        school_id: Union[str, uuid_module.UUID],
        credits: int,
        transaction_type: str = CreditTransactionType.PURCHASE.value,
        bonus: int = 0,
        user_id: Optional[Union[str, uuid_module.UUID]] = None,
        package_id: Optional[Union[str, uuid_module.UUID]] = None,
        amount: float = 0,
        payment_method: Optional[str] = None,
        payment_number: Optional[str] = None,
        transaction_id: Optional[str] = None,
        description: Optional[str] = None
    ) -> CreditTransaction:
        """Add credits (purchase, bonus, refund or adjustment) and record the transaction"""
        total = credits + bonus
        if total <= 0:
            raise ValidationError("Amount must be greater than 0", field="amount")

        school_id = to_str(school_id)
        balance = await CreditManager.get_or_create_balance(db, school_id)

        await db.execute(
            update(CreditBalance)
            .where(CreditBalance.school_id == school_id)
            .values(
                current_credits=CreditBalance.current_credits + total,
                bonus_credits=CreditBalance.bonus_credits + bonus,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(balance)

        balance_after = balance.current_credits
        transaction = CreditTransaction(
            school_id=school_id,
            user_id=to_str(user_id),
            package_id=to_str(package_id),
            type=transaction_type,
            credits=total,
            amount=amount,
            payment_method=payment_method,
            payment_number=payment_number,
            transaction_id=transaction_id,
            status="completed",
            description=description,
            balance_before=balance_after - total,
            balance_after=balance_after,
        )
        db.add(transaction)
        await db.flush()

        logger.log_credit_event(transaction_type, school_id, total, balance_after)
        return transaction

    @staticmethod
    async def purchase_package(
        db: AsyncSession,
        school_id: Union[str, uuid_module.UUID],
        package_id: Union[str, uuid_module.UUID],
        payment_method: str,
        user_id: Optional[Union[str, uuid_module.UUID]] = None,
        payment_number: Optional[str] = None,
        transaction_id: Optional[str] = None
    ) -> CreditTransaction:
        """
        Purchase a credit package.

        Free packages can be claimed once per school per calendar month.
        Paid packages through bKash/Nagad/Rocket/card need the payer's
        number and the gateway transaction id.
        """
        school_id = to_str(school_id)
        result = await db.execute(
            select(CreditPackage).where(
                CreditPackage.id == to_str(package_id),
                CreditPackage.is_active.is_(True),
            )
        )
        package = result.scalar_one_or_none()
        if not package:
            raise ResourceNotFoundError("Credit package", package_id)

        method = (payment_method or "").lower()

        if package.is_free:
            claimed = await db.execute(
                select(func.count(CreditTransaction.id)).where(
                    CreditTransaction.school_id == school_id,
                    CreditTransaction.type == CreditTransactionType.PURCHASE.value,
                    CreditTransaction.payment_method == PaymentMethod.FREE.value,
                    CreditTransaction.created_at >= month_start(),
                )
            )
            if claimed.scalar() > 0:
                raise FreePackageAlreadyClaimedError()
            method = PaymentMethod.FREE.value
        else:
            if method in (PaymentMethod.FREE.value, PaymentMethod.SYSTEM.value, ""):
                raise ValidationError("A payment method is required for paid packages", field="payment_method")
            if method in settings.CREDIT_PAYMENT_METHODS_REQUIRING_REFERENCE:
                if not payment_number or not transaction_id:
                    raise ValidationError(
                        "Payment number and transaction ID are required for mobile/card payments",
                        field="transaction_id",
                    )

        return await CreditManager.add_credits(
            db,
            school_id=school_id,
            credits=package.credits,
            bonus=package.bonus_credits or 0,
            transaction_type=CreditTransactionType.PURCHASE.value,
            user_id=user_id,
            package_id=package.id,
            amount=package.price or 0,
            payment_method=method,
            payment_number=payment_number,
            transaction_id=transaction_id,
            description=f"Purchased {package.name}",
        )

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        school_id: Union[str, uuid_module.UUID]
    ) -> Dict[str, Any]:
        """Balance plus usage aggregates for the credits dashboard"""
        school_id = to_str(school_id)
        balance = await CreditManager.get_or_create_balance(db, school_id)

        purchased = await db.execute(
            select(func.coalesce(func.sum(CreditTransaction.credits), 0)).where(
                CreditTransaction.school_id == school_id,
                CreditTransaction.type == CreditTransactionType.PURCHASE.value,
            )
        )
        month_used = await db.execute(
            select(func.coalesce(func.sum(CreditUsageLog.credits_used), 0)).where(
                CreditUsageLog.school_id == school_id,
                CreditUsageLog.created_at >= month_start(),
            )
        )
        by_feature = await db.execute(
            select(
                CreditUsageLog.feature,
                func.sum(CreditUsageLog.credits_used),
                func.count(CreditUsageLog.id),
            )
            .where(CreditUsageLog.school_id == school_id)
            .group_by(CreditUsageLog.feature)
        )
        usage_by_feature = {}
        documents_generated = 0
        for feature, credits_used, count in by_feature.all():
            usage_by_feature[feature] = int(credits_used or 0)
            documents_generated += int(count or 0)

        return {
            "current_credits": balance.current_credits,
            "bonus_credits": balance.bonus_credits,
            "used_credits": balance.used_credits,
            "total_purchased": int(purchased.scalar() or 0),
            "this_month_used": int(month_used.scalar() or 0),
            "documents_generated": documents_generated,
            "usage_by_feature": usage_by_feature,
        }


# Singleton instance
credit_manager = CreditManager()
