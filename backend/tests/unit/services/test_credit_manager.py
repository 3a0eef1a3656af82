"""
Unit Tests for the Credit Ledger
"""
import pytest
from datetime import datetime
from sqlalchemy import select

from app.core.exceptions import InsufficientCreditsError, FreePackageAlreadyClaimedError, ValidationError
from app.models.credit import CreditPackage, CreditTransaction, CreditUsageLog
from app.utils.credit_manager import credit_manager, month_start


async def _transactions(db, school_id):
    result = await db.execute(
        select(CreditTransaction).where(CreditTransaction.school_id == school_id)
    )
    return list(result.scalars().all())


class TestBalance:

    @pytest.mark.asyncio
    async def test_opened_with_default_credits(self, db_session, school):
        balance = await credit_manager.get_or_create_balance(db_session, school.id)

        assert balance.current_credits == 500
        assert balance.used_credits == 0

    @pytest.mark.asyncio
    async def test_same_balance_returned(self, db_session, school):
        first = await credit_manager.get_or_create_balance(db_session, school.id)
        second = await credit_manager.get_or_create_balance(db_session, school.id)

        assert first.id == second.id


class TestDeduct:

    @pytest.mark.asyncio
    async def test_deduct_writes_transaction_and_usage(self, db_session, school):
        transaction = await credit_manager.deduct_credits(
            db_session, school.id, 4, feature='marksheet', description='Class 6 marksheet'
        )

        assert transaction.credits == -4
        assert transaction.balance_before == 500
        assert transaction.balance_after == 496

        usage = (await db_session.execute(select(CreditUsageLog))).scalars().all()
        assert [(u.feature, u.credits_used) for u in usage] == [('marksheet', 4)]

    @pytest.mark.asyncio
    async def test_exact_balance_can_be_spent(self, db_session, school):
        await credit_manager.deduct_credits(db_session, school.id, 500, feature='bulk')

        balance = await credit_manager.get_or_create_balance(db_session, school.id)
        assert balance.current_credits == 0
        assert balance.used_credits == 500

    @pytest.mark.asyncio
    async def test_insufficient_leaves_everything_unchanged(self, db_session, school):
        with pytest.raises(InsufficientCreditsError) as exc_info:
            await credit_manager.deduct_credits(db_session, school.id, 501, feature='bulk')

        assert exc_info.value.details == {'required': 501, 'available': 500}
        balance = await credit_manager.get_or_create_balance(db_session, school.id)
        assert balance.current_credits == 500
        assert await _transactions(db_session, school.id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize('amount', [0, -3])
    async def test_non_positive_amount_rejected(self, db_session, school, amount):
        with pytest.raises(ValidationError) as exc_info:
            await credit_manager.deduct_credits(db_session, school.id, amount, feature='noc')

        assert exc_info.value.details == {'field': 'amount'}


class TestAddAndPurchase:

    @pytest.mark.asyncio
    async def test_bonus_tracked_separately(self, db_session, school):
        transaction = await credit_manager.add_credits(
            db_session, school.id, credits=0, bonus=25, transaction_type='bonus'
        )

        balance = await credit_manager.get_or_create_balance(db_session, school.id)
        assert transaction.balance_after == 525
        assert balance.bonus_credits == 25

    @pytest.mark.asyncio
    async def test_paid_package_includes_bonus(self, db_session, school):
        package = CreditPackage(name='Standard', credits=200, bonus_credits=20, price=900)
        db_session.add(package)
        await db_session.flush()

        transaction = await credit_manager.purchase_package(
            db_session, school.id, package.id, 'nagad',
            payment_number='01711000000', transaction_id='NG12345',
        )

        assert transaction.credits == 220
        assert transaction.amount == 900
        assert transaction.payment_method == 'nagad'

    @pytest.mark.asyncio
    async def test_mobile_payment_needs_reference(self, db_session, school):
        package = CreditPackage(name='Standard', credits=200, price=900)
        db_session.add(package)
        await db_session.flush()

        with pytest.raises(ValidationError):
            await credit_manager.purchase_package(db_session, school.id, package.id, 'bkash')

    @pytest.mark.asyncio
    async def test_free_package_once_a_month(self, db_session, school):
        package = CreditPackage(name='Free', credits=50, price=0)
        db_session.add(package)
        await db_session.flush()

        first = await credit_manager.purchase_package(db_session, school.id, package.id, 'cash')
        assert first.payment_method == 'free'

        with pytest.raises(FreePackageAlreadyClaimedError):
            await credit_manager.purchase_package(db_session, school.id, package.id, 'cash')


class TestStats:

    @pytest.mark.asyncio
    async def test_usage_grouped_by_feature(self, db_session, school):
        await credit_manager.deduct_credits(db_session, school.id, 3, feature='admit-card')
        await credit_manager.deduct_credits(db_session, school.id, 3, feature='admit-card')
        await credit_manager.deduct_credits(db_session, school.id, 1, feature='fee-receipt')

        stats = await credit_manager.get_stats(db_session, school.id)

        assert stats['current_credits'] == 493
        assert stats['used_credits'] == 7
        assert stats['this_month_used'] == 7
        assert stats['documents_generated'] == 3
        assert stats['usage_by_feature'] == {'admit-card': 6, 'fee-receipt': 1}

    def test_month_start(self):
        assert month_start(datetime(2024, 3, 17, 10, 30)) == datetime(2024, 3, 1)
