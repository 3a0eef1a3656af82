from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime, date
from typing import Optional

from app.api.deps import get_current_admin
from app.api.v1.endpoints.students import get_school_student
from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models.fee import FeeReceipt, FeeItem, FeeStatus, fee_status_for
from app.models.school import School
from app.models.user import User
from app.schemas.fee import FeeReceiptCreate, FeePayment, FeeReceiptResponse
from app.services.document_catalog import get_cost, usage_description_bn
from app.services.pdf_renderer import pdf_renderer
from app.utils.credit_manager import credit_manager
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()

FEE_RECEIPT_FEATURE = "fee-receipt"


async def _next_receipt_number(db: AsyncSession, school_id: str, now: Optional[datetime] = None) -> str:
    """FR-{YYYYMM}-{seq:05d}, sequence per school per month"""
    prefix = f"FR-{(now or datetime.utcnow()).strftime('%Y%m')}-"
    result = await db.execute(
        select(func.count(FeeReceipt.id)).where(
            FeeReceipt.school_id == school_id,
            FeeReceipt.receipt_number.like(f"{prefix}%"),
        )
    )
    return f"{prefix}{(result.scalar() or 0) + 1:05d}"


async def _get_receipt(db: AsyncSession, school_id: str, receipt_id: str) -> FeeReceipt:
    result = await db.execute(
        select(FeeReceipt).where(FeeReceipt.id == receipt_id, FeeReceipt.school_id == school_id)
    )
    receipt = result.scalar_one_or_none()
    if not receipt:
        raise ResourceNotFoundError("Fee receipt", receipt_id)
    return receipt


def receipt_payload(receipt: FeeReceipt) -> dict:
    return FeeReceiptResponse.model_validate(receipt).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_fee_receipt(
    data: FeeReceiptCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Receipt with line items; the total is their sum. Charges the fee-receipt credit cost."""
    school_id = str(admin.school_id)
    student = await get_school_student(db, school_id, data.student_id)

    if not data.items:
        raise ValidationError("At least one fee item is required", field="items")
    for item in data.items:
        if item.amount <= 0:
            raise ValidationError(f"Amount for '{item.name}' must be greater than 0", field="items")

    total = round(sum(item.amount for item in data.items), 2)
    if data.paid_amount > total:
        raise ValidationError("Paid amount cannot exceed the total", field="paid_amount")

    receipt_id = generate_uuid()
    receipt_number = await _next_receipt_number(db, school_id)
    cost = get_cost(FEE_RECEIPT_FEATURE)
    await credit_manager.deduct_credits(
        db,
        school_id=school_id,
        amount=cost,
        feature=FEE_RECEIPT_FEATURE,
        user_id=admin.id,
        description=usage_description_bn(FEE_RECEIPT_FEATURE, cost),
        document_id=receipt_id,
        metadata={"receipt_number": receipt_number},
    )

    receipt = FeeReceipt(
        id=receipt_id,
        school_id=school_id,
        student_id=student.id,
        receipt_number=receipt_number,
        academic_year=data.academic_year,
        month=data.month,
        total_amount=total,
        paid_amount=round(data.paid_amount, 2),
        due_amount=round(total - data.paid_amount, 2),
        payment_method=data.payment_method,
        payment_date=data.payment_date or (date.today() if data.paid_amount > 0 else None),
        status=fee_status_for(total, data.paid_amount),
        notes=data.notes,
        created_by=str(admin.id),
        items=[FeeItem(name=item.name, name_bn=item.name_bn, amount=item.amount) for item in data.items],
    )
    db.add(receipt)
    await db.commit()
    await db.refresh(receipt)

    logger.info(f"[Fees] Receipt {receipt_number} for {student.student_id}: ৳{total} ({receipt.status})")
    return success(receipt_payload(receipt))


@router.get("")
async def list_fee_receipts(
    student_id: Optional[str] = None,
    status_filter: Optional[FeeStatus] = Query(None, alias="status"),
    month: Optional[str] = None,
    academic_year: Optional[str] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(FeeReceipt).where(FeeReceipt.school_id == str(current_user.school_id))
    if student_id:
        query = query.where(FeeReceipt.student_id == student_id)
    if status_filter:
        query = query.where(FeeReceipt.status == status_filter.value)
    if month:
        query = query.where(FeeReceipt.month == month)
    if academic_year:
        query = query.where(FeeReceipt.academic_year == academic_year)
    query = query.order_by(FeeReceipt.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=FeeReceiptResponse))


@router.get("/stats")
async def fee_stats(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)
    totals = await db.execute(
        select(
            func.coalesce(func.sum(FeeReceipt.total_amount), 0),
            func.coalesce(func.sum(FeeReceipt.paid_amount), 0),
            func.coalesce(func.sum(FeeReceipt.due_amount), 0),
        ).where(FeeReceipt.school_id == school_id)
    )
    total_amount, collected, due = totals.one()

    by_status_result = await db.execute(
        select(FeeReceipt.status, func.count(FeeReceipt.id))
        .where(FeeReceipt.school_id == school_id)
        .group_by(FeeReceipt.status)
    )
    by_status = {s.value: 0 for s in FeeStatus}
    by_status.update(dict(by_status_result.all()))

    return success({
        "total_amount": round(float(total_amount), 2),
        "collected": round(float(collected), 2),
        "due": round(float(due), 2),
        "by_status": by_status,
    })


@router.get("/{receipt_id}")
async def get_fee_receipt(
    receipt_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    receipt = await _get_receipt(db, str(current_user.school_id), receipt_id)
    return success(receipt_payload(receipt))


@router.post("/{receipt_id}/payments")
async def record_payment(
    receipt_id: str,
    data: FeePayment,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    receipt = await _get_receipt(db, str(admin.school_id), receipt_id)

    if data.amount <= 0:
        raise ValidationError("Payment amount must be greater than 0", field="amount")
    if round(receipt.paid_amount + data.amount, 2) > receipt.total_amount:
        raise ValidationError(
            f"Payment exceeds the due amount (৳{receipt.due_amount})",
            field="amount",
        )

    receipt.apply_payment(data.amount)
    if data.payment_method:
        receipt.payment_method = data.payment_method
    receipt.payment_date = data.payment_date or date.today()
    await db.commit()
    await db.refresh(receipt)

    logger.info(f"[Fees] Payment ৳{data.amount} on {receipt.receipt_number}, due ৳{receipt.due_amount}")
    return success(receipt_payload(receipt))


@router.get("/{receipt_id}/pdf")
async def download_fee_receipt(
    receipt_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)
    receipt = await _get_receipt(db, school_id, receipt_id)
    student = await get_school_student(db, school_id, receipt.student_id)
    school = await db.get(School, school_id)

    content = await run_in_threadpool(pdf_renderer.render_fee_receipt, receipt, receipt.items, school, student)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{receipt.receipt_number}.pdf"'},
    )


async def student_fees(db: AsyncSession, student_id: str) -> dict:
    """A student's receipts with {total, paid, due} totals"""
    result = await db.execute(
        select(FeeReceipt).where(FeeReceipt.student_id == student_id).order_by(FeeReceipt.created_at.desc())
    )
    receipts = list(result.scalars().all())
    return {
        "receipts": [receipt_payload(r) for r in receipts],
        "summary": {
            "total": round(sum(r.total_amount for r in receipts), 2),
            "paid": round(sum(r.paid_amount for r in receipts), 2),
            "due": round(sum(r.due_amount for r in receipts), 2),
        },
    }
