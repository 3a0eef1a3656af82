from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_
from datetime import date, timedelta
from typing import Optional

from app.api.deps import get_staff_user, get_current_admin
from app.api.v1.endpoints.students import get_school_student
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import BookUnavailableError, ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.library import LibraryBook, BorrowedBook, BorrowStatus
from app.models.user import User
from app.schemas.library import BookCreate, BookUpdate, BookResponse, BorrowRequest, ReturnRequest, BorrowResponse
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def calculate_fine(due_date: date, returned_on: date) -> float:
    """LIBRARY_FINE_PER_DAY for every day past the due date"""
    overdue_days = (returned_on - due_date).days
    return float(max(0, overdue_days) * settings.LIBRARY_FINE_PER_DAY)


def loan_payload(loan: BorrowedBook, today: Optional[date] = None) -> dict:
    payload = BorrowResponse.model_validate(loan).model_dump(mode="json")
    overdue = loan.is_overdue(today)
    payload["is_overdue"] = overdue
    if overdue:
        payload["status"] = BorrowStatus.OVERDUE.value
    return payload


async def _get_book(db: AsyncSession, school_id: str, book_id: str) -> LibraryBook:
    result = await db.execute(
        select(LibraryBook).where(LibraryBook.id == book_id, LibraryBook.school_id == school_id)
    )
    book = result.scalar_one_or_none()
    if not book:
        raise ResourceNotFoundError("Book", book_id)
    return book


async def _active_loan_count(db: AsyncSession, book_id: str) -> int:
    result = await db.execute(
        select(func.count(BorrowedBook.id)).where(
            BorrowedBook.book_id == book_id,
            BorrowedBook.status == BorrowStatus.ACTIVE.value,
        )
    )
    return result.scalar() or 0


# ==================== Books ====================

@router.get("/books")
async def list_books(
    category: Optional[str] = None,
    available_only: bool = False,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(LibraryBook).where(LibraryBook.school_id == str(current_user.school_id))
    if category:
        query = query.where(LibraryBook.category == category)
    if available_only:
        query = query.where(LibraryBook.available_copies > 0)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            LibraryBook.title.ilike(pattern),
            LibraryBook.title_bn.ilike(pattern),
            LibraryBook.author.ilike(pattern),
            LibraryBook.isbn.ilike(pattern),
        ))
    query = query.order_by(LibraryBook.title)

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=BookResponse))


@router.post("/books", status_code=status.HTTP_201_CREATED)
async def create_book(
    data: BookCreate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    book = LibraryBook(
        school_id=str(current_user.school_id),
        available_copies=data.total_copies,
        **data.model_dump(),
    )
    db.add(book)
    await db.commit()
    await db.refresh(book)

    logger.info(f"[Library] Added '{book.title}' x{book.total_copies}")
    return success(BookResponse.model_validate(book).model_dump(mode="json"))


@router.get("/books/{book_id}")
async def get_book(
    book_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    book = await _get_book(db, str(current_user.school_id), book_id)
    return success(BookResponse.model_validate(book).model_dump(mode="json"))


@router.put("/books/{book_id}")
async def update_book(
    book_id: str,
    data: BookUpdate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    book = await _get_book(db, str(current_user.school_id), book_id)
    values = data.model_dump(exclude_unset=True)

    if values.get("total_copies") is not None:
        on_loan = await _active_loan_count(db, book.id)
        if values["total_copies"] < on_loan:
            raise ValidationError(
                f"total_copies cannot be lower than the {on_loan} copies on loan",
                field="total_copies",
            )
        book.available_copies = values["total_copies"] - on_loan
    for required in ("title", "author", "total_copies"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    for field, value in values.items():
        setattr(book, field, value)
    await db.commit()
    await db.refresh(book)

    return success(BookResponse.model_validate(book).model_dump(mode="json"))


@router.delete("/books/{book_id}")
async def delete_book(
    book_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    book = await _get_book(db, str(admin.school_id), book_id)
    if await _active_loan_count(db, book.id):
        raise ConflictError("Book has active loans and cannot be deleted")

    await db.delete(book)
    await db.commit()
    return success(message="Book deleted")


# ==================== Loans ====================

@router.post("/borrow", status_code=status.HTTP_201_CREATED)
async def borrow_book(
    data: BorrowRequest,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)
    book = await _get_book(db, school_id, data.book_id)
    student = await get_school_student(db, school_id, data.student_id)

    existing = await db.execute(
        select(BorrowedBook.id).where(
            BorrowedBook.book_id == book.id,
            BorrowedBook.student_id == student.id,
            BorrowedBook.status == BorrowStatus.ACTIVE.value,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Student already has this book on loan")

    # Conditional decrement: concurrent borrows can't take the last copy twice
    result = await db.execute(
        update(LibraryBook)
        .where(LibraryBook.id == book.id, LibraryBook.available_copies > 0)
        .values(available_copies=LibraryBook.available_copies - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise BookUnavailableError(book.id)
    await db.refresh(book)

    borrowed_on = data.borrow_date or date.today()
    loan = BorrowedBook(
        school_id=school_id,
        book_id=book.id,
        student_id=student.id,
        borrow_date=borrowed_on,
        due_date=borrowed_on + timedelta(days=settings.LIBRARY_LOAN_DAYS),
        status=BorrowStatus.ACTIVE.value,
        fine=0,
    )
    db.add(loan)
    await db.commit()
    await db.refresh(loan)

    logger.info(f"[Library] '{book.title}' borrowed by {student.student_id}, due {loan.due_date}")
    return success(loan_payload(loan))


@router.post("/return")
async def return_book(
    data: ReturnRequest,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Close the active loan; overdue days are fined at LIBRARY_FINE_PER_DAY"""
    school_id = str(current_user.school_id)
    query = select(BorrowedBook).where(
        BorrowedBook.school_id == school_id,
        BorrowedBook.status == BorrowStatus.ACTIVE.value,
    )
    if data.borrow_id:
        query = query.where(BorrowedBook.id == data.borrow_id)
    else:
        query = query.where(BorrowedBook.book_id == data.book_id, BorrowedBook.student_id == data.student_id)

    loan = (await db.execute(query.order_by(BorrowedBook.borrow_date))).scalars().first()
    if not loan:
        raise ResourceNotFoundError("Active loan", data.borrow_id or data.book_id)

    returned_on = data.return_date or date.today()
    loan.return_date = returned_on
    loan.status = BorrowStatus.RETURNED.value
    loan.fine = calculate_fine(loan.due_date, returned_on)

    await db.execute(
        update(LibraryBook)
        .where(LibraryBook.id == loan.book_id)
        .values(available_copies=LibraryBook.available_copies + 1)
        .execution_options(synchronize_session=False)
    )
    book = await db.get(LibraryBook, loan.book_id)
    if book:
        await db.refresh(book)
    await db.commit()
    await db.refresh(loan)

    logger.info(f"[Library] Loan {loan.id} returned, fine ৳{loan.fine}")
    return success(loan_payload(loan))


@router.get("/borrowed")
async def list_borrowed(
    status_filter: Optional[BorrowStatus] = Query(None, alias="status"),
    student_id: Optional[str] = None,
    book_id: Optional[str] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Loans; 'overdue' means active and past the due date"""
    today = date.today()
    query = select(BorrowedBook).where(BorrowedBook.school_id == str(current_user.school_id))
    if status_filter == BorrowStatus.OVERDUE:
        query = query.where(BorrowedBook.status == BorrowStatus.ACTIVE.value, BorrowedBook.due_date < today)
    elif status_filter == BorrowStatus.ACTIVE:
        query = query.where(BorrowedBook.status == BorrowStatus.ACTIVE.value, BorrowedBook.due_date >= today)
    elif status_filter:
        query = query.where(BorrowedBook.status == status_filter.value)
    if student_id:
        query = query.where(BorrowedBook.student_id == student_id)
    if book_id:
        query = query.where(BorrowedBook.book_id == book_id)
    query = query.order_by(BorrowedBook.borrow_date.desc())

    page = await paginate(db, query, pagination.page, pagination.page_size)
    page["items"] = [loan_payload(loan, today) for loan in page["items"]]
    return success(page)


@router.get("/stats")
async def library_stats(
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)
    today = date.today()

    books = await db.execute(
        select(
            func.count(LibraryBook.id),
            func.coalesce(func.sum(LibraryBook.total_copies), 0),
            func.coalesce(func.sum(LibraryBook.available_copies), 0),
        ).where(LibraryBook.school_id == school_id)
    )
    total_books, total_copies, available_copies = books.one()

    active = (BorrowedBook.school_id == school_id, BorrowedBook.status == BorrowStatus.ACTIVE.value)
    borrowed = (await db.execute(select(func.count(BorrowedBook.id)).where(*active))).scalar() or 0
    borrowers = (await db.execute(
        select(func.count(func.distinct(BorrowedBook.student_id))).where(*active)
    )).scalar() or 0
    overdue = (await db.execute(
        select(func.count(BorrowedBook.id)).where(*active, BorrowedBook.due_date < today)
    )).scalar() or 0

    return success({
        "total_books": total_books,
        "total_copies": int(total_copies),
        "available_books": int(available_copies),
        "borrowed_books": borrowed,
        "active_borrowers": borrowers,
        "overdue_books": overdue,
    })
