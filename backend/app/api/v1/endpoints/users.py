from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional

from app.api.deps import get_current_admin
from app.core.database import get_db
from app.core.exceptions import ConflictError, UserNotFoundError, AuthorizationError, ValidationError
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.auth import UserResponse
from app.schemas.user import UserCreate, UserUpdate
from app.services.email_service import email_service
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def _get_school_user(db: AsyncSession, admin: User, user_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id, User.school_id == str(admin.school_id))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError(user_id)
    return user


@router.get("")
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Accounts in the admin's school"""
    query = select(User).where(User.school_id == str(admin.school_id))
    if role:
        query = query.where(User.role == role)
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(User.email.ilike(pattern), User.full_name.ilike(pattern), User.full_name_bn.ilike(pattern)))
    query = query.order_by(User.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=UserResponse))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a teacher, student, parent or admin account in the admin's school"""
    if data.role == UserRole.SUPER_ADMIN:
        raise AuthorizationError("Cannot create super admin accounts")

    existing = await db.execute(select(User.id).where(User.email == data.email))
    if existing.scalar_one_or_none():
        raise ConflictError("Email already registered", field="email")

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        full_name_bn=data.full_name_bn,
        phone=data.phone,
        role=data.role,
        school_id=str(admin.school_id),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"[Users] {admin.email} created {user.role.value} account {user.email}")

    if data.send_welcome_email:
        school = await db.get(School, str(admin.school_id))
        await email_service.send_welcome_email(user.email, user.full_name, user.role.value, school.name)

    return success(UserResponse.model_validate(user).model_dump(mode="json"))


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await _get_school_user(db, admin, user_id)
    updates = data.model_dump(exclude_unset=True)

    if updates.get("role") == UserRole.SUPER_ADMIN:
        raise AuthorizationError("Cannot grant super admin")
    if str(user.id) == str(admin.id) and (updates.get("is_active") is False or "role" in updates):
        raise ValidationError("You cannot deactivate or change the role of your own account")

    for field, value in updates.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)

    return success(UserResponse.model_validate(user).model_dump(mode="json"))


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Soft delete: the account is deactivated, records that reference it stay intact"""
    user = await _get_school_user(db, admin, user_id)
    if str(user.id) == str(admin.id):
        raise ValidationError("You cannot deactivate your own account")

    user.is_active = False
    await db.commit()

    logger.info(f"[Users] {admin.email} deactivated {user.email}")
    return success(message="User deactivated")
