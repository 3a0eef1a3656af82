from fastapi import APIRouter, Depends, status, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import auth_rate_limit, strict_rate_limit
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token,
    build_token_payload,
)
from app.core.types import generate_code
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.auth import SchoolRegister, UserLogin, RefreshRequest, ChangePassword, UserResponse
from app.utils.credit_manager import credit_manager
from app.utils.responses import success

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _token_bundle(user: User) -> dict:
    payload = build_token_payload(user)
    return {
        "access_token": create_access_token(payload),
        "refresh_token": create_refresh_token(payload),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }


@router.post("/register-school", status_code=status.HTTP_201_CREATED)
@strict_rate_limit()
async def register_school(
    request: Request,
    response: Response,
    data: SchoolRegister,
    db: AsyncSession = Depends(get_db)
):
    """Create a school, its first admin and its starting credit balance (rate limited: 3/min)"""
    result = await db.execute(select(User.id).where(User.email == data.email))
    if result.scalar_one_or_none():
        logger.log_auth_event(
            event="register_school",
            success=False,
            user_email=data.email,
            reason="Email already registered",
            client_ip=_client_ip(request)
        )
        raise ConflictError("Email already registered", field="email")

    school = School(
        name=data.school_name,
        name_bn=data.school_name_bn,
        code=f"SCH-{generate_code(6)}",
        eiin=data.eiin,
        district=data.district,
        phone=data.school_phone,
        email=data.email,
    )
    db.add(school)
    await db.flush()

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        full_name_bn=data.full_name_bn,
        phone=data.phone,
        role=UserRole.ADMIN,
        school_id=school.id,
        last_login=datetime.utcnow(),
    )
    db.add(user)
    await db.flush()

    await credit_manager.get_or_create_balance(db, school.id)
    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register_school",
        success=True,
        user_email=user.email,
        client_ip=_client_ip(request),
        school_id=str(school.id)
    )

    bundle = _token_bundle(user)
    bundle["school"] = {"id": school.id, "name": school.name, "name_bn": school.name_bn, "code": school.code}
    _set_auth_cookie(response, bundle["access_token"])
    return success(bundle)


@router.post("/login")
@auth_rate_limit()
async def login(
    request: Request,
    response: Response,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login (rate limited: 5/min). Also sets the HttpOnly auth cookie."""
    client_ip = _client_ip(request)

    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise AuthorizationError("Account is inactive")

    user.last_login = datetime.utcnow()
    await db.commit()

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    bundle = _token_bundle(user)
    _set_auth_cookie(response, bundle["access_token"])
    return success(bundle)


@router.post("/refresh")
async def refresh_token(
    data: RefreshRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new access token"""
    payload = decode_token(data.refresh_token, expected_type="refresh")

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthorizationError("Account is inactive")

    access_token = create_access_token(build_token_payload(user))
    _set_auth_cookie(response, access_token)
    return success({"access_token": access_token, "token_type": "bearer"})


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Current user profile"""
    return success(UserResponse.model_validate(current_user).model_dump(mode="json"))


@router.post("/logout")
async def logout(response: Response):
    """Clear the auth cookie; tokens are stateless and simply expire"""
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return success(message="Logged out successfully")


@router.post("/change-password")
async def change_password(
    data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not verify_password(data.current_password, current_user.hashed_password):
        logger.log_auth_event(
            event="change_password",
            success=False,
            user_email=current_user.email,
            reason="Wrong current password"
        )
        raise ValidationError("Current password is incorrect", field="current_password")

    if data.current_password == data.new_password:
        raise ValidationError("New password must differ from the current one", field="new_password")

    current_user.hashed_password = get_password_hash(data.new_password)
    await db.commit()

    logger.log_auth_event(event="change_password", success=True, user_email=current_user.email)
    return success(message="Password changed successfully")
