"""
Authentication API endpoints.

Login, logout, current user info, and manager-run user administration.
There is no self-registration: managers create accounts.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from fleetflow.app.db.session import get_db
from fleetflow.app.models.user import User
from fleetflow.app.models.enums import UserRole
from fleetflow.app.schemas.auth import (
    UserCreate, UserLogin, TokenResponse, UserResponse, UserListResponse, LogoutResponse
)
from fleetflow.app.core.exceptions import AuthenticationError, ValidationError, ResourceNotFoundError
from fleetflow.app.core.security import get_password_hash, verify_password
from fleetflow.app.core.jwt import create_access_token, token_payload_for
from fleetflow.app.core.dependencies import get_current_user
from fleetflow.app.core.guards import require_role
from fleetflow.app.core.rate_limit import enforce_login_rate_limit, reset_login_attempts
from fleetflow.app.core.token_revocation import (
    revoke_token, revoke_all_user_tokens, clear_user_token_revocation
)
from fleetflow.app.services.audit import log_event, log_actor_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])

manager_only = require_role([UserRole.MANAGER])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Attempts are throttled per client address. Successful and failed
    attempts are written to the audit trail.
    """
    client_ip = _client_ip(request)
    await enforce_login_rate_limit(client_ip)

    email = credentials.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id if user else None,
            actor_email=email,
            entity_type="user",
            entity_id=user.id if user else None,
            metadata={"reason": "Invalid password" if user else "User not found"},
            ip_address=client_ip
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id,
            actor_email=user.email,
            entity_type="user",
            entity_id=user.id,
            metadata={"reason": "Account is inactive"},
            ip_address=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    access_token = create_access_token(data=token_payload_for(user))
    await reset_login_attempts(client_ip)

    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_id=user.id,
        actor_email=user.email,
        entity_type="user",
        entity_id=user.id,
        ip_address=client_ip
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current authenticated user information."""
    user = await db.get(User, current_user.get("user_id"))
    if not user:
        raise ResourceNotFoundError("User", current_user.get("user_id"))
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the token used for this request."""
    revoked = await revoke_token(current_user["token"], current_user["user_id"])

    await log_actor_event(db, current_user, AuditAction.LOGOUT, "user", current_user["user_id"])

    return LogoutResponse(message="Logged out", revoked=revoked)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: dict = Depends(manager_only),
    db: AsyncSession = Depends(get_db)
):
    """Create a user account with one of the four roles (manager only)."""
    existing = await db.execute(select(User).where(User.email == user_data.email))
    if existing.scalar_one_or_none():
        raise ValidationError("Email already registered", details={"email": user_data.email})

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        is_active=True
    )
    db.add(new_user)
    await db.flush()

    await log_actor_event(
        db, current_user, AuditAction.USER_CREATED, "user", new_user.id,
        metadata={"email": new_user.email, "role": new_user.role.value},
        commit=False
    )
    await db.commit()
    await db.refresh(new_user)

    return UserResponse.model_validate(new_user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: dict = Depends(manager_only),
    db: AsyncSession = Depends(get_db)
):
    """List all user accounts (manager only)."""
    total = (await db.execute(select(func.count(User.id)))).scalar() or 0
    result = await db.execute(select(User).order_by(User.id))
    users = result.scalars().all()
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users], total=total)


async def _set_active(db: AsyncSession, user_id: int, active: bool, current_user: dict) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise ResourceNotFoundError("User", user_id)

    if not active and user.id == current_user.get("user_id"):
        raise ValidationError("Managers cannot deactivate their own account")

    user.is_active = active
    action = AuditAction.USER_ACTIVATED if active else AuditAction.USER_DEACTIVATED
    await log_actor_event(db, current_user, action, "user", user.id, commit=False)
    await db.commit()
    await db.refresh(user)

    if active:
        await clear_user_token_revocation(user.id)
    else:
        await revoke_all_user_tokens(user.id)

    return user


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(manager_only),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a user and revoke every token issued to them."""
    return UserResponse.model_validate(await _set_active(db, user_id, False, current_user))


@router.post("/users/{user_id}/activate", response_model=UserResponse)
async def activate_user(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(manager_only),
    db: AsyncSession = Depends(get_db)
):
    """Reactivate a user and lift the token revocation flag."""
    return UserResponse.model_validate(await _set_active(db, user_id, True, current_user))
