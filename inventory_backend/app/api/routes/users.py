"""
User API endpoints.

Registration, cookie-based login/logout, profile and password management.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.cookies import set_session_cookie, clear_session_cookie
from inventory_backend.app.core.dependencies import Actor, get_current_user, session_cookie
from inventory_backend.app.core.exceptions import (
    ForbiddenError, ResourceNotFoundError, UnauthenticatedError, ValidationError
)
from inventory_backend.app.core.guards import require_role
from inventory_backend.app.core.jwt import create_access_token, decode_access_token
from inventory_backend.app.core.token_revocation import revoke_token, is_token_revoked
from inventory_backend.app.db.session import get_db
from inventory_backend.app.models.enums import PRIVILEGED_ROLES, STAFF_ROLES
from inventory_backend.app.models.user import User
from inventory_backend.app.schemas.auth import (
    UserRegister, UserLogin, UserUpdate, PasswordChange, ForgotPassword, PasswordReset,
    UserResponse, LoginResponse, CustomerSummary,
)
from inventory_backend.app.schemas.common import ApiResponse
from inventory_backend.app.services import users as user_service
from inventory_backend.app.services.audit import log_event, AuditAction
from inventory_backend.app.services.notifications import PasswordResetNotifier, get_reset_notifier

logger = logging.getLogger("inventory.auth")

router = APIRouter(prefix="/users", tags=["Users"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _issue_session(response: Response, user: User) -> LoginResponse:
    token = create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    })
    set_session_cookie(response, token)
    return LoginResponse(**UserResponse.model_validate(user).model_dump(), token=token)


@router.post("/register", response_model=ApiResponse[LoginResponse], status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user and start a session.

    - Admin and manager accounts cannot be created via the API.
    - Email must be unique.
    """
    if user_data.role in PRIVILEGED_ROLES:
        raise ForbiddenError(f"{user_data.role.value} accounts cannot be registered via API")

    if await user_service.get_user_by_email(db, user_data.email):
        raise ValidationError("Email has already been registered")

    user = User(
        name=user_data.name,
        email=user_data.email.lower(),
        role=user_data.role,
    )
    user = await user_service.save_user(db, user, password=user_data.password)

    await log_event(
        db, AuditAction.USER_REGISTERED,
        actor_id=user.id, actor_email=user.email,
        metadata={"role": user.role.value},
        ip_address=_client_ip(request)
    )
    logger.info("Registered user %s with role %s", user.email, user.role.value)

    return ApiResponse(data=_issue_session(response, user), message="Registration successful")


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password.

    The session token is set as an HTTP-only cookie and also returned in the body.
    Successful and failed attempts are written to the audit log.
    """
    user = await user_service.authenticate(db, credentials.email, credentials.password)

    if user is None:
        await log_event(
            db, AuditAction.LOGIN_FAILED,
            actor_email=credentials.email.lower(),
            metadata={"reason": "Invalid email or password"},
            ip_address=_client_ip(request)
        )
        raise UnauthenticatedError("Invalid email or password")

    await log_event(
        db, AuditAction.LOGIN_SUCCESS,
        actor_id=user.id, actor_email=user.email,
        ip_address=_client_ip(request)
    )

    return ApiResponse(data=_issue_session(response, user), message="Login successful")


@router.get("/logout", response_model=ApiResponse[None])
async def logout(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(session_cookie),
    db: AsyncSession = Depends(get_db)
):
    """Clear the session cookie and revoke the presented token."""
    if token:
        payload = decode_access_token(token)
        if payload and payload.get("user_id"):
            await revoke_token(token, payload["user_id"])
            await log_event(
                db, AuditAction.LOGOUT,
                actor_id=payload["user_id"], actor_email=payload.get("sub"),
                ip_address=_client_ip(request)
            )

    clear_session_cookie(response)
    return ApiResponse(message="Successfully logged out")


@router.get("/loggedin", response_model=ApiResponse[bool])
async def logged_in(token: Optional[str] = Depends(session_cookie)):
    """Whether the request carries a valid, unrevoked session."""
    if not token or decode_access_token(token) is None:
        return ApiResponse(data=False)
    return ApiResponse(data=not await is_token_revoked(token))


@router.get("/getuser", response_model=ApiResponse[UserResponse])
async def get_user(
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, actor.user_id)
    if not user:
        raise ResourceNotFoundError("User", actor.user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.patch("/updateuser", response_model=ApiResponse[UserResponse])
async def update_user(
    changes: UserUpdate,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update profile fields. Role and email cannot be changed here."""
    user = await user_service.get_user(db, actor.user_id)
    if not user:
        raise ResourceNotFoundError("User", actor.user_id)

    for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    user = await user_service.save_user(db, user)
    return ApiResponse(data=UserResponse.model_validate(user), message="Profile updated")


@router.patch("/changepassword", response_model=ApiResponse[None])
async def change_password(
    payload: PasswordChange,
    request: Request,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, actor.user_id)
    if not user:
        raise ResourceNotFoundError("User", actor.user_id)

    await user_service.change_password(db, user, payload.old_password, payload.password)
    await log_event(
        db, AuditAction.PASSWORD_CHANGED,
        actor_id=actor.user_id, actor_email=actor.email,
        ip_address=_client_ip(request)
    )
    return ApiResponse(message="Password changed successfully")


@router.post("/forgotpassword", response_model=ApiResponse[None])
async def forgot_password(
    payload: ForgotPassword,
    request: Request,
    notifier: PasswordResetNotifier = Depends(get_reset_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Issue a password reset token valid for a limited time.

    The reset link goes to the user through the notifier only.
    """
    user = await user_service.get_user_by_email(db, payload.email)
    if not user:
        raise ResourceNotFoundError("User")

    raw_token = await user_service.create_reset_token(db, user)
    await notifier.send_reset_link(user, f"{settings.frontend_url}/resetpassword/{raw_token}")

    await log_event(
        db, AuditAction.PASSWORD_RESET_REQUESTED,
        actor_id=user.id, actor_email=user.email,
        ip_address=_client_ip(request)
    )
    return ApiResponse(message="Reset email sent")


@router.put("/resetpassword/{reset_token}", response_model=ApiResponse[None])
async def reset_password(
    reset_token: str,
    payload: PasswordReset,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.reset_password(db, reset_token, payload.password)
    await log_event(
        db, AuditAction.PASSWORD_RESET,
        actor_id=user.id, actor_email=user.email,
        ip_address=_client_ip(request)
    )
    return ApiResponse(message="Password reset successful, please login")


@router.get("/customers", response_model=ApiResponse[List[CustomerSummary]])
async def list_customers(
    actor: Actor = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Customer accounts, for staff entering orders."""
    customers = await user_service.list_customers(db)
    return ApiResponse(data=[CustomerSummary.model_validate(c) for c in customers])
