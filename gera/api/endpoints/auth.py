"""
Auth endpoints: registration, email-code verification, login & password reset.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gera.api.deps import get_auth_service, get_db, get_token_claims
from gera.core.config import settings
from gera.core.exceptions import NotFound
from gera.core.limiter import limiter
from gera.schemas.token import LoginResponse, TokenClaims
from gera.schemas.user import (CodeDispatchResponse, EmailRequest, LoginRequest,
                               MessageResponse, RegisterRequest,
                               ResetPasswordRequest, UserRead,
                               VerifyCodeRequest)
from gera.services.auth import AuthService, CodeDispatch
from gera.services.credentials import CredentialStore

router = APIRouter(tags=["auth"])

_RATE = settings.AUTH_RATE_LIMIT


def _dispatch_response(dispatch: CodeDispatch, message: str) -> CodeDispatchResponse:
    return CodeDispatchResponse(message=message, simulated_code=dispatch.code)


@router.post(
    "/register",
    response_model=CodeDispatchResponse,
    response_model_exclude_none=True,
)
@limiter.limit(_RATE)
async def register(
    request: Request,
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> CodeDispatchResponse:
    """Create an unverified account and send its verification code."""
    dispatch = await auth.register(body.name, body.email, body.age, body.password)
    return _dispatch_response(dispatch, "Account created. Check your email for the code.")


@router.post(
    "/send-verification-code",
    response_model=CodeDispatchResponse,
    response_model_exclude_none=True,
)
@limiter.limit(_RATE)
async def send_verification_code(
    request: Request,
    body: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
) -> CodeDispatchResponse:
    dispatch = await auth.resend_code(body.email)
    return _dispatch_response(dispatch, "Verification code sent.")


@router.post("/verify-code", response_model=MessageResponse)
@limiter.limit(_RATE)
async def verify_code(
    request: Request,
    body: VerifyCodeRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.verify_code(body.email, body.code)
    return MessageResponse(message="Email verified.")


@router.post("/login", response_model=LoginResponse)
@limiter.limit(_RATE)
async def login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    session = await auth.login(body.email, body.password)
    return LoginResponse(token=session.token, role=session.role)


@router.post("/admin/login", response_model=LoginResponse)
@limiter.limit(_RATE)
async def admin_login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    session = await auth.admin_login(body.email, body.password)
    return LoginResponse(token=session.token, role=session.role)


@router.post(
    "/send-password-reset",
    response_model=CodeDispatchResponse,
    response_model_exclude_none=True,
)
@limiter.limit(_RATE)
async def send_password_reset(
    request: Request,
    body: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
) -> CodeDispatchResponse:
    dispatch = await auth.request_password_reset(body.email)
    return _dispatch_response(dispatch, "Password reset code sent.")


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(_RATE)
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.reset_password(body.email, body.code, body.new_password)
    return MessageResponse(message="Password updated.")


@router.get("/me", response_model=UserRead)
async def read_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
):
    """Return profile of the currently authenticated user."""
    user = await CredentialStore(db).find_by_id(claims.user_id)
    if user is None:
        raise NotFound("User not found")
    return user
