"""Authentication endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.config.app_config import AppConfig
from studyhub.db.data_service import (
    AuthError,
    AuthUser,
    DataService,
    DataServiceError,
    eq,
    select_one,
)
from studyhub.utils.validators import now_iso, validate_email
from studyhub.web.deps import (
    get_access_token,
    get_app_config,
    get_current_user,
    get_data_service,
)
from studyhub.web.schemas import (
    Envelope,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_summary(user: AuthUser, profile: dict | None) -> dict:
    """User block returned by register/login."""
    profile = profile or {}
    return {
        "id": user.id,
        "email": user.email,
        "first_name": profile.get("first_name", user.metadata.get("first_name")),
        "last_name": profile.get("last_name", user.metadata.get("last_name")),
        "role": profile.get("role", user.metadata.get("role")),
    }


@router.post("/register", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Create an auth identity and its profile row."""
    if not validate_email(body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid email address",
        )

    metadata = {
        "first_name": body.first_name,
        "last_name": body.last_name,
        "role": body.role,
    }
    try:
        user = service.auth.sign_up(body.email, body.password, metadata)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    profile = {
        "id": user.id,
        "email": user.email,
        "first_name": body.first_name,
        "last_name": body.last_name,
        "phone": body.phone,
        "role": body.role,
        "created_at": now_iso(),
    }
    try:
        service.insert("users", profile)
    except DataServiceError as exc:
        # The auth identity already exists; keep going without a profile row
        logger.error("profile_creation_failed", user_id=user.id, error=str(exc))

    logger.info("user_registered", user_id=user.id, role=body.role)
    return Envelope(
        message="User registered successfully",
        data={"user": _user_summary(user, profile)},
    )


@router.post("/login", response_model=Envelope)
def login(
    body: LoginRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Sign in with email and password."""
    try:
        session = service.auth.sign_in(body.email, body.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    profile = select_one(service, "users", [eq("id", session.user.id)])
    return Envelope(
        message="Login successful",
        data={
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in,
            "user": _user_summary(session.user, profile),
        },
    )


@router.post("/logout", response_model=Envelope)
def logout(
    token: str = Depends(get_access_token),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Revoke the caller's session."""
    service.auth.sign_out(token)
    return Envelope(message="Logout successful")


@router.get("/profile", response_model=Envelope)
def get_profile(
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Profile row of the signed-in user."""
    profile = select_one(service, "users", [eq("id", user.id)])
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return Envelope(data=profile)


@router.post("/refresh-token", response_model=Envelope)
def refresh_token(
    body: RefreshTokenRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Exchange a refresh token for a new session."""
    try:
        session = service.auth.refresh(body.refresh_token)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from exc
    return Envelope(data=session.to_dict())


@router.post("/forgot-password", response_model=Envelope)
def forgot_password(
    body: ForgotPasswordRequest,
    service: DataService = Depends(get_data_service),
    config: AppConfig = Depends(get_app_config),
) -> Envelope:
    """Send a password-reset link pointing at the web client."""
    service.auth.send_password_reset(body.email, f"{config.auth.client_url}/reset-password")
    return Envelope(message="Password reset email sent successfully")


@router.post("/reset-password", response_model=Envelope)
def reset_password(
    body: ResetPasswordRequest,
    token: str = Depends(get_access_token),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Set a new password for the bearer (recovery) session."""
    service.auth.update_password(token, body.password)
    return Envelope(message="Password updated successfully")
