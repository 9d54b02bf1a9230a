"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studyhub.config.app_config import AppConfig
from studyhub.db.data_service import AuthError, AuthUser, DataService

bearer_scheme = HTTPBearer(auto_error=False)


def get_data_service(request: Request) -> DataService:
    """The data service attached to the app by create_app()."""
    return request.app.state.data_service


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_access_token),
    service: DataService = Depends(get_data_service),
) -> AuthUser:
    """Resolve the bearer token to the signed-in user."""
    try:
        return service.auth.get_user(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
