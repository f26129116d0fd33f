"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from order_alerts.domain.entities import Identity
from order_alerts.infrastructure.security import identity_from_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def resolve_identity(token: str) -> Identity:
    """Resolve the authenticated identity for the provided token."""

    try:
        return identity_from_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Return the authenticated identity from the bearer token."""

    return resolve_identity(token)


def require_admin(current_identity: Identity = Depends(get_current_identity)) -> Identity:
    """Ensure the authenticated identity is an admin or super admin."""

    if not current_identity.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return current_identity
