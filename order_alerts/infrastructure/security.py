"""Security helpers for identity token generation and validation."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from order_alerts.config import get_settings
from order_alerts.domain.entities import Identity

ALGORITHM = "HS256"


def _secret_key() -> str:
    secret_key = get_settings().secret_key
    if not secret_key:
        raise RuntimeError("SECRET_KEY must be configured to sign or verify tokens")
    return secret_key


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=get_settings().access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, _secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    secret_key = _secret_key()
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def issue_identity_token(identity: Identity, expires_delta: timedelta | None = None) -> str:
    """Return a signed token the notification socket accepts for ``identity``."""

    return create_access_token(
        {"sub": str(identity.user_id), "role": identity.role},
        expires_delta=expires_delta,
    )


def _identity_from_claims(claims: dict) -> Identity:
    subject = claims.get("sub")
    role = claims.get("role")
    if subject is None or not isinstance(role, str) or not role:
        raise ValueError("Could not validate credentials")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise ValueError("Could not validate credentials") from exc
    return Identity(user_id=user_id, role=role)


def identity_from_token(token: str) -> Identity:
    """Verify ``token`` and return its :class:`Identity` or raise ``ValueError``."""

    return _identity_from_claims(decode_access_token(token))


def peek_identity(token: str) -> Identity:
    """Read the identity claims of ``token`` without checking the signature.

    Clients use this to pick routes and roles; the server still verifies the
    token when the socket joins.
    """

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise ValueError("Malformed identity token") from exc
    return _identity_from_claims(claims)
