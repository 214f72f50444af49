from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from portal.core.config import get_settings


def is_admin_email(email: str) -> bool:
    return email.lower() in get_settings().admin_emails


def create_session_token(
    email: str,
    name: str | None = None,
    is_admin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)

    expiry = datetime.now(timezone.utc) + expires_delta
    payload: dict[str, Any] = {
        "email": email,
        "is_admin": is_admin,
        "exp": expiry,
    }
    if name is not None:
        payload["name"] = name

    return jwt.encode(
        payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM
    )


def decode_session_token(token: str) -> dict[str, Any] | None:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM]
        )
    except ExpiredSignatureError:
        return None
    except JWTError:
        return None

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None

    return payload
