from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import get_settings
from portal.db.session import get_db
from portal.models.user import User
from portal.schemas.identity import Identity
from portal.services.application_service import ApplicationService
from portal.services.department_service import DepartmentService
from portal.services.favorite_service import FavoriteService
from portal.services.my_applications_service import MyApplicationsService
from portal.services.request_service import RequestService
from portal.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def _decode_session_token(token: str) -> dict[str, object] | None:
    from portal.core.security import decode_session_token

    return decode_session_token(token)


def _is_admin_email(email: str) -> bool:
    from portal.core.security import is_admin_email

    return is_admin_email(email)


async def get_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Resolve the caller from the SSO session token (bearer header or cookie)."""
    if credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    else:
        token = request.cookies.get(get_settings().SESSION_COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = _decode_session_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email = str(payload["email"])
    name = payload.get("name")
    return Identity(
        email=email,
        name=name if isinstance(name, str) else None,
        is_admin=payload.get("is_admin") is True or _is_admin_email(email),
    )


async def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return identity


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await UserService(db).find_or_create(identity)


async def get_application_service(
    db: AsyncSession = Depends(get_db),
) -> ApplicationService:
    return ApplicationService(db)


async def get_department_service(
    db: AsyncSession = Depends(get_db),
) -> DepartmentService:
    return DepartmentService(db)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_my_applications_service(
    db: AsyncSession = Depends(get_db),
) -> MyApplicationsService:
    return MyApplicationsService(db)


async def get_request_service(db: AsyncSession = Depends(get_db)) -> RequestService:
    return RequestService(db)
