import structlog
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.user import User
from portal.schemas.identity import Identity

logger = structlog.get_logger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_or_create(self, identity: Identity) -> User:
        """Resolve the caller's user row by email, creating a minimal one if absent."""
        try:
            existing = await self._get_user_by_email(identity.email)
            if existing is not None:
                return existing

            user = User(email=identity.email, name=identity.name)
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another request created the same email first.
                await self.db.rollback()
                existing = await self._get_user_by_email(identity.email)
                if existing is None:
                    raise
                return existing
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("user_resolution_failed", email=identity.email)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to resolve user",
            )

        logger.info("user_created", user_id=str(user.id), email=user.email)
        return user

    async def _get_user_by_email(self, email: str) -> User | None:
        return await self.db.scalar(select(User).where(User.email == email))
