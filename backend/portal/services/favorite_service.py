import uuid

import structlog
from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.application import Application
from portal.models.user import User
from portal.models.user_favorite import UserFavorite

logger = structlog.get_logger(__name__)


class FavoriteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_favorite_ids(self, user: User) -> list[uuid.UUID]:
        result = await self.db.scalars(
            select(UserFavorite.application_id)
            .where(UserFavorite.user_id == user.id)
            .order_by(UserFavorite.created_at)
        )
        return list(result.all())

    async def add_favorite(self, user: User, application_id: uuid.UUID) -> None:
        if await self.db.get(Application, application_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Application not found",
            )

        existing = await self.db.get(
            UserFavorite, {"user_id": user.id, "application_id": application_id}
        )
        if existing is not None:
            return

        self.db.add(UserFavorite(user_id=user.id, application_id=application_id))
        await self._commit("favorite_add_failed", user, application_id)

    async def remove_favorite(self, user: User, application_id: uuid.UUID) -> None:
        await self.db.execute(
            delete(UserFavorite).where(
                UserFavorite.user_id == user.id,
                UserFavorite.application_id == application_id,
            )
        )
        await self._commit("favorite_remove_failed", user, application_id)

    async def _commit(
        self, event: str, user: User, application_id: uuid.UUID
    ) -> None:
        user_id = user.id
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                event, user_id=str(user_id), application_id=str(application_id)
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update favorites",
            )
