import uuid
from collections.abc import Sequence

import structlog
from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.models.application import Application
from portal.models.user import User
from portal.models.user_application_list import UserApplicationListEntry

logger = structlog.get_logger(__name__)


class MyApplicationsService:
    """The caller's personal, ordered subset of the catalog."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_applications(self, user: User) -> list[Application]:
        result = await self.db.scalars(
            select(UserApplicationListEntry)
            .options(
                selectinload(UserApplicationListEntry.application).selectinload(
                    Application.departments
                )
            )
            .where(UserApplicationListEntry.user_id == user.id)
            .order_by(UserApplicationListEntry.order_index)
            .execution_options(populate_existing=True)
        )
        return [entry.application for entry in result.all()]

    async def add_application(self, user: User, application_id: uuid.UUID) -> None:
        if await self.db.get(Application, application_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Application not found",
            )

        existing = await self.db.get(
            UserApplicationListEntry,
            {"user_id": user.id, "application_id": application_id},
        )
        if existing is not None:
            return

        max_index = await self.db.scalar(
            select(func.max(UserApplicationListEntry.order_index)).where(
                UserApplicationListEntry.user_id == user.id
            )
        )
        self.db.add(
            UserApplicationListEntry(
                user_id=user.id,
                application_id=application_id,
                order_index=0 if max_index is None else max_index + 1,
            )
        )
        await self._commit("my_applications_add_failed", user)

    async def remove_application(self, user: User, application_id: uuid.UUID) -> None:
        await self.db.execute(
            delete(UserApplicationListEntry).where(
                UserApplicationListEntry.user_id == user.id,
                UserApplicationListEntry.application_id == application_id,
            )
        )
        await self._commit("my_applications_remove_failed", user)

    async def reorder(
        self, user: User, ordered_application_ids: Sequence[uuid.UUID]
    ) -> None:
        """Rewrite order_index to each id's position in the submitted sequence.

        The sequence must name every entry of the current list exactly once;
        anything else is rejected before any row is touched.
        """
        current = set(
            (
                await self.db.scalars(
                    select(UserApplicationListEntry.application_id).where(
                        UserApplicationListEntry.user_id == user.id
                    )
                )
            ).all()
        )
        if (
            len(ordered_application_ids) != len(set(ordered_application_ids))
            or set(ordered_application_ids) != current
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ordered ids must match the current list exactly",
            )

        for index, application_id in enumerate(ordered_application_ids):
            await self.db.execute(
                update(UserApplicationListEntry)
                .where(
                    UserApplicationListEntry.user_id == user.id,
                    UserApplicationListEntry.application_id == application_id,
                )
                .values(order_index=index)
            )
        await self._commit("my_applications_reorder_failed", user)

    async def _commit(self, event: str, user: User) -> None:
        user_id = user.id
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(event, user_id=str(user_id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update your applications",
            )
