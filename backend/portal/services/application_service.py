import uuid
from collections.abc import Sequence

import structlog
from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.models.application import Application, ApplicationDepartment
from portal.models.department import Department
from portal.schemas.application import ApplicationCreate, ApplicationUpdate

logger = structlog.get_logger(__name__)


class ApplicationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_applications(self) -> Sequence[Application]:
        result = await self.db.scalars(
            select(Application)
            .options(selectinload(Application.departments))
            .order_by(Application.name)
            .execution_options(populate_existing=True)
        )
        return result.all()

    async def get_application(self, application_id: uuid.UUID) -> Application:
        application = await self.load_application(application_id)
        if application is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Application not found",
            )
        return application

    async def create_application(self, payload: ApplicationCreate) -> Application:
        await self.ensure_departments_exist(payload.department_ids)

        application = Application(**payload.model_dump(exclude={"department_ids"}))
        try:
            self.db.add(application)
            await self.db.flush()
            self.db.add_all(
                ApplicationDepartment(
                    application_id=application.id, department_id=department_id
                )
                for department_id in dict.fromkeys(payload.department_ids)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("application_create_failed", name=payload.name)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create application",
            )

        logger.info("application_created", application_id=str(application.id))
        return await self.get_application(application.id)

    async def update_application(
        self, application_id: uuid.UUID, payload: ApplicationUpdate
    ) -> Application:
        application = await self.get_application(application_id)
        changes = {
            field: value
            for field, value in payload.model_dump(
                exclude_unset=True, exclude={"department_ids"}
            ).items()
            if value is not None or field not in ("name", "url", "auth_type")
        }
        if payload.department_ids is not None:
            await self.ensure_departments_exist(payload.department_ids)

        try:
            for field, value in changes.items():
                setattr(application, field, value)

            if payload.department_ids is not None:
                await self.db.execute(
                    delete(ApplicationDepartment).where(
                        ApplicationDepartment.application_id == application_id
                    )
                )
                self.db.add_all(
                    ApplicationDepartment(
                        application_id=application_id, department_id=department_id
                    )
                    for department_id in dict.fromkeys(payload.department_ids)
                )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                "application_update_failed", application_id=str(application_id)
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update application",
            )

        return await self.get_application(application_id)

    async def delete_application(self, application_id: uuid.UUID) -> None:
        await self.get_application(application_id)
        try:
            await self.db.execute(
                delete(Application).where(Application.id == application_id)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                "application_delete_failed", application_id=str(application_id)
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete application",
            )

        logger.info("application_deleted", application_id=str(application_id))

    async def load_application(self, application_id: uuid.UUID) -> Application | None:
        return await self.db.scalar(
            select(Application)
            .options(selectinload(Application.departments))
            .where(Application.id == application_id)
            .execution_options(populate_existing=True)
        )

    async def ensure_departments_exist(
        self, department_ids: Sequence[uuid.UUID]
    ) -> None:
        wanted = set(department_ids)
        if not wanted:
            return

        found = await self.db.scalar(
            select(func.count())
            .select_from(Department)
            .where(Department.id.in_(wanted))
        )
        if found != len(wanted):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unknown department id",
            )
