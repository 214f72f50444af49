import uuid
from collections.abc import Sequence

import structlog
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.department import Department
from portal.schemas.department import DepartmentWrite

logger = structlog.get_logger(__name__)


class DepartmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_departments(self) -> Sequence[Department]:
        result = await self.db.scalars(select(Department).order_by(Department.name))
        return result.all()

    async def create_department(self, payload: DepartmentWrite) -> Department:
        department = Department(name=payload.name)
        self.db.add(department)
        await self._commit("department_create_failed", name=payload.name)
        await self.db.refresh(department)

        logger.info("department_created", department_id=str(department.id))
        return department

    async def update_department(
        self, department_id: uuid.UUID, payload: DepartmentWrite
    ) -> Department:
        department = await self._get_department(department_id)
        department.name = payload.name
        await self._commit("department_update_failed", department_id=str(department_id))
        await self.db.refresh(department)
        return department

    async def delete_department(self, department_id: uuid.UUID) -> None:
        department = await self._get_department(department_id)
        await self.db.delete(department)
        await self._commit("department_delete_failed", department_id=str(department_id))

        logger.info("department_deleted", department_id=str(department_id))

    async def _get_department(self, department_id: uuid.UUID) -> Department:
        department = await self.db.get(Department, department_id)
        if department is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Department not found",
            )
        return department

    async def _commit(self, event: str, **context: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Department name already exists",
            )
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(event, **context)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save department",
            )
