"""Lifecycle of user-submitted application requests.

A request starts ``pending``. Approving it creates a catalog Application from
the request's fields and copies its department tags; rejecting it deletes the
request row. Only pending requests can be approved, and the status flip is a
compare-and-swap on ``status = pending`` committed together with the new
Application, so two concurrent approvals cannot both create one.
"""

import uuid
from collections.abc import Sequence

import structlog
from fastapi import HTTPException, status
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.models.application import Application, ApplicationDepartment
from portal.models.application_request import (
    ApplicationRequest,
    ApplicationRequestDepartment,
    RequestStatus,
)
from portal.models.user import User
from portal.schemas.application_request import (
    ApplicationRequestCreate,
    ApplicationRequestUpdate,
)
from portal.services.application_service import ApplicationService

logger = structlog.get_logger(__name__)

_REQUIRED_FIELDS = ("name", "url", "auth_type", "status")


class RequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_requests(
        self, user: User, include_all: bool
    ) -> Sequence[ApplicationRequest]:
        query = (
            select(ApplicationRequest)
            .options(
                selectinload(ApplicationRequest.departments),
                selectinload(ApplicationRequest.requester),
            )
            .order_by(ApplicationRequest.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if not include_all:
            query = query.where(ApplicationRequest.requested_by == user.id)

        result = await self.db.scalars(query)
        return result.all()

    async def create_request(
        self, user: User, payload: ApplicationRequestCreate
    ) -> ApplicationRequest:
        user_id = user.id
        request = ApplicationRequest(
            **payload.model_dump(exclude={"department_ids"}),
            requested_by=user_id,
            status=RequestStatus.pending,
        )
        try:
            self.db.add(request)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("request_create_failed", user_id=str(user_id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create application request",
            )

        request_id = request.id
        logger.info(
            "request_created", request_id=str(request_id), user_id=str(user_id)
        )

        department_ids = list(dict.fromkeys(payload.department_ids))
        if department_ids:
            try:
                self.db.add_all(
                    ApplicationRequestDepartment(
                        request_id=request_id, department_id=department_id
                    )
                    for department_id in department_ids
                )
                await self.db.commit()
            except SQLAlchemyError:
                # The request stands without its department tags.
                await self.db.rollback()
                logger.warning(
                    "request_departments_failed",
                    request_id=str(request_id),
                    department_ids=[str(d) for d in department_ids],
                    exc_info=True,
                )

        return await self.get_request(request_id)

    async def get_request(self, request_id: uuid.UUID) -> ApplicationRequest:
        request = await self.db.scalar(
            select(ApplicationRequest)
            .options(
                selectinload(ApplicationRequest.departments),
                selectinload(ApplicationRequest.requester),
            )
            .where(ApplicationRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        if request is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Request not found",
            )
        return request

    async def update_request(
        self, request_id: uuid.UUID, payload: ApplicationRequestUpdate
    ) -> ApplicationRequest:
        if payload.status == RequestStatus.approved:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use approve to approve a request",
            )

        request = await self.get_request(request_id)
        changes = payload.model_dump(
            exclude_unset=True, exclude={"department_ids", "approve"}
        )
        for field in _REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                del changes[field]

        try:
            for field, value in changes.items():
                setattr(request, field, value)

            if payload.department_ids is not None:
                await self.db.execute(
                    delete(ApplicationRequestDepartment).where(
                        ApplicationRequestDepartment.request_id == request_id
                    )
                )
                self.db.add_all(
                    ApplicationRequestDepartment(
                        request_id=request_id, department_id=department_id
                    )
                    for department_id in dict.fromkeys(payload.department_ids)
                )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("request_update_failed", request_id=str(request_id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update application request",
            )

        return await self.get_request(request_id)

    async def approve_request(
        self, request_id: uuid.UUID, admin_notes: str | None = None
    ) -> Application:
        # Always re-read so edits made just before approval are reflected.
        request = await self.get_request(request_id)
        if request.status != RequestStatus.pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Request is not pending",
            )

        department_ids = list(
            (
                await self.db.scalars(
                    select(ApplicationRequestDepartment.department_id).where(
                        ApplicationRequestDepartment.request_id == request_id
                    )
                )
            ).all()
        )

        values: dict[str, object] = {"status": RequestStatus.approved}
        if admin_notes is not None:
            values["admin_notes"] = admin_notes

        application = Application(
            name=request.name,
            description=request.description,
            url=request.url,
            image_url=request.image_url,
            auth_type=request.auth_type,
        )
        try:
            self.db.add(application)
            claimed = await self.db.execute(
                update(ApplicationRequest)
                .where(
                    ApplicationRequest.id == request_id,
                    ApplicationRequest.status == RequestStatus.pending,
                )
                .values(**values)
            )
            if claimed.rowcount != 1:
                await self.db.rollback()
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Request is not pending",
                )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("request_approve_failed", request_id=str(request_id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to approve application request",
            )

        application_id = application.id
        logger.info(
            "request_approved",
            request_id=str(request_id),
            application_id=str(application_id),
        )

        if department_ids:
            try:
                self.db.add_all(
                    ApplicationDepartment(
                        application_id=application_id, department_id=department_id
                    )
                    for department_id in department_ids
                )
                await self.db.commit()
            except SQLAlchemyError:
                # The application exists without its full department tagging.
                await self.db.rollback()
                logger.warning(
                    "approval_departments_failed",
                    request_id=str(request_id),
                    application_id=str(application_id),
                    department_ids=[str(d) for d in department_ids],
                    exc_info=True,
                )

        return await ApplicationService(self.db).get_application(application_id)

    async def reject_request(self, request_id: uuid.UUID) -> None:
        request = await self.get_request(request_id)
        try:
            await self.db.delete(request)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("request_reject_failed", request_id=str(request_id))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to reject application request",
            )

        logger.info("request_rejected", request_id=str(request_id))
