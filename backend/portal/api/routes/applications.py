import uuid
from typing import Any

from fastapi import APIRouter, Depends, status

from portal.api.deps import get_application_service, get_identity, require_admin
from portal.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationUpdate,
)
from portal.schemas.message import MessageResponse

router = APIRouter(
    prefix="/applications",
    tags=["applications"],
    dependencies=[Depends(get_identity)],
)


@router.get("", response_model=list[ApplicationRead])
async def list_applications(service: Any = Depends(get_application_service)):
    return await service.list_applications()


@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application(
    application_id: uuid.UUID, service: Any = Depends(get_application_service)
):
    return await service.get_application(application_id)


@router.post(
    "",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_application(
    payload: ApplicationCreate, service: Any = Depends(get_application_service)
):
    return await service.create_application(payload)


@router.put(
    "/{application_id}",
    response_model=ApplicationRead,
    dependencies=[Depends(require_admin)],
)
async def update_application(
    application_id: uuid.UUID,
    payload: ApplicationUpdate,
    service: Any = Depends(get_application_service),
):
    return await service.update_application(application_id, payload)


@router.delete(
    "/{application_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_application(
    application_id: uuid.UUID, service: Any = Depends(get_application_service)
) -> MessageResponse:
    await service.delete_application(application_id)
    return MessageResponse(message="Application deleted")
