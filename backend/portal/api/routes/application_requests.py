import uuid
from typing import Any

from fastapi import APIRouter, Depends, status

from portal.api.deps import (
    get_current_user,
    get_identity,
    get_request_service,
    require_admin,
)
from portal.models.user import User
from portal.schemas.application import ApprovedApplicationRead
from portal.schemas.application_request import (
    ApplicationRequestCreate,
    ApplicationRequestRead,
    ApplicationRequestUpdate,
)
from portal.schemas.identity import Identity
from portal.schemas.message import MessageResponse

router = APIRouter(prefix="/application-requests", tags=["application-requests"])


@router.get("", response_model=list[ApplicationRequestRead])
async def list_requests(
    identity: Identity = Depends(get_identity),
    user: User = Depends(get_current_user),
    service: Any = Depends(get_request_service),
):
    return await service.list_requests(user, include_all=identity.is_admin)


@router.post(
    "", response_model=ApplicationRequestRead, status_code=status.HTTP_201_CREATED
)
async def create_request(
    payload: ApplicationRequestCreate,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_request_service),
):
    return await service.create_request(user, payload)


@router.put(
    "/{request_id}",
    response_model=None,
    dependencies=[Depends(require_admin)],
)
async def update_request(
    request_id: uuid.UUID,
    payload: ApplicationRequestUpdate,
    service: Any = Depends(get_request_service),
) -> ApprovedApplicationRead | ApplicationRequestRead:
    if payload.approve:
        application = await service.approve_request(request_id, payload.admin_notes)
        return ApprovedApplicationRead.model_validate(application)

    request = await service.update_request(request_id, payload)
    return ApplicationRequestRead.model_validate(request)


@router.delete(
    "/{request_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def reject_request(
    request_id: uuid.UUID, service: Any = Depends(get_request_service)
) -> MessageResponse:
    await service.reject_request(request_id)
    return MessageResponse(message="Request rejected")
