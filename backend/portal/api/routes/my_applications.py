import uuid
from typing import Any

from fastapi import APIRouter, Depends

from portal.api.deps import get_current_user, get_my_applications_service
from portal.models.user import User
from portal.schemas.application import ApplicationRead
from portal.schemas.message import MessageResponse
from portal.schemas.my_applications import MyApplicationCreate, ReorderRequest

router = APIRouter(prefix="/my-applications", tags=["my-applications"])


@router.get("", response_model=list[ApplicationRead])
async def list_my_applications(
    user: User = Depends(get_current_user),
    service: Any = Depends(get_my_applications_service),
):
    return await service.list_applications(user)


@router.post("", response_model=MessageResponse)
async def add_my_application(
    payload: MyApplicationCreate,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_my_applications_service),
) -> MessageResponse:
    await service.add_application(user, payload.application_id)
    return MessageResponse(message="Added to your applications")


@router.delete("", response_model=MessageResponse)
async def remove_my_application(
    application_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_my_applications_service),
) -> MessageResponse:
    await service.remove_application(user, application_id)
    return MessageResponse(message="Removed from your applications")


@router.put("/reorder", response_model=MessageResponse)
async def reorder_my_applications(
    payload: ReorderRequest,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_my_applications_service),
) -> MessageResponse:
    await service.reorder(user, payload.ordered_application_ids)
    return MessageResponse(message="Order updated")
