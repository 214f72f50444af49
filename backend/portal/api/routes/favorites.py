import uuid
from typing import Any

from fastapi import APIRouter, Depends

from portal.api.deps import get_current_user, get_favorite_service
from portal.models.user import User
from portal.schemas.favorite import FavoriteCreate
from portal.schemas.message import MessageResponse

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=list[uuid.UUID])
async def list_favorites(
    user: User = Depends(get_current_user),
    service: Any = Depends(get_favorite_service),
):
    return await service.list_favorite_ids(user)


@router.post("", response_model=MessageResponse)
async def add_favorite(
    payload: FavoriteCreate,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_favorite_service),
) -> MessageResponse:
    await service.add_favorite(user, payload.application_id)
    return MessageResponse(message="Added to favorites")


@router.delete("", response_model=MessageResponse)
async def remove_favorite(
    application_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: Any = Depends(get_favorite_service),
) -> MessageResponse:
    await service.remove_favorite(user, application_id)
    return MessageResponse(message="Removed from favorites")
