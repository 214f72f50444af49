from fastapi import APIRouter, Depends

from portal.api.deps import get_identity
from portal.schemas.identity import Identity

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=Identity)
async def read_session(identity: Identity = Depends(get_identity)) -> Identity:
    return identity
