import uuid
from typing import Any

from fastapi import APIRouter, Depends, status

from portal.api.deps import get_department_service, get_identity, require_admin
from portal.schemas.department import DepartmentRead, DepartmentWrite
from portal.schemas.message import MessageResponse

router = APIRouter(
    prefix="/departments",
    tags=["departments"],
    dependencies=[Depends(get_identity)],
)


@router.get("", response_model=list[DepartmentRead])
async def list_departments(service: Any = Depends(get_department_service)):
    return await service.list_departments()


@router.post(
    "",
    response_model=DepartmentRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_department(
    payload: DepartmentWrite, service: Any = Depends(get_department_service)
):
    return await service.create_department(payload)


@router.put(
    "/{department_id}",
    response_model=DepartmentRead,
    dependencies=[Depends(require_admin)],
)
async def update_department(
    department_id: uuid.UUID,
    payload: DepartmentWrite,
    service: Any = Depends(get_department_service),
):
    return await service.update_department(department_id, payload)


@router.delete(
    "/{department_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_department(
    department_id: uuid.UUID, service: Any = Depends(get_department_service)
) -> MessageResponse:
    await service.delete_department(department_id)
    return MessageResponse(message="Department deleted")
