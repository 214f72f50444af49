import uuid
from collections.abc import Sequence
from typing import Any

import httpx

from portal.schemas.application import ApplicationRead, ApprovedApplicationRead
from portal.schemas.application_request import ApplicationRequestRead
from portal.schemas.department import DepartmentRead
from portal.schemas.identity import Identity


class PortalClientError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class PortalClient:
    """Async wrapper around the directory's ``/api`` endpoints."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @classmethod
    def connect(
        cls, base_url: str, session_token: str, **kwargs: Any
    ) -> "PortalClient":
        return cls(
            httpx.AsyncClient(
                base_url=base_url,
                headers={"Authorization": f"Bearer {session_token}"},
                **kwargs,
            )
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def read_session(self) -> Identity:
        return Identity.model_validate(await self._request("GET", "/api/session"))

    async def list_applications(self) -> list[ApplicationRead]:
        data = await self._request("GET", "/api/applications")
        return [ApplicationRead.model_validate(item) for item in data]

    async def list_departments(self) -> list[DepartmentRead]:
        data = await self._request("GET", "/api/departments")
        return [DepartmentRead.model_validate(item) for item in data]

    async def list_favorites(self) -> list[uuid.UUID]:
        data = await self._request("GET", "/api/favorites")
        return [uuid.UUID(item) for item in data]

    async def add_favorite(self, application_id: uuid.UUID) -> None:
        await self._request(
            "POST", "/api/favorites", json={"application_id": str(application_id)}
        )

    async def remove_favorite(self, application_id: uuid.UUID) -> None:
        await self._request(
            "DELETE",
            "/api/favorites",
            params={"application_id": str(application_id)},
        )

    async def list_my_applications(self) -> list[ApplicationRead]:
        data = await self._request("GET", "/api/my-applications")
        return [ApplicationRead.model_validate(item) for item in data]

    async def add_my_application(self, application_id: uuid.UUID) -> None:
        await self._request(
            "POST",
            "/api/my-applications",
            json={"application_id": str(application_id)},
        )

    async def remove_my_application(self, application_id: uuid.UUID) -> None:
        await self._request(
            "DELETE",
            "/api/my-applications",
            params={"application_id": str(application_id)},
        )

    async def reorder_my_applications(
        self, ordered_application_ids: Sequence[uuid.UUID]
    ) -> None:
        await self._request(
            "PUT",
            "/api/my-applications/reorder",
            json={
                "ordered_application_ids": [
                    str(application_id) for application_id in ordered_application_ids
                ]
            },
        )

    async def list_requests(self) -> list[ApplicationRequestRead]:
        data = await self._request("GET", "/api/application-requests")
        return [ApplicationRequestRead.model_validate(item) for item in data]

    async def create_request(self, **fields: Any) -> ApplicationRequestRead:
        data = await self._request(
            "POST", "/api/application-requests", json=_jsonable(fields)
        )
        return ApplicationRequestRead.model_validate(data)

    async def update_request(
        self, request_id: uuid.UUID, **fields: Any
    ) -> ApplicationRequestRead:
        data = await self._request(
            "PUT", f"/api/application-requests/{request_id}", json=_jsonable(fields)
        )
        return ApplicationRequestRead.model_validate(data)

    async def approve_request(
        self, request_id: uuid.UUID, admin_notes: str | None = None
    ) -> ApprovedApplicationRead:
        body: dict[str, Any] = {"approve": True}
        if admin_notes is not None:
            body["admin_notes"] = admin_notes
        data = await self._request(
            "PUT", f"/api/application-requests/{request_id}", json=body
        )
        return ApprovedApplicationRead.model_validate(data)

    async def edit_and_approve_request(
        self, request_id: uuid.UUID, admin_notes: str | None = None, **fields: Any
    ) -> ApprovedApplicationRead:
        """Save edits to a pending request, then approve the edited version."""
        await self.update_request(request_id, **fields)
        return await self.approve_request(request_id, admin_notes)

    async def reject_request(self, request_id: uuid.UUID) -> None:
        await self._request("DELETE", f"/api/application-requests/{request_id}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self.http.request(method, url, **kwargs)
        if not response.is_success:
            raise PortalClientError(response.status_code, _error_detail(response))
        return response.json()


def _jsonable(fields: dict[str, Any]) -> dict[str, Any]:
    body = dict(fields)
    if "department_ids" in body:
        body["department_ids"] = [str(item) for item in body["department_ids"]]
    return body


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = data.get("detail") if isinstance(data, dict) else data
    return detail if isinstance(detail, str) else str(detail)
