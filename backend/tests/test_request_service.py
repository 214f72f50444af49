import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from portal.models.application import Application, ApplicationDepartment, AuthType
from portal.models.application_request import (
    ApplicationRequest,
    ApplicationRequestDepartment,
    RequestStatus,
)
from portal.schemas.application_request import (
    ApplicationRequestCreate,
    ApplicationRequestUpdate,
)
from portal.services.request_service import RequestService

from factories import add_department, add_user


def _payload(**overrides) -> ApplicationRequestCreate:
    fields = {
        "name": "Foo",
        "description": "A tool",
        "url": "https://foo.example.com",
        "image_url": "https://foo.example.com/logo.png",
        "auth_type": AuthType.oauth,
    }
    fields.update(overrides)
    return ApplicationRequestCreate(**fields)


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


def _fail_nth_commit(monkeypatch, db, n: int) -> None:
    original_commit = db.commit
    calls = 0

    async def commit():
        nonlocal calls
        calls += 1
        if calls == n:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        await original_commit()

    monkeypatch.setattr(db, "commit", commit)


@pytest.mark.asyncio
async def test_create_request_is_pending_with_departments(db_session):
    user = await add_user(db_session)
    finance = await add_department(db_session, "Finance")
    hr = await add_department(db_session, "HR")

    request = await RequestService(db_session).create_request(
        user, _payload(department_ids=[hr.id, finance.id])
    )

    assert request.status == RequestStatus.pending
    assert request.requested_by == user.id
    assert request.requester.email == user.email
    assert [d.name for d in request.departments] == ["Finance", "HR"]


@pytest.mark.asyncio
async def test_create_request_survives_department_failure(db_session):
    user = await add_user(db_session)

    request = await RequestService(db_session).create_request(
        user, _payload(department_ids=[uuid.uuid4()])
    )

    assert request.status == RequestStatus.pending
    assert request.departments == []
    assert await _count(db_session, ApplicationRequest) == 1
    assert await _count(db_session, ApplicationRequestDepartment) == 0


@pytest.mark.asyncio
async def test_create_request_store_failure_is_server_error(db_session, monkeypatch):
    user = await add_user(db_session)
    _fail_nth_commit(monkeypatch, db_session, 1)

    with pytest.raises(HTTPException) as exc_info:
        await RequestService(db_session).create_request(user, _payload())

    assert exc_info.value.status_code == 500
    assert await _count(db_session, ApplicationRequest) == 0


@pytest.mark.asyncio
async def test_list_requests_scopes_non_admins_to_their_own(db_session):
    jane = await add_user(db_session, "jane@example.com")
    john = await add_user(db_session, "john@example.com")
    service = RequestService(db_session)
    mine = await service.create_request(jane, _payload(name="Mine"))
    await service.create_request(john, _payload(name="Theirs"))

    own = await service.list_requests(jane, include_all=False)
    everything = await service.list_requests(jane, include_all=True)

    assert [r.id for r in own] == [mine.id]
    assert {r.name for r in everything} == {"Mine", "Theirs"}


@pytest.mark.asyncio
async def test_update_request_edits_fields_and_departments(db_session):
    user = await add_user(db_session)
    legal = await add_department(db_session, "Legal")
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())

    updated = await service.update_request(
        request.id,
        ApplicationRequestUpdate(
            name="Bar", url=None, admin_notes="Renamed", department_ids=[legal.id]
        ),
    )

    assert updated.name == "Bar"
    assert updated.url == "https://foo.example.com"
    assert updated.admin_notes == "Renamed"
    assert [d.name for d in updated.departments] == ["Legal"]
    assert updated.status == RequestStatus.pending
    assert await _count(db_session, Application) == 0


@pytest.mark.asyncio
async def test_update_request_can_mark_rejected(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())

    updated = await service.update_request(
        request.id, ApplicationRequestUpdate(status=RequestStatus.rejected)
    )

    assert updated.status == RequestStatus.rejected


@pytest.mark.asyncio
async def test_update_request_cannot_set_approved(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())

    with pytest.raises(HTTPException) as exc_info:
        await service.update_request(
            request.id, ApplicationRequestUpdate(status=RequestStatus.approved)
        )

    assert exc_info.value.status_code == 400
    assert (await service.get_request(request.id)).status == RequestStatus.pending


@pytest.mark.asyncio
async def test_update_missing_request_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await RequestService(db_session).update_request(
            uuid.uuid4(), ApplicationRequestUpdate(name="Bar")
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_approve_creates_application_with_copied_departments(db_session):
    user = await add_user(db_session)
    departments = [
        await add_department(db_session, name) for name in ("Finance", "HR", "Ops")
    ]
    service = RequestService(db_session)
    request = await service.create_request(
        user, _payload(department_ids=[d.id for d in departments])
    )

    application = await service.approve_request(request.id, admin_notes="Welcome")

    assert application.name == "Foo"
    assert application.description == "A tool"
    assert application.url == "https://foo.example.com"
    assert application.image_url == "https://foo.example.com/logo.png"
    assert application.auth_type == AuthType.oauth
    assert [d.name for d in application.departments] == ["Finance", "HR", "Ops"]
    assert await _count(db_session, Application) == 1
    assert await _count(db_session, ApplicationDepartment) == 3

    approved = await service.get_request(request.id)
    assert approved.status == RequestStatus.approved
    assert approved.admin_notes == "Welcome"


@pytest.mark.asyncio
async def test_approve_without_notes_keeps_existing_notes(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())
    await service.update_request(
        request.id, ApplicationRequestUpdate(admin_notes="Checked licence")
    )

    await service.approve_request(request.id)

    assert (await service.get_request(request.id)).admin_notes == "Checked licence"


@pytest.mark.asyncio
async def test_approve_missing_request_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await RequestService(db_session).approve_request(uuid.uuid4())

    assert exc_info.value.status_code == 404
    assert await _count(db_session, Application) == 0


@pytest.mark.asyncio
async def test_approve_twice_conflicts_and_creates_one_application(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())
    await service.approve_request(request.id)

    with pytest.raises(HTTPException) as exc_info:
        await service.approve_request(request.id)

    assert exc_info.value.status_code == 409
    assert await _count(db_session, Application) == 1


@pytest.mark.asyncio
async def test_approve_rejected_request_conflicts(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())
    await service.update_request(
        request.id, ApplicationRequestUpdate(status=RequestStatus.rejected)
    )

    with pytest.raises(HTTPException) as exc_info:
        await service.approve_request(request.id)

    assert exc_info.value.status_code == 409
    assert await _count(db_session, Application) == 0


@pytest.mark.asyncio
async def test_concurrent_approval_loses_compare_and_swap(
    db_session, session_factory, monkeypatch
):
    user = await add_user(db_session)
    request = await RequestService(db_session).create_request(user, _payload())

    async with session_factory() as other_session:
        late = RequestService(other_session)
        stale = await late.get_request(request.id)
        assert stale.status == RequestStatus.pending

        await RequestService(db_session).approve_request(request.id)

        # The late approver still believes the request is pending.
        monkeypatch.setattr(late, "get_request", AsyncMock(return_value=stale))
        with pytest.raises(HTTPException) as exc_info:
            await late.approve_request(request.id)

    assert exc_info.value.status_code == 409
    assert await _count(db_session, Application) == 1


@pytest.mark.asyncio
async def test_approve_reflects_edits_saved_just_before(db_session):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload(name="Foo"))

    await service.update_request(request.id, ApplicationRequestUpdate(name="Bar"))
    application = await service.approve_request(request.id)

    assert application.name == "Bar"


@pytest.mark.asyncio
async def test_approve_survives_department_copy_failure(db_session, monkeypatch):
    user = await add_user(db_session)
    finance = await add_department(db_session, "Finance")
    service = RequestService(db_session)
    request = await service.create_request(user, _payload(department_ids=[finance.id]))
    # First commit flips the status; the second copies departments.
    _fail_nth_commit(monkeypatch, db_session, 2)

    application = await service.approve_request(request.id)

    assert application.departments == []
    assert await _count(db_session, Application) == 1
    assert (await service.get_request(request.id)).status == RequestStatus.approved


@pytest.mark.asyncio
async def test_approve_store_failure_rolls_back_application(db_session, monkeypatch):
    user = await add_user(db_session)
    service = RequestService(db_session)
    request = await service.create_request(user, _payload())
    _fail_nth_commit(monkeypatch, db_session, 1)

    with pytest.raises(HTTPException) as exc_info:
        await service.approve_request(request.id)

    assert exc_info.value.status_code == 500
    assert await _count(db_session, Application) == 0
    assert (await service.get_request(request.id)).status == RequestStatus.pending


@pytest.mark.asyncio
async def test_reject_deletes_request_without_application(db_session):
    user = await add_user(db_session)
    finance = await add_department(db_session, "Finance")
    service = RequestService(db_session)
    request = await service.create_request(user, _payload(department_ids=[finance.id]))

    await service.reject_request(request.id)

    assert await service.list_requests(user, include_all=True) == []
    assert await _count(db_session, ApplicationRequestDepartment) == 0
    assert await _count(db_session, Application) == 0


@pytest.mark.asyncio
async def test_reject_missing_request_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await RequestService(db_session).reject_request(uuid.uuid4())

    assert exc_info.value.status_code == 404
