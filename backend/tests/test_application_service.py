import uuid

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from portal.models.application import Application, AuthType
from portal.models.user_favorite import UserFavorite
from portal.schemas.application import ApplicationCreate, ApplicationUpdate
from portal.services.application_service import ApplicationService

from factories import add_application, add_department, add_user


@pytest.mark.asyncio
async def test_list_applications_orders_by_name_with_departments(db_session):
    finance = await add_department(db_session, "Finance")
    await add_application(db_session, "Zendesk")
    await add_application(db_session, "Expenses", departments=(finance,))

    applications = await ApplicationService(db_session).list_applications()

    assert [a.name for a in applications] == ["Expenses", "Zendesk"]
    assert [d.name for d in applications[0].departments] == ["Finance"]
    assert applications[1].departments == []


@pytest.mark.asyncio
async def test_get_missing_application_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await ApplicationService(db_session).get_application(uuid.uuid4())

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_application_with_departments(db_session):
    finance = await add_department(db_session, "Finance")
    hr = await add_department(db_session, "HR")

    application = await ApplicationService(db_session).create_application(
        ApplicationCreate(
            name="Payroll",
            url="https://payroll.example.com",
            auth_type=AuthType.username_password,
            department_ids=[hr.id, finance.id, hr.id],
        )
    )

    assert application.name == "Payroll"
    assert [d.name for d in application.departments] == ["Finance", "HR"]


@pytest.mark.asyncio
async def test_create_application_with_unknown_department_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await ApplicationService(db_session).create_application(
            ApplicationCreate(
                name="Payroll",
                url="https://payroll.example.com",
                auth_type=AuthType.sso,
                department_ids=[uuid.uuid4()],
            )
        )

    assert exc_info.value.status_code == 400
    count = await db_session.scalar(select(func.count()).select_from(Application))
    assert count == 0


@pytest.mark.asyncio
async def test_update_application_changes_fields_and_keeps_departments(db_session):
    finance = await add_department(db_session, "Finance")
    application = await add_application(db_session, "Ledger", departments=(finance,))

    updated = await ApplicationService(db_session).update_application(
        application.id,
        ApplicationUpdate(name="General Ledger", description="Books", url=None),
    )

    assert updated.name == "General Ledger"
    assert updated.description == "Books"
    assert updated.url == "https://ledger.example.com"
    assert [d.name for d in updated.departments] == ["Finance"]


@pytest.mark.asyncio
async def test_update_application_replaces_or_clears_departments(db_session):
    finance = await add_department(db_session, "Finance")
    legal = await add_department(db_session, "Legal")
    application = await add_application(db_session, "Ledger", departments=(finance,))
    service = ApplicationService(db_session)

    replaced = await service.update_application(
        application.id, ApplicationUpdate(department_ids=[legal.id])
    )
    assert [d.name for d in replaced.departments] == ["Legal"]

    cleared = await service.update_application(
        application.id, ApplicationUpdate(department_ids=[])
    )
    assert cleared.departments == []


@pytest.mark.asyncio
async def test_delete_application_removes_favorites(db_session):
    user = await add_user(db_session)
    application = await add_application(db_session, "Ledger")
    db_session.add(UserFavorite(user_id=user.id, application_id=application.id))
    await db_session.commit()
    service = ApplicationService(db_session)

    await service.delete_application(application.id)

    assert await service.load_application(application.id) is None
    count = await db_session.scalar(select(func.count()).select_from(UserFavorite))
    assert count == 0


@pytest.mark.asyncio
async def test_delete_missing_application_is_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await ApplicationService(db_session).delete_application(uuid.uuid4())

    assert exc_info.value.status_code == 404
