"""Client-side view state and the pure transitions applied to it.

Each transition returns a new ``ViewState`` and leaves its input untouched.
Rolling back a failed mutation is itself a transition on the current state
(for example ``set_favorite`` with the old membership), so other mutations
made while the call was in flight survive.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from portal.schemas.application import ApplicationRead
from portal.schemas.department import DepartmentRead


@dataclass(frozen=True)
class ViewState:
    applications: tuple[ApplicationRead, ...] = ()
    departments: tuple[DepartmentRead, ...] = ()
    favorites: frozenset[uuid.UUID] = field(default_factory=frozenset)
    personal_list: tuple[ApplicationRead, ...] = ()

    def find_application(self, application_id: uuid.UUID) -> ApplicationRead | None:
        for application in self.applications:
            if application.id == application_id:
                return application
        return None

    def is_favorite(self, application_id: uuid.UUID) -> bool:
        return application_id in self.favorites

    def in_personal_list(self, application_id: uuid.UUID) -> bool:
        return any(app.id == application_id for app in self.personal_list)

    @property
    def personal_list_ids(self) -> list[uuid.UUID]:
        return [app.id for app in self.personal_list]


def hydrate(
    applications: Iterable[ApplicationRead],
    departments: Iterable[DepartmentRead],
    favorites: Iterable[uuid.UUID],
    personal_list: Iterable[ApplicationRead],
) -> ViewState:
    return ViewState(
        applications=tuple(applications),
        departments=tuple(departments),
        favorites=frozenset(favorites),
        personal_list=tuple(personal_list),
    )


def toggle_favorite(state: ViewState, application_id: uuid.UUID) -> ViewState:
    return set_favorite(state, application_id, not state.is_favorite(application_id))


def toggle_personal_list(state: ViewState, application_id: uuid.UUID) -> ViewState:
    if state.in_personal_list(application_id):
        return remove_from_personal_list(state, application_id)

    application = state.find_application(application_id)
    if application is None:
        return state
    return replace(state, personal_list=state.personal_list + (application,))


def reorder_personal_list(
    state: ViewState, ordered: Iterable[ApplicationRead]
) -> ViewState:
    return replace(state, personal_list=tuple(ordered))


def set_favorite(
    state: ViewState, application_id: uuid.UUID, present: bool
) -> ViewState:
    if present:
        return replace(state, favorites=state.favorites | {application_id})
    return replace(state, favorites=state.favorites - {application_id})


def remove_from_personal_list(
    state: ViewState, application_id: uuid.UUID
) -> ViewState:
    return replace(
        state,
        personal_list=tuple(
            app for app in state.personal_list if app.id != application_id
        ),
    )


def insert_into_personal_list(
    state: ViewState, application: ApplicationRead, index: int
) -> ViewState:
    """Put ``application`` back at ``index``, clamped to the current length."""
    if state.in_personal_list(application.id):
        return state
    entries = list(state.personal_list)
    entries.insert(min(max(index, 0), len(entries)), application)
    return replace(state, personal_list=tuple(entries))


def restore_order(
    state: ViewState, previous: Iterable[ApplicationRead]
) -> ViewState:
    """Sort the current personal list by the relative order of ``previous``.

    Entries unknown to ``previous`` keep their current order and go last.
    """
    rank = {app.id: position for position, app in enumerate(previous)}
    known = sorted(
        (app for app in state.personal_list if app.id in rank),
        key=lambda app: rank[app.id],
    )
    unknown = [app for app in state.personal_list if app.id not in rank]
    return replace(state, personal_list=tuple(known + unknown))
