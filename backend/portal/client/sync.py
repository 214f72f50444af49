import asyncio
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace

import httpx
import structlog

from portal.client import state as transitions
from portal.client.api import PortalClient, PortalClientError
from portal.client.state import ViewState
from portal.schemas.application import ApplicationRead

logger = structlog.get_logger(__name__)

Notifier = Callable[[str, str], None]
Revert = Callable[[ViewState], ViewState]


def log_notifier(level: str, message: str) -> None:
    if level == "error":
        logger.error("notice", message=message)
    else:
        logger.info("notice", message=message)


class ReorderInProgress(RuntimeError):
    pass


class OptimisticSync:
    """Keeps a user's view state responsive while the server stays authoritative.

    Every mutation applies its new value locally and schedules the persistence
    call as a task. If the call fails, the mutation's own inverse is applied to
    whatever the state is by then and a failure notice is sent. A failed
    favorite or list toggle puts back only its one id. A failed reorder
    restores the previous order exactly when the list is still the one it
    produced, and otherwise sorts the current entries by that previous order.
    """

    def __init__(
        self,
        api: PortalClient,
        notify: Notifier = log_notifier,
        state: ViewState | None = None,
    ):
        self.api = api
        self.notify = notify
        self.state = state or ViewState()
        self._reorder_task: asyncio.Task[bool] | None = None

    async def load(self) -> bool:
        try:
            applications, departments, favorites, personal_list = await asyncio.gather(
                self.api.list_applications(),
                self.api.list_departments(),
                self.api.list_favorites(),
                self.api.list_my_applications(),
            )
        except (PortalClientError, httpx.HTTPError):
            logger.warning("view_state_load_failed", exc_info=True)
            self.notify("error", "Failed to load data")
            return False

        self.state = transitions.hydrate(
            applications, departments, favorites, personal_list
        )
        return True

    def toggle_favorite(self, application_id: uuid.UUID) -> asyncio.Task[bool] | None:
        if self.state.find_application(application_id) is None:
            return None

        was_favorite = self.state.is_favorite(application_id)
        if was_favorite:
            persist = self.api.remove_favorite
            success = "Removed from favorites"
        else:
            persist = self.api.add_favorite
            success = "Added to favorites"

        return self._apply(
            "favorites",
            transitions.toggle_favorite(self.state, application_id),
            lambda current: transitions.set_favorite(
                current, application_id, was_favorite
            ),
            lambda: persist(application_id),
            success,
            "Failed to update favorites",
        )

    def toggle_personal_list(
        self, application_id: uuid.UUID
    ) -> asyncio.Task[bool] | None:
        application = self.state.find_application(application_id)
        if application is None:
            return None

        revert: Revert
        if self.state.in_personal_list(application_id):
            position = self.state.personal_list_ids.index(application_id)
            persist = self.api.remove_my_application
            success = "Removed from My Applications"

            def revert(current: ViewState) -> ViewState:
                return transitions.insert_into_personal_list(
                    current, application, position
                )

        else:
            persist = self.api.add_my_application
            success = "Added to My Applications"

            def revert(current: ViewState) -> ViewState:
                return transitions.remove_from_personal_list(current, application_id)

        return self._apply(
            "personal_list",
            transitions.toggle_personal_list(self.state, application_id),
            revert,
            lambda: persist(application_id),
            success,
            "Failed to update My Applications",
        )

    def reorder_personal_list(
        self, ordered: Sequence[ApplicationRead]
    ) -> asyncio.Task[bool]:
        if self._reorder_task is not None and not self._reorder_task.done():
            raise ReorderInProgress("A reorder is already being saved")

        previous = self.state.personal_list
        next_state = transitions.reorder_personal_list(self.state, ordered)
        produced = next_state.personal_list

        def revert(current: ViewState) -> ViewState:
            if current.personal_list == produced:
                return replace(current, personal_list=previous)
            return transitions.restore_order(current, previous)

        ordered_ids = [application.id for application in ordered]
        self._reorder_task = self._apply(
            "personal_list",
            next_state,
            revert,
            lambda: self.api.reorder_my_applications(ordered_ids),
            "Order updated",
            "Failed to update order",
        )
        return self._reorder_task

    def _apply(
        self,
        field_name: str,
        next_state: ViewState,
        revert: Revert,
        persist: Callable[[], Awaitable[None]],
        success_message: str,
        failure_message: str,
    ) -> asyncio.Task[bool]:
        self.state = replace(
            self.state, **{field_name: getattr(next_state, field_name)}
        )
        return asyncio.get_running_loop().create_task(
            self._commit_or_revert(
                field_name, revert, persist, success_message, failure_message
            )
        )

    async def _commit_or_revert(
        self,
        field_name: str,
        revert: Revert,
        persist: Callable[[], Awaitable[None]],
        success_message: str,
        failure_message: str,
    ) -> bool:
        try:
            await persist()
        except (PortalClientError, httpx.HTTPError):
            logger.warning(
                "optimistic_update_reverted", field=field_name, exc_info=True
            )
            self.state = revert(self.state)
            self.notify("error", failure_message)
            return False

        self.notify("success", success_message)
        return True
