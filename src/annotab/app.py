from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog

from annotab.actions import (
    Action,
    ActionResult,
    AddReplyPayload,
    CreateThreadPayload,
    DeleteThreadPayload,
    GetCommentsPayload,
    GetProjectConfigPayload,
    InitProjectPayload,
    UpdateProjectConfigPayload,
    UpdateStatusPayload,
    parse_payload,
)
from annotab.config import Config
from annotab.core.core import Core
from annotab.core.modules.project.models import InitProjectResult
from annotab.core.store import RecordStore
from annotab.errors import ValidationError

logger = structlog.get_logger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[ActionResult]]


class App:
    """Facade for all actions, checks deployment config and validates payloads before delegating to Core."""

    def __init__(self, config: Config, store: RecordStore | None = None) -> None:
        self._core = Core(config, store)
        self._handlers: dict[str, Handler] = {
            Action.INIT_PROJECT: self.init_project,
            Action.UPDATE_PROJECT_CONFIG: self.update_project_config,
            Action.GET_PROJECT_CONFIG: self.get_project_config,
            Action.GET_COMMENTS: self.get_comments,
            Action.CREATE_THREAD: self.create_thread,
            Action.ADD_REPLY: self.add_reply,
            Action.UPDATE_STATUS: self.update_status,
            Action.DELETE_THREAD: self.delete_thread,
        }

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def dispatch(self, action: str, payload: dict[str, Any] | None = None) -> ActionResult:
        """Run one action. Raises ConfigError before anything else if the deployment is incomplete."""
        self._core.config.ensure_lark_configured()
        handler = self._handlers.get(action)
        if handler is None:
            raise ValidationError(f"Unknown action: {action}")
        logger.debug("action_dispatched", action=action)
        return await handler(payload or {})

    async def init_project(self, payload: dict[str, Any]) -> ActionResult:
        """Create a project and return its generated id."""
        request = parse_payload(InitProjectPayload, payload)
        project = await self._core.services.project.init_project(request.project_name, request.nickname, request.pages)
        result = InitProjectResult(project_id=project.id)
        return ActionResult(success=True, data=result.model_dump(by_alias=True))

    async def update_project_config(self, payload: dict[str, Any]) -> ActionResult:
        """Replace a project's config wholesale."""
        request = parse_payload(UpdateProjectConfigPayload, payload)
        await self._core.services.project.set_config(request.project_id, request.config)
        return ActionResult(success=True, message="Config updated")

    async def get_project_config(self, payload: dict[str, Any]) -> ActionResult:
        request = parse_payload(GetProjectConfigPayload, payload)
        config = await self._core.services.project.get_config(request.project_id)
        return ActionResult(success=True, data=config)

    async def get_comments(self, payload: dict[str, Any]) -> ActionResult:
        """Get the threads of one page with nested replies."""
        request = parse_payload(GetCommentsPayload, payload)
        threads = await self._core.services.comment.get_comments(request.project_id, request.page_url)
        return ActionResult(success=True, data=[thread.model_dump(by_alias=True) for thread in threads])

    async def create_thread(self, payload: dict[str, Any]) -> ActionResult:
        request = parse_payload(CreateThreadPayload, payload)
        await self._core.services.comment.create_thread(
            request.project_id,
            request.comment_id,
            request.page_url,
            request.selector,
            request.comment_text,
            request.author,
            request.status,
            request.timestamp,
        )
        return ActionResult(success=True, message="Thread created")

    async def add_reply(self, payload: dict[str, Any]) -> ActionResult:
        request = parse_payload(AddReplyPayload, payload)
        await self._core.services.comment.add_reply(
            request.project_id,
            request.reply_id,
            request.parent_id,
            request.comment_text,
            request.author,
            request.timestamp,
        )
        return ActionResult(success=True, message="Reply added")

    async def update_status(self, payload: dict[str, Any]) -> ActionResult:
        request = parse_payload(UpdateStatusPayload, payload)
        await self._core.services.comment.update_status(request.comment_id, request.new_status)
        return ActionResult(success=True, message="Status updated")

    async def delete_thread(self, payload: dict[str, Any]) -> ActionResult:
        """Delete a thread and its replies; deleting an absent thread succeeds."""
        request = parse_payload(DeleteThreadPayload, payload)
        await self._core.services.comment.delete_thread(request.comment_id)
        return ActionResult(success=True, message="Thread deleted")
