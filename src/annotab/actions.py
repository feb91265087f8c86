"""Logical request protocol: action names, payload models and the response envelope."""

from enum import StrEnum
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from annotab.core.modules.comment.models import Timestamp
from annotab.errors import ValidationError


class Action(StrEnum):
    INIT_PROJECT = "INIT_PROJECT"
    UPDATE_PROJECT_CONFIG = "UPDATE_PROJECT_CONFIG"
    GET_PROJECT_CONFIG = "GET_PROJECT_CONFIG"
    GET_COMMENTS = "GET_COMMENTS"
    CREATE_THREAD = "CREATE_THREAD"
    ADD_REPLY = "ADD_REPLY"
    UPDATE_STATUS = "UPDATE_STATUS"
    DELETE_THREAD = "DELETE_THREAD"


class Payload(BaseModel):
    """Base for action payloads; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InitProjectPayload(Payload):
    project_name: str = Field(..., alias="projectName")
    nickname: str
    pages: list[Any] | None = None


class UpdateProjectConfigPayload(Payload):
    project_id: str = Field(..., alias="projectId", min_length=1)
    config: Any


class GetProjectConfigPayload(Payload):
    project_id: str = Field(..., alias="projectId", min_length=1)


class GetCommentsPayload(Payload):
    project_id: str = Field(..., alias="projectId", min_length=1)
    page_url: str = Field(..., alias="pageUrl")


class CreateThreadPayload(Payload):
    project_id: str = Field(..., alias="projectId", min_length=1)
    comment_id: str = Field(..., alias="commentId", min_length=1)
    page_url: str = Field(..., alias="pageUrl")
    selector: str
    comment_text: str = Field(..., alias="commentText")
    author: str
    status: str
    timestamp: Timestamp


class AddReplyPayload(Payload):
    project_id: str = Field(..., alias="projectId", min_length=1)
    reply_id: str = Field(..., alias="replyId", min_length=1)
    parent_id: str = Field(..., alias="parentId", min_length=1)
    comment_text: str = Field(..., alias="commentText")
    author: str
    timestamp: Timestamp


class UpdateStatusPayload(Payload):
    comment_id: str = Field(..., alias="commentId", min_length=1)
    new_status: str = Field(..., alias="newStatus")


class DeleteThreadPayload(Payload):
    comment_id: str = Field(..., alias="commentId", min_length=1)


class ActionRequest(BaseModel):
    """Request envelope: an action name and its payload."""

    action: str = Field("", description="Action to perform")
    payload: dict[str, Any] = Field(default_factory=dict, description="Action-specific fields")


class ActionResult(BaseModel):
    """Uniform response envelope for every action."""

    success: bool
    data: Any = None
    message: str | None = None


P = TypeVar("P", bound=Payload)


def parse_payload(model: type[P], payload: dict[str, Any]) -> P:
    """Validate a raw payload, converting pydantic errors into ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "payload"
        if error["type"] == "missing":
            raise ValidationError(f"Missing {field}") from e
        raise ValidationError(f"Invalid {field}: {error['msg']}") from e
