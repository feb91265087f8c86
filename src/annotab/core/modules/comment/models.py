from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from annotab.core.codec import encode_content

Timestamp = int | float | str


class RecordType(StrEnum):
    """Logical variant of a row in the comments table."""

    THREAD = "THREAD"
    REPLY = "REPLY"


class CommentContent(BaseModel):
    """Variable payload of a thread's initial comment or of a reply."""

    author: str
    comment_text: str = Field(..., alias="commentText")
    timestamp: Timestamp

    model_config = ConfigDict(populate_by_name=True)

    def encode(self) -> str:
        return encode_content(self.model_dump(by_alias=True))


class CommentRecord(BaseModel):
    """Flat comments-table row shared by threads and replies."""

    id: str
    type: RecordType
    project_id: str = Field(..., alias="projectId")
    page_url: str = Field(..., alias="pageUrl")
    content: CommentContent
    timestamp: int  # Epoch ms, author supplied
    selector: str = ""  # THREAD only
    status: str = ""  # THREAD only
    parent_id: str = Field("", alias="parentId")  # REPLY only

    model_config = ConfigDict(populate_by_name=True)

    def to_fields(self) -> dict[str, Any]:
        """Convert to row fields, writing only the fields of this variant."""
        fields: dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "type": self.type.value,
            "pageUrl": self.page_url,
            "content": self.content.encode(),
            "timestamp": self.timestamp,
        }
        if self.type == RecordType.THREAD:
            fields["selector"] = self.selector
            fields["status"] = self.status
        else:
            fields["parentId"] = self.parent_id
        return fields


class Reply(BaseModel):
    """Reply as returned to the client."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    reply_id: str = Field(..., serialization_alias="replyId")
    parent_id: str = Field(..., serialization_alias="parentId")
    author: str | None = None
    comment_text: str | None = Field(None, serialization_alias="commentText")
    timestamp: Any = None  # Caller-supplied value, kept as stored


class Thread(BaseModel):
    """Thread with its replies nested, as returned to the client."""

    comment_id: str = Field(..., serialization_alias="commentId")
    page_url: str = Field(..., serialization_alias="pageUrl")
    selector: str = ""
    initial_comment: dict[str, Any] = Field(default_factory=dict, serialization_alias="initialComment")
    status: str = ""
    replies: list[Reply] = Field(default_factory=list)
