from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from annotab.core.codec import encode_config


class Project(BaseModel):
    """Annotation project; one row in the projects table."""

    id: str
    name: str = ""
    owner: str = ""
    created_at: int = Field(0, alias="createdAt")  # Epoch ms, set once
    config: Any = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    def to_fields(self) -> dict[str, Any]:
        """Convert the project to flat row fields with the config blob encoded."""
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "createdAt": self.created_at,
            "config": encode_config(self.config),
        }


class InitProjectResult(BaseModel):
    project_id: str = Field(..., serialization_alias="projectId")
    backend_type: str = Field("LARK_PROXY", serialization_alias="backendType")
