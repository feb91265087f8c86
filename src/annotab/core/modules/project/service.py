from typing import Any

import structlog

from annotab import utils
from annotab.core.codec import decode_config, encode_config
from annotab.core.core import Service
from annotab.core.modules.project.models import Project
from annotab.core.store import Record, equals
from annotab.errors import CorruptDataError, NotFoundError

logger = structlog.get_logger(__name__)


class ProjectService(Service):
    """Manages project rows and their wholesale-replaced config blobs."""

    @property
    def table(self) -> str:
        return self.config.lark_table_projects

    async def init_project(self, name: str, owner: str, pages: list[Any] | None = None) -> Project:
        """Create a project with a fresh id; every call creates a new project."""
        project = Project(
            id=utils.generate_project_id(),
            name=name,
            owner=owner,
            created_at=utils.now_ms(),
            config={"pages": pages or []},
        )
        await self.store.create(self.table, project.to_fields())
        logger.info("project_created", project_id=project.id, owner=owner)
        return project

    async def get_config(self, project_id: str) -> Any:
        """Get the config blob of a project; a corrupt blob reads as empty."""
        record = await self._find_record(project_id)
        try:
            return decode_config(record.text("config"))
        except CorruptDataError:
            logger.exception("project_config_decode_failed", project_id=project_id)
            return {}

    async def set_config(self, project_id: str, config: Any) -> None:
        """Replace the config blob of a project, no merge."""
        async with self.core.locks.hold(f"project:{project_id}"):
            record = await self._find_record(project_id)
            await self.store.update(self.table, record.record_id, {"config": encode_config(config)})
        logger.debug("project_config_updated", project_id=project_id)

    async def _find_record(self, project_id: str) -> Record:
        records = await self.store.search(self.table, equals(id=project_id))
        if not records:
            raise NotFoundError("Project not found")
        if len(records) > 1:
            logger.warning("duplicate_project_rows", project_id=project_id, count=len(records))
        return records[0]
