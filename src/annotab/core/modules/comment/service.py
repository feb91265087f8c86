import asyncio

import structlog

from annotab import utils
from annotab.core.core import Service
from annotab.core.modules.comment.models import CommentContent, CommentRecord, RecordType, Thread, Timestamp
from annotab.core.modules.comment.tree import build_threads
from annotab.core.store import Record, equals
from annotab.errors import NotFoundError, UpstreamError

logger = structlog.get_logger(__name__)


class CommentService(Service):
    """Manages thread and reply rows of the comments table.

    Lookups by comment id followed by a write are not atomic against other
    processes; the core's keyed lock only serializes them within one process.
    """

    @property
    def table(self) -> str:
        return self.config.lark_table_comments

    async def get_comments(self, project_id: str, page_url: str) -> list[Thread]:
        """Get all threads of a page with their replies, in a single search."""
        records = await self.store.search(self.table, equals(projectId=project_id, pageUrl=page_url))
        return build_threads(records)

    async def create_thread(
        self,
        project_id: str,
        comment_id: str,
        page_url: str,
        selector: str,
        comment_text: str,
        author: str,
        status: str,
        timestamp: Timestamp,
    ) -> None:
        """Create a thread row; the caller guarantees the comment id is unique."""
        record = CommentRecord(
            id=comment_id,
            type=RecordType.THREAD,
            project_id=project_id,
            page_url=page_url,
            selector=selector,
            status=status,
            content=CommentContent(author=author, comment_text=comment_text, timestamp=timestamp),
            timestamp=utils.to_epoch_ms(timestamp),
        )
        await self.store.create(self.table, record.to_fields())
        logger.info("thread_created", project_id=project_id, comment_id=comment_id)

    async def add_reply(
        self,
        project_id: str,
        reply_id: str,
        parent_id: str,
        comment_text: str,
        author: str,
        timestamp: Timestamp,
    ) -> None:
        """Create a reply row under an existing thread, inheriting its page URL."""
        content = CommentContent(author=author, comment_text=comment_text, timestamp=timestamp)
        timestamp_ms = utils.to_epoch_ms(timestamp)

        async with self.core.locks.hold(f"thread:{parent_id}"):
            parent = await self._find_thread(parent_id, "Parent thread not found")
            record = CommentRecord(
                id=reply_id,
                type=RecordType.REPLY,
                project_id=project_id,
                page_url=parent.text("pageUrl"),
                parent_id=parent_id,
                content=content,
                timestamp=timestamp_ms,
            )
            await self.store.create(self.table, record.to_fields())
        logger.info("reply_added", project_id=project_id, reply_id=reply_id, parent_id=parent_id)

    async def update_status(self, comment_id: str, new_status: str) -> None:
        """Set the free-form status of a thread; transitions are not validated."""
        async with self.core.locks.hold(f"thread:{comment_id}"):
            thread = await self._find_thread(comment_id, "Thread not found")
            await self.store.update(self.table, thread.record_id, {"status": new_status})
        logger.info("thread_status_updated", comment_id=comment_id, status=new_status)

    async def delete_thread(self, comment_id: str) -> int:
        """Delete a thread and all its replies, returning the number of rows removed.

        A missing thread or already removed replies are not errors. Every reply
        deletion is attempted concurrently; if any of them fails the whole
        operation fails with UpstreamError once all attempts have finished, and
        running it again completes the cleanup.
        """
        async with self.core.locks.hold(f"thread:{comment_id}"):
            deleted = 0
            threads = await self.store.search(self.table, equals(id=comment_id, type=RecordType.THREAD.value))
            if threads:
                deleted += await self._delete_row(threads[0])

            replies = await self.store.search(self.table, equals(parentId=comment_id, type=RecordType.REPLY.value))
            results = await asyncio.gather(*(self._delete_row(reply) for reply in replies), return_exceptions=True)

        failures = [result for result in results if isinstance(result, BaseException)]
        deleted += sum(result for result in results if isinstance(result, int))
        if failures:
            logger.error(
                "reply_delete_failed", comment_id=comment_id, failed=len(failures), total=len(replies), error=str(failures[0])
            )
            raise UpstreamError(f"Failed to delete {len(failures)} of {len(replies)} replies: {failures[0]}")

        logger.info("thread_deleted", comment_id=comment_id, rows=deleted)
        return deleted

    async def _delete_row(self, record: Record) -> int:
        """Delete one row, treating an already deleted row as done."""
        try:
            await self.store.delete(self.table, record.record_id)
        except NotFoundError:
            logger.debug("row_already_deleted", record_id=record.record_id)
            return 0
        return 1

    async def _find_thread(self, comment_id: str, not_found_message: str) -> Record:
        records = await self.store.search(self.table, equals(id=comment_id, type=RecordType.THREAD.value))
        if not records:
            raise NotFoundError(not_found_message)
        return records[0]
