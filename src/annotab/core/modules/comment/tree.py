"""Reconstruction of thread/reply trees from flat comment rows."""

from collections import defaultdict
from collections.abc import Iterable
from typing import Any

import structlog

from annotab.core.codec import decode_content
from annotab.core.modules.comment.models import RecordType, Reply, Thread
from annotab.core.store import Record
from annotab.errors import CorruptDataError

logger = structlog.get_logger(__name__)


def decode_record_content(record: Record) -> dict[str, Any]:
    """Decode a row's content, reading corrupt blobs as an empty payload."""
    try:
        return decode_content(record.text("content"))
    except CorruptDataError as e:
        logger.warning("content_decode_failed", record_id=record.record_id, id=record.text("id"), error=str(e))
        return {}


def _sort_key(record: Record) -> tuple[int, str]:
    return record.number("timestamp"), record.text("id")


def build_reply(record: Record) -> Reply:
    content = decode_record_content(record)
    return Reply(
        reply_id=record.text("id"),
        parent_id=record.text("parentId"),
        author=content.get("author"),
        comment_text=content.get("commentText"),
        timestamp=content.get("timestamp"),
    )


def build_thread(record: Record, replies: list[Reply]) -> Thread:
    return Thread(
        comment_id=record.text("id"),
        page_url=record.text("pageUrl"),
        selector=record.text("selector"),
        initial_comment=decode_record_content(record),
        status=record.text("status"),
        replies=replies,
    )


def build_threads(records: Iterable[Record]) -> list[Thread]:
    """Join THREAD and REPLY rows into threads with nested replies.

    Two passes: partition rows by type while indexing replies by parent id,
    then attach each thread's replies. Threads and replies are ordered by
    their row timestamp, ties broken by id, so the result does not depend
    on the order the store returned the rows in. Replies whose thread is
    not among the rows are dropped; rows of any other type are ignored.
    """
    thread_rows: list[Record] = []
    replies_by_parent: dict[str, list[Record]] = defaultdict(list)

    for record in records:
        kind = record.text("type")
        if kind == RecordType.THREAD:
            thread_rows.append(record)
        elif kind == RecordType.REPLY:
            replies_by_parent[record.text("parentId")].append(record)

    threads = []
    for row in sorted(thread_rows, key=_sort_key):
        reply_rows = sorted(replies_by_parent.get(row.text("id"), []), key=_sort_key)
        threads.append(build_thread(row, [build_reply(reply) for reply in reply_rows]))
    return threads
