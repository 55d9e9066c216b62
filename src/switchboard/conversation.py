"""Conversation message persistence for Switchboard.

Persists user and assistant messages, compaction summaries, and raw
transcript archives, all keyed by channel id.

All write methods are fire-and-forget: they hand the INSERT to a shared
worker pool and return immediately, so message ingestion never stalls on
storage latency. A failed write is logged and dropped (no retry, no
backpressure). A write still queued when the process exits is lost.

Reads block until the database answers and raise StoreError on failure.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from switchboard.database import (
    compaction_summaries,
    conversation_archives,
    conversation_messages,
    generate_id,
)
from switchboard.errors import StoreError
from switchboard.logging import get_logger
from switchboard.models import (
    ChannelInfo,
    CompactionSummary,
    ConversationArchive,
    ConversationMessage,
    MessageRole,
    channel_name_from_metadata,
    row_to_model,
    utcnow,
)

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Engine

log = get_logger("conversation")


class ConversationStore:
    """Append-only conversation log backed by SQLite.

    Writes go through a ThreadPoolExecutor shared by every write method;
    reads use the same engine (and therefore the same connection pool)
    synchronously.
    """

    def __init__(self, engine: Engine, max_workers: int = 4) -> None:
        """Initialize the store.

        Args:
            engine: SQLAlchemy database engine.
            max_workers: Size of the background write pool.
        """
        self.engine = engine
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="conversation-writer",
        )
        self._pending: set[Future] = set()
        self._pending_lock = threading.Lock()

    # =========================================================================
    # Writes (fire-and-forget)
    # =========================================================================

    def append_user_message(
        self,
        channel_id: str,
        sender_name: str,
        sender_id: str,
        content: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a user message. Fire-and-forget."""
        self._submit(
            "append_user_message",
            conversation_messages,
            {
                "id": generate_id(),
                "channel_id": channel_id,
                "role": MessageRole.USER.value,
                "sender_name": sender_name,
                "sender_id": sender_id,
                "content": content,
                "metadata": dict(metadata or {}),
                "created_at": utcnow(),
            },
        )

    def append_bot_message(self, channel_id: str, content: str) -> None:
        """Log an assistant message. Fire-and-forget."""
        self._submit(
            "append_bot_message",
            conversation_messages,
            {
                "id": generate_id(),
                "channel_id": channel_id,
                "role": MessageRole.ASSISTANT.value,
                "content": content,
                "metadata": None,
                "created_at": utcnow(),
            },
        )

    def save_compaction_summary(
        self,
        channel_id: str,
        summary: str,
        turns_covered: int,
    ) -> None:
        """Save a compaction summary. Fire-and-forget."""
        self._submit(
            "save_compaction_summary",
            compaction_summaries,
            {
                "id": generate_id(),
                "channel_id": channel_id,
                "summary": summary,
                "turns_covered": int(turns_covered),
                "created_at": utcnow(),
            },
        )

    def archive_transcript(self, channel_id: str, transcript: str) -> None:
        """Archive a raw transcript before compaction. Fire-and-forget."""
        self._submit(
            "archive_transcript",
            conversation_archives,
            {
                "id": generate_id(),
                "channel_id": channel_id,
                "transcript": transcript,
                "created_at": utcnow(),
            },
        )

    def _submit(self, operation: str, table: Table, values: dict[str, Any]) -> None:
        try:
            future = self._executor.submit(self._write, operation, table, values)
        except RuntimeError as e:
            # Pool already shut down
            log.warning(
                "conversation_write_failed",
                operation=operation,
                channel_id=values["channel_id"],
                error=str(e),
            )
            return

        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _write(self, operation: str, table: Table, values: dict[str, Any]) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(table.insert().values(**values))
        except Exception as e:
            log.warning(
                "conversation_write_failed",
                operation=operation,
                channel_id=values["channel_id"],
                error=str(e),
            )
            return

        log.debug("conversation_write_complete", operation=operation, channel_id=values["channel_id"])

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for writes submitted so far to finish.

        Intended for shutdown and tests. Says nothing about whether any
        individual write succeeded.

        Returns:
            True if every pending write finished within the timeout.
        """
        with self._pending_lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def close(self, wait: bool = True) -> None:
        """Shut down the write pool. Later writes are logged and dropped."""
        self._executor.shutdown(wait=wait)

    # =========================================================================
    # Reads
    # =========================================================================

    def load_recent(self, channel_id: str, limit: int) -> list[ConversationMessage]:
        """Load recent messages for a channel (oldest first).

        Args:
            channel_id: Channel to read.
            limit: Maximum number of messages.

        Returns:
            At most ``limit`` messages in ascending created_at order.

        Raises:
            StoreError: If the database read fails.
        """
        return self._load_messages(channel_id, limit)

    def load_channel_transcript(self, channel_id: str, limit: int) -> list[ConversationMessage]:
        """Load recent messages from any channel, not just the active one.

        Same contract as ``load_recent``; used for cross-channel inspection.
        """
        return self._load_messages(channel_id, limit)

    def _load_messages(self, channel_id: str, limit: int) -> list[ConversationMessage]:
        if limit <= 0:
            return []

        c = conversation_messages.c
        stmt = (
            select(conversation_messages)
            .where(c.channel_id == channel_id)
            .order_by(c.created_at.desc(), c.id.desc())
            .limit(limit)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to load messages for {channel_id}") from e

        messages = [row_to_model(row, ConversationMessage) for row in rows]
        # Reverse to chronological order
        messages.reverse()
        return messages

    def load_history(self, channel_id: str, offset: int, limit: int) -> list[ConversationMessage]:
        """Load messages counted from the start of a channel (oldest first).

        Args:
            channel_id: Channel to read.
            offset: Number of oldest messages to skip.
            limit: Maximum number of messages.

        Raises:
            StoreError: If the database read fails.
        """
        if limit <= 0:
            return []

        c = conversation_messages.c
        stmt = (
            select(conversation_messages)
            .where(c.channel_id == channel_id)
            .order_by(c.created_at.asc(), c.id.asc())
            .offset(max(offset, 0))
            .limit(limit)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to load history for {channel_id}") from e

        return [row_to_model(row, ConversationMessage) for row in rows]

    def count_messages(self, channel_id: str) -> int:
        """Number of messages stored for a channel."""
        stmt = select(func.count()).select_from(conversation_messages).where(
            conversation_messages.c.channel_id == channel_id
        )
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to count messages for {channel_id}") from e

    def load_compaction_summaries(self, channel_id: str) -> list[CompactionSummary]:
        """Load all compaction summaries for a channel (oldest first)."""
        c = compaction_summaries.c
        stmt = (
            select(compaction_summaries)
            .where(c.channel_id == channel_id)
            .order_by(c.created_at.asc(), c.id.asc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to load compaction summaries for {channel_id}") from e

        return [row_to_model(row, CompactionSummary) for row in rows]

    def load_archives(self, channel_id: str) -> list[ConversationArchive]:
        """Load archived transcripts for a channel (oldest first)."""
        c = conversation_archives.c
        stmt = (
            select(conversation_archives)
            .where(c.channel_id == channel_id)
            .order_by(c.created_at.asc(), c.id.asc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to load archives for {channel_id}") from e

        return [row_to_model(row, ConversationArchive) for row in rows]

    def list_channels(self) -> list[ChannelInfo]:
        """List all known channels with their names and last activity.

        Channel names come from the ``discord_channel_name`` field of the
        most recent message carrying metadata. Returns most recently active
        channels first, ties broken by channel id.

        The aggregate and the per-channel name lookup run as one statement,
        so the result reflects a single point in time.
        """
        outer = conversation_messages.alias("m")
        latest = conversation_messages.alias("latest")

        latest_metadata = (
            select(latest.c.metadata)
            .where(
                latest.c.channel_id == outer.c.channel_id,
                latest.c.metadata.is_not(None),
            )
            .order_by(latest.c.created_at.desc(), latest.c.id.desc())
            .limit(1)
            .correlate(outer)
            .scalar_subquery()
        )
        last_activity = func.max(outer.c.created_at).label("last_activity")

        stmt = (
            select(
                outer.c.channel_id,
                last_activity,
                func.count().label("message_count"),
                latest_metadata.label("latest_metadata"),
            )
            .group_by(outer.c.channel_id)
            .order_by(last_activity.desc(), outer.c.channel_id.asc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise StoreError("failed to list channels") from e

        return [
            ChannelInfo(
                channel_id=row.channel_id,
                channel_name=channel_name_from_metadata(row.latest_metadata),
                last_activity=row.last_activity,
                message_count=row.message_count,
            )
            for row in rows
        ]

    def resolve_channel_name(self, channel_id: str) -> str | None:
        """Resolve a channel name from the most recent message metadata.

        Only the newest message with non-null metadata is consulted; if it
        lacks ``discord_channel_name`` the channel has no name.
        """
        c = conversation_messages.c
        stmt = (
            select(c.metadata)
            .where(c.channel_id == channel_id, c.metadata.is_not(None))
            .order_by(c.created_at.desc(), c.id.desc())
            .limit(1)
        )
        try:
            with self.engine.connect() as conn:
                metadata = conn.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"failed to resolve channel name for {channel_id}") from e

        return channel_name_from_metadata(metadata)
