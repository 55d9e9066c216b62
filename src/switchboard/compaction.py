"""Conversation compaction for Switchboard.

When a channel's history grows, everything older than the most recent
``keep_recent`` messages is rolled up into summaries. The raw messages are
archived first so the rollup can be audited or undone, then the summary is
stored. Context consumers rebuild "prior summaries + recent messages"
instead of reading the full log.

The log is append-only, so the stored summaries are the watermark: the sum
of their ``turns_covered`` is how many of the channel's oldest messages are
already rolled up. Each pass covers only messages past that point, in pages
of at most ``window`` messages, one summary per page.

Summarization is pluggable: any callable that turns a list of messages
into text. Without one, or when it fails, a deterministic extractive
summary is used.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from switchboard.logging import get_logger
from switchboard.models import ConversationContext, ConversationMessage, MessageRole

if TYPE_CHECKING:
    from switchboard.conversation import ConversationStore

log = get_logger("compaction")

Summarizer = Callable[[list[ConversationMessage]], str]

DEFAULT_KEEP_RECENT = 20
DEFAULT_WINDOW = 200
TOPIC_PREVIEW_CHARS = 150


@dataclass
class CompactionResult:
    """Outcome of one compaction pass."""

    channel_id: str
    compacted: bool
    turns_covered: int = 0
    summaries: list[str] = field(default_factory=list)
    used_fallback: bool = False


def render_transcript(messages: list[ConversationMessage]) -> str:
    """Serialize messages as a JSON array for archival."""
    return json.dumps([message.model_dump(mode="json") for message in messages])


def fallback_summary(messages: list[ConversationMessage]) -> str:
    """Create a basic summary without a summarizer."""
    parts = ["Earlier in this conversation:"]

    user_messages = [m for m in messages if m.role is MessageRole.USER]
    assistant_count = len(messages) - len(user_messages)
    parts.append(f"[{len(user_messages)} user messages, {assistant_count} assistant responses summarized]")

    senders = sorted({m.sender_name for m in user_messages if m.sender_name})
    if senders:
        parts.append(f"Participants: {', '.join(senders)}")

    # First and last user messages for context
    if user_messages:
        parts.append(f"First topic: {user_messages[0].content[:TOPIC_PREVIEW_CHARS]}")
        if len(user_messages) > 1:
            parts.append(f"Last topic before this: {user_messages[-1].content[:TOPIC_PREVIEW_CHARS]}")

    return "\n".join(parts)


class Compactor:
    """Rolls up old channel history into stored summaries."""

    def __init__(
        self,
        store: "ConversationStore",
        summarizer: Summarizer | None = None,
        keep_recent: int = DEFAULT_KEEP_RECENT,
        window: int = DEFAULT_WINDOW,
    ) -> None:
        """Initialize the compactor.

        Args:
            store: Conversation store to read from and write to.
            summarizer: Optional callable producing summary text.
            keep_recent: Most recent messages never rolled up.
            window: Most messages rolled into a single summary.
        """
        if keep_recent < 1 or window <= keep_recent:
            raise ValueError("compaction requires 1 <= keep_recent < window")
        self.store = store
        self.summarizer = summarizer
        self.keep_recent = keep_recent
        self.window = window

    def compact(self, channel_id: str) -> CompactionResult:
        """Roll up every message past the watermark except the last keep_recent.

        A pass with nothing new to cover writes nothing. The archive and
        summary writes are fire-and-forget, like every other store write,
        so the next pass on the same channel sees this one's watermark
        only after those writes land (``store.drain``).
        """
        covered = sum(s.turns_covered for s in self.store.load_compaction_summaries(channel_id))
        end = self.store.count_messages(channel_id) - self.keep_recent
        if end <= covered:
            return CompactionResult(channel_id=channel_id, compacted=False)

        result = CompactionResult(channel_id=channel_id, compacted=True)
        offset = covered
        while offset < end:
            page = self.store.load_history(channel_id, offset, min(self.window, end - offset))
            if not page:
                break

            # Archive before the summary replaces these turns
            self.store.archive_transcript(channel_id, render_transcript(page))

            summary, used_fallback = self._summarize(channel_id, page)
            self.store.save_compaction_summary(channel_id, summary, len(page))

            result.summaries.append(summary)
            result.used_fallback = result.used_fallback or used_fallback
            offset += len(page)

        result.turns_covered = offset - covered
        result.compacted = bool(result.summaries)
        log.info(
            "compaction_complete",
            channel_id=channel_id,
            turns_covered=result.turns_covered,
            summaries=len(result.summaries),
            kept=self.keep_recent,
            used_fallback=result.used_fallback,
        )
        return result

    def _summarize(self, channel_id: str, messages: list[ConversationMessage]) -> tuple[str, bool]:
        if self.summarizer is None:
            return fallback_summary(messages), True
        try:
            summary = self.summarizer(messages).strip()
        except Exception as e:
            log.error("compaction_summarizer_failed", channel_id=channel_id, error=str(e))
            return fallback_summary(messages), True
        if not summary:
            return fallback_summary(messages), True
        return summary, False

    def build_context(self, channel_id: str, limit: int | None = None) -> ConversationContext:
        """Prior summaries plus the most recent messages, both oldest first."""
        return ConversationContext(
            channel_id=channel_id,
            summaries=self.store.load_compaction_summaries(channel_id),
            messages=self.store.load_recent(channel_id, self.keep_recent if limit is None else limit),
        )
