"""Pydantic models for Switchboard entities.

These models bridge between the database (SQLAlchemy Core) and application code,
providing validation and serialization.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from ulid import ULID

CHANNEL_NAME_KEY = "discord_channel_name"


# =============================================================================
# Enums
# =============================================================================


class MessageRole(str, Enum):
    """Who produced a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


# =============================================================================
# Helper Functions
# =============================================================================


def generate_id() -> str:
    """Generate a new ULID for entities."""
    return str(ULID())


def utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def channel_name_from_metadata(metadata: Any) -> str | None:
    """Extract the channel display name from a metadata document."""
    if not isinstance(metadata, Mapping):
        return None
    name = metadata.get(CHANNEL_NAME_KEY)
    return name if isinstance(name, str) else None


class _Record(BaseModel):
    """Base for persisted, immutable log records."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    channel_id: str
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("id")
    @classmethod
    def validate_ulid(cls, v: str) -> str:
        """Validate ULID format."""
        try:
            ULID.from_str(v)
        except ValueError:
            raise ValueError(f"Invalid ULID: {v}")
        return v

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


# =============================================================================
# Conversation Models
# =============================================================================


class ConversationMessage(_Record):
    """A persisted conversation message (user or assistant)."""

    role: MessageRole
    sender_name: str | None = None
    sender_id: str | None = None
    content: str
    metadata: dict[str, Any] | None = None

    @property
    def channel_name(self) -> str | None:
        """Human-readable channel label carried in metadata, if any."""
        return channel_name_from_metadata(self.metadata)


class CompactionSummary(_Record):
    """A stored rollup of a prefix of a channel's history."""

    summary: str
    turns_covered: int


class ConversationArchive(_Record):
    """Raw transcript preserved before compaction rolled it up."""

    transcript: str


class ChannelInfo(BaseModel):
    """A known channel with its display name and last activity.

    Derived by aggregating conversation_messages; never stored.
    """

    channel_id: str
    # The most recent discord_channel_name from metadata, if available.
    channel_name: str | None = None
    last_activity: datetime
    message_count: int

    @field_validator("last_activity")
    @classmethod
    def validate_last_activity(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ConversationContext(BaseModel):
    """What a context-window consumer sees for one channel.

    Prior summaries (oldest first) stand in for rolled-up history; the
    recent messages (oldest first) follow them.
    """

    channel_id: str
    summaries: list[CompactionSummary] = Field(default_factory=list)
    messages: list[ConversationMessage] = Field(default_factory=list)


# =============================================================================
# Conversion Helpers
# =============================================================================


T = TypeVar("T", bound=BaseModel)


def row_to_model(row, model_class: type[T]) -> T:
    """Convert SQLAlchemy row to Pydantic model.

    Args:
        row: SQLAlchemy row result.
        model_class: Target Pydantic model class.

    Returns:
        Instance of the model class.
    """
    return model_class.model_validate(dict(row._mapping))

