"""Conversation channel endpoints.

Read-only access to the conversation store: channel listing, name
resolution, recent transcripts and compaction summaries. Store failures
surface as 503 (see ``create_app``).
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from switchboard.api.deps import get_store
from switchboard.models import ChannelInfo, CompactionSummary, ConversationMessage
from switchboard.resolver import ChannelResolver

if TYPE_CHECKING:
    from switchboard.conversation import ConversationStore

router = APIRouter(prefix="/channels", tags=["channels"])


# =============================================================================
# Response Models
# =============================================================================


class ChannelListResponse(BaseModel):
    """Known channels, most recently active first."""

    channels: list[ChannelInfo]


class ChannelResolveResponse(BaseModel):
    """Result of a fuzzy name lookup; channel_id is null on a miss."""

    name: str
    channel_id: str | None


class MessageListResponse(BaseModel):
    """Recent messages, oldest first."""

    channel_id: str
    messages: list[ConversationMessage]


class SummaryListResponse(BaseModel):
    """Compaction summaries, oldest first."""

    channel_id: str
    summaries: list[CompactionSummary]


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ChannelListResponse)
def list_channels(store: "ConversationStore" = Depends(get_store)) -> ChannelListResponse:
    """List all channels with their names and last activity."""
    return ChannelListResponse(channels=store.list_channels())


@router.get("/resolve", response_model=ChannelResolveResponse)
def resolve_channel(
    name: str = Query(..., min_length=1, description="Channel name or fragment"),
    store: "ConversationStore" = Depends(get_store),
) -> ChannelResolveResponse:
    """Resolve a channel name to its id (exact, prefix, contains, then raw id)."""
    return ChannelResolveResponse(
        name=name,
        channel_id=ChannelResolver(store).find_channel_by_name(name),
    )


@router.get("/{channel_id:path}/messages", response_model=MessageListResponse)
def channel_messages(
    channel_id: str,
    limit: int = Query(50, ge=1, le=500, description="Maximum messages to return"),
    store: "ConversationStore" = Depends(get_store),
) -> MessageListResponse:
    """Get the most recent messages of a channel, oldest first."""
    return MessageListResponse(
        channel_id=channel_id,
        messages=store.load_channel_transcript(channel_id, limit),
    )


@router.get("/{channel_id:path}/summaries", response_model=SummaryListResponse)
def channel_summaries(
    channel_id: str,
    store: "ConversationStore" = Depends(get_store),
) -> SummaryListResponse:
    """Get a channel's compaction summaries in the order they were produced."""
    return SummaryListResponse(
        channel_id=channel_id,
        summaries=store.load_compaction_summaries(channel_id),
    )
