"""Fuzzy channel-name resolution.

Maps a human-typed name (e.g. "general" or "agent-a") to a stored channel id
by cascading through progressively looser matches.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable

from switchboard.logging import get_logger

if TYPE_CHECKING:
    from switchboard.conversation import ConversationStore
    from switchboard.models import ChannelInfo

log = get_logger("resolver")


def _display_name_tier(test: Callable[[str, str], bool]) -> Callable[["ChannelInfo", str], bool]:
    def matches(channel: "ChannelInfo", needle: str) -> bool:
        return channel.channel_name is not None and test(channel.channel_name.lower(), needle)

    return matches


# Tried in order; the first tier with any match decides.
MATCH_TIERS: tuple[tuple[str, Callable[["ChannelInfo", str], bool]], ...] = (
    ("exact", _display_name_tier(lambda name, needle: name == needle)),
    ("prefix", _display_name_tier(lambda name, needle: name.startswith(needle))),
    ("contains", _display_name_tier(lambda name, needle: needle in name)),
    ("channel_id", lambda channel, needle: needle in channel.channel_id.lower()),
)


def match_channel(channels: Iterable["ChannelInfo"], name: str) -> str | None:
    """Find the best channel id for a name.

    Case-insensitive. Tiers: exact display name, display-name prefix,
    display-name substring, then substring of the raw channel id (covers
    synthetic ids such as ``link:agent-a:agent-b``). Within a tier the
    first channel in list order wins.

    Args:
        channels: Candidate channels, most recently active first.
        name: Name to look for.

    Returns:
        Matching channel id, or None if no tier matches.
    """
    candidates = list(channels)
    needle = name.lower()

    for tier, matches in MATCH_TIERS:
        for channel in candidates:
            if matches(channel, needle):
                log.debug("channel_resolved", name=name, tier=tier, channel_id=channel.channel_id)
                return channel.channel_id

    return None


class ChannelResolver:
    """Resolve channel names against the conversation store's channel list."""

    def __init__(self, store: "ConversationStore") -> None:
        self.store = store

    def find_channel_by_name(self, name: str) -> str | None:
        """Find a channel id by partial name match against stored metadata.

        A miss returns None; store failures propagate as StoreError.
        """
        return match_channel(self.store.list_channels(), name)
