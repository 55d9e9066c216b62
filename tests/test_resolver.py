"""Tests for fuzzy channel-name resolution.

Covers:
- Tier precedence: exact, prefix, contains, raw channel id
- Case-insensitivity
- Misses vs. store failures
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from switchboard.errors import StoreError
from switchboard.models import ChannelInfo
from switchboard.resolver import ChannelResolver, match_channel

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def channel(channel_id: str, name: str | None = None, age_minutes: int = 0) -> ChannelInfo:
    return ChannelInfo(
        channel_id=channel_id,
        channel_name=name,
        last_activity=NOW - timedelta(minutes=age_minutes),
        message_count=1,
    )


@pytest.fixture
def channels() -> list[ChannelInfo]:
    """Channels in list_channels order (most recent first)."""
    return [
        channel("discord:1:200", "general-2", 0),
        channel("discord:1:100", "general", 1),
        channel("discord:1:300", "off-topic", 2),
        channel("link:planner:coder", None, 3),
    ]


class TestMatchChannel:
    """Tests for the cascading match."""

    def test_exact_beats_more_recent_prefix(self, channels) -> None:
        assert match_channel(channels, "general") == "discord:1:100"

    def test_prefix_match(self, channels) -> None:
        """With no exact match, the first prefix match in list order wins."""
        assert match_channel(channels, "gen") == "discord:1:200"

    def test_prefix_is_deterministic(self, channels) -> None:
        assert {match_channel(channels, "gen") for _ in range(5)} == {"discord:1:200"}

    def test_contains_match(self, channels) -> None:
        assert match_channel(channels, "topic") == "discord:1:300"

    def test_channel_id_match(self, channels) -> None:
        assert match_channel(channels, "coder") == "link:planner:coder"

    def test_case_insensitive(self, channels) -> None:
        assert match_channel(channels, "GENERAL") == "discord:1:100"
        assert match_channel(channels, "Off-Topic") == "discord:1:300"
        assert match_channel(channels, "PLANNER") == "link:planner:coder"

    def test_display_name_tiers_before_channel_id(self) -> None:
        channels = [
            channel("link:ops:dev", None, 0),
            channel("discord:9:9", "dev-chat", 1),
        ]
        assert match_channel(channels, "dev") == "discord:9:9"

    def test_miss(self, channels) -> None:
        assert match_channel(channels, "nonexistent") is None

    def test_empty_list(self) -> None:
        assert match_channel([], "general") is None


class TestChannelResolver:
    """Tests for resolution against a store."""

    def test_uses_store_listing(self) -> None:
        store = MagicMock()
        store.list_channels.return_value = [channel("discord:1:100", "general")]

        assert ChannelResolver(store).find_channel_by_name("general") == "discord:1:100"
        store.list_channels.assert_called_once_with()

    def test_miss_is_none(self) -> None:
        store = MagicMock()
        store.list_channels.return_value = []
        assert ChannelResolver(store).find_channel_by_name("general") is None

    def test_store_failure_propagates(self) -> None:
        store = MagicMock()
        store.list_channels.side_effect = StoreError("failed to list channels")
        with pytest.raises(StoreError):
            ChannelResolver(store).find_channel_by_name("general")

    def test_against_real_store(self, store, insert_message) -> None:
        insert_message("discord:1:100", "hi", 1, {"discord_channel_name": "general"})
        insert_message("discord:1:200", "hi", 2, {"discord_channel_name": "general-2"})
        insert_message("discord:1:300", "hi", 3, {"discord_channel_name": "off-topic"})

        resolver = ChannelResolver(store)
        assert resolver.find_channel_by_name("general") == "discord:1:100"
        assert resolver.find_channel_by_name("gen") == "discord:1:200"
        assert resolver.find_channel_by_name("topic") == "discord:1:300"
