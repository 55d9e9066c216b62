"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from click.testing import CliRunner

from switchboard.config import Config
from switchboard.conversation import ConversationStore
from switchboard.database import (
    compaction_summaries,
    conversation_messages,
    create_tables,
    generate_id,
    get_engine,
)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_data_dir(tmp_path):
    """Provide a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Create a test configuration with temp database."""
    return Config(
        data_dir=tmp_path,
        log_level="DEBUG",
    )


@pytest.fixture
def engine(test_config: Config):
    """Create a test database engine with all tables."""
    eng = get_engine(test_config)
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    """Conversation store over the test engine."""
    conversation_store = ConversationStore(engine, max_workers=2)
    yield conversation_store
    conversation_store.close()


BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def insert_message(engine):
    """Insert a message directly, ``minutes`` after BASE_TIME."""

    def _insert(
        channel_id: str,
        content: str,
        minutes: int,
        metadata: dict | None = None,
        role: str = "user",
    ) -> None:
        with engine.begin() as conn:
            conn.execute(
                conversation_messages.insert().values(
                    id=generate_id(),
                    channel_id=channel_id,
                    role=role,
                    sender_name="tester" if role == "user" else None,
                    sender_id="u1" if role == "user" else None,
                    content=content,
                    metadata=metadata,
                    created_at=BASE_TIME + timedelta(minutes=minutes),
                )
            )

    return _insert


@pytest.fixture
def insert_summary(engine):
    """Insert a compaction summary directly, ``minutes`` after BASE_TIME."""

    def _insert(channel_id: str, summary: str, minutes: int, turns_covered: int = 10) -> None:
        with engine.begin() as conn:
            conn.execute(
                compaction_summaries.insert().values(
                    id=generate_id(),
                    channel_id=channel_id,
                    summary=summary,
                    turns_covered=turns_covered,
                    created_at=BASE_TIME + timedelta(minutes=minutes),
                )
            )

    return _insert
