"""Tests for the database module.

Covers table creation, indexes, WAL mode, and the JSON metadata column.
"""

from datetime import datetime, timezone

from sqlalchemy import inspect, select, text

from switchboard.database import (
    conversation_messages,
    create_tables,
    generate_id,
    get_engine,
)
from switchboard.models import ConversationMessage, MessageRole, row_to_model


def test_creates_data_directory(tmp_path) -> None:
    from switchboard.config import Config

    config = Config(data_dir=tmp_path / "nested" / "data")
    engine = get_engine(config)
    try:
        assert (tmp_path / "nested" / "data").is_dir()
    finally:
        engine.dispose()


def test_all_tables_created(engine) -> None:
    tables = set(inspect(engine).get_table_names())
    assert {"conversation_messages", "compaction_summaries", "conversation_archives"} <= tables


def test_create_tables_is_idempotent(engine) -> None:
    create_tables(engine)
    assert "conversation_messages" in inspect(engine).get_table_names()


def test_channel_created_indexes(engine) -> None:
    inspector = inspect(engine)
    for table in ("conversation_messages", "compaction_summaries", "conversation_archives"):
        indexed = [index["column_names"] for index in inspector.get_indexes(table)]
        assert ["channel_id", "created_at"] in indexed


def test_wal_mode(engine) -> None:
    with engine.connect() as conn:
        mode = conn.execute(text("PRAGMA journal_mode")).scalar()
    assert mode.lower() == "wal"


def test_generate_id_is_ulid() -> None:
    first, second = generate_id(), generate_id()
    assert len(first) == 26
    assert first != second


class TestMetadataColumn:
    """The metadata column stores JSON documents; absent metadata is SQL NULL."""

    def insert(self, engine, metadata) -> str:
        message_id = generate_id()
        with engine.begin() as conn:
            conn.execute(
                conversation_messages.insert().values(
                    id=message_id,
                    channel_id="c",
                    role="user",
                    content="x",
                    metadata=metadata,
                    created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
                )
            )
        return message_id

    def test_document_round_trip(self, engine) -> None:
        self.insert(engine, {"discord_channel_name": "general", "guild": 1})

        with engine.connect() as conn:
            row = conn.execute(select(conversation_messages)).first()

        message = row_to_model(row, ConversationMessage)
        assert message.metadata == {"discord_channel_name": "general", "guild": 1}
        assert message.channel_name == "general"
        assert message.role is MessageRole.USER
        assert message.created_at.tzinfo is not None

    def test_none_is_sql_null(self, engine) -> None:
        self.insert(engine, None)

        with engine.connect() as conn:
            nulls = conn.execute(
                select(conversation_messages.c.id).where(
                    conversation_messages.c.metadata.is_(None)
                )
            ).fetchall()

        assert len(nulls) == 1
