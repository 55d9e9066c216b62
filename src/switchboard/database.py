"""Database schema and connection management for Switchboard.

Uses SQLAlchemy Core (not ORM) for explicit SQL control. All three tables
are append-only logs keyed by channel id; rows are never updated or deleted.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine
from ulid import ULID

from switchboard.config import Config

# Shared metadata for all tables
metadata = MetaData()


# =============================================================================
# Conversation History
# =============================================================================

conversation_messages = Table(
    "conversation_messages",
    metadata,
    Column("id", String, primary_key=True),  # ULID
    Column("channel_id", String, nullable=False),  # e.g. link:agent-a:agent-b
    Column("role", String, nullable=False),  # user, assistant
    Column("sender_name", String, nullable=True),
    Column("sender_id", String, nullable=True),
    Column("content", Text, nullable=False),
    Column("metadata", JSON(none_as_null=True), nullable=True),
    Column("created_at", DateTime, nullable=False),
    Index("ix_conversation_messages_channel_created", "channel_id", "created_at"),
)

compaction_summaries = Table(
    "compaction_summaries",
    metadata,
    Column("id", String, primary_key=True),  # ULID
    Column("channel_id", String, nullable=False),
    Column("summary", Text, nullable=False),
    Column("turns_covered", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Index("ix_compaction_summaries_channel_created", "channel_id", "created_at"),
)

conversation_archives = Table(
    "conversation_archives",
    metadata,
    Column("id", String, primary_key=True),  # ULID
    Column("channel_id", String, nullable=False),
    Column("transcript", Text, nullable=False),  # JSON array of messages
    Column("created_at", DateTime, nullable=False),
    Index("ix_conversation_archives_channel_created", "channel_id", "created_at"),
)


# =============================================================================
# Helper Functions
# =============================================================================


def generate_id() -> str:
    """Generate a new ULID for entities."""
    return str(ULID())


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    The engine's connection pool is shared by synchronous reads and the
    conversation store's background writers.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    db_path = config.database_path

    # Ensure data directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=config.log_level == "DEBUG",
        connect_args={"timeout": 30, "check_same_thread": False},
    )

    # WAL lets readers keep a consistent snapshot while writers append
    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.commit()

    return engine


def create_tables(engine: Engine) -> None:
    """Create all tables in the database.

    Args:
        engine: SQLAlchemy Engine instance.
    """
    metadata.create_all(engine)
