"""FastAPI dependency injection for the Switchboard API.

Provides access to shared resources via app.state.
"""

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from switchboard.config import Config
    from switchboard.conversation import ConversationStore
    from switchboard.links import LinkGraph
    from switchboard.topology import TopologyView


def get_config(request: Request) -> "Config":
    """Get config from app state.

    Args:
        request: FastAPI request object.

    Returns:
        Application configuration.
    """
    return request.app.state.config


def get_db(request: Request) -> "Engine":
    """Get database engine from app state."""
    return request.app.state.db


def get_graph(request: Request) -> "LinkGraph":
    """Get the link graph holding the current edge snapshot."""
    return request.app.state.graph


def get_topology(request: Request) -> "TopologyView":
    return request.app.state.topology


def get_store(request: Request) -> "ConversationStore":
    """Get the conversation store from app state."""
    return request.app.state.store
