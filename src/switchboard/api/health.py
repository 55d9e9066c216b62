"""Health check endpoint for the Switchboard API.

Reports database connectivity and the size of the loaded link graph.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text

from switchboard import __version__
from switchboard.api.deps import get_db, get_graph

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from switchboard.links import LinkGraph

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    timestamp: datetime
    database: str
    links: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: "Engine" = Depends(get_db),
    graph: "LinkGraph" = Depends(get_graph),
) -> HealthResponse:
    """Check system health.

    Overall status is 'ok' if the database answers, 'degraded' otherwise.
    """
    try:
        with db.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "error"

    overall_status = "ok" if db_status == "ok" else "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        links=len(graph),
    )
