"""Agent link and topology endpoints.

Read-only views of the current edge snapshot.
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from switchboard.api.deps import get_graph, get_topology
from switchboard.links import AgentLink
from switchboard.topology import Topology

if TYPE_CHECKING:
    from switchboard.links import LinkGraph
    from switchboard.topology import TopologyView

router = APIRouter(tags=["links"])


class LinkListResponse(BaseModel):
    """A list of agent links."""

    links: list[AgentLink]


@router.get("/links", response_model=LinkListResponse)
async def list_links(graph: "LinkGraph" = Depends(get_graph)) -> LinkListResponse:
    """List all links in the current snapshot."""
    return LinkListResponse(links=list(graph.load()))


@router.get("/agents/{agent_id}/links", response_model=LinkListResponse)
async def agent_links(
    agent_id: str,
    graph: "LinkGraph" = Depends(get_graph),
) -> LinkListResponse:
    """Get links where the agent is either endpoint.

    One-way links the agent cannot send on are still listed.
    """
    return LinkListResponse(links=graph.links_for(agent_id))


@router.get("/topology", response_model=Topology)
async def topology(view: "TopologyView" = Depends(get_topology)) -> Topology:
    """Get the full agent topology for graph rendering."""
    return view.render()
