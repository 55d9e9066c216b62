"""Topology projection of the agent graph for visualization."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from switchboard.links import AgentLink, LinkGraph


class TopologyAgent(BaseModel):
    """A graph node."""

    id: str
    name: str


class TopologyLink(BaseModel):
    """A graph edge with string-valued enums."""

    model_config = ConfigDict(populate_by_name=True)

    from_agent: str = Field(serialization_alias="from")
    to_agent: str = Field(serialization_alias="to")
    direction: str
    relationship: str


class Topology(BaseModel):
    """Full agent topology for graph rendering."""

    agents: list[TopologyAgent]
    links: list[TopologyLink]


def render_topology(links: Iterable["AgentLink"], agent_ids: Iterable[str]) -> Topology:
    """Project an edge snapshot and agent ids into a Topology.

    Each agent id doubles as its display name.
    """
    return Topology(
        agents=[TopologyAgent(id=agent_id, name=agent_id) for agent_id in agent_ids],
        links=[
            TopologyLink(
                from_agent=link.from_agent_id,
                to_agent=link.to_agent_id,
                direction=link.direction.value,
                relationship=link.kind.value,
            )
            for link in links
        ],
    )


class TopologyView:
    """Renders the graph's current snapshot on every call; nothing is cached."""

    def __init__(self, graph: "LinkGraph", agent_ids: Iterable[str]) -> None:
        self.graph = graph
        self.agent_ids = tuple(agent_ids)

    def render(self) -> Topology:
        return render_topology(self.graph.load(), self.agent_ids)
