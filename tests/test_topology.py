"""Tests for the topology projection."""

import pytest

from switchboard.config import LinkDef
from switchboard.links import LinkGraph
from switchboard.topology import Topology, TopologyView, render_topology


@pytest.fixture
def graph() -> LinkGraph:
    """A <-> B peers, B -> C hierarchical one-way."""
    return LinkGraph.from_config(
        [
            LinkDef(from_agent="A", to_agent="B", direction="two_way", kind="peer"),
            LinkDef(from_agent="B", to_agent="C", direction="one_way", kind="hierarchical"),
        ]
    )


def test_render_agents_and_links(graph) -> None:
    topology = render_topology(graph.load(), ["A", "B", "C"])

    assert [(a.id, a.name) for a in topology.agents] == [("A", "A"), ("B", "B"), ("C", "C")]
    assert [(l.from_agent, l.to_agent, l.direction, l.relationship) for l in topology.links] == [
        ("A", "B", "two_way", "peer"),
        ("B", "C", "one_way", "hierarchical"),
    ]


def test_serializes_with_from_and_to_keys(graph) -> None:
    data = render_topology(graph.load(), ["A", "B", "C"]).model_dump(by_alias=True)

    assert data["links"][1] == {
        "from": "B",
        "to": "C",
        "direction": "one_way",
        "relationship": "hierarchical",
    }
    assert data["agents"][0] == {"id": "A", "name": "A"}


def test_agents_not_derived_from_links(graph) -> None:
    """Only the given agent ids become nodes."""
    topology = render_topology(graph.load(), ["A"])
    assert [a.id for a in topology.agents] == ["A"]
    assert len(topology.links) == 2


def test_empty() -> None:
    assert render_topology([], []) == Topology(agents=[], links=[])


def test_view_tracks_reloads(graph) -> None:
    view = TopologyView(graph, ["A", "B", "C"])
    assert len(view.render().links) == 2

    graph.reload([LinkDef(from_agent="A", to_agent="C")])

    links = view.render().links
    assert [(l.from_agent, l.to_agent) for l in links] == [("A", "C")]


def test_scenario_queries_agree_with_topology(graph) -> None:
    """The middle agent sees both of its links; the topology shows the same edges."""
    assert [l.channel_id() for l in graph.links_for("B")] == ["link:A:B", "link:B:C"]
    assert graph.can_send("B", "C")
    assert not graph.can_send("C", "B")
    assert graph.can_send("B", "A")
