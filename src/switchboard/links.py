"""Agent communication graph for Switchboard.

A link is a directed, typed permission for one agent to message another.
The graph decides two things about a message: whether the send is
permitted, and which durable channel it belongs to. It never moves bytes.

Key features:
- Validation of raw config definitions into typed edges (all-or-nothing)
- Deterministic, direction-independent channel ids
- Backward-compatible parsing of the legacy three-valued relationship
- An immutable edge snapshot that is swapped wholesale on reload
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict, Field

from switchboard.errors import LinkConfigError
from switchboard.logging import get_logger

if TYPE_CHECKING:
    from switchboard.config import LinkDef

log = get_logger("links")

CHANNEL_PREFIX = "link"


# =============================================================================
# Enums
# =============================================================================


class LinkDirection(str, Enum):
    """Send policy for a link."""

    ONE_WAY = "one_way"  # from can message to, not the reverse
    TWO_WAY = "two_way"


class LinkKind(str, Enum):
    """Social framing of a link.

    The kind doesn't restrict delivery; it frames the receiving agent's
    context. Hierarchical means the superior endpoint can delegate and the
    other side reports and escalates.
    """

    HIERARCHICAL = "hierarchical"
    PEER = "peer"


class LegacyRelationship(str, Enum):
    """Three-valued relationship from the earlier link schema.

    Also used to describe an edge from one endpoint's point of view
    (see ``AgentLink.relationship_for``).
    """

    PEER = "peer"
    SUPERIOR = "superior"
    SUBORDINATE = "subordinate"

    def inverse(self) -> "LegacyRelationship":
        """Relationship as seen from the other endpoint."""
        if self is LegacyRelationship.SUPERIOR:
            return LegacyRelationship.SUBORDINATE
        if self is LegacyRelationship.SUBORDINATE:
            return LegacyRelationship.SUPERIOR
        return LegacyRelationship.PEER


DIRECTION_VALUES = tuple(d.value for d in LinkDirection)
KIND_VALUES = tuple(k.value for k in LinkKind)
LEGACY_VALUES = tuple(r.value for r in LegacyRelationship)


def parse_direction(value: str) -> LinkDirection:
    """Parse a direction string.

    Raises:
        ValueError: If the value is not one of DIRECTION_VALUES.
    """
    try:
        return LinkDirection(value)
    except ValueError:
        raise ValueError(
            f"invalid link direction: '{value}', expected one of {DIRECTION_VALUES}"
        ) from None


def parse_kind(value: str) -> LinkKind:
    """Parse a kind string, accepting legacy relationship values.

    ``superior`` and ``subordinate`` both collapse onto HIERARCHICAL.

    Raises:
        ValueError: If the value is neither a current kind nor a legacy
            relationship.
    """
    if value in (LegacyRelationship.SUPERIOR.value, LegacyRelationship.SUBORDINATE.value):
        return LinkKind.HIERARCHICAL
    try:
        return LinkKind(value)
    except ValueError:
        raise ValueError(
            f"invalid link kind: '{value}', expected one of {KIND_VALUES + LEGACY_VALUES[1:]}"
        ) from None


def channel_id_for(agent_a: str, agent_b: str) -> str:
    """Channel id shared by both directions of a conversation.

    Built from the sorted id pair, so ``channel_id_for(a, b)`` equals
    ``channel_id_for(b, a)``.
    """
    low, high = sorted((agent_a, agent_b))
    return f"{CHANNEL_PREFIX}:{low}:{high}"


# =============================================================================
# Models
# =============================================================================


class AgentLink(BaseModel):
    """A directed edge in the agent communication graph."""

    model_config = ConfigDict(frozen=True)

    from_agent_id: str
    to_agent_id: str
    direction: LinkDirection
    kind: LinkKind
    # Set for legacy "subordinate" edges: hierarchy is read along to -> from.
    superior_is_target: bool = Field(default=False, exclude=True)

    @classmethod
    def from_config(cls, defs: Iterable["LinkDef"]) -> list["AgentLink"]:
        """Parse config link definitions into agent links."""
        return validate_links(defs)

    def channel_id(self) -> str:
        """Stable channel id for this link's conversation."""
        return channel_id_for(self.from_agent_id, self.to_agent_id)

    def involves(self, agent_id: str) -> bool:
        """True if the agent is either endpoint."""
        return agent_id in (self.from_agent_id, self.to_agent_id)

    def other(self, agent_id: str) -> str:
        """The endpoint opposite to agent_id."""
        if agent_id == self.from_agent_id:
            return self.to_agent_id
        if agent_id == self.to_agent_id:
            return self.from_agent_id
        raise ValueError(f"agent '{agent_id}' is not an endpoint of {self.channel_id()}")

    def can_send(self, sender: str, recipient: str) -> bool:
        """Whether this link permits sender to message recipient."""
        if sender == self.from_agent_id and recipient == self.to_agent_id:
            return True
        if sender == self.to_agent_id and recipient == self.from_agent_id:
            return self.direction is LinkDirection.TWO_WAY
        return False

    @property
    def superior_agent_id(self) -> str | None:
        """The superior endpoint of a hierarchical link, None for peers."""
        if self.kind is LinkKind.PEER:
            return None
        return self.to_agent_id if self.superior_is_target else self.from_agent_id

    def relationship_for(self, agent_id: str) -> LegacyRelationship:
        """How the link frames agent_id relative to the other endpoint."""
        self.other(agent_id)  # validates membership
        superior = self.superior_agent_id
        if superior is None:
            return LegacyRelationship.PEER
        if agent_id == superior:
            return LegacyRelationship.SUPERIOR
        return LegacyRelationship.SUBORDINATE


def validate_links(defs: Iterable["LinkDef"]) -> list[AgentLink]:
    """Validate raw link definitions into typed edges.

    All-or-nothing: the first invalid definition raises and no edges are
    returned.

    Args:
        defs: Raw definitions in config order.

    Returns:
        Parsed links, in the same order.

    Raises:
        LinkConfigError: Naming the bad field, its value, the accepted
            values, and the link endpoints.
    """
    links: list[AgentLink] = []
    for link_def in defs:
        try:
            direction = parse_direction(link_def.direction)
        except ValueError:
            raise LinkConfigError(
                "direction",
                link_def.direction,
                DIRECTION_VALUES,
                link_def.from_agent,
                link_def.to_agent,
            ) from None

        kind_value = link_def.kind_value
        try:
            kind = parse_kind(kind_value)
        except ValueError:
            expected = LEGACY_VALUES if link_def.kind_field == "relationship" else KIND_VALUES
            raise LinkConfigError(
                link_def.kind_field,
                kind_value,
                expected,
                link_def.from_agent,
                link_def.to_agent,
            ) from None

        links.append(
            AgentLink(
                from_agent_id=link_def.from_agent,
                to_agent_id=link_def.to_agent,
                direction=direction,
                kind=kind,
                superior_is_target=kind_value == LegacyRelationship.SUBORDINATE.value,
            )
        )
    return links


def links_for_agent(links: Iterable[AgentLink], agent_id: str) -> list[AgentLink]:
    """Every link where agent_id is either endpoint.

    Membership, not permission: an agent that is only the ``to`` of a
    one-way link still sees that link here.
    """
    return [link for link in links if link.involves(agent_id)]


# =============================================================================
# Snapshot Holder
# =============================================================================


class LinkGraph:
    """Holds the current edge set as one immutable, swappable snapshot.

    Readers call ``load()`` and get a complete tuple; writers replace the
    whole tuple. Edges inside a snapshot are frozen and never mutated.
    """

    def __init__(self, links: Iterable[AgentLink] = ()) -> None:
        self._links: tuple[AgentLink, ...] = tuple(links)
        self._write_lock = threading.Lock()

    @classmethod
    def from_config(cls, defs: Iterable["LinkDef"]) -> "LinkGraph":
        """Build a graph from raw definitions, failing on any bad link."""
        graph = cls(validate_links(defs))
        log.info("links_loaded", count=len(graph.load()))
        return graph

    def load(self) -> tuple[AgentLink, ...]:
        """Current snapshot."""
        return self._links

    def store(self, links: Iterable[AgentLink]) -> None:
        """Replace the snapshot wholesale."""
        snapshot = tuple(links)
        with self._write_lock:
            self._links = snapshot

    def reload(self, defs: Iterable["LinkDef"]) -> tuple[AgentLink, ...]:
        """Validate new definitions and swap them in.

        If validation fails the previous snapshot stays in place and the
        error propagates.
        """
        links = validate_links(defs)
        self.store(links)
        log.info("links_reloaded", count=len(links))
        return self.load()

    def links_for(self, agent_id: str) -> list[AgentLink]:
        return links_for_agent(self._links, agent_id)

    def find_link(self, agent_a: str, agent_b: str) -> AgentLink | None:
        """The first link joining the two agents, in either orientation."""
        for link in self._links:
            if link.involves(agent_a) and link.other(agent_a) == agent_b:
                return link
        return None

    def can_send(self, sender: str, recipient: str) -> bool:
        """Whether any link permits sender to message recipient."""
        return any(link.can_send(sender, recipient) for link in self._links)

    def __len__(self) -> int:
        return len(self._links)
