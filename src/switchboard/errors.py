"""Exception types for Switchboard."""

from __future__ import annotations


class SwitchboardError(Exception):
    """Base class for all Switchboard errors."""


class LinkConfigError(SwitchboardError, ValueError):
    """A link definition carries an invalid direction or kind.

    Fatal to startup: a batch containing one bad definition produces no
    edges at all.
    """

    def __init__(
        self,
        field: str,
        value: str,
        expected: tuple[str, ...],
        from_agent: str,
        to_agent: str,
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        self.from_agent = from_agent
        self.to_agent = to_agent
        accepted = ", ".join(f"'{e}'" for e in expected)
        super().__init__(
            f"invalid link {field}: '{value}', expected one of {accepted} "
            f"(link {from_agent} → {to_agent})"
        )


class StoreError(SwitchboardError):
    """A read against the conversation store failed."""
