"""Switchboard - policy-governed agent links with durable conversation history."""

__version__ = "0.1.0"
