"""Message base types dispatched by the message bus."""

from dataclasses import dataclass


@dataclass
class Command:
    """Intent to change state, handled by exactly one handler."""


@dataclass
class Event:
    """Something that happened, fanned out to any number of handlers."""
