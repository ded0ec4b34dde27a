"""Commands for the transfer tracker service."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shared.domain.commands import Command
from transfers.domain.model import Status


@dataclass
class SubmitEvent(Command):
    """Command to ingest one lifecycle event for a transfer."""
    transfer_id: str
    event_id: str
    status: Status
    timestamp: datetime  # asserted by the originating system
    reason: Optional[str] = None


@dataclass
class RecomputeTransfer(Command):
    """Command to re-derive a transfer from its stored event history."""
    transfer_id: str
