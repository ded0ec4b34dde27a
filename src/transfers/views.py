"""
Views for read operations - separate from command/write path.
Following Cosmic Python CQRS pattern: views read the derived-state cache,
which is kept up to date by the command handlers.

Reads never trigger recomputation, use the RecomputeTransfer command for that.
"""
import logging
from typing import Any, Dict, Optional

from transfers.domain.model import Status, Transfer
from transfers.service_layer.unit_of_work import AbstractTransferUnitOfWork

logger = logging.getLogger(__name__)


def get_transfer(transfer_id: str, uow: AbstractTransferUnitOfWork) -> Optional[Transfer]:
    """Derived state of one transfer, None if it has never been seen."""
    return uow.cache.get(transfer_id)


def list_transfers(
    uow: AbstractTransferUnitOfWork,
    status: Optional[Status] = None,
    has_warnings: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    List transfers matching all given filters.

    Args:
        uow: Unit of work
        status: Only transfers whose current_status equals this
        has_warnings: Only transfers whose has_warnings equals this

    Returns:
        items (ordered by transfer_id) and total
    """
    items = uow.cache.list()

    if status is not None:
        items = [t for t in items if t.current_status == Status(status)]
    if has_warnings is not None:
        items = [t for t in items if t.has_warnings == has_warnings]

    items.sort(key=lambda t: t.transfer_id)
    return {
        "items": items,
        "total": len(items),
    }


def get_version(uow: AbstractTransferUnitOfWork) -> Dict[str, Any]:
    return {"version": uow.versions.get_version()}


def poll_changes(uow: AbstractTransferUnitOfWork) -> Dict[str, Any]:
    """
    Current version plus the transfer_ids changed since the previous poll.

    Draining is destructive: an immediate second poll reports the same
    version and no ids.
    """
    version, affected = uow.versions.snapshot()
    logger.debug(f"Poll at version {version} drained {len(affected)} transfer ids")
    return {
        "version": version,
        "affected_transfer_ids": sorted(affected),
    }
