import logging
from dataclasses import dataclass, replace
from typing import Optional

import config
from transfers.adapters import redis_adapter
from transfers.domain.commands import RecomputeTransfer, SubmitEvent
from transfers.domain.domain import TransferLog
from transfers.domain.events import TransferUpdated
from transfers.domain.model import Status, Transfer, TransferEvent, as_utc
from transfers.service_layer.unit_of_work import AbstractTransferUnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    """accepted=False means the event_id was already seen, nothing changed."""
    accepted: bool
    transfer: Transfer


def submit_event(
    command: SubmitEvent,
    uow: AbstractTransferUnitOfWork
) -> SubmitResult:
    """
    Ingest one transfer event through the idempotency gate.

    Flow, all inside the transfer's lock:
    1. Load (or start) the transfer's event log
    2. Append the event unless its event_id was already seen
    3. On acceptance rebuild the derived Transfer from the full history
    4. Commit, then swap the Transfer into the cache and advance the version

    A failed commit leaves cache and version untouched.

    A duplicate leaves log, version and every load-bearing field of the
    cached Transfer untouched, only rejected_duplicates records it.

    Args:
        command: SubmitEvent command with the validated event fields
        uow: Unit of work giving access to log, cache, version and locks

    Returns:
        SubmitResult with the accepted flag and the current Transfer
    """
    event = TransferEvent(
        transfer_id=command.transfer_id,
        event_id=command.event_id,
        status=Status(command.status),
        timestamp=as_utc(command.timestamp),
        reason=command.reason,
    )

    with uow:
        with uow.locks.hold(command.transfer_id):
            log = uow.transfers.get(command.transfer_id)
            if log is None:
                log = TransferLog(command.transfer_id)
                uow.transfers.add(log)

            accepted = log.record(event)

            if accepted:
                transfer = log.derive(cause="event")
            else:
                cached = uow.cache.get(command.transfer_id)
                if cached is None:
                    # durable log whose cache was never warmed, nothing changed
                    cached = log.derive(cause="warmup")
                    log.events = [e for e in log.events if not isinstance(e, TransferUpdated)]
                transfer = replace(cached, rejected_duplicates=tuple(log.rejected_duplicates))

            # the log is durable before the cache and version move
            uow.commit()
            uow.cache.put(transfer)
            if accepted:
                uow.versions.on_mutation(command.transfer_id)

    logger.info(
        f"Event ingested transfer_id={event.transfer_id} event_id={event.event_id} "
        f"status={event.status.value} duplicate={not accepted}"
    )
    return SubmitResult(accepted=accepted, transfer=transfer)


def recompute_transfer(
    command: RecomputeTransfer,
    uow: AbstractTransferUnitOfWork
) -> Optional[Transfer]:
    """
    Re-derive a transfer from its stored history, whether or not anything changed.

    Reads the log, not the cache, so it also works for a cold cache.

    Returns:
        The rebuilt Transfer, or None if the transfer_id is unknown
    """
    with uow:
        with uow.locks.hold(command.transfer_id):
            log = uow.transfers.get(command.transfer_id)
            if log is None:
                logger.info(f"Recompute requested for unknown transfer {command.transfer_id}")
                return None

            transfer = log.derive(cause="recompute")
            uow.commit()
            uow.cache.put(transfer)
            version = uow.versions.on_mutation(command.transfer_id)

    logger.info(f"Recomputed transfer {command.transfer_id} at version {version}")
    return transfer


def warm_cache(uow: AbstractTransferUnitOfWork) -> int:
    """
    Derive every transfer in the event log into the cache.

    Used on startup with a durable log. This restores state rather than
    changing it, so the version is not advanced and nothing is published.

    Returns:
        Number of transfers derived
    """
    count = 0
    with uow:
        for transfer_id in uow.transfers.list_ids():
            with uow.locks.hold(transfer_id):
                log = uow.transfers.get(transfer_id)
                uow.cache.put(log.derive(cause="warmup"))
                log.events.clear()
                count += 1

    logger.info(f"Warmed transfer cache with {count} transfers")
    return count


def publish_event(event, uow: AbstractTransferUnitOfWork):
    """
    Publish TransferUpdated / DuplicateEventRejected to external subscribers.

    Best effort: the message bus logs and swallows failures, ingestion has
    already been committed at this point.
    """
    redis_adapter.publish(config.get_transfer_events_channel(), event)
