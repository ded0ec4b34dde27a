# pylint: disable=broad-except
"""
Message bus for the transfer tracker.

Commands change state and their handler's return value is handed back to
the caller. Domain events raised while handling are fanned out afterwards
to notification handlers, which are best effort.
"""

from __future__ import annotations
import logging
from collections import deque
from typing import Any, Callable, Dict, List, Type, Union, TYPE_CHECKING

from shared.domain.commands import Command, Event
from transfers.domain.commands import RecomputeTransfer, SubmitEvent
from transfers.domain.events import DuplicateEventRejected, TransferUpdated
from transfers.service_layer import handlers

if TYPE_CHECKING:
    from transfers.service_layer.unit_of_work import AbstractTransferUnitOfWork

logger = logging.getLogger(__name__)

Message = Union[Command, Event]


def handle(
    message: Message,
    uow: AbstractTransferUnitOfWork,
) -> List[Any]:
    """
    Dispatch a message and every domain event it causes.

    Returns:
        Results of the command handlers, in dispatch order
    """
    results = []
    queue = deque([message])

    while queue:
        message = queue.popleft()

        if isinstance(message, Command):
            results.append(handle_command(message, uow))
        elif isinstance(message, Event):
            handle_event(message, uow)
        else:
            raise Exception(f"{message} was not an Event or Command")

        queue.extend(uow.collect_new_events())

    return results


def handle_event(
    event: Event,
    uow: AbstractTransferUnitOfWork,
):
    """Run every handler registered for the event, a failing one does not stop the rest."""
    for handler in EVENT_HANDLERS.get(type(event), []):
        try:
            logger.debug(f"handling event {type(event).__name__} with {handler.__name__}")
            handler(event, uow=uow)
        except Exception:
            logger.exception(
                "Notification for %s on transfer %s failed",
                type(event).__name__,
                getattr(event, "transfer_id", None),
            )


def handle_command(
    command: Command,
    uow: AbstractTransferUnitOfWork,
):
    """Run the single handler for the command, failures propagate to the caller."""
    logger.debug(f"handling command {command}")
    try:
        handler = COMMAND_HANDLERS[type(command)]
        return handler(command, uow=uow)
    except Exception:
        logger.exception("Exception handling command %s", command)
        raise


EVENT_HANDLERS = {
    TransferUpdated: [handlers.publish_event],
    DuplicateEventRejected: [handlers.publish_event],
}  # type: Dict[Type[Event], List[Callable]]

COMMAND_HANDLERS = {
    SubmitEvent: handlers.submit_event,
    RecomputeTransfer: handlers.recompute_transfer,
}  # type: Dict[Type[Command], Callable]
