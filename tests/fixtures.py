"""
Transfer scenarios shared by unit, integration and API tests.

Each scenario lists events in ARRIVAL order, which may differ from
timestamp order, plus what should be derived once all of them are in.
"""
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

from transfers.domain.commands import SubmitEvent
from transfers.domain.model import Status, TransferEvent, WarningType

BASE_TIME = datetime(2024, 1, 5, 12, 0, 0, tzinfo=timezone.utc)

_counter = itertools.count(1)


def at(seconds: int) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


def make_event(transfer_id: str, status: Union[Status, str], **overrides) -> TransferEvent:
    """Single event with a unique event_id and a timestamp one second after the previous one."""
    n = next(_counter)
    return TransferEvent(
        transfer_id=transfer_id,
        event_id=overrides.pop("event_id", f"evt_{n}"),
        status=Status(status),
        timestamp=overrides.pop("timestamp", at(n)),
        **overrides,
    )


def make_events(transfer_id: str, steps: List[Union[str, Dict]]) -> List[TransferEvent]:
    """
    Events for one transfer, 90 seconds apart.

    A step is a status string or a dict with status and optional
    event_id / timestamp / reason overrides.
    """
    events = []
    for i, step in enumerate(steps):
        step = {"status": step} if isinstance(step, str) else dict(step)
        events.append(
            TransferEvent(
                transfer_id=transfer_id,
                event_id=step.get("event_id", f"evt_{transfer_id}_{i + 1}"),
                status=Status(step["status"]),
                timestamp=step.get("timestamp", at(90 * i)),
                reason=step.get("reason"),
            )
        )
    return events


def as_command(event: TransferEvent) -> SubmitEvent:
    return SubmitEvent(
        transfer_id=event.transfer_id,
        event_id=event.event_id,
        status=event.status,
        timestamp=event.timestamp,
        reason=event.reason,
    )


def as_payload(event: TransferEvent) -> Dict:
    payload = {
        "transfer_id": event.transfer_id,
        "event_id": event.event_id,
        "status": event.status.value,
        "timestamp": event.timestamp.isoformat(),
    }
    if event.reason is not None:
        payload["reason"] = event.reason
    return payload


@dataclass
class Scenario:
    name: str
    events: List[TransferEvent]
    current_status: Status
    is_terminal: bool
    event_count: int
    warning_types: List[WarningType] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def transfer_id(self) -> str:
        return self.events[0].transfer_id


def _out_of_order():
    initiated, processing, settled = make_events("tr_ooo", ["initiated", "processing", "settled"])
    return [settled, initiated, processing]


def _duplicate_event():
    events = make_events("tr_idemp", ["initiated", "processing"])
    return events + [events[0]]


HAPPY_PATH = Scenario(
    name="happy path",
    events=make_events("tr_happy", ["initiated", "processing", "settled"]),
    current_status=Status.SETTLED,
    is_terminal=True,
    event_count=3,
)

OUT_OF_ORDER = Scenario(
    name="out-of-order arrival",
    events=_out_of_order(),
    current_status=Status.SETTLED,
    is_terminal=True,
    event_count=3,
)

CONFLICTING_TERMINALS = Scenario(
    name="conflicting terminals",
    events=make_events("tr_conflict", [
        "initiated", "processing", "settled", {"status": "failed", "reason": "chargeback"},
    ]),
    current_status=Status.FAILED,
    is_terminal=True,
    event_count=4,
    warning_types=[WarningType.EVENT_AFTER_TERMINAL, WarningType.CONFLICTING_TERMINALS],
)

EVENT_AFTER_TERMINAL = Scenario(
    name="event after terminal",
    events=make_events("tr_after_term", ["initiated", "settled", "processing"]),
    current_status=Status.PROCESSING,
    is_terminal=False,
    event_count=3,
    warning_types=[WarningType.EVENT_AFTER_TERMINAL],
)

MISSING_INITIATED = Scenario(
    name="missing initiated",
    events=make_events("tr_no_init", ["processing", "settled"]),
    current_status=Status.SETTLED,
    is_terminal=True,
    event_count=2,
    warning_types=[WarningType.MISSING_INITIATED],
)

DUPLICATE_STATUS = Scenario(
    name="duplicate status",
    events=make_events("tr_dup_status", [
        "initiated",
        "processing",
        {"status": "processing", "event_id": "evt_tr_dup_status_extra"},
        "settled",
    ]),
    current_status=Status.SETTLED,
    is_terminal=True,
    event_count=4,
    warning_types=[WarningType.DUPLICATE_STATUS],
)

DUPLICATE_EVENT = Scenario(
    name="duplicate event",
    events=_duplicate_event(),
    current_status=Status.PROCESSING,
    is_terminal=False,
    event_count=2,
)

FAILED_WITH_REASON = Scenario(
    name="failed with reason",
    events=make_events("tr_failed", [
        "initiated", "processing", {"status": "failed", "reason": "insufficient_funds"},
    ]),
    current_status=Status.FAILED,
    is_terminal=True,
    event_count=3,
    reason="insufficient_funds",
)

SINGLE_EVENT = Scenario(
    name="single event",
    events=make_events("tr_single", ["initiated"]),
    current_status=Status.INITIATED,
    is_terminal=False,
    event_count=1,
)

MULTIPLE_ANOMALIES = Scenario(
    name="multiple anomalies",
    events=make_events("tr_multi_warn", [
        "processing", "settled", {"status": "failed", "reason": "timeout"},
    ]),
    current_status=Status.FAILED,
    is_terminal=True,
    event_count=3,
    warning_types=[
        WarningType.EVENT_AFTER_TERMINAL,
        WarningType.CONFLICTING_TERMINALS,
        WarningType.MISSING_INITIATED,
    ],
)

ALL_SCENARIOS = [
    HAPPY_PATH,
    OUT_OF_ORDER,
    CONFLICTING_TERMINALS,
    EVENT_AFTER_TERMINAL,
    MISSING_INITIATED,
    DUPLICATE_STATUS,
    DUPLICATE_EVENT,
    FAILED_WITH_REASON,
    SINGLE_EVENT,
    MULTIPLE_ANOMALIES,
]
