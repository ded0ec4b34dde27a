#!/usr/bin/env python3
"""
Seed a running Transfer Tracker API with demo scenarios.

Usage:
    # Post every scenario once, in its scripted arrival order
    python scripts/seed_transfers.py

    # Shuffle arrival order within each transfer
    python scripts/seed_transfers.py --shuffle --seed 7
"""

import argparse
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import requests
from tenacity import retry, stop_after_delay, wait_fixed

from config import get_api_url

BASE_TIME = datetime(2024, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


def make_events(transfer_id: str, steps: List) -> List[Dict]:
    """Build events 90 seconds apart; a step is a status or a dict of overrides."""
    events = []
    for i, step in enumerate(steps):
        step = {"status": step} if isinstance(step, str) else dict(step)
        event = {
            "transfer_id": transfer_id,
            "event_id": step.pop("event_id", f"evt_{transfer_id}_{i + 1}"),
            "timestamp": (BASE_TIME + timedelta(seconds=90 * i)).isoformat(),
        }
        event.update(step)
        events.append(event)
    return events


def scenarios() -> Dict[str, List[Dict]]:
    out_of_order = make_events("tr_ooo", ["initiated", "processing", "settled"])
    idempotent = make_events("tr_idemp", ["initiated", "processing"])
    return {
        "Happy path": make_events("tr_happy", ["initiated", "processing", "settled"]),
        "Out-of-order arrival": [out_of_order[2], out_of_order[0], out_of_order[1]],
        "Conflicting terminals": make_events("tr_conflict", [
            "initiated", "processing", "settled", {"status": "failed", "reason": "chargeback"},
        ]),
        "Event after terminal": make_events("tr_after_term", ["initiated", "settled", "processing"]),
        "Missing initiated": make_events("tr_no_init", ["processing", "settled"]),
        "Duplicate status": make_events("tr_dup_status", [
            "initiated", "processing",
            {"status": "processing", "event_id": "evt_tr_dup_status_extra"},
            "settled",
        ]),
        "Duplicate event": idempotent + [dict(idempotent[0])],
        "Failed with reason": make_events("tr_failed", [
            "initiated", "processing", {"status": "failed", "reason": "insufficient_funds"},
        ]),
        "Single event": make_events("tr_single", ["initiated"]),
        "Multiple anomalies": make_events("tr_multi_warn", [
            "processing", "settled", {"status": "failed", "reason": "timeout"},
        ]),
    }


def send_event(event: Dict, api_url: str) -> bool:
    """Send one event to the API."""
    try:
        response = requests.post(f"{api_url}/events", json=event, timeout=10)
    except requests.exceptions.RequestException as e:
        print(f"Request failed: {e}")
        return False

    if response.status_code == 201:
        print(f"  + {event['event_id']} ({event['status']})")
        return True
    if response.status_code == 200:
        print(f"  = {event['event_id']} duplicate, skipped")
        return True

    print(f"Failed: {response.status_code} - {response.text[:200]}")
    return False


@retry(stop=stop_after_delay(30), wait=wait_fixed(1), reraise=True)
def wait_for_api(api_url: str):
    response = requests.get(f"{api_url}/health", timeout=1)
    response.raise_for_status()
    return response


def health_check(api_url: str) -> bool:
    """Check if the Transfer Tracker API is available, waiting for it to come up."""
    try:
        wait_for_api(api_url)
    except requests.exceptions.RequestException:
        print(f"Transfer Tracker API not reachable at {api_url}")
        return False
    print(f"Transfer Tracker API healthy at {api_url}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Seed demo transfer scenarios")
    parser.add_argument("--api-url", default=get_api_url(), help="Base URL of the API")
    parser.add_argument("--shuffle", action="store_true", help="Shuffle arrival order per transfer")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for --shuffle")
    args = parser.parse_args()

    if not health_check(args.api_url):
        raise SystemExit(1)

    rng = random.Random(args.seed)
    failures = 0
    for name, events in scenarios().items():
        print(f"{name}:")
        if args.shuffle:
            events = events[:]
            rng.shuffle(events)
        for event in events:
            if not send_event(event, args.api_url):
                failures += 1

    version = requests.get(f"{args.api_url}/version", timeout=5).json()
    print(f"Done, version {version['version']}, {failures} failed submissions")
    raise SystemExit(1 if failures else 0)


if __name__ == "__main__":
    main()
