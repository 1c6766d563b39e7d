"""Domain events emitted after a submission syncs or a form is dropped.

Each event is written to the log and kept in a bounded in-process buffer;
there is no external broker.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, List

logger = logging.getLogger(__name__)

SUBMISSION_SYNCED = "submission.synced"
FORM_DROPPED = "form.dropped"

# Oldest events fall off once the buffer is full
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=1000)


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    logger.info("event_publish type=%s form=%s", event_type, payload.get("form_name"))
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered events oldest first, draining the buffer by default."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "SUBMISSION_SYNCED",
    "FORM_DROPPED",
    "EVENT_BUFFER",
    "publish",
    "get_buffered_events",
]
