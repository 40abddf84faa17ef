"""Rebuild foreground sessions from resume/pause transition events."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from .models import ClosedInterval, EventKind, RawEvent

logger = logging.getLogger(__name__)


def reconstruct_sessions(
    events: Iterable[RawEvent],
    open_sessions: Optional[dict[str, int]] = None,
) -> Iterator[ClosedInterval]:
    """Yield closed foreground intervals in the order their pause events arrive.

    ``open_sessions`` maps application id to the timestamp of its latest
    unmatched resume.  It is updated in place, so after the generator is
    exhausted it holds the sessions that were still open at the end of the
    stream.  Events are consumed in arrival order and are not re-sorted.

    Unmatched pauses and zero or negative length sessions are dropped.
    """
    if open_sessions is None:
        open_sessions = {}

    for event in events:
        if event.kind is EventKind.RESUMED:
            # A second resume restarts the session.
            open_sessions[event.application_id] = event.timestamp
        elif event.kind is EventKind.PAUSED:
            started = open_sessions.pop(event.application_id, None)
            if started is None or started <= 0:
                logger.debug(
                    "Ignoring pause without open session: app=%s ts=%d",
                    event.application_id,
                    event.timestamp,
                )
                continue
            if event.timestamp <= started:
                logger.debug(
                    "Dropping non-positive session: app=%s start=%d end=%d",
                    event.application_id,
                    started,
                    event.timestamp,
                )
                continue
            yield ClosedInterval(
                application_id=event.application_id,
                start=started,
                end=event.timestamp,
            )
