"""
Timing metrics for collaborator round trips.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit one METRIC_TIMER event per measurement via observability.logger
- Never aggregate

Measured today:
- *_post            (transport round trip, one name per outbound activity kind)
- speech_synthesis  (speak() call, start to completion)
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


# timer_id -> (metric_name, start_time_ns)
_active_timers: dict[str, tuple[str, int]] = {}


def start_timer(name: str) -> str:
    """
    Start a monotonic timer and return its opaque id.

    Callers MUST call stop_timer() in a finally block unless using timed().
    """
    timer_id = f"timer_{uuid.uuid4().hex[:12]}"
    _active_timers[timer_id] = (name, time.monotonic_ns())
    return timer_id


def stop_timer(
    timer_id: str,
    *,
    session_id: str | None = None,
    outcome: str = "ok",
    details: dict[str, Any] | None = None,
) -> int | None:
    """
    Stop a timer and emit its metric.

    Returns duration_ms, or None for an unknown / already stopped timer.
    """
    entry = _active_timers.pop(timer_id, None)
    if entry is None:
        return None

    name, start_ns = entry
    duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    log_event({
        # wall clock for correlation; the duration itself is monotonic
        "ts_ms": time.time_ns() // 1_000_000,
        "event_type": "METRIC_TIMER",
        "metric": name,
        "value_ms": duration_ms,
        "outcome": outcome,
        "session_id": session_id,
        "details": details or {},
    })

    return duration_ms


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Measure the enclosed block.

    The metric is emitted exactly once, with outcome "error" when the block
    raised (the exception still propagates).

        with timed("send_message_post", session_id=rt.session_id):
            server_id = await transport.post(envelope)
    """
    timer_id = start_timer(name)
    outcome = "ok"
    try:
        yield
    except BaseException:
        outcome = "error"
        raise
    finally:
        stop_timer(timer_id, session_id=session_id, outcome=outcome, details=details)
