"""Jittered timing for monitoring jobs.

Every job gets its own initial delay and period so that many monitorings do
not hit the reservation service in synchronized bursts.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Optional

from infrastructure.constants import TERM_EPOCH
from monitoring.models import JobTiming


def draw_timing(
    max_delay: int,
    period_base: int,
    period_max_delta: int,
    *,
    rng: Optional[random.Random] = None,
) -> JobTiming:
    """Draw ``delay`` from ``[0, max_delay)`` and ``period`` from
    ``[period_base, period_base + period_max_delta)``, in whole seconds."""

    rng = rng or random
    delay = rng.randrange(max_delay) if max_delay > 0 else 0
    spread = rng.randrange(period_max_delta) if period_max_delta > 0 else 0
    return JobTiming(delay=float(delay), period=float(period_base + spread))


def offset_date_from(date_from: datetime, offset_hours: int, now: datetime) -> datetime:
    """Clamp a search lower bound to at least ``now + offset_hours``."""

    now_with_offset = now + timedelta(hours=offset_hours)
    return now_with_offset if date_from < now_with_offset else date_from


def minutes_since_epoch(moment: datetime) -> int:
    """Encode a term start as whole minutes since 2018-01-01 wall-clock time."""

    naive = moment.replace(tzinfo=None)
    return int((naive - TERM_EPOCH).total_seconds() // 60)
