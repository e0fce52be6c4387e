"""Term filtering helpers shared by scheduled and manual searches."""

from __future__ import annotations

from datetime import time
from typing import Iterable, List, Optional

from monitoring.timing import minutes_since_epoch
from reservations.gateway import Term


def within_time_window(start: time, time_from: time, time_to: time) -> bool:
    """Inclusive at both bounds, strictly between otherwise."""

    return start == time_from or start == time_to or time_from < start < time_to


def filter_by_time_window(
    terms: Iterable[Term], time_from: time, time_to: time
) -> List[Term]:
    """Keep terms whose wall-clock start lies in the window, preserving order."""

    return [
        term
        for term in terms
        if within_time_window(term.start.time(), time_from, time_to)
    ]


def find_term(terms: Iterable[Term], schedule_id: int, minutes: int) -> Optional[Term]:
    """Locate the term matching a manual booking command."""

    for term in terms:
        if term.schedule_id == schedule_id and minutes_since_epoch(term.start) == minutes:
            return term
    return None
