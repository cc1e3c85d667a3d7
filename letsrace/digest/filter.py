"""
Per-subscriber event filtering

Splits the events matching a subscriber's region and disciplines into
"new this week" (by added_at) and "upcoming" (by start_date). Both windows
are inclusive at both ends and compared as calendar dates.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta

from ..collector.events import Event
from ..timeutils import parse_iso_date

NEW_WINDOW_DAYS = 7
UPCOMING_WINDOW_DAYS = 6 * 7


@dataclass
class DigestResult:
    new_this_week: list[Event] = field(default_factory=list)
    upcoming: list[Event] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.new_this_week or self.upcoming)


def _sort_key(event: Event):
    start = parse_iso_date(event.start_date)
    return (start or date.max, event.name)


def _dedupe_and_sort(events: list[Event]) -> list[Event]:
    unique = {}
    for event in events:
        unique.setdefault(event.id, event)
    return sorted(unique.values(), key=_sort_key)


def filter_events_for_subscriber(events: list[Event], subscriber, today: date) -> DigestResult:
    """
    Args:
        events: normalized events
        subscriber: anything with .region and .disciplines
        today: reference calendar date

    Returns:
        DigestResult (possibly empty, never None)
    """
    if isinstance(today, str):
        today = parse_iso_date(today)

    disciplines = set(subscriber.disciplines or [])
    matching = [
        ev for ev in events
        if ev.region == subscriber.region and ev.discipline in disciplines
    ]

    new_from = today - timedelta(days=NEW_WINDOW_DAYS)
    upcoming_until = today + timedelta(days=UPCOMING_WINDOW_DAYS)

    new_this_week = []
    upcoming = []
    for ev in matching:
        added = parse_iso_date(ev.added_at)
        if added is not None and new_from <= added <= today:
            new_this_week.append(ev)

        start = parse_iso_date(ev.start_date)
        if start is not None and today <= start <= upcoming_until:
            upcoming.append(ev)

    return DigestResult(
        new_this_week=_dedupe_and_sort(new_this_week),
        upcoming=_dedupe_and_sort(upcoming),
    )
