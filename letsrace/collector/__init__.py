"""
Event feed collection
"""

from .events import Event, EventCache, EventSourceAdapter, normalize_event

__all__ = [
    "Event",
    "EventCache",
    "EventSourceAdapter",
    "normalize_event",
]
