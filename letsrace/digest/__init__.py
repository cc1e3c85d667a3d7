"""
Digest filtering and batch sending
"""

from .filter import DigestResult, filter_events_for_subscriber

__all__ = [
    "DigestResult",
    "filter_events_for_subscriber",
]
