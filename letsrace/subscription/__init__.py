"""
Subscriber records, store and tokens
"""

from .models import Subscriber, validate_subscription_payload
from .store import SubscriberStore
from .manager import SubscriptionManager

__all__ = [
    "Subscriber",
    "validate_subscription_payload",
    "SubscriberStore",
    "SubscriptionManager",
]
