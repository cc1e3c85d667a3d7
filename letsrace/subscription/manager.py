"""
Subscription manager - subscribe (upsert by email) and unsubscribe by token
"""

import logging
from typing import Optional

from .models import (
    Subscriber,
    STATUS_ACTIVE,
    STATUS_UNSUBSCRIBED,
    STATUS_BOUNCED,
    utc_now_iso,
    validate_subscription_payload,
)
from .store import SubscriberStore
from .tokens import verify_unsubscribe_token

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Subscription management"""

    def __init__(self, store: Optional[SubscriberStore] = None):
        self.store = store or SubscriberStore()

    def subscribe(self, payload: dict) -> Subscriber:
        """
        Create or update a subscription

        The payload is validated before the store is touched. A repeat
        subscription updates the existing record in place, reactivating it
        if it was unsubscribed or bounced.

        Args:
            payload: {email, region, disciplines, send_day?}

        Returns:
            The stored Subscriber

        Raises:
            ValidationError: invalid payload
            StoreError: store read/write failure
        """
        request = validate_subscription_payload(payload)

        subscribers = self.store.load()
        existing = next((s for s in subscribers if s.email.lower() == request.email), None)

        if existing:
            previous_status = existing.status
            existing.region = request.region
            existing.disciplines = request.disciplines
            existing.send_day = request.send_day
            existing.status = STATUS_ACTIVE
            existing.created_at = existing.created_at or utc_now_iso()
            if previous_status == STATUS_BOUNCED:
                existing.last_error = None
            existing.touch()
            subscriber = existing
            logger.info(f"Subscription updated ({previous_status} -> active): {request.email}")
        else:
            subscriber = Subscriber(
                email=request.email,
                region=request.region,
                disciplines=request.disciplines,
                send_day=request.send_day,
            )
            subscribers.append(subscriber)
            logger.info(f"New subscriber: {request.email}")

        self.store.save(subscribers)
        return subscriber

    def unsubscribe(self, token: str) -> bool:
        """
        Unsubscribe the holder of a valid token

        Returns:
            True if a record was changed, False if the subscriber no longer exists

        Raises:
            AuthError: invalid, expired or malformed token
            StoreError: store read/write failure
        """
        token_data = verify_unsubscribe_token(token)

        subscribers = self.store.load()
        subscriber = next((s for s in subscribers if s.id == token_data["id"]), None)
        if subscriber is None:
            logger.info(f"Unsubscribe for unknown subscriber id: {token_data['id']}")
            return False

        subscriber.status = STATUS_UNSUBSCRIBED
        subscriber.touch()
        self.store.save(subscribers)
        logger.info(f"Unsubscribed: {subscriber.email}")
        return True
