"""
Digest runner - one pass over every subscriber due today

The subscriber document is read once at the start and written once at the
end. Subscribers are processed one after another; a failure for one is
recorded on that subscriber and the batch carries on.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..collector.events import EventSourceAdapter
from ..mailer.smtp_sender import MailSender
from ..reporter.generator import DigestRenderer, generate_digest
from ..subscription.store import SubscriberStore
from ..timeutils import today_in_timezone, weekday_name

logger = logging.getLogger(__name__)

OUTCOME_SENT = "sent"
OUTCOME_FAILED = "failed"
OUTCOME_SKIPPED = "skipped"


@dataclass
class DigestRunResult:
    """Counts for one run"""
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)
    selected: int = 0

    def to_dict(self) -> dict:
        return {
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class DigestRunner:
    """Send the weekly digest to every subscriber due on a given day"""

    def __init__(
        self,
        store: Optional[SubscriberStore] = None,
        event_source: Optional[EventSourceAdapter] = None,
        sender: Optional[MailSender] = None,
        renderer: Optional[DigestRenderer] = None
    ):
        self.store = store or SubscriberStore()
        self.event_source = event_source or EventSourceAdapter()
        self.sender = sender or MailSender()
        self.renderer = renderer or DigestRenderer()

    def run(self, today: date = None) -> DigestRunResult:
        """
        Args:
            today: reference date (defaults to today in the site timezone)

        Returns:
            DigestRunResult

        Raises:
            UpstreamFetchError: manifest unavailable (nothing is written)
            StoreError: store read/write failure
        """
        today = today or today_in_timezone()
        weekday = weekday_name(today)
        logger.info(f"Starting digest run for {weekday} ({today.isoformat()})")

        subscribers = self.store.load()
        selected = [s for s in subscribers if s.is_due(weekday)]
        result = DigestRunResult(selected=len(selected))

        logger.info(f"Found {len(selected)} subscribers to process")
        if not selected:
            return result

        events = self.event_source.load_events()

        for subscriber in selected:
            outcome = self._process(subscriber, events, today, result)
            logger.debug(f"{subscriber.email}: {outcome}")

        self.store.save(subscribers)

        logger.info(
            f"Digest run complete: {result.sent} sent, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result

    def _process(self, subscriber, events, today: date, result: DigestRunResult) -> str:
        """selected -> generated -> skipped | sent | failed"""
        try:
            digest = generate_digest(subscriber, events, today, renderer=self.renderer)

            if not digest.has_content:
                logger.info(f"Skipping {subscriber.email} - no content")
                result.skipped += 1
                return OUTCOME_SKIPPED

            send_result = self.sender.send(subscriber.email, digest.subject, digest.html)
            send_result.raise_for_status()

        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"Failed to send to {subscriber.email}: {message}")
            subscriber.record_error(message)
            result.failed += 1
            result.errors.append({"email": subscriber.email, "error": message})
            return OUTCOME_FAILED

        subscriber.record_sent()
        result.sent += 1
        logger.info(f"Sent digest to {subscriber.email}")
        return OUTCOME_SENT
