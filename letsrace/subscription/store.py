"""
Subscriber store - all subscribers live in one JSON document

The document is read and written wholesale. With optimistic locking enabled
a write only succeeds if nobody else wrote the document since it was loaded;
otherwise concurrent writers silently clobber each other (last writer wins).
"""

import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..database import get_session, init_db, is_initialized, DocumentRepository
from ..errors import StoreError, StoreConflictError
from .models import Subscriber

logger = logging.getLogger(__name__)


class SubscriberStore:
    """Read/write the subscriber document"""

    def __init__(
        self,
        document_key: str = None,
        optimistic_locking: bool = None
    ):
        self.document_key = document_key or settings.subscribers_document_key
        self.optimistic_locking = (
            settings.store_optimistic_locking if optimistic_locking is None else optimistic_locking
        )
        # Version seen by the last load(); 0 means "document did not exist"
        self._version: Optional[int] = None

        if not is_initialized():
            init_db(settings.database_url)

    def load(self) -> list[Subscriber]:
        """Read every subscriber record (missing document -> empty list)"""
        try:
            with get_session() as session:
                document = DocumentRepository.get(session, self.document_key)
                if document is None:
                    self._version = 0
                    return []
                body, self._version = document.body, document.version
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read subscribers: {e}") from e

        try:
            records = json.loads(body or "[]")
        except ValueError as e:
            raise StoreError(f"Subscriber document is not valid JSON: {e}") from e

        if not isinstance(records, list):
            return []
        return [Subscriber.from_dict(r) for r in records if isinstance(r, dict)]

    def save(self, subscribers: list[Subscriber]) -> None:
        """
        Write the whole collection back

        Raises:
            StoreConflictError: optimistic locking on and the document changed
            StoreError: any other persistence failure
        """
        body = json.dumps([s.to_dict() for s in subscribers], indent=2, ensure_ascii=False)

        try:
            with get_session() as session:
                if not self.optimistic_locking or self._version is None:
                    document = DocumentRepository.overwrite(session, self.document_key, body)
                elif self._version == 0:
                    if DocumentRepository.get(session, self.document_key) is not None:
                        raise StoreConflictError("Subscriber document was created concurrently")
                    document = DocumentRepository.create(session, self.document_key, body)
                else:
                    if not DocumentRepository.compare_and_set(
                        session, self.document_key, body, self._version
                    ):
                        raise StoreConflictError("Subscriber document changed since it was loaded")
                    document = None
                new_version = document.version if document is not None else self._version + 1
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write subscribers: {e}") from e

        self._version = new_version
        logger.info(f"Saved {len(subscribers)} subscribers (version {new_version})")

    def find_by_email(self, email: str) -> Optional[Subscriber]:
        """Case-insensitive lookup"""
        target = (email or "").strip().lower()
        return next((s for s in self.load() if s.email.lower() == target), None)

    def find_by_id(self, subscriber_id: str) -> Optional[Subscriber]:
        return next((s for s in self.load() if s.id == subscriber_id), None)

    def update(self, subscriber_id: str, **changes) -> Subscriber:
        """Load, patch one record, save"""
        subscribers = self.load()
        for subscriber in subscribers:
            if subscriber.id == subscriber_id:
                for name, value in changes.items():
                    setattr(subscriber, name, value)
                subscriber.touch()
                self.save(subscribers)
                return subscriber

        raise StoreError("Subscriber not found")
