"""
Document store repository
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from .models import Base, Document

logger = logging.getLogger(__name__)

# Engine and session factory
_engine = None
_SessionLocal = None


def init_db(database_url: str = "sqlite:///./data/letsrace.db") -> None:
    """Initialize the database and create tables"""
    global _engine, _SessionLocal

    # data directory
    if database_url.startswith("sqlite:///"):
        db_path = database_url.replace("sqlite:///", "")
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    _engine = create_engine(
        database_url,
        echo=False,
        connect_args={"check_same_thread": False} if "sqlite" in database_url else {}
    )
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    Base.metadata.create_all(bind=_engine)
    logger.info(f"Document store initialized: {database_url}")


def is_initialized() -> bool:
    return _SessionLocal is not None


@contextmanager
def get_session():
    """Session context manager"""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class DocumentRepository:
    """Versioned JSON document repository"""

    @staticmethod
    def get(session: Session, key: str) -> Optional[Document]:
        return session.query(Document).filter(Document.key == key).first()

    @staticmethod
    def create(session: Session, key: str, body: str) -> Document:
        document = Document(key=key, body=body, version=1)
        session.add(document)
        session.flush()
        return document

    @staticmethod
    def compare_and_set(
        session: Session,
        key: str,
        body: str,
        expected_version: int
    ) -> bool:
        """
        Replace the document body only if its version is unchanged

        Returns:
            True if the row was updated
        """
        updated = (
            session.query(Document)
            .filter(Document.key == key, Document.version == expected_version)
            .update(
                {
                    Document.body: body,
                    Document.version: Document.version + 1,
                    Document.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def overwrite(session: Session, key: str, body: str) -> Document:
        """Last-writer-wins replacement"""
        document = DocumentRepository.get(session, key)
        if document is None:
            return DocumentRepository.create(session, key, body)

        document.body = body
        document.version = (document.version or 0) + 1
        document.updated_at = datetime.utcnow()
        session.flush()
        return document
