"""
SQLAlchemy models for the durable document store
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Document(Base):
    """A named JSON document, read and written wholesale"""
    __tablename__ = "documents"

    key = Column(String(255), primary_key=True)
    body = Column(Text, nullable=False, default="[]")

    # Incremented on every write (optimistic concurrency)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Document(key='{self.key}', version={self.version})>"
