"""
Database module
"""

from .models import Base, Document
from .repository import (
    init_db,
    is_initialized,
    get_session,
    DocumentRepository,
)

__all__ = [
    "Base",
    "Document",
    "init_db",
    "is_initialized",
    "get_session",
    "DocumentRepository",
]
