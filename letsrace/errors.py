"""
Exception taxonomy for the digest service
"""


class DigestError(Exception):
    """Base class for all service errors"""


class ValidationError(DigestError):
    """Bad input shape or values (itemized)"""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(" ".join(self.errors))


class AuthError(DigestError):
    """Admin token or unsubscribe token rejected"""


class UpstreamFetchError(DigestError):
    """Manifest or category document unreachable or invalid"""


class TransportError(DigestError):
    """Mail transport failed to deliver a message"""


class StoreError(DigestError):
    """Subscriber store read/write failure"""


class StoreConflictError(StoreError):
    """The stored document changed since it was loaded"""
