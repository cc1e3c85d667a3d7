"""
Subscriber record and subscription payload validation
"""

import re
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from ..config import settings
from ..errors import ValidationError
from ..timeutils import WEEKDAYS

VALID_REGIONS = [
    "Central",
    "Eastern",
    "London & South East",
    "East Midlands",
    "West Midlands",
    "North East",
    "North West",
    "Scotland",
    "South",
    "South West",
    "Wales",
    "Yorkshire & Humber",
]

VALID_DISCIPLINES = [
    "Road",
    "Track",
    "BMX",
    "MTB",
    "Cyclo Cross",
    "Speedway",
    "Time Trial",
    "Hill Climb",
]

VALID_WEEKDAYS = WEEKDAYS

STATUS_ACTIVE = "active"
STATUS_UNSUBSCRIBED = "unsubscribed"
STATUS_BOUNCED = "bounced"

MAX_ERROR_LENGTH = 200

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Subscriber:
    """Digest subscriber (one per normalized email)"""
    email: str
    region: str
    disciplines: list[str]
    send_day: str = "Friday"
    status: str = STATUS_ACTIVE
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)
    last_sent_at: Optional[str] = None
    last_error: Optional[str] = None

    def __post_init__(self):
        self.email = (self.email or "").strip().lower()

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def is_due(self, weekday: str) -> bool:
        """Runner selection: active, today's send day, no recorded error"""
        return self.is_active and self.send_day == weekday and not self.last_error

    def touch(self) -> None:
        self.updated_at = utc_now_iso()

    def record_sent(self) -> None:
        now = utc_now_iso()
        self.last_sent_at = now
        self.last_error = None
        self.updated_at = now

    def record_error(self, message: str) -> None:
        self.last_error = (message or "Unknown error")[:MAX_ERROR_LENGTH]
        self.touch()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Subscriber":
        disciplines = data.get("disciplines") or []
        if isinstance(disciplines, str):
            disciplines = [disciplines]

        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            email=data.get("email", ""),
            region=data.get("region", ""),
            disciplines=list(disciplines),
            send_day=data.get("send_day") or settings.default_send_day,
            status=data.get("status") or STATUS_ACTIVE,
            created_at=data.get("created_at") or utc_now_iso(),
            updated_at=data.get("updated_at") or data.get("created_at") or utc_now_iso(),
            last_sent_at=data.get("last_sent_at"),
            last_error=data.get("last_error"),
        )


@dataclass
class SubscriptionRequest:
    """Validated subscribe payload"""
    email: str
    region: str
    disciplines: list[str]
    send_day: str


def is_valid_email(email) -> bool:
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_subscription_payload(payload) -> SubscriptionRequest:
    """
    Validate a subscribe payload

    Args:
        payload: decoded JSON body

    Returns:
        SubscriptionRequest with a normalized email and default send day

    Raises:
        ValidationError: with one message per problem found
    """
    if not isinstance(payload, dict):
        raise ValidationError(["Request body must be a JSON object."])

    errors = []

    email = payload.get("email")
    if not is_valid_email(email):
        errors.append("Please provide a valid email address.")

    region = payload.get("region")
    if not region or region not in VALID_REGIONS:
        errors.append("Please select a valid region.")

    disciplines = payload.get("disciplines")
    if not isinstance(disciplines, list) or len(disciplines) == 0:
        errors.append("Please select at least one discipline.")
    else:
        invalid = [str(d) for d in disciplines if d not in VALID_DISCIPLINES]
        if invalid:
            errors.append(f"Invalid disciplines: {', '.join(invalid)}")

    send_day = payload.get("send_day")
    if send_day and send_day not in VALID_WEEKDAYS:
        errors.append("Please select a valid weekday.")

    if errors:
        raise ValidationError(errors)

    return SubscriptionRequest(
        email=email.strip().lower(),
        region=region,
        disciplines=list(dict.fromkeys(disciplines)),
        send_day=send_day or settings.default_send_day,
    )
