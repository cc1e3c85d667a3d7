"""Route dependencies (overridable in tests)"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from letsrace.collector.events import EventSourceAdapter
from letsrace.digest.runner import DigestRunner
from letsrace.mailer.smtp_sender import MailSender, get_sender
from letsrace.reporter.generator import DigestRenderer, get_renderer
from letsrace.subscription.manager import SubscriptionManager
from letsrace.subscription.tokens import verify_admin_token

security_logger = logging.getLogger("security")


def get_subscription_manager() -> SubscriptionManager:
    return SubscriptionManager()


def get_event_source(request: Request) -> EventSourceAdapter:
    """Application-wide adapter so its event cache survives between requests"""
    event_source = getattr(request.app.state, "event_source", None)
    if event_source is None:
        event_source = EventSourceAdapter()
        request.app.state.event_source = event_source
    return event_source


def get_mail_sender() -> MailSender:
    return get_sender()


def get_digest_renderer() -> DigestRenderer:
    return get_renderer()


def get_digest_runner(
    event_source: EventSourceAdapter = Depends(get_event_source),
) -> DigestRunner:
    return DigestRunner(event_source=event_source)


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
) -> None:
    if not verify_admin_token(x_admin_token):
        client = request.client.host if request.client else "-"
        security_logger.warning("Admin token rejected for %s from %s", request.url.path, client)
        raise HTTPException(status_code=401, detail="Unauthorized. Admin token required.")


async def json_body(request: Request) -> dict:
    """Decoded JSON object body; 400 otherwise"""
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON in request body.")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON in request body.")
    return payload
