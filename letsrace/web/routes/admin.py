"""Admin Routes - digest preview, test send and manual run

All endpoints require the shared admin token in the X-Admin-Token header.
Preview and test never read or write the subscriber store.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from letsrace.collector.events import EventSourceAdapter
from letsrace.digest.runner import DigestRunner
from letsrace.errors import DigestError
from letsrace.mailer.smtp_sender import MailSender
from letsrace.reporter.generator import DigestRenderer, generate_digest
from letsrace.subscription.models import Subscriber, is_valid_email
from letsrace.timeutils import parse_iso_date, today_in_timezone
from letsrace.web.dependencies import (
    get_digest_renderer,
    get_digest_runner,
    get_event_source,
    get_mail_sender,
    json_body,
    require_admin,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _reference_date(payload: dict) -> date:
    raw = payload.get("date")
    if not raw:
        return today_in_timezone()
    parsed = parse_iso_date(raw)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid date format. Use ISO8601.")
    return parsed


def _adhoc_subscriber(payload: dict, subscriber_id: str, email: str) -> Subscriber:
    region = payload.get("region")
    disciplines = payload.get("disciplines")
    if (
        not isinstance(region, str) or not region
        or not isinstance(disciplines, list) or not disciplines
        or not all(isinstance(d, str) for d in disciplines)
    ):
        raise HTTPException(status_code=400, detail="region and disciplines (array) are required.")
    return Subscriber(id=subscriber_id, email=email, region=region, disciplines=disciplines)


@router.post("/preview-digest")
async def preview_digest(
    payload: dict = Depends(json_body),
    event_source: EventSourceAdapter = Depends(get_event_source),
    renderer: DigestRenderer = Depends(get_digest_renderer),
):
    subscriber = _adhoc_subscriber(payload, "preview", "preview@letsrace.cc")
    today = _reference_date(payload)

    try:
        events = await event_source.fetch_events()
    except DigestError as e:
        logger.error(f"Preview digest failed: {e}")
        return JSONResponse(status_code=502, content={"success": False, "message": "Failed to load events."})

    digest = generate_digest(subscriber, events, today, renderer=renderer)
    return {
        "success": True,
        "subject": digest.subject,
        "html": digest.html,
        "hasContent": digest.has_content,
    }


@router.post("/test-digest")
async def test_digest(
    payload: dict = Depends(json_body),
    event_source: EventSourceAdapter = Depends(get_event_source),
    renderer: DigestRenderer = Depends(get_digest_renderer),
    sender: MailSender = Depends(get_mail_sender),
):
    email = payload.get("email")
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Valid email address is required.")

    subscriber = _adhoc_subscriber(payload, "test", email)
    today = _reference_date(payload)

    try:
        events = await event_source.fetch_events()
    except DigestError as e:
        logger.error(f"Test digest failed: {e}")
        return JSONResponse(status_code=502, content={"success": False, "message": "Failed to load events."})

    digest = generate_digest(subscriber, events, today, renderer=renderer)
    result = await sender.send_async(subscriber.email, digest.subject, digest.html)
    if not result.success:
        logger.error(f"Test digest send failed: {result.error_message}")
        return JSONResponse(status_code=502, content={"success": False, "message": "Failed to send test email."})

    return {
        "success": True,
        "message": f"Test email sent to {subscriber.email}",
        "subject": digest.subject,
        "hasContent": digest.has_content,
    }


@router.post("/run-digest")
def run_digest(
    request: Request,
    runner: DigestRunner = Depends(get_digest_runner),
):
    today: Optional[date] = None
    date_override = request.query_params.get("date")
    if date_override:
        today = _reference_date({"date": date_override})

    try:
        result = runner.run(today=today)
    except DigestError as e:
        logger.error(f"Digest run failed: {e}")
        return JSONResponse(status_code=500, content={"success": False, "message": "Failed to run digest."})

    return {"success": True, "message": "Digest run triggered", "results": result.to_dict()}
