"""
HTML email digest generator
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from ..config import settings
from ..collector.events import Event
from ..digest.filter import DigestResult, filter_events_for_subscriber
from ..subscription.tokens import generate_unsubscribe_token
from ..timeutils import format_event_date

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


@dataclass
class RenderedDigest:
    """Rendered email (has_content gates sending)"""
    subject: str
    html: str
    has_content: bool


def friendly_name(email: str) -> str:
    """'jane.doe@example.com' -> 'Jane'"""
    local_part = (email or "").split("@")[0]
    first_word = re.sub(r"[._-]", " ", local_part).strip().split(" ")[0]
    if not first_word:
        return "friend"
    return first_word[0].upper() + first_word[1:]


def safe_link(url: str) -> str:
    """Feed URLs are untrusted; only http(s) links are rendered"""
    if not url:
        return ""
    try:
        scheme = urlparse(url.strip()).scheme.lower()
    except ValueError:
        return ""
    return url.strip() if scheme in ("http", "https") else ""


def generate_subject(subscriber) -> str:
    disciplines_label = " & ".join(list(subscriber.disciplines or [])[:2])
    return f"LetsRace.cc: {subscriber.region} {disciplines_label} races – new & upcoming"


class DigestRenderer:
    """Digest email renderer"""

    def __init__(self, template_dir: str = None):
        """
        Args:
            template_dir: template directory path
        """
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR

        self.template_dir = Path(template_dir)

        self._env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @staticmethod
    def _event_context(event: Event) -> dict:
        return {
            "date_label": format_event_date(event.start_date),
            "name": event.name,
            "venue": event.venue,
            "url": safe_link(event.url),
        }

    def unsubscribe_url(self, subscriber) -> str:
        token = generate_unsubscribe_token(subscriber.id, subscriber.email)
        return f"{settings.unsubscribe_page_url}?token={quote(token, safe='')}"

    def render(self, subscriber, result: DigestResult, today: date) -> RenderedDigest:
        """
        Render the digest for one subscriber

        Args:
            subscriber: Subscriber (or any object with id/email/region/disciplines)
            result: filtered events
            today: reference date

        Returns:
            RenderedDigest
        """
        context = {
            "friendly_name": friendly_name(subscriber.email),
            "region": subscriber.region or "",
            "disciplines_label": ", ".join(subscriber.disciplines or []),
            "today_label": format_event_date(today),
            "new_this_week": [self._event_context(ev) for ev in result.new_this_week],
            "upcoming": [self._event_context(ev) for ev in result.upcoming],
            "unsubscribe_url": self.unsubscribe_url(subscriber),
            "website_url": settings.base_website_url,
            "privacy_url": settings.privacy_page_url,
        }

        try:
            template = self._env.get_template("digest_email.html")
            html = template.render(**context)
        except Exception as e:
            logger.error(f"Template rendering failed: {e}")
            html = self._generate_fallback_html(context)

        return RenderedDigest(
            subject=generate_subject(subscriber),
            html=html,
            has_content=result.has_content,
        )

    @staticmethod
    def _generate_fallback_html(context: dict) -> str:
        """Plain fallback if the template cannot be rendered"""

        def event_list(events: list[dict], empty_message: str) -> str:
            if not events:
                return f"<p style='color: #666;'>{escape(empty_message)}</p>"
            items = []
            for ev in events:
                venue = f" &mdash; {escape(ev['venue'])}" if ev["venue"] else ""
                items.append(f"<li><strong>{escape(ev['date_label'])}</strong> &mdash; {escape(ev['name'])}{venue}</li>")
            return "<ul style='list-style: none; padding: 0;'>" + "\n".join(items) + "</ul>"

        region = escape(context["region"])
        html_parts = [
            "<!DOCTYPE html>",
            "<html lang='en'><head><meta charset='utf-8'></head>",
            "<body style='font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;'>",
            "<h1 style='color: #0066cc;'>LetsRace.cc</h1>",
            f"<p>Hi {escape(context['friendly_name'])},</p>",
            f"<h2>New this week in {region}</h2>",
            event_list(context["new_this_week"], "No newly added events this week for your filters."),
            "<h2>Coming up in the next 6 weeks</h2>",
            event_list(context["upcoming"], "No upcoming events in the next 6 weeks for your filters."),
            f"<p><a href='{escape(context['unsubscribe_url'])}'>Unsubscribe instantly</a></p>",
            "</body></html>",
        ]
        return "\n".join(html_parts)


def generate_digest(
    subscriber,
    events: list[Event],
    today: date,
    renderer: Optional[DigestRenderer] = None
) -> RenderedDigest:
    """Filter + render for one subscriber"""
    result = filter_events_for_subscriber(events, subscriber, today)
    return (renderer or get_renderer()).render(subscriber, result, today)


_renderer: Optional[DigestRenderer] = None


def get_renderer() -> DigestRenderer:
    """Shared renderer instance"""
    global _renderer
    if _renderer is None:
        _renderer = DigestRenderer()
    return _renderer
