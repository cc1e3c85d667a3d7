"""
Digest renderer tests
"""

import re
from datetime import date
from urllib.parse import unquote

import pytest

from conftest import make_event, make_subscriber
from letsrace.digest.filter import DigestResult
from letsrace.reporter.generator import (
    DigestRenderer,
    friendly_name,
    generate_digest,
    generate_subject,
)
from letsrace.subscription.tokens import verify_unsubscribe_token

TODAY = date(2025, 6, 15)


class TestDigestRenderer:
    """DigestRenderer.render"""

    @pytest.fixture
    def renderer(self):
        return DigestRenderer()

    @pytest.fixture
    def subscriber(self):
        return make_subscriber(email="jane.doe@example.com")

    def test_sections_and_event_details(self, renderer, subscriber):
        event = make_event(name="Tour of the Borders", venue="Peebles", url="https://example.com/tob")
        result = DigestResult(new_this_week=[event], upcoming=[event])

        digest = renderer.render(subscriber, result, TODAY)

        assert digest.has_content is True
        assert "New this week in Scotland" in digest.html
        assert "Coming up in the next 6 weeks" in digest.html
        assert "Fri 20 Jun 2025" in digest.html
        assert 'href="https://example.com/tob"' in digest.html
        assert "Peebles" in digest.html
        assert "Hi Jane," in digest.html

    def test_event_text_is_escaped(self, renderer, subscriber):
        event = make_event(name="<script>alert('x')</script>", venue='Bar & "Grill"')
        result = DigestResult(upcoming=[event])

        html = renderer.render(subscriber, result, TODAY).html

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Bar &amp; " in html
        assert '"Grill"' not in html

    @pytest.mark.parametrize("url", ["javascript:alert(1)", "data:text/html,hi", "http://[::1"])
    def test_unsafe_event_links_dropped(self, renderer, subscriber, url):
        event = make_event(name="Dodgy Link GP", url=url)

        html = renderer.render(subscriber, DigestResult(upcoming=[event]), TODAY).html

        assert "Dodgy Link GP" in html
        assert "javascript:" not in html
        assert "data:text" not in html
        assert "[::1" not in html

    def test_empty_digest_still_renders(self, renderer, subscriber):
        digest = renderer.render(subscriber, DigestResult(), TODAY)

        assert digest.has_content is False
        assert "No newly added events this week for your filters." in digest.html
        assert "No upcoming events in the next 6 weeks for your filters." in digest.html

    def test_unsubscribe_link_carries_valid_token(self, renderer, subscriber):
        html = renderer.render(subscriber, DigestResult(), TODAY).html

        match = re.search(r'email-unsubscribed\.html\?token=([^"]+)"', html)
        assert match is not None
        token = unquote(match.group(1))
        assert verify_unsubscribe_token(token) == {"id": subscriber.id, "email": "jane.doe@example.com"}

    def test_missing_optional_fields(self, renderer, subscriber):
        event = make_event(venue="", url="", start_date="date TBC")

        html = renderer.render(subscriber, DigestResult(new_this_week=[event]), TODAY).html

        assert "date TBC" in html
        assert "<a href=\"\"" not in html

    def test_fallback_html_when_template_missing(self, tmp_path, subscriber):
        renderer = DigestRenderer(template_dir=str(tmp_path))
        event = make_event(name="A & B Crit")

        digest = renderer.render(subscriber, DigestResult(upcoming=[event]), TODAY)

        assert digest.has_content is True
        assert "A &amp; B Crit" in digest.html
        assert "Unsubscribe" in digest.html


class TestSubjectAndGreeting:
    """Subject line and greeting helpers"""

    def test_subject_uses_first_two_disciplines(self):
        subscriber = make_subscriber(region="Wales", disciplines=["Road", "MTB", "BMX"])

        assert generate_subject(subscriber) == "LetsRace.cc: Wales Road & MTB races – new & upcoming"

    @pytest.mark.parametrize("email, expected", [
        ("jane.doe@example.com", "Jane"),
        ("bob_smith@example.com", "Bob"),
        ("x-ray@example.com", "X"),
        ("@example.com", "friend"),
    ])
    def test_friendly_name(self, email, expected):
        assert friendly_name(email) == expected


class TestGenerateDigest:
    """filter + render"""

    def test_region_mismatch_has_no_content(self):
        subscriber = make_subscriber(region="Scotland")
        events = [make_event(region="Wales")]

        assert generate_digest(subscriber, events, TODAY).has_content is False

    def test_matching_event_has_content(self):
        subscriber = make_subscriber(region="Scotland")

        digest = generate_digest(subscriber, [make_event()], TODAY)

        assert digest.has_content is True
        assert "Tour of the Borders" in digest.html


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
