"""
Render a digest preview to an HTML file (nothing is sent or stored)

Usage:
    python scripts/preview_digest.py --region Scotland --disciplines Road
    python scripts/preview_digest.py --region Wales --disciplines "MTB,BMX" --date 2025-06-15 --output preview.html
"""

import argparse
import sys
from pathlib import Path

# Project root on the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

import logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(message)s")
logger = logging.getLogger(__name__)

from letsrace.collector.events import EventSourceAdapter
from letsrace.errors import UpstreamFetchError
from letsrace.reporter.generator import generate_digest
from letsrace.subscription.models import Subscriber
from letsrace.timeutils import parse_iso_date, today_in_timezone


def main():
    parser = argparse.ArgumentParser(description="LetsRace.cc digest preview")
    parser.add_argument("--region", required=True, help="Region name")
    parser.add_argument("--disciplines", required=True, help="Disciplines (comma separated)")
    parser.add_argument("--date", help="Reference date (YYYY-MM-DD)")
    parser.add_argument("--output", default="digest_preview.html", help="Output HTML path")

    args = parser.parse_args()

    today = parse_iso_date(args.date) if args.date else today_in_timezone()
    if today is None:
        print(f"Invalid date: {args.date}")
        sys.exit(2)

    subscriber = Subscriber(
        id="preview",
        email="preview@letsrace.cc",
        region=args.region,
        disciplines=[d.strip() for d in args.disciplines.split(",") if d.strip()],
    )

    try:
        events = EventSourceAdapter().load_events()
    except UpstreamFetchError as e:
        logger.error(f"Could not load events: {e}")
        sys.exit(1)

    digest = generate_digest(subscriber, events, today)

    output = Path(args.output)
    output.write_text(digest.html, encoding="utf-8")

    print(f"Subject: {digest.subject}")
    print(f"Has content: {digest.has_content}")
    print(f"Written to {output.resolve()}")


if __name__ == "__main__":
    main()
