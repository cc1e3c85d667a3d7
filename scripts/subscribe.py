"""
Add or update a digest subscriber from the command line

Usage:
    python scripts/subscribe.py --email rider@example.com --region Scotland --disciplines "Road,Time Trial"
    python scripts/subscribe.py --email rider@example.com --region Wales --disciplines MTB --send-day Monday
"""

import argparse
import sys
from pathlib import Path

# Project root on the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

import logging
logging.basicConfig(level=logging.INFO, format="%(message)s")

from letsrace.errors import StoreError, ValidationError
from letsrace.subscription.manager import SubscriptionManager
from letsrace.subscription.tokens import generate_unsubscribe_token


def main():
    parser = argparse.ArgumentParser(description="LetsRace.cc digest subscription")
    parser.add_argument("--email", required=True, help="Email address")
    parser.add_argument("--region", required=True, help="Region name, e.g. 'Scotland'")
    parser.add_argument("--disciplines", required=True, help="Disciplines (comma separated)")
    parser.add_argument("--send-day", help="Weekday to receive the digest")

    args = parser.parse_args()

    payload = {
        "email": args.email,
        "region": args.region,
        "disciplines": [d.strip() for d in args.disciplines.split(",") if d.strip()],
    }
    if args.send_day:
        payload["send_day"] = args.send_day

    print("\n" + "=" * 50)
    print("LetsRace.cc digest subscription")
    print("=" * 50)

    try:
        subscriber = SubscriptionManager().subscribe(payload)
    except ValidationError as e:
        for error in e.errors:
            print(f"  ✗ {error}")
        sys.exit(1)
    except StoreError as e:
        print(f"  ✗ Could not save subscription: {e}")
        sys.exit(1)

    print("\nSubscribed!")
    print(f"  - Email: {subscriber.email}")
    print(f"  - Region: {subscriber.region}")
    print(f"  - Disciplines: {', '.join(subscriber.disciplines)}")
    print(f"  - Send day: {subscriber.send_day}")
    print(f"  - Unsubscribe token: {generate_unsubscribe_token(subscriber.id, subscriber.email)}")

    print("\n" + "=" * 50)


if __name__ == "__main__":
    main()
