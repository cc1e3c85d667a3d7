"""
LetsRace.cc digest entry point

Runs the weekly digest on a daily schedule (each subscriber picks a
weekday), or once on demand.
"""

import argparse
import logging
import sys
from datetime import date

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

from letsrace.collector.events import EventSourceAdapter
from letsrace.config import settings
from letsrace.database import init_db
from letsrace.digest.runner import DigestRunner
from letsrace.errors import DigestError
from letsrace.timeutils import parse_iso_date

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Console + file logging"""
    log_dir = settings.BASE_DIR / "logs"
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "letsrace.log", encoding="utf-8"),
        ],
    )


def run_digest_job(today: date = None, event_source: EventSourceAdapter = None) -> None:
    """One digest run; errors are logged, never raised into the scheduler"""
    logger.info("=" * 50)
    logger.info("Digest run starting")
    logger.info("=" * 50)

    try:
        result = DigestRunner(event_source=event_source).run(today=today)
        logger.info(
            f"Digest run finished: {result.sent} sent, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        for error in result.errors:
            logger.warning(f"  {error['email']}: {error['error']}")
    except DigestError as e:
        logger.error(f"Digest run aborted: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error during digest run: {e}")


def run_scheduler() -> None:
    """Run the daily digest job on a cron schedule"""
    logger.info("Digest scheduler starting")

    scheduler = BlockingScheduler(timezone=settings.timezone)

    # Reused by every job so cached category documents outlive a single run
    event_source = EventSourceAdapter()

    trigger = CronTrigger(
        hour=settings.schedule_hour,
        minute=settings.schedule_minute,
        timezone=settings.timezone,
    )

    scheduler.add_job(
        run_digest_job,
        trigger=trigger,
        kwargs={"event_source": event_source},
        id="daily_digest",
        name="Weekly digest for subscribers due today",
    )

    logger.info(
        f"Scheduled daily at {settings.schedule_hour:02d}:{settings.schedule_minute:02d} "
        f"({settings.timezone})"
    )

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
        scheduler.shutdown()


def main():
    parser = argparse.ArgumentParser(description="LetsRace.cc weekly email digest")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Run the digest immediately instead of scheduling it"
    )
    parser.add_argument(
        "--date",
        help="Reference date (YYYY-MM-DD) for --run-once"
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the web API"
    )

    args = parser.parse_args()

    load_dotenv()
    setup_logging()

    init_db(settings.database_url)

    today = None
    if args.date:
        today = parse_iso_date(args.date)
        if today is None:
            logger.error(f"Invalid --date: {args.date}")
            sys.exit(2)

    if args.serve:
        import uvicorn
        uvicorn.run("letsrace.web.app:app", host="0.0.0.0", port=8000)
    elif args.run_once:
        logger.info("Running digest once")
        run_digest_job(today)
    else:
        run_scheduler()


if __name__ == "__main__":
    main()
