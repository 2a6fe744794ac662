"""Command line entry point for scheduled automation.

Run from cron, for example:

    0 * * * *  realtyflow-automation expire-trials
    0 9 * * *  realtyflow-automation daily-digest
"""

import argparse
import asyncio
import sys
from datetime import UTC, datetime

from realtyflow.automation.jobs import daily_digest, expire_trials
from realtyflow.config.settings import Settings, get_settings
from realtyflow.core.logging import get_logger, setup_logging
from realtyflow.db.config import close_db, configure_engine, get_async_session

logger = get_logger(__name__)

JOBS = ("expire-trials", "daily-digest", "all")


def _parse_now(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value}") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realtyflow-automation",
        description="Run RealtyFlow scheduled jobs once and exit.",
    )
    parser.add_argument("job", choices=JOBS, help="Job to run")
    parser.add_argument(
        "--now",
        type=_parse_now,
        default=None,
        help="Override the current time (ISO-8601, UTC if no offset)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON logs regardless of environment",
    )
    return parser


async def run(job: str, settings: Settings, now: datetime | None = None) -> dict[str, int]:
    """Run a job in its own unit of work and return a summary."""
    summary: dict[str, int] = {}
    configure_engine(settings)
    try:
        async with get_async_session() as session:
            if job in ("expire-trials", "all"):
                expired = await expire_trials(session, settings, now)
                summary["expired_tenants"] = len(expired)
            if job in ("daily-digest", "all"):
                digests = await daily_digest(session, now)
                summary["digests"] = len(digests)
            await session.commit()
    finally:
        await close_db()
    return summary


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings, json_format=True if args.json_logs else None)

    try:
        summary = asyncio.run(run(args.job, settings, args.now))
    except Exception:
        logger.exception("automation_failed", job=args.job)
        return 1

    logger.info("automation_finished", job=args.job, **summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
