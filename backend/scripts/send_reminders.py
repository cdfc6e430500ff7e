from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure the backend project root (the directory containing the "shop_booking"
# package) is on sys.path so this script can be executed from the repo root or backend/.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from shop_booking.core.config import load_config
from shop_booking.core.context import build_context
from shop_booking.main import configure_logging

logger = logging.getLogger("send_reminders")


async def run_reminders(dry_run: bool = False) -> int:
    """Send reminders for appointments due around the configured lead time."""
    config = load_config()
    if config.store_backend == "json" and not config.appointments_file.exists():
        logger.info(f"No appointment store at {config.appointments_file}; nothing to do")
        return 0

    ctx = await build_context(config)
    try:
        if dry_run:
            due = await ctx.reminders.due()
            for appointment in due:
                print(f"would remind {appointment.email} ({appointment.start_iso})")
            return len(due)
        sent = await ctx.reminders.run()
        return len(sent)
    finally:
        await ctx.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send appointment reminder mails (run from cron).")
    parser.add_argument("--dry-run", action="store_true", help="List who is due without sending")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging()
    count = asyncio.run(run_reminders(dry_run=args.dry_run))
    logger.info(f"{count} reminder(s) {'due' if args.dry_run else 'sent'}")


if __name__ == "__main__":
    main()
