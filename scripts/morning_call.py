"""Preview or place the morning briefing call from the command line."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.briefing.caller import load_due_tasks, place_morning_call
from src.briefing.composer import compose_briefing
from src.config import settings


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the briefing instead of calling.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper())

    if args.dry_run:
        tasks = load_due_tasks()
        print(compose_briefing(tasks, settings.briefing_window_days, settings.owner_name))
        return 0

    call_sid = place_morning_call()
    if call_sid is None:
        print("No tasks due, call skipped.")
    else:
        print(f"Morning call initiated: {call_sid}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
