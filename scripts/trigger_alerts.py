"""CLI script to manually trigger scheduled alert categories."""
from __future__ import annotations

import argparse
import json

from moneyflow.core.alerts.categories import SCHEDULED_CATEGORIES, parse_categories
from moneyflow.tasks.notifications import run_scheduled_alerts


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Manually trigger scheduled alert generation",
    )
    parser.add_argument(
        "categories",
        nargs="*",
        default=["all"],
        help=(
            "Alert categories to run: all, "
            + ", ".join(category.value for category in SCHEDULED_CATEGORIES)
        ),
    )
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Queue task asynchronously instead of running immediately",
    )

    args = parser.parse_args()
    try:
        parse_categories(args.categories)
    except ValueError as exc:
        parser.error(str(exc))

    print(f"Running alert categories: {', '.join(args.categories)}")
    if args.use_async:
        task = run_scheduled_alerts.apply_async(args=(args.categories,))
        print(f"Task queued: {task.id}")
    else:
        result = run_scheduled_alerts.run(args.categories)
        print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
