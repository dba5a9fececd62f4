"""CLI entry point for feed-mirror."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from feed_mirror.config import load_config, set_config
from feed_mirror.pipeline import (
    check_health,
    check_notification,
    collect_stats,
    open_context,
    process_specific_url,
    reprocess_pending,
    republish_all,
    run_pipeline,
)

logger = logging.getLogger(__name__)


async def _run_command(args, config) -> tuple[dict, int]:
    async with open_context(config) as ctx:
        if args.command == "run":
            stats = await run_pipeline(ctx)
            return asdict(stats), 1 if stats.errors else 0

        if args.command == "process-url":
            result = await process_specific_url(ctx, args.url)
            return asdict(result), 0 if result.success else 1

        if args.command == "reprocess":
            summary = await reprocess_pending(ctx)
            return asdict(summary), 1 if summary.failed else 0

        if args.command == "republish":
            summary = await republish_all(ctx)
            return asdict(summary), 1 if summary.failed else 0

        if args.command in ("stats", "check-notification"):
            try:
                if args.command == "stats":
                    return await collect_stats(ctx), 0
                return await check_notification(ctx, args.since), 0
            except Exception as e:
                logger.error(f"{args.command} failed: {e}")
                return {"error": str(e)}, 1

        status = await check_health(ctx)
        return status, 0 if status["status"] == "ok" else 1


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Mirror matching feed items into a GitHub repository"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name (test/prod) or path to YAML file. Defaults to CONFIG_ENV or 'prod'",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="Fetch feeds and process relevant items")
    process_url = subparsers.add_parser("process-url", help="Ingest a single URL")
    process_url.add_argument("url")
    subparsers.add_parser("reprocess", help="Publish stored items that were never published")
    subparsers.add_parser("republish", help="Re-commit every stored item")
    subparsers.add_parser("stats", help="Summarize stored items")
    notification = subparsers.add_parser(
        "check-notification", help="Report the latest notification if newer than --since"
    )
    notification.add_argument(
        "--since", type=int, default=0, help="Last check time in epoch milliseconds"
    )
    subparsers.add_parser("health", help="Check store and credentials")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except Exception as e:
        logger.error(f"Failed to load config {args.config}: {e}")
        sys.exit(1)
    set_config(config)

    output, exit_code = asyncio.run(_run_command(args, config))
    print(json.dumps(output, ensure_ascii=False, indent=2))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
