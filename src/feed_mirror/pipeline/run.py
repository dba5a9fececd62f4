"""Run-level entry points: scheduled run, reprocessing, stats and health."""

import logging
import time
from datetime import datetime, timezone

from feed_mirror.dedup import new_uuid
from feed_mirror.fetch.feeds import fetch_feeds, merge_items
from feed_mirror.match import filter_relevant
from feed_mirror.models import MirroredItem, ReprocessSummary, RunStats
from feed_mirror.pipeline.context import PipelineContext
from feed_mirror.pipeline.process import process_item, publish_item
from feed_mirror.pipeline.scheduler import BatchScheduler
from feed_mirror.utils.datetime import parse_datetime

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Novo Comunicado Detectado"


async def run_pipeline(ctx: PipelineContext) -> RunStats:
    """Fetch feeds, filter, and process relevant items.

    Never raises: a systemic failure is logged, counted as an error, and the
    stats gathered so far are returned.
    """
    run = ctx.config.run
    stats = RunStats()
    start_time = time.monotonic()

    try:
        logger.info(
            f"Starting run: {len(run.feed_urls)} feeds, {len(run.patterns)} patterns, "
            f"min_date={run.min_date.isoformat()}"
        )

        # Fail the whole run up front when the store is unreachable.
        await ctx.items.store.list(limit=1)

        items, failed_feeds = await fetch_feeds(ctx.client, run.feed_urls, ctx.config.fetch)
        stats.errors += failed_feeds

        unique = merge_items(items)
        logger.info(f"{len(unique)} unique items after removing duplicates")

        relevant = filter_relevant(unique, run)
        logger.info(f"{len(relevant)} relevant items (process_all={run.process_all})")

        scheduler = BatchScheduler(run.batch_size, run.max_concurrency)
        item_stats = await scheduler.run(relevant, lambda item: process_item(ctx, item))

        stats.processed += item_stats.processed
        stats.saved += item_stats.saved
        stats.skipped += item_stats.skipped
        stats.errors += item_stats.errors
    except Exception:
        stats.errors += 1
        logger.exception("Run failed")

    elapsed = time.monotonic() - start_time
    logger.info(
        f"Run complete in {elapsed:.2f}s: processed={stats.processed} saved={stats.saved} "
        f"skipped={stats.skipped} errors={stats.errors}"
    )
    return stats


async def _republish(ctx: PipelineContext, items: list[MirroredItem], label: str) -> ReprocessSummary:
    summary = ReprocessSummary(count=len(items))
    for item in items:
        try:
            await publish_item(ctx, item)
            summary.successful += 1
            logger.info(f"{label}: {item.id} -> {item.mirror_url}")
        except Exception as e:
            summary.failed += 1
            summary.errors.append({"id": item.id, "error": str(e)})
            logger.error(f"{label} failed for {item.id}: {e}")
    logger.info(f"{label} complete: {summary.successful} ok, {summary.failed} failed of {summary.count}")
    return summary


async def reprocess_pending(ctx: PipelineContext) -> ReprocessSummary:
    """Publish stored items that have a body but were never published or lack a uuid."""
    pending = []
    async for item in ctx.items.iter_items():
        if not item.body_html:
            continue
        if item.is_published and item.uuid and item.mirror_url:
            continue
        if not item.uuid:
            item.uuid = new_uuid()
        pending.append(item)

    if not pending:
        logger.info("No items need reprocessing")
        return ReprocessSummary()

    return await _republish(ctx, pending, "Reprocess")


async def republish_all(ctx: PipelineContext) -> ReprocessSummary:
    """Re-commit every stored item that has a body."""
    items = []
    async for item in ctx.items.iter_items():
        if not item.body_html:
            continue
        if not item.uuid:
            item.uuid = new_uuid()
        items.append(item)

    return await _republish(ctx, items, "Republish")


async def collect_stats(ctx: PipelineContext) -> dict:
    """Counts of stored items and the most recent publication date."""
    total = published = with_public_url = 0
    latest = None
    async for item in ctx.items.iter_items():
        total += 1
        if item.is_published:
            published += 1
        if item.mirror_url:
            with_public_url += 1
        if item.published_at:
            try:
                published_at = parse_datetime(item.published_at)
            except ValueError:
                logger.warning(f"Unreadable published_at on {item.id}: {item.published_at!r}")
                continue
            if latest is None or published_at > latest:
                latest = published_at

    return {
        "total": total,
        "published": published,
        "with_public_url": with_public_url,
        "last_processed": latest.isoformat() if latest else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def check_notification(ctx: PipelineContext, since_ms: int = 0) -> dict:
    """Report the push marker when it is newer than the caller's last check."""
    event = await ctx.items.last_notification()
    if event is None or event.get("timestamp", 0) <= since_ms:
        return {"has_new": False}
    return {
        "has_new": True,
        "notification": {
            "title": NOTIFICATION_TITLE,
            "body": event.get("title", ""),
            "url": event.get("url", ""),
            "timestamp": event["timestamp"],
        },
    }


async def check_health(ctx: PipelineContext) -> dict:
    """Store reachability and whether GitHub credentials are configured."""
    status = {"status": "ok", "store": "connected", "github": "configured"}
    try:
        await ctx.items.store.list(limit=1)
    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        status.update(status="error", store="unreachable", error=str(e))
    if not ctx.config.github.token:
        status["github"] = "not_configured"
    return status
