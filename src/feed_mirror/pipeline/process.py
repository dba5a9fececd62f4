"""Per-item processing: identify, fetch, publish, notify."""

import logging

from feed_mirror.dedup import Decision, Identity, identify, new_uuid
from feed_mirror.fetch.content import extract_text, extract_title, fetch_full_html
from feed_mirror.fetch.validate import validate_content
from feed_mirror.models import FeedItem, MirroredItem, Outcome, ProcessResult, SpecificUrlResult
from feed_mirror.pipeline.context import PipelineContext
from feed_mirror.utils.datetime import normalize_published_at, utcnow
from feed_mirror.utils.hashing import content_hash, generate_item_id
from feed_mirror.utils.urls import sanitize_url

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "Already exists"


def build_mirrored_item(identity: Identity, item: FeedItem, body_html: str) -> MirroredItem:
    return MirroredItem(
        id=identity.id,
        uuid=identity.uuid,
        title=item.title,
        source_url=item.link,
        published_at=normalize_published_at(item.published_at),
        body_html=body_html,
        content_hash=content_hash(extract_text(body_html)),
    )


async def publish_item(ctx: PipelineContext, mirrored: MirroredItem) -> MirroredItem:
    """Publish to the content store and persist the resulting revision and URLs."""
    result = await ctx.publisher.publish(mirrored)
    mirrored.revision = result.revision
    mirrored.store_url = result.store_url
    mirrored.mirror_url = result.public_url
    await ctx.items.save(mirrored)
    return mirrored


async def process_item(ctx: PipelineContext, item: FeedItem) -> ProcessResult:
    """Drive one feed item through the pipeline. Never raises."""
    item_id = None
    try:
        identity = await identify(item, ctx.items)
        item_id = identity.id

        if identity.decision == Decision.DUPLICATE:
            logger.debug(f"Item already exists: {item_id} ({item.title})")
            return ProcessResult(Outcome.DUPLICATE, item_id, ALREADY_EXISTS)

        logger.info(f"Processing {identity.decision.value} item {item_id} uuid={identity.uuid} ({item.title})")

        body_html = await fetch_full_html(ctx.client, item.link, ctx.config.fetch)

        mirrored = build_mirrored_item(identity, item, body_html)
        await ctx.items.save(mirrored)

        await publish_item(ctx, mirrored)
        ctx.notifier.dispatch(mirrored)

        logger.info(f"Item processed: {item_id} -> {mirrored.mirror_url}")
        return ProcessResult(Outcome.SAVED, item_id)
    except Exception as e:
        logger.error(f"Failed to process item {item.title!r} ({item.link}): {e}")
        return ProcessResult(Outcome.FAILED, item_id, str(e))


async def process_specific_url(ctx: PipelineContext, url: str) -> SpecificUrlResult:
    """Ingest a single manually supplied URL, bypassing feeds and relevance filtering."""
    link = sanitize_url(url)
    if link is None:
        return SpecificUrlResult(success=False, error=f"Invalid URL: {url!r}")

    item_id = generate_item_id(link)
    is_new = True
    try:
        existing = await ctx.items.get(item_id)
        is_new = existing is None

        body_html = await fetch_full_html(ctx.client, link, ctx.config.fetch)
        text = extract_text(body_html)
        validation = validate_content(body_html, text)
        if not validation.valid:
            logger.warning(f"Rejected content from {link}: {validation.reason}")
            return SpecificUrlResult(success=False, is_new=is_new, error=f"Invalid content: {validation.reason}")

        digest = content_hash(text)
        if existing is not None and existing.is_published and existing.uuid and existing.content_hash == digest:
            logger.info(f"Content unchanged for {item_id}, nothing to publish")
            return SpecificUrlResult(success=True, is_new=False)

        mirrored = MirroredItem(
            id=item_id,
            uuid=existing.uuid if existing is not None and existing.uuid else new_uuid(),
            title=extract_title(body_html) or (existing.title if existing is not None else link),
            source_url=link,
            published_at=existing.published_at if existing is not None else utcnow().isoformat(),
            body_html=body_html,
            content_hash=digest,
        )
        await ctx.items.save(mirrored)
        await publish_item(ctx, mirrored)
        ctx.notifier.dispatch(mirrored)

        logger.info(f"Processed URL {link} as {item_id} (new={is_new})")
        return SpecificUrlResult(success=True, is_new=is_new)
    except Exception as e:
        logger.error(f"Failed to process URL {link}: {e}")
        return SpecificUrlResult(success=False, is_new=is_new, error=str(e))
