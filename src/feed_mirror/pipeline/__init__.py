"""Pipeline orchestration."""

from feed_mirror.pipeline.context import PipelineContext, build_context, open_context
from feed_mirror.pipeline.process import process_item, process_specific_url
from feed_mirror.pipeline.run import (
    check_health,
    check_notification,
    collect_stats,
    reprocess_pending,
    republish_all,
    run_pipeline,
)
from feed_mirror.pipeline.scheduler import BatchScheduler

__all__ = [
    "BatchScheduler",
    "PipelineContext",
    "build_context",
    "check_health",
    "check_notification",
    "collect_stats",
    "open_context",
    "process_item",
    "process_specific_url",
    "reprocess_pending",
    "republish_all",
    "run_pipeline",
]
