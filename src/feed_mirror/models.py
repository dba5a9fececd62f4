from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    published_at: str = ""  # raw feed string, may be empty or unparseable
    summary: str = ""


@dataclass
class MirroredItem:
    id: str
    uuid: str
    title: str
    source_url: str
    published_at: str
    body_html: str = ""
    content_hash: Optional[str] = None
    revision: Optional[str] = None
    mirror_url: Optional[str] = None
    store_url: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return bool(self.revision)


class Outcome(str, Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class ProcessResult:
    outcome: Outcome
    item_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == Outcome.SAVED


@dataclass
class RunStats:
    processed: int = 0
    saved: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, result: ProcessResult) -> None:
        if result.outcome == Outcome.SAVED:
            self.saved += 1
        elif result.outcome == Outcome.DUPLICATE:
            self.skipped += 1
        else:
            self.errors += 1


@dataclass
class PublishResult:
    revision: str
    store_url: str
    public_url: str


@dataclass
class SpecificUrlResult:
    success: bool
    is_new: bool = False
    error: Optional[str] = None


@dataclass
class ReprocessSummary:
    count: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)
