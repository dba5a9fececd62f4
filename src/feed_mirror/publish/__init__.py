"""Publishing mirrored pages to the content store."""

from feed_mirror.publish.github import (
    BranchCache,
    ClassicToken,
    Credential,
    FineGrainedToken,
    GitHubPublisher,
    parse_credential,
)
from feed_mirror.publish.render import render_page

__all__ = [
    "BranchCache",
    "ClassicToken",
    "Credential",
    "FineGrainedToken",
    "GitHubPublisher",
    "parse_credential",
    "render_page",
]
