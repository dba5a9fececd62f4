"""Publishing mirrored pages through the GitHub Contents API."""

import base64
import logging
import time
from typing import Callable

import httpx

from feed_mirror.config import FetchConfig, GitHubConfig
from feed_mirror.errors import ExternalAPIError
from feed_mirror.models import MirroredItem, PublishResult
from feed_mirror.publish.render import render_page
from feed_mirror.utils.retry import retry_async

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"
# Each attempt re-reads the current sha before writing.
RETRYABLE_WRITE_STATUSES = {409, 422, 429}
REDACT_VISIBLE = 4
REDACT_MIN_LENGTH = 20


class Credential:
    """A GitHub token together with the Authorization scheme it requires."""

    scheme = ""

    def __init__(self, token: str):
        if not token:
            raise ValueError("GitHub token is empty")
        self._token = token

    def authorization(self) -> str:
        return f"{self.scheme} {self._token}"

    def redacted(self) -> dict:
        """Shape of the token for diagnostics. Never the value itself."""
        token = self._token
        shape = {"scheme": self.scheme, "length": len(token)}
        # Prefix and suffix only when most of the token stays hidden.
        if len(token) >= REDACT_MIN_LENGTH:
            shape["prefix"] = token[:REDACT_VISIBLE] + "..."
            shape["suffix"] = "..." + token[-REDACT_VISIBLE:]
        return shape

    def __repr__(self) -> str:
        return f"{type(self).__name__}(length={len(self._token)})"


class ClassicToken(Credential):
    """Classic personal access token (ghp_...)."""

    scheme = "token"


class FineGrainedToken(Credential):
    """Fine-grained personal access token (github_pat_...)."""

    scheme = "Bearer"


def parse_credential(token: str) -> Credential:
    token = (token or "").strip()
    if token.startswith("github_pat_"):
        return FineGrainedToken(token)
    if not token.startswith("ghp_"):
        logger.warning("GitHub token has an unrecognized prefix; using the classic token scheme")
    return ClassicToken(token)


class BranchCache:
    """Holds the repository's default branch for a bounded time."""

    def __init__(self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._branch: str | None = None
        self._expires = 0.0

    def get(self) -> str | None:
        if self._branch is not None and self._expires > self._clock():
            return self._branch
        return None

    def set(self, branch: str) -> None:
        self._branch = branch
        self._expires = self._clock() + self.ttl


class GitHubPublisher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        config: GitHubConfig,
        fetch_config: FetchConfig,
        credential: Credential | None = None,
        branch_cache: BranchCache | None = None,
    ):
        self.client = client
        self.config = config
        self.fetch_config = fetch_config
        if credential is None and config.token:
            credential = parse_credential(config.token)
        self.credential = credential
        self.branch_cache = branch_cache or BranchCache(config.branch_cache_ttl)

    @property
    def repo_url(self) -> str:
        return f"{self.config.api_url}/repos/{self.config.owner}/{self.config.name}"

    def headers(self) -> dict:
        if self.credential is None:
            raise ExternalAPIError("GitHub token is not configured", retryable=False)
        return {
            "Authorization": self.credential.authorization(),
            "Accept": GITHUB_ACCEPT,
            "User-Agent": self.fetch_config.user_agent,
        }

    def page_path(self, uuid: str) -> str:
        return f"{self.config.pages_dir}/{uuid}.html"

    def contents_url(self, path: str) -> str:
        return f"{self.repo_url}/contents/{path}"

    async def default_branch(self) -> str:
        """Default branch of the repository, cached. Falls back on any failure."""
        cached = self.branch_cache.get()
        if cached is not None:
            return cached

        branch = self.config.fallback_branch
        try:
            response = await self.client.get(
                self.repo_url, headers=self.headers(), timeout=self.fetch_config.metadata_timeout
            )
            if response.is_success:
                branch = response.json().get("default_branch") or branch
            else:
                logger.warning(
                    f"Could not read default branch of {self.config.repo} "
                    f"({response.status_code}), using {branch!r}"
                )
        except (httpx.HTTPError, ExternalAPIError, ValueError) as e:
            logger.warning(f"Error detecting default branch, using {branch!r}: {e}")

        self.branch_cache.set(branch)
        return branch

    async def get_revision(self, path: str) -> str | None:
        """Current sha of the file at `path`, or None if it doesn't exist."""
        response = await self.client.get(
            self.contents_url(path), headers=self.headers(), timeout=self.fetch_config.metadata_timeout
        )
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise ExternalAPIError(
                f"GitHub API error reading {path}: {response.status_code}",
                status=response.status_code,
                body=response.text,
            )
        return response.json().get("sha")

    async def page_exists(self, uuid: str) -> bool:
        try:
            return await self.get_revision(self.page_path(uuid)) is not None
        except (ExternalAPIError, httpx.HTTPError):
            return False

    async def publish(self, item: MirroredItem) -> PublishResult:
        """Create or update the mirrored page for `item`, retrying transient failures."""
        path = self.page_path(item.uuid)
        branch = await self.default_branch()
        document = render_page(item)

        return await retry_async(
            lambda: self._put_page(path, branch, item.title, document),
            attempts=self.fetch_config.attempts,
            base_delay=self.fetch_config.retry_base_delay,
            description=f"publish {path}",
        )

    async def _put_page(self, path: str, branch: str, title: str, document: str) -> PublishResult:
        existing_sha = await self.get_revision(path)

        body = {
            "message": f"Auto-import: {title}",
            "content": base64.b64encode(document.encode("utf-8")).decode("ascii"),
        }
        if branch != self.config.fallback_branch:
            body["branch"] = branch
        if existing_sha:
            body["sha"] = existing_sha

        response = await self.client.put(
            self.contents_url(path),
            headers=self.headers(),
            json=body,
            timeout=self.fetch_config.metadata_timeout,
        )

        if not response.is_success:
            status = response.status_code
            logger.error(
                "GitHub API error writing file: status=%s path=%s repo=%s branch=%s "
                "has_existing_sha=%s credential=%s error=%s",
                status,
                path,
                self.config.repo,
                branch,
                bool(existing_sha),
                self.credential.redacted(),
                response.text,
            )
            raise ExternalAPIError(
                f"GitHub API error: {status} - {response.text}",
                status=status,
                body=response.text,
                retryable=status in RETRYABLE_WRITE_STATUSES or status >= 500,
            )

        data = response.json()
        revision = data["commit"]["sha"]
        store_url = (data.get("content") or {}).get("html_url") or (
            f"https://github.com/{self.config.repo}/blob/{branch}/{path}"
        )
        if self.config.custom_domain:
            public_url = f"https://{self.config.custom_domain}/{path}"
        else:
            public_url = store_url

        logger.info(f"Published {path} at {revision[:7]}")
        return PublishResult(revision=revision, store_url=store_url, public_url=public_url)
