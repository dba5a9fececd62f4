"""Shared fixtures: a fake web behind httpx.MockTransport and test configs."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from feed_mirror.config import Config, EmailConfig, FetchConfig, GitHubConfig, RunConfig, StoreConfig
from feed_mirror.pipeline.context import build_context
from feed_mirror.store.kv import MemoryKVStore

GITHUB_API = "https://api.github.com/repos/example/mirror"


class FakeWeb:
    """Serves feeds/pages by URL and emulates the GitHub Contents API."""

    def __init__(self):
        self.pages: dict[str, list[tuple[int, str]]] = {}
        self.files: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.default_branch = "main"
        self.put_failures: list[int] = []
        self.email_status = 200
        self._sha_counter = 0

    def serve(self, url: str, *responses):
        """Queue responses for a URL; the last one repeats.

        Each response is a body (served with 200), a bare status, or a (status, body) pair.
        """
        queued = []
        for r in responses:
            if isinstance(r, str):
                r = (200, r)
            elif isinstance(r, int):
                r = (r, "")
            queued.append(r)
        self.pages[url] = queued

    def requests_for(self, method: str, prefix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url).startswith(prefix)]

    @property
    def puts(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests_for("PUT", GITHUB_API)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == GITHUB_API and request.method == "GET":
            return httpx.Response(200, json={"default_branch": self.default_branch})
        if url.startswith(f"{GITHUB_API}/contents/"):
            return self._contents(request, url[len(f"{GITHUB_API}/contents/"):])
        if url.startswith("https://api.mailchannels.net") or url.startswith("https://api.resend.com"):
            return httpx.Response(self.email_status, json={})

        queued = self.pages.get(url)
        if not queued:
            return httpx.Response(404, text="not found")
        status, body = queued.pop(0) if len(queued) > 1 else queued[0]
        return httpx.Response(status, text=body)

    def _contents(self, request: httpx.Request, path: str) -> httpx.Response:
        if request.method == "GET":
            if path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"sha": self.files[path], "path": path})

        if self.put_failures:
            status = self.put_failures.pop(0)
            return httpx.Response(status, json={"message": f"failure {status}"})

        body = json.loads(request.content)
        if path in self.files and body.get("sha") != self.files[path]:
            return httpx.Response(409, json={"message": "sha does not match"})

        self._sha_counter += 1
        sha = f"{self._sha_counter:040x}"
        self.files[path] = sha
        return httpx.Response(
            201 if "sha" not in body else 200,
            json={
                "commit": {"sha": sha},
                "content": {"html_url": f"https://github.com/example/mirror/blob/main/{path}"},
            },
        )


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def config():
    return Config(
        run=RunConfig(
            min_date=datetime(2025, 9, 1, tzinfo=timezone.utc),
            patterns=["discernimentos"],
            feed_urls=["https://feeds.test/rss"],
            batch_size=5,
            max_concurrency=3,
        ),
        fetch=FetchConfig(max_retries=2, retry_base_delay=0),
        github=GitHubConfig(owner="example", name="mirror", token="ghp_testtoken1234567890"),
        email=EmailConfig(
            enabled=True,
            provider="mailchannels",
            sender="bot@example.com",
            recipients=["a@example.com", "b@example.com"],
        ),
        store=StoreConfig(backend="memory"),
    )


@pytest.fixture
def store():
    return MemoryKVStore()


@pytest.fixture
def make_ctx(web, config, store):
    def _make(handler=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler or web), trust_env=False)
        return build_context(config, client, store)

    return _make
