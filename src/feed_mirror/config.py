"""Configuration loader for feed-mirror."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import yaml
from dotenv import load_dotenv

from feed_mirror.utils.datetime import parse_datetime

load_dotenv()

CONFIG_DIR = Path(__file__).parent / "configs"

DEFAULT_MIN_DATE = "2025-09-01T00:00:00Z"
DEFAULT_FEEDS = ["https://comshalom.org/feed/"]
DEFAULT_PATTERNS = ["discernimentos"]
MATCH_ALL = "*"


def _clamp(value: int, low: int = 1, high: int = 10) -> int:
    return max(low, min(int(value), high))


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class RunConfig:
    min_date: datetime = field(default_factory=lambda: parse_datetime(DEFAULT_MIN_DATE))
    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    feed_urls: list[str] = field(default_factory=lambda: list(DEFAULT_FEEDS))
    batch_size: int = 5
    max_concurrency: int = 3

    def __post_init__(self):
        self.batch_size = _clamp(self.batch_size)
        self.max_concurrency = _clamp(self.max_concurrency)
        if self.min_date.tzinfo is None:
            self.min_date = self.min_date.replace(tzinfo=timezone.utc)

    @property
    def process_all(self) -> bool:
        return self.patterns == [MATCH_ALL]


@dataclass
class FetchConfig:
    feed_timeout: float = 10.0
    content_timeout: float = 30.0
    metadata_timeout: float = 15.0
    max_retries: int = 2
    retry_base_delay: float = 1.0
    max_content_bytes: int = 10 * 1024 * 1024
    user_agent: str = "Mozilla/5.0 (compatible; FeedMirror/1.0)"

    @property
    def attempts(self) -> int:
        return self.max_retries + 1


@dataclass
class GitHubConfig:
    owner: str = ""
    name: str = ""
    token: str = ""
    custom_domain: str | None = None
    pages_dir: str = "pages"
    fallback_branch: str = "main"
    branch_cache_ttl: float = 3600.0
    api_url: str = "https://api.github.com"

    @property
    def repo(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class EmailConfig:
    enabled: bool = True
    provider: str = "mailchannels"  # "mailchannels" or "resend"
    sender: str | None = None
    sender_name: str = "Feed Mirror"
    recipients: list[str] = field(default_factory=list)
    reply_to: str | None = None
    resend_api_key: str | None = None
    request_timeout: float = 10.0


@dataclass
class StoreConfig:
    backend: str = "memory"  # "memory" or "postgres"
    table: str = "kv_store"
    database_url: str | None = None


@dataclass
class Config:
    run: RunConfig = field(default_factory=RunConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


def find_config_path(config_name: str | None) -> Path:
    """Resolve a config name (or an explicit YAML path) to a file path.

    Raises:
        FileNotFoundError: If the config file doesn't exist
    """
    if config_name is None:
        config_name = os.environ.get("CONFIG_ENV", "prod")

    candidate = Path(config_name)
    if candidate.suffix in (".yaml", ".yml") and candidate.exists():
        return candidate

    config_path = CONFIG_DIR / f"{config_name}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path


def load_config(config_name: str | None = None, environ: dict | None = None) -> Config:
    """Load configuration from YAML, then apply environment overrides.

    Args:
        config_name: Name of config file (without .yaml extension) or a path.
                    If None, uses CONFIG_ENV env var or "prod".
        environ: Environment mapping, defaults to os.environ

    Returns:
        Loaded Config object
    """
    config_path = find_config_path(config_name)
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return parse_config(data, os.environ if environ is None else environ)


def parse_config(data: dict, environ: dict | None = None) -> Config:
    """Parse config dictionary (plus environment overrides) into a Config object."""
    env = environ or {}
    run_data = data.get("run", {}) or {}
    fetch_data = data.get("fetch", {}) or {}
    github_data = data.get("github", {}) or {}
    email_data = data.get("email", {}) or {}
    store_data = data.get("store", {}) or {}

    patterns = run_data.get("patterns", DEFAULT_PATTERNS)
    if env.get("PATTERNS"):
        patterns = [MATCH_ALL] if env["PATTERNS"].strip() == MATCH_ALL else _split_csv(env["PATTERNS"])

    feed_urls = run_data.get("feed_urls", DEFAULT_FEEDS)
    if env.get("RSS_FEEDS"):
        feed_urls = _split_csv(env["RSS_FEEDS"])

    run = RunConfig(
        min_date=parse_datetime(env.get("MIN_DATE") or run_data.get("min_date", DEFAULT_MIN_DATE)),
        patterns=[p.lower() for p in patterns],
        feed_urls=feed_urls,
        batch_size=int(env.get("BATCH_SIZE") or run_data.get("batch_size", 5)),
        max_concurrency=int(env.get("MAX_CONCURRENCY") or run_data.get("max_concurrency", 3)),
    )

    fetch = FetchConfig(
        feed_timeout=fetch_data.get("feed_timeout", 10.0),
        content_timeout=fetch_data.get("content_timeout", 30.0),
        metadata_timeout=fetch_data.get("metadata_timeout", 15.0),
        max_retries=fetch_data.get("max_retries", 2),
        retry_base_delay=fetch_data.get("retry_base_delay", 1.0),
        max_content_bytes=fetch_data.get("max_content_bytes", 10 * 1024 * 1024),
    )

    github = GitHubConfig(
        owner=env.get("GITHUB_REPO_OWNER") or github_data.get("owner", ""),
        name=env.get("GITHUB_REPO_NAME") or github_data.get("name", ""),
        token=env.get("GITHUB_TOKEN", ""),
        custom_domain=env.get("CUSTOM_DOMAIN") or github_data.get("custom_domain"),
        pages_dir=github_data.get("pages_dir", "pages"),
        branch_cache_ttl=github_data.get("branch_cache_ttl", 3600.0),
    )

    recipients = email_data.get("recipients", [])
    if env.get("EMAIL_TO"):
        recipients = _split_csv(env["EMAIL_TO"])

    enabled = email_data.get("enabled", True)
    if env.get("EMAIL_ENABLED"):
        enabled = env["EMAIL_ENABLED"].strip().lower() != "false"

    email = EmailConfig(
        enabled=enabled,
        provider=(env.get("EMAIL_PROVIDER") or email_data.get("provider", "mailchannels")).lower(),
        sender=env.get("EMAIL_FROM") or email_data.get("sender"),
        sender_name=email_data.get("sender_name", "Feed Mirror"),
        recipients=recipients,
        reply_to=env.get("EMAIL_REPLY_TO") or email_data.get("reply_to"),
        resend_api_key=env.get("RESEND_API_KEY"),
        request_timeout=email_data.get("request_timeout", 10.0),
    )

    store = StoreConfig(
        backend=store_data.get("backend", "memory"),
        table=store_data.get("table", "kv_store"),
        database_url=env.get("DATABASE_URL"),
    )

    return Config(run=run, fetch=fetch, github=github, email=email, store=store)


# Global config instance (loaded on first access)
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration (lazy-loaded)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config):
    """Set the global configuration (useful for testing)."""
    global _config
    _config = config


def reset_config():
    """Reset the global configuration (forces reload on next access)."""
    global _config
    _config = None
