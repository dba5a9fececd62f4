"""Tests for feed_mirror.config module."""

from datetime import datetime, timezone

import pytest

from feed_mirror import config as config_module
from feed_mirror.config import (
    MATCH_ALL,
    RunConfig,
    find_config_path,
    get_config,
    load_config,
    parse_config,
    reset_config,
    set_config,
)


class TestRunConfig:
    def test_defaults(self) -> None:
        run = RunConfig()
        assert run.min_date == datetime(2025, 9, 1, tzinfo=timezone.utc)
        assert run.patterns == ["discernimentos"]
        assert run.feed_urls == ["https://comshalom.org/feed/"]
        assert run.batch_size == 5
        assert run.max_concurrency == 3

    @pytest.mark.parametrize("value,expected", [(0, 1), (-3, 1), (1, 1), (10, 10), (50, 10)])
    def test_clamps_batch_and_concurrency(self, value, expected) -> None:
        run = RunConfig(batch_size=value, max_concurrency=value)
        assert run.batch_size == expected
        assert run.max_concurrency == expected

    def test_process_all(self) -> None:
        assert RunConfig(patterns=[MATCH_ALL]).process_all
        assert not RunConfig(patterns=["a"]).process_all


class TestParseConfig:
    def test_empty_data_uses_defaults(self) -> None:
        config = parse_config({}, {})
        assert config.run.patterns == ["discernimentos"]
        assert config.fetch.attempts == 3
        assert config.fetch.max_content_bytes == 10 * 1024 * 1024
        assert config.github.fallback_branch == "main"
        assert config.store.backend == "memory"

    def test_environment_overrides(self) -> None:
        env = {
            "PATTERNS": "Discernimentos, Comunicado ",
            "RSS_FEEDS": "https://a.test/feed,https://b.test/feed",
            "MIN_DATE": "2024-01-01T00:00:00Z",
            "BATCH_SIZE": "20",
            "MAX_CONCURRENCY": "0",
            "GITHUB_TOKEN": "ghp_abc",
            "GITHUB_REPO_OWNER": "me",
            "GITHUB_REPO_NAME": "site",
            "CUSTOM_DOMAIN": "mirror.example.org",
            "EMAIL_TO": "a@example.com, b@example.com",
            "EMAIL_PROVIDER": "Resend",
            "RESEND_API_KEY": "re_123",
        }
        config = parse_config({}, env)

        assert config.run.patterns == ["discernimentos", "comunicado"]
        assert config.run.feed_urls == ["https://a.test/feed", "https://b.test/feed"]
        assert config.run.min_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert config.run.batch_size == 10
        assert config.run.max_concurrency == 1
        assert config.github.repo == "me/site"
        assert config.github.token == "ghp_abc"
        assert config.github.custom_domain == "mirror.example.org"
        assert config.email.recipients == ["a@example.com", "b@example.com"]
        assert config.email.provider == "resend"
        assert config.email.resend_api_key == "re_123"

    def test_star_pattern_means_match_all(self) -> None:
        config = parse_config({}, {"PATTERNS": " * "})
        assert config.run.patterns == [MATCH_ALL]
        assert config.run.process_all

    def test_email_enabled_flag(self) -> None:
        assert not parse_config({}, {"EMAIL_ENABLED": "false"}).email.enabled
        assert parse_config({"email": {"enabled": False}}, {"EMAIL_ENABLED": "true"}).email.enabled


class TestLoadConfig:
    def test_loads_test_config(self) -> None:
        config = load_config("test", environ={})
        assert config.run.process_all
        assert config.run.batch_size == 2
        assert config.fetch.retry_base_delay == 0
        assert config.email.enabled is False
        assert config.github.repo == "example/mirror"

    def test_loads_explicit_path(self, tmp_path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("run:\n  patterns: [Shalom]\n")
        config = load_config(str(path), environ={})
        assert config.run.patterns == ["shalom"]

    def test_missing_config_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            find_config_path("does-not-exist")

    def test_config_env_selects_file(self, monkeypatch) -> None:
        monkeypatch.setenv("CONFIG_ENV", "test")
        assert find_config_path(None).name == "test.yaml"


class TestGlobalConfig:
    def test_set_and_reset(self, monkeypatch) -> None:
        custom = parse_config({}, {})
        set_config(custom)
        assert get_config() is custom

        reset_config()
        assert config_module._config is None
        monkeypatch.setenv("CONFIG_ENV", "test")
        assert get_config().run.batch_size == 2
        reset_config()
