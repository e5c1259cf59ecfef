import logging

import pytest

import pinball_rankings.core.sentry as sentry_mod
from pinball_rankings.core.sentry import _parse_float_env, init_sentry


def test_parse_float_env_clamps(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "2.0")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0) == 1.0
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "-0.5")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0) == 0.0
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "0.25")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0) == 0.25
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "lots")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.1) == 0.1


def test_init_sentry_no_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    # Ensure DSN envs are unset
    for k in ("SENTRY_DSN", "PINBALL_RANKINGS_SENTRY_DSN"):
        monkeypatch.delenv(k, raising=False)
    initialized = init_sentry(context="test_cli")
    assert initialized is False


def test_init_sentry_invalid_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTRY_DSN", "not-a-valid-dsn")
    initialized = init_sentry(context="test_cli")
    assert initialized is False


class _FakeSentry:
    """Records what init_sentry hands to the SDK."""

    def __init__(self) -> None:
        self.record: dict = {}

    def init(self, **kwargs) -> None:
        self.record.update(kwargs)

    def set_tag(self, key, value) -> None:
        self.record.setdefault("tags", {})[key] = value


class _FakeLoggingIntegration:
    def __init__(self, level=None, event_level=None):
        self.level = level
        self.event_level = event_level


def test_init_sentry_success_and_order(monkeypatch: pytest.MonkeyPatch, caplog):
    caplog.set_level(logging.INFO, logger="pinball_rankings.core.sentry")
    fake = _FakeSentry()
    monkeypatch.setattr(sentry_mod, "sentry_sdk", fake)
    monkeypatch.setattr(sentry_mod, "LoggingIntegration", _FakeLoggingIntegration)

    # Prefer first env in provided list
    monkeypatch.setenv("PRIMARY_DSN", "https://abc@host/project")
    monkeypatch.setenv("SECONDARY_DSN", "https://def@host/project")
    initialized = init_sentry(
        context="test_cli",
        release="r1",
        dsn_envs=["PRIMARY_DSN", "SECONDARY_DSN"],
    )
    assert initialized is True
    assert fake.record.get("dsn") == "https://abc@host/project"
    assert fake.record.get("release") == "r1"
    assert fake.record["tags"] == {"service": "test_cli"}
    assert fake.record["integrations"][0].event_level == logging.ERROR
    # Info log should state initialized
    assert any("Sentry initialized" in m for m in caplog.messages)
