from pathlib import Path

import pytest

from passive_genius.config import DEFAULT_MODEL, get_settings


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OPENAI_API_KEY",
        "PASSIVEGENIUS_MODEL",
        "PASSIVEGENIUS_STORAGE_DIR",
        "PASSIVEGENIUS_NOTIFICATION_SECONDS",
        "PASSIVEGENIUS_LOG_LEVEL",
        "PASSIVEGENIUS_JSON_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.openai_api_key is None
    assert not settings.has_llm_key
    assert settings.model == DEFAULT_MODEL
    assert settings.storage_dir == Path(".passive_genius")
    assert settings.notification_seconds == 3.0
    assert settings.log_level == "INFO"
    assert settings.json_logs is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai")
    monkeypatch.setenv("PASSIVEGENIUS_MODEL", "gpt-4o")
    monkeypatch.setenv("PASSIVEGENIUS_STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("PASSIVEGENIUS_NOTIFICATION_SECONDS", "5")
    monkeypatch.setenv("PASSIVEGENIUS_LOG_LEVEL", "debug")
    monkeypatch.setenv("PASSIVEGENIUS_JSON_LOGS", "true")

    settings = get_settings()

    assert settings.has_llm_key
    assert settings.model == "gpt-4o"
    assert settings.storage_dir == tmp_path
    assert settings.notification_seconds == 5.0
    assert settings.log_level == "DEBUG"
    assert settings.json_logs is True


@pytest.mark.parametrize("raw", ["soon", "-2"])
def test_invalid_notification_seconds_fall_back(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("PASSIVEGENIUS_NOTIFICATION_SECONDS", raw)

    assert get_settings().notification_seconds == 3.0
