"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from github_sprinter.config import SprinterSettings
from github_sprinter.errors import InvalidSlugError
from github_sprinter.orchestrator import Orchestrator


def _write_env(tmp_path: Path, *lines: str) -> None:
    (tmp_path / ".env").write_text("\n".join([*lines, ""]), encoding="utf-8")


def test_settings_loads_from_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(
        tmp_path,
        "SPRINTER_GITHUB_TOKEN=test-token",
        "SPRINTER_REPOSITORIES=org/a, org/b",
        "LOG_LEVEL=DEBUG",
        "SPRINTER_MAX_CONCURRENCY=4",
        "SPRINTER_CANCEL_ON_FAILURE=false",
    )

    settings = SprinterSettings()

    assert settings.github_token == "test-token"
    assert settings.repositories == ["org/a", "org/b"]
    assert settings.log_level == "DEBUG"
    assert settings.max_concurrency == 4
    assert settings.cancel_on_failure is False


def test_settings_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(tmp_path, "SPRINTER_GITHUB_TOKEN=test-token")

    settings = SprinterSettings()

    assert settings.repositories == []
    assert settings.github_base_url == "https://api.github.com"
    assert settings.request_timeout == 5.0
    assert settings.cancel_on_failure is True
    assert settings.max_concurrency is None


def test_repositories_accept_json_list(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SPRINTER_GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("SPRINTER_REPOSITORIES", '["org/a", "org/b"]')

    assert SprinterSettings().repositories == ["org/a", "org/b"]


def test_token_is_required(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ValidationError, match="SPRINTER_GITHUB_TOKEN"):
        SprinterSettings()


def test_settings_are_immutable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = SprinterSettings(github_token="test-token", repositories=["org/a"])

    with pytest.raises(ValidationError):
        settings.repositories = ["org/b"]  # type: ignore[misc]


def test_from_settings_wires_executor_and_repos(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, tracker: object
) -> None:
    monkeypatch.chdir(tmp_path)
    settings = SprinterSettings(
        github_token="test-token",
        repositories=["org/a", "org/b"],
        cancel_on_failure=False,
        max_concurrency=3,
    )

    orchestrator = Orchestrator.from_settings(settings, client=tracker)  # type: ignore[arg-type]

    assert [repo.slug for repo in orchestrator.repos] == ["org/a", "org/b"]
    assert orchestrator._executor.cancel_on_failure is False
    assert orchestrator._executor.max_concurrency == 3


def test_from_settings_rejects_bad_slugs_before_authenticating(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    settings = SprinterSettings(github_token="test-token", repositories=["org/a", "oops"])

    with pytest.raises(InvalidSlugError):
        Orchestrator.from_settings(settings)


def test_fractional_request_timeout_reaches_github(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    _write_env(
        tmp_path,
        "SPRINTER_GITHUB_TOKEN=test-token",
        "SPRINTER_REPOSITORIES=org/a",
        "SPRINTER_REQUEST_TIMEOUT=0.5",
    )

    with patch("github_sprinter.github.client.Github") as github_cls:
        Orchestrator.from_settings(SprinterSettings())

    assert github_cls.call_args.kwargs["timeout"] == 0.5
