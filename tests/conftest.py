"""Test configuration and fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from github_sprinter.fanout import FanOutExecutor
from github_sprinter.models import FilterSet, MilestoneUpdate
from github_sprinter.orchestrator import Orchestrator
from github_sprinter.repos import RepoIdentifier

REPO_SLUGS = ["org/a", "org/b"]


class FakeIssueTracker:
    """In-memory issue tracker recording every call it receives.

    ``failures`` maps ``(method, slug)`` to the exception that call raises.
    ``delays`` maps a slug to seconds slept before answering, which lets tests
    control completion order.
    """

    def __init__(
        self,
        *,
        issues: Mapping[str, list[dict[str, Any]]] | None = None,
        milestones: Mapping[str, list[dict[str, Any]]] | None = None,
        failures: Mapping[tuple[str, str], Exception] | None = None,
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self.issues = dict(issues or {})
        self.milestones = dict(milestones or {})
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, str, Any]] = []
        self.observed_filters: dict[str, tuple[str, str]] = {}
        self._next_number = 100

    async def _respond(self, method: str, repo: RepoIdentifier, payload: Any) -> None:
        self.calls.append((method, repo.slug, payload))
        await asyncio.sleep(self.delays.get(repo.slug, 0))
        error = self.failures.get((method, repo.slug))
        if error is not None:
            raise error

    def calls_to(self, method: str) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] == method]

    async def list_issues(self, repo: RepoIdentifier, filters: FilterSet) -> list[dict[str, Any]]:
        await self._respond("list_issues", repo, filters)
        # Read the payload only after yielding, like a request sent later would.
        self.observed_filters[repo.slug] = (filters["owner"], filters["repo"])
        return [dict(issue) for issue in self.issues.get(repo.slug, [])]

    async def list_milestones(self, repo: RepoIdentifier) -> list[dict[str, Any]]:
        await self._respond("list_milestones", repo, None)
        return [dict(milestone) for milestone in self.milestones.get(repo.slug, [])]

    async def update_milestone(
        self, repo: RepoIdentifier, update: MilestoneUpdate
    ) -> dict[str, Any]:
        await self._respond("update_milestone", repo, update)
        return {"number": update.number, "title": update.title, "state": update.state}

    async def create_milestone(
        self, repo: RepoIdentifier, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        await self._respond("create_milestone", repo, dict(payload))
        self._next_number += 1
        return {"number": self._next_number, "state": "open", **payload}


@pytest.fixture(autouse=True)
def _clean_sprinter_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SPRINTER_GITHUB_TOKEN",
        "SPRINTER_REPOSITORIES",
        "GITHUB_BASE_URL",
        "LOG_LEVEL",
        "SPRINTER_REQUEST_TIMEOUT",
        "SPRINTER_CANCEL_ON_FAILURE",
        "SPRINTER_MAX_CONCURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tracker() -> FakeIssueTracker:
    return FakeIssueTracker()


@pytest.fixture
def orchestrator(tracker: FakeIssueTracker) -> Orchestrator:
    return Orchestrator(tracker, REPO_SLUGS, executor=FanOutExecutor())
