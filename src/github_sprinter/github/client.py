"""Remote issue-tracker client.

The sprinter only talks to the remote tracker through :class:`IssueTrackerClient`,
so the fan-out logic can be exercised against an in-memory fake. The GitHub
implementation wraps PyGithub, which is synchronous: each call is pushed onto a
worker thread so concurrent branches become concurrent HTTP requests.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Protocol

from github import Auth, Github
from github.GithubObject import NotSet
from github.Repository import Repository

from github_sprinter.models import FilterSet, MilestoneUpdate
from github_sprinter.repos import RepoIdentifier

logger = logging.getLogger(__name__)

# Keys the sprinter adds to every per-repo payload.
REPO_PAYLOAD_KEYS = ("owner", "repo")


class IssueTrackerClient(Protocol):
    """The four remote capabilities the sprinter depends on.

    Implementations must be safe to call concurrently from several branches.
    Each method returns raw JSON-like mappings for a single repository or raises.
    """

    async def list_issues(self, repo: RepoIdentifier, filters: FilterSet) -> list[dict[str, Any]]:
        ...

    async def list_milestones(self, repo: RepoIdentifier) -> list[dict[str, Any]]:
        ...

    async def update_milestone(
        self, repo: RepoIdentifier, update: MilestoneUpdate
    ) -> dict[str, Any]:
        ...

    async def create_milestone(
        self, repo: RepoIdentifier, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        ...


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Unsupported due_on value: {value!r}")


class GitHubIssueTracker:
    """PyGithub-backed :class:`IssueTrackerClient`."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 5.0,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._base_url = base_url.rstrip("/")
        if github_api is not None:
            self._github = github_api
            logger.debug("Using injected Github instance")
        else:
            # requests takes fractional seconds even though PyGithub annotates int.
            self._github = Github(
                auth=Auth.Token(token),
                base_url=self._base_url,
                timeout=timeout,  # type: ignore[arg-type]
            )
            logger.info("Authenticated with GitHub", extra={"base_url": self._base_url})

        self._repos: dict[str, Repository] = {}
        self._repos_lock = threading.Lock()

    def _repository(self, repo: RepoIdentifier) -> Repository:
        with self._repos_lock:
            cached = self._repos.get(repo.slug)
        if cached is not None:
            return cached

        # Lazy: no request is made until the first attribute access.
        handle = self._github.get_repo(repo.slug, lazy=True)
        with self._repos_lock:
            return self._repos.setdefault(repo.slug, handle)

    def _list_issues(self, repo: RepoIdentifier, filters: FilterSet) -> list[dict[str, Any]]:
        params = {key: value for key, value in filters.items() if key not in REPO_PAYLOAD_KEYS}
        logger.debug("Listing issues", extra={"repo": repo.slug, "filters": params})
        issues = self._repository(repo).get_issues(**params)
        return [issue.raw_data for issue in issues]

    def _list_milestones(self, repo: RepoIdentifier) -> list[dict[str, Any]]:
        logger.debug("Listing milestones", extra={"repo": repo.slug})
        return [milestone.raw_data for milestone in self._repository(repo).get_milestones()]

    def _update_milestone(self, repo: RepoIdentifier, update: MilestoneUpdate) -> dict[str, Any]:
        logger.debug(
            "Updating milestone",
            extra={"repo": repo.slug, "number": update.number, "state": update.state},
        )
        milestone = self._repository(repo).get_milestone(update.number)
        milestone.edit(update.title, state=update.state)
        # edit() refreshes attributes but not raw_data.
        return {**milestone.raw_data, "title": milestone.title, "state": milestone.state}

    def _create_milestone(self, repo: RepoIdentifier, payload: Mapping[str, Any]) -> dict[str, Any]:
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("Milestone title is required")

        due_on = payload.get("due_on")
        milestone = self._repository(repo).create_milestone(
            title,
            state=payload.get("state") or NotSet,
            description=payload.get("description") or NotSet,
            due_on=_as_date(due_on) if due_on is not None else NotSet,
        )
        logger.info(
            "Milestone created",
            extra={"repo": repo.slug, "number": milestone.number, "title": title},
        )
        return milestone.raw_data

    async def list_issues(self, repo: RepoIdentifier, filters: FilterSet) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._list_issues, repo, filters)

    async def list_milestones(self, repo: RepoIdentifier) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._list_milestones, repo)

    async def update_milestone(
        self, repo: RepoIdentifier, update: MilestoneUpdate
    ) -> dict[str, Any]:
        return await asyncio.to_thread(self._update_milestone, repo, update)

    async def create_milestone(
        self, repo: RepoIdentifier, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        return await asyncio.to_thread(self._create_milestone, repo, payload)

    def close(self) -> None:
        """Close the underlying GitHub connection."""

        self._github.close()
        logger.info("GitHub client closed")
