"""Multi-repository issue and milestone orchestration.

The :class:`Orchestrator` runs each logical operation against every configured
repository at once through a :class:`~github_sprinter.fanout.FanOutExecutor`:

* ``get_issues`` - issues across all repos, newest update first
* ``get_milestones`` - milestones across all repos, grouped by title
* ``close_milestones`` - close every milestone with a given title
* ``create_milestones`` - create the same milestone in every repo

Every returned item is tagged with ``source_repo``. A failure in any repo fails
the whole call with a :class:`~github_sprinter.errors.RepoScopedError`; mutations
already sent to other repos are not rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from github_sprinter.config import SprinterSettings
from github_sprinter.errors import RepoScopedError
from github_sprinter.fanout import FanOutExecutor, flatten
from github_sprinter.github.client import GitHubIssueTracker, IssueTrackerClient
from github_sprinter.models import (
    DEFAULT_ISSUE_FILTERS,
    FilterSet,
    GroupedMilestones,
    Issue,
    Milestone,
    MilestoneTemplate,
    MilestoneUpdate,
)
from github_sprinter.repos import RepoIdentifier, parse_slug, parse_slugs

logger = logging.getLogger(__name__)

_NEVER_UPDATED = datetime.min.replace(tzinfo=UTC)


def sort_by_updated(issues: Iterable[Issue]) -> list[Issue]:
    """Sort issues by ``updated_at``, newest first.

    The sort is stable: equal timestamps keep their encounter order. Issues
    without a timestamp go last.
    """

    return sorted(
        issues,
        key=lambda issue: (issue.updated_at is not None, issue.updated_at or _NEVER_UPDATED),
        reverse=True,
    )


def group_by_title(milestones: Iterable[Milestone]) -> GroupedMilestones:
    """Group milestones by exact title, keeping encounter order within a group."""

    groups: GroupedMilestones = {}
    for milestone in milestones:
        groups.setdefault(milestone.title, []).append(milestone)
    return groups


def repo_payload(repo: RepoIdentifier, base: Mapping[str, Any]) -> dict[str, Any]:
    """Return a fresh per-repo copy of ``base`` carrying the repo's owner and name."""

    return {**base, "owner": repo.organization, "repo": repo.repository}


@contextmanager
def attributed(repo: RepoIdentifier, operation: str) -> Iterator[None]:
    """Re-raise any failure inside the block as a :class:`RepoScopedError` for ``repo``."""

    try:
        yield
    except Exception as exc:
        logger.warning(
            "Remote call failed",
            extra={"operation": operation, "repo": repo.slug, "error": str(exc)},
        )
        raise RepoScopedError(repo, operation, exc) from exc


class Orchestrator:
    """Run issue-tracker operations across a fixed set of repositories.

    Args:
        client: Remote issue tracker, shared by all concurrent branches.
        repo_slugs: Repositories as ``org/repo`` strings. Their order is the
            order results are returned in.
        executor: Fan-out executor; defaults to one that cancels in-flight
            branches after the first failure.

    Raises:
        InvalidSlugError: If any slug is malformed.
    """

    def __init__(
        self,
        client: IssueTrackerClient,
        repo_slugs: Iterable[str],
        *,
        executor: FanOutExecutor | None = None,
    ) -> None:
        self._repos = parse_slugs(repo_slugs)
        self._client = client
        self._executor = executor or FanOutExecutor()
        logger.info(
            "Orchestrator initialized",
            extra={"repos": [repo.slug for repo in self._repos]},
        )

    @classmethod
    def from_settings(
        cls,
        settings: SprinterSettings | None = None,
        *,
        client: IssueTrackerClient | None = None,
    ) -> Orchestrator:
        """Build an orchestrator from settings (loaded from the environment if omitted)."""

        settings = settings or SprinterSettings()
        # Reject bad slugs before authenticating.
        parse_slugs(settings.repositories)

        if client is None:
            client = GitHubIssueTracker(
                token=settings.github_token,
                base_url=settings.github_base_url,
                timeout=settings.request_timeout,
            )
        executor = FanOutExecutor(
            cancel_on_failure=settings.cancel_on_failure,
            max_concurrency=settings.max_concurrency,
        )
        return cls(client, settings.repositories, executor=executor)

    @property
    def repos(self) -> tuple[RepoIdentifier, ...]:
        return self._repos

    async def get_issues(self, filters: FilterSet | None = None) -> list[Issue]:
        """Return issues from every repository, most recently updated first.

        ``filters`` are merged over the default ``{"state": "open"}``; caller
        values win.
        """

        base = MappingProxyType({**DEFAULT_ISSUE_FILTERS, **(filters or {})})

        async def fetch(repo: RepoIdentifier) -> list[Issue]:
            with attributed(repo, "list_issues"):
                raw = await self._client.list_issues(repo, repo_payload(repo, base))
                return [Issue.tag(item, repo.slug) for item in raw]

        chunks = await self._executor.run(self._repos, fetch, operation="list_issues")
        issues = sort_by_updated(flatten(chunks))
        logger.info("Fetched issues", extra={"count": len(issues), "filters": dict(base)})
        return issues

    async def get_milestones(self) -> GroupedMilestones:
        """Return milestones from every repository, grouped by exact title."""

        async def fetch(repo: RepoIdentifier) -> list[Milestone]:
            with attributed(repo, "list_milestones"):
                raw = await self._client.list_milestones(repo)
                return [Milestone.tag(item, repo.slug) for item in raw]

        chunks = await self._executor.run(self._repos, fetch, operation="list_milestones")
        groups = group_by_title(flatten(chunks))
        logger.info("Fetched milestones", extra={"titles": len(groups)})
        return groups

    async def close_milestones(self, title: str) -> list[Milestone]:
        """Close every milestone titled exactly ``title``.

        Returns the updated milestones, or an empty list without touching any
        repository when nothing matches.
        """

        matches = (await self.get_milestones()).get(title)
        if not matches:
            logger.info("No milestones to close", extra={"title": title})
            return []

        logger.info("Closing milestones", extra={"title": title, "count": len(matches)})

        async def close(milestone: Milestone) -> Milestone:
            repo = parse_slug(milestone.source_repo)
            update = MilestoneUpdate(number=milestone.number, title=milestone.title, state="closed")
            with attributed(repo, "update_milestone"):
                raw = await self._client.update_milestone(repo, update)
                return Milestone.tag(raw, repo.slug)

        return await self._executor.run(
            matches,
            close,
            operation="update_milestone",
            describe=lambda milestone: milestone.source_repo,
        )

    async def create_milestones(
        self, template: MilestoneTemplate | Mapping[str, Any]
    ) -> list[Milestone]:
        """Create the same milestone in every repository.

        Results come back in configured repository order.
        """

        if not isinstance(template, MilestoneTemplate):
            template = MilestoneTemplate.model_validate(template)
        fields = MappingProxyType(template.payload())

        async def create(repo: RepoIdentifier) -> Milestone:
            with attributed(repo, "create_milestone"):
                raw = await self._client.create_milestone(repo, repo_payload(repo, fields))
                return Milestone.tag(raw, repo.slug)

        created = await self._executor.run(self._repos, create, operation="create_milestone")
        logger.info(
            "Created milestones", extra={"title": template.title, "count": len(created)}
        )
        return created
