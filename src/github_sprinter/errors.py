"""Exceptions raised by the sprinter.

Every failure that crosses a fan-out boundary is attributed to the repository
that produced it, so callers can tell which repo misbehaved without parsing
transport error bodies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from github_sprinter.repos import RepoIdentifier


class SprinterError(Exception):
    """Base class for errors raised by this package."""


@dataclass(frozen=True, slots=True)
class InvalidSlugError(SprinterError, ValueError):
    """Raised when a configured slug is not of the form ``org/repo``."""

    slug: str

    def __str__(self) -> str:
        return f"Invalid repository slug {self.slug!r}; expected 'organization/repository'"


class RepoScopedError(SprinterError):
    """A remote operation failed for one specific repository.

    The underlying exception is kept as ``cause`` (and as ``__cause__`` when
    raised with ``from``).
    """

    def __init__(self, repo: RepoIdentifier, operation: str, cause: BaseException) -> None:
        super().__init__(repo, operation, cause)
        self.repo = repo
        self.operation = operation
        self.cause = cause

    @property
    def slug(self) -> str:
        """Canonical ``org/repo`` slug of the failing repository."""

        return self.repo.slug

    def __str__(self) -> str:
        return f"{self.operation} failed for {self.repo.slug}: {self.cause}"
