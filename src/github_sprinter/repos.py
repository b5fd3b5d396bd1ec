"""Repository identifiers and slug parsing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from github_sprinter.errors import InvalidSlugError

SLUG_SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class RepoIdentifier:
    """A single remote repository, identified by organization and name."""

    organization: str
    repository: str

    @property
    def slug(self) -> str:
        """Return the canonical ``organization/repository`` string."""

        return f"{self.organization}{SLUG_SEPARATOR}{self.repository}"

    def __str__(self) -> str:
        return self.slug


def parse_slug(slug: str) -> RepoIdentifier:
    """Parse ``"org/repo"`` into a :class:`RepoIdentifier`.

    Surrounding whitespace is ignored. Anything other than exactly one
    separator with two non-empty segments raises :class:`InvalidSlugError`.
    """

    parts = slug.strip().split(SLUG_SEPARATOR)
    if len(parts) != 2:
        raise InvalidSlugError(slug)

    organization, repository = (part.strip() for part in parts)
    if not organization or not repository:
        raise InvalidSlugError(slug)

    return RepoIdentifier(organization=organization, repository=repository)


def parse_slugs(slugs: Iterable[str]) -> tuple[RepoIdentifier, ...]:
    """Parse slugs in order; the result has the same length and order."""

    return tuple(parse_slug(slug) for slug in slugs)
