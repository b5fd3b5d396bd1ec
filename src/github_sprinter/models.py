"""Item models shared by the aggregation and mutation paths.

Remote payloads are kept as-is (``extra="allow"``); only the fields the
sprinter itself reads are declared. Each fetched item is tagged with the
slug of the repository it came from exactly once, when it is validated.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any, Literal, Self, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

FilterSet: TypeAlias = Mapping[str, Any]

DEFAULT_ISSUE_FILTERS: Mapping[str, Any] = {"state": "open"}


def _assume_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TaggedItem(BaseModel):
    """A remote item annotated with its origin repository."""

    model_config = ConfigDict(extra="allow", frozen=True)

    source_repo: str = Field(description="Canonical 'organization/repository' slug")

    @classmethod
    def tag(cls, raw: Mapping[str, Any], source_repo: str) -> Self:
        return cls.model_validate({**raw, "source_repo": source_repo})


class Issue(TaggedItem):
    id: int | None = None
    number: int | None = None
    title: str = ""
    state: str | None = None
    updated_at: datetime | None = None

    @field_validator("updated_at")
    @classmethod
    def _updated_at_utc(cls, value: datetime | None) -> datetime | None:
        # Timestamps without an offset are read as UTC so issues always compare.
        return _assume_utc(value)


class Milestone(TaggedItem):
    id: int | None = None
    number: int
    title: str
    state: str | None = None
    due_on: datetime | None = None

    @field_validator("due_on")
    @classmethod
    def _due_on_utc(cls, value: datetime | None) -> datetime | None:
        return _assume_utc(value)


GroupedMilestones: TypeAlias = dict[str, list[Milestone]]


class MilestoneTemplate(BaseModel):
    """Milestone fields replicated to every configured repository."""

    model_config = ConfigDict(extra="allow", frozen=True)

    title: str
    due_on: datetime | date | None = None
    description: str | None = None
    state: Literal["open", "closed"] | None = None

    def payload(self) -> dict[str, Any]:
        """Return the template as a request payload, dropping unset fields."""

        return self.model_dump(exclude_none=True)


class MilestoneUpdate(BaseModel):
    """Fields sent when editing an existing milestone."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    state: Literal["open", "closed"] = "closed"
