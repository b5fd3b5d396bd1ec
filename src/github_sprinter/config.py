"""Settings for the sprinter.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The token variable is namespaced (`SPRINTER_GITHUB_TOKEN`) to avoid colliding
with other tools that read `GITHUB_TOKEN`.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class SprinterSettings(BaseSettings):
    """Settings for a sprinter instance.

    Environment variables:
    - SPRINTER_GITHUB_TOKEN
    - SPRINTER_REPOSITORIES      (comma-separated or JSON list of 'org/repo' slugs)
    - GITHUB_BASE_URL            (optional)
    - LOG_LEVEL                  (optional)
    - SPRINTER_REQUEST_TIMEOUT   (optional)
    - SPRINTER_CANCEL_ON_FAILURE (optional)
    - SPRINTER_MAX_CONCURRENCY   (optional)

    Notes:
        Tests can point at a specific env file with
        `SprinterSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="SPRINTER_GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    repositories: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias="SPRINTER_REPOSITORIES",
        description="Repositories to operate on, in the form 'org/repo'",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    request_timeout: float = Field(
        default=5.0,
        gt=0,
        validation_alias="SPRINTER_REQUEST_TIMEOUT",
        description="Per-request timeout in seconds",
    )

    cancel_on_failure: bool = Field(
        default=True,
        validation_alias="SPRINTER_CANCEL_ON_FAILURE",
        description=(
            "Cancel branches still in flight once one repository fails. "
            "Set to false to let them finish in the background with their outcomes discarded."
        ),
    )

    max_concurrency: int | None = Field(
        default=None,
        gt=0,
        validation_alias="SPRINTER_MAX_CONCURRENCY",
        description="Maximum concurrent requests per fan-out (unbounded when unset)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("repositories", mode="before")
    @classmethod
    def _split_repositories(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [part.strip() for part in stripped.split(",") if part.strip()]
        return value

    @model_validator(mode="after")
    def _require_github_auth(self) -> SprinterSettings:
        if not self.github_token.strip():
            raise ValueError("SPRINTER_GITHUB_TOKEN is required")
        return self
