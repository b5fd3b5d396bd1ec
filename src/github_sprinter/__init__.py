"""GitHub Sprinter.

Aggregates issues and milestones across a fixed set of GitHub repositories and
applies milestone changes to all of them as one batch:
- settings loaded from `.env`
- structured logging
- concurrent fan-out with fail-fast, repo-attributed errors
"""

__version__ = "0.1.0"

from github_sprinter.config import SprinterSettings
from github_sprinter.errors import InvalidSlugError, RepoScopedError, SprinterError
from github_sprinter.models import Issue, Milestone, MilestoneTemplate
from github_sprinter.orchestrator import Orchestrator
from github_sprinter.repos import RepoIdentifier

__all__ = [
    "__version__",
    "InvalidSlugError",
    "Issue",
    "Milestone",
    "MilestoneTemplate",
    "Orchestrator",
    "RepoIdentifier",
    "RepoScopedError",
    "SprinterError",
    "SprinterSettings",
]
