"""Remote issue-tracker clients."""

from github_sprinter.github.client import GitHubIssueTracker, IssueTrackerClient

__all__ = ["GitHubIssueTracker", "IssueTrackerClient"]
