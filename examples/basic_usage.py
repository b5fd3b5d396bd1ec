#!/usr/bin/env python3
"""Programmatic sprint-milestone example.

This demonstrates using the sprinter directly:

* load settings (token and repositories) from `.env`
* list open issues across every configured repository
* show milestones grouped by title
* optionally create or close a milestone everywhere at once
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
from typing import Sequence

from github_sprinter import MilestoneTemplate, Orchestrator, RepoScopedError, SprinterSettings
from github_sprinter.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect sprints across repositories.")
    parser.add_argument("--create", default=None, help="Milestone title to create everywhere")
    parser.add_argument(
        "--due-on",
        type=date.fromisoformat,
        default=None,
        help="Due date for --create, e.g. 2025-02-01",
    )
    parser.add_argument("--close", default=None, help="Milestone title to close everywhere")
    return parser.parse_args(argv)


async def _run(orchestrator: Orchestrator, args: argparse.Namespace) -> None:
    if args.create:
        created = await orchestrator.create_milestones(
            MilestoneTemplate(title=args.create, due_on=args.due_on)
        )
        for milestone in created:
            print(f"Created {milestone.source_repo}#{milestone.number}: {milestone.title}")

    if args.close:
        closed = await orchestrator.close_milestones(args.close)
        print(f"Closed {len(closed)} milestone(s) titled {args.close!r}")

    for issue in await orchestrator.get_issues():
        stamp = issue.updated_at.date().isoformat() if issue.updated_at else "-"
        print(f"{stamp} {issue.source_repo}#{issue.number} {issue.title}")

    for title, milestones in (await orchestrator.get_milestones()).items():
        repos = ", ".join(m.source_repo for m in milestones)
        print(f"{title}: {repos}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = SprinterSettings()
    configure_logging(settings.log_level)

    orchestrator = Orchestrator.from_settings(settings)
    try:
        asyncio.run(_run(orchestrator, args))
    except RepoScopedError as exc:
        print(f"Failed in {exc.slug}: {exc.cause}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
