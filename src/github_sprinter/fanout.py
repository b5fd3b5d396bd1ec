"""Concurrent fan-out/fan-in over the configured repositories.

One logical operation is dispatched to every repository at once. Results are
merged in the configured repository order; the first failure observed fails
the whole operation and no partial results are returned alongside it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from functools import partial
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


def flatten(chunks: Iterable[Iterable[T]]) -> list[T]:
    """Concatenate per-repo result lists, keeping repo order and inner order."""

    return [item for chunk in chunks for item in chunk]


class FanOutExecutor:
    """Run a coroutine against many targets (usually repositories) concurrently.

    Args:
        cancel_on_failure: When true, branches still in flight after the first
            failure are cancelled and awaited before the failure is raised.
            When false they run to completion in the background and their
            outcomes are logged and discarded.
        max_concurrency: Upper bound on branches running at once. ``None``
            dispatches every repository immediately.
    """

    def __init__(self, *, cancel_on_failure: bool = True, max_concurrency: int | None = None) -> None:
        if max_concurrency is not None and max_concurrency <= 0:
            raise ValueError("max_concurrency must be a positive integer or None")

        self._cancel_on_failure = cancel_on_failure
        self._max_concurrency = max_concurrency
        # Strong references to abandoned branches; the event loop only keeps weak ones.
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def cancel_on_failure(self) -> bool:
        return self._cancel_on_failure

    @property
    def max_concurrency(self) -> int | None:
        return self._max_concurrency

    async def run(
        self,
        targets: Sequence[K],
        op: Callable[[K], Awaitable[T]],
        *,
        operation: str = "operation",
        describe: Callable[[K], str] = str,
    ) -> list[T]:
        """Run ``op(target)`` for every target and return results in ``targets`` order.

        ``describe`` names a target in logs and task names; for a
        :class:`~github_sprinter.repos.RepoIdentifier` the default gives its slug.

        Raises:
            Whatever the first failing branch raised.
        """

        if not targets:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        async def branch(target: K) -> T:
            if semaphore is None:
                return await op(target)
            async with semaphore:
                return await op(target)

        tasks: dict[asyncio.Task[T], str] = {}
        for target in targets:
            label = describe(target)
            tasks[asyncio.create_task(branch(target), name=f"{operation}:{label}")] = label
        logger.debug("Fan-out started", extra={"operation": operation, "repo_count": len(targets)})

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        failed = next(
            (
                task
                for task in tasks
                if task in done and not task.cancelled() and task.exception() is not None
            ),
            None,
        )
        if failed is None:
            logger.debug(
                "Fan-out finished", extra={"operation": operation, "repo_count": len(targets)}
            )
            return [task.result() for task in tasks]

        error = failed.exception()
        assert error is not None
        logger.warning(
            "Fan-out aborted",
            extra={
                "operation": operation,
                "repo": tasks[failed],
                "error": str(error),
                "pending": len(pending),
            },
        )

        for task in done:
            if task is not failed:
                self._discard(operation, tasks[task], task)

        if pending:
            if self._cancel_on_failure:
                for task in pending:
                    task.cancel()
                await asyncio.wait(pending)
                for task in pending:
                    self._discard(operation, tasks[task], task)
            else:
                for task in pending:
                    self._background.add(task)
                    task.add_done_callback(partial(self._abandoned_done, operation, tasks[task]))

        raise error

    def _abandoned_done(self, operation: str, label: str, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        self._discard(operation, label, task)

    @staticmethod
    def _discard(operation: str, label: str, task: asyncio.Task[Any]) -> None:
        extra: dict[str, Any] = {"operation": operation, "repo": label}
        if task.cancelled():
            logger.info("Discarding cancelled branch", extra=extra)
            return

        error = task.exception()
        if error is not None:
            logger.warning("Discarding branch failure", extra={**extra, "error": str(error)})
        else:
            logger.info("Discarding branch result", extra=extra)
