"""Fork/join helper for concurrent build operations.

A phase forks a fixed, known set of operations onto a short-lived thread
pool and joins all of them before returning. There is no cancellation:
every launched operation runs to completion even if a sibling has failed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class JoinPolicy(str, Enum):
    """How failures of concurrent operations are reported."""

    FIRST_ERROR = "first-error"
    AGGREGATE = "aggregate"


@dataclass(frozen=True)
class OperationFailure:
    """A failed concurrent operation."""

    name: str
    error: Exception


def run_concurrently(
    operations: Mapping[str, Callable[[], None]],
    policy: JoinPolicy = JoinPolicy.AGGREGATE,
) -> list[OperationFailure]:
    """Run operations concurrently and wait for all of them.

    Args:
        operations: Operation name to callable.
        policy: FIRST_ERROR returns at most the first failure observed;
            AGGREGATE returns every failure.

    Returns:
        Failures in completion order; empty if every operation succeeded.
    """
    if not operations:
        return []

    failures: list[OperationFailure] = []
    with ThreadPoolExecutor(
        max_workers=len(operations), thread_name_prefix="imagegen"
    ) as executor:
        futures = {executor.submit(fn): name for name, fn in operations.items()}
        for future in as_completed(futures):
            name = futures[future]
            error = future.exception()
            if error is None:
                logger.debug("Operation %s finished", name)
                continue
            if not isinstance(error, Exception):
                raise error
            logger.debug("Operation %s failed: %s", name, error)
            failures.append(OperationFailure(name=name, error=error))

    if policy is JoinPolicy.FIRST_ERROR:
        return failures[:1]
    return failures


__all__ = ["JoinPolicy", "OperationFailure", "run_concurrently"]
