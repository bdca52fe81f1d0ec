from __future__ import annotations

import logging
import time
from collections import deque
from typing import Optional, Set

from .errors import DistanceComputationFailure
from .model import CommitId
from .repository import Repository

logger = logging.getLogger(__name__)


def deadline_after(timeout: Optional[float]) -> Optional[float]:
    if timeout is None:
        return None
    return time.monotonic() + timeout


def check_deadline(deadline: Optional[float], what: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise DistanceComputationFailure(f"could not determine distance: {what} timed out")


def read_parents(repo: Repository, commit: CommitId):
    try:
        return repo.parents_of(commit)
    except DistanceComputationFailure:
        raise
    except (KeyError, ValueError, OSError, RuntimeError) as e:
        raise DistanceComputationFailure(f"cannot read parents of {commit}: {e}") from e


def ancestors(
    repo: Repository, start: CommitId, *, deadline: Optional[float] = None
) -> Set[CommitId]:
    """Every commit reachable from `start`, `start` included."""
    seen = {start}
    queue = deque([start])
    while queue:
        check_deadline(deadline, "ancestry walk")
        commit = queue.popleft()
        for p in read_parents(repo, commit):
            if p not in seen:
                seen.add(p)
                queue.append(p)
    return seen


def count_exclusive(
    repo: Repository,
    start: CommitId,
    boundary: CommitId,
    *,
    deadline: Optional[float] = None,
) -> int:
    """
    Number of commits reachable from `start` but not from `boundary`
    (both walks include their own starting commit).

    Same count as `git rev-list --count boundary..start`.
    """
    excluded = ancestors(repo, boundary, deadline=deadline)
    if start in excluded:
        return 0

    distance = 0
    seen = {start}
    queue = deque([start])
    while queue:
        check_deadline(deadline, "distance walk")
        commit = queue.popleft()
        distance += 1
        for p in read_parents(repo, commit):
            if p in excluded or p in seen:
                continue
            seen.add(p)
            queue.append(p)
    return distance


def distance_between(
    repo: Repository,
    start: CommitId,
    boundary: CommitId,
    *,
    deadline: Optional[float] = None,
    logger: logging.Logger = logger,
) -> int:
    distance = count_exclusive(repo, start, boundary, deadline=deadline)
    logger.debug("Distance from [%s] to tagged commit [%s] is %d", start, boundary, distance)
    return distance
