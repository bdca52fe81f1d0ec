from __future__ import annotations

import logging
from collections import deque
from typing import List, Optional

from .distance import check_deadline, read_parents
from .model import CommitId
from .repository import Repository
from .tagindex import TagIndex

logger = logging.getLogger(__name__)


def find_boundary_commits(
    repo: Repository,
    start: CommitId,
    index: TagIndex,
    *,
    deadline: Optional[float] = None,
    logger: logging.Logger = logger,
) -> List[CommitId]:
    """
    Breadth-first walk from `start` that stops at tagged commits.

    Returns the tagged commits reached, in discovery order. Ancestors of a
    tagged commit are never visited.
    """
    if not len(index):
        return []

    found: List[CommitId] = []
    visited = {start}
    queue = deque([start])
    while queue:
        check_deadline(deadline, "tag search")
        commit = queue.popleft()
        if commit in index:
            logger.debug("Reached tagged commit [%s] %s", commit, index.first_name(commit))
            found.append(commit)
            continue
        for p in read_parents(repo, commit):
            if p not in visited:
                visited.add(p)
                queue.append(p)
    return found
