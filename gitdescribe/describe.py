from __future__ import annotations

import logging
from typing import List, Optional

from .config import DescribeConfig
from .distance import deadline_after, distance_between
from .errors import DistanceComputationFailure, RepositoryStateError, TagResolutionWarning
from .model import CommitId
from .repository import Repository
from .result import Candidate, DescribeResult, build_result
from .search import find_boundary_commits
from .tagindex import TagIndex, build_tag_index

logger = logging.getLogger(__name__)


def resolve_start(repo: Repository, ref: str) -> CommitId:
    try:
        return repo.resolve(ref)
    except RepositoryStateError:
        raise
    except (TagResolutionWarning, KeyError, ValueError, OSError, RuntimeError) as e:
        raise RepositoryStateError(f"Cannot resolve '{ref}' to a commit: {e}") from e


def nearest_candidate(
    repo: Repository,
    start: CommitId,
    index: TagIndex,
    boundaries: List[CommitId],
    *,
    deadline: Optional[float] = None,
    logger: logging.Logger = logger,
) -> Optional[Candidate]:
    """
    Measure every boundary commit and keep the closest one.

    Ties go to the boundary the search reached first.
    """
    best: Optional[Candidate] = None
    for boundary in boundaries:
        name = index.tags_for(boundary)[0].name
        distance = distance_between(repo, start, boundary, deadline=deadline, logger=logger)
        if best is None or distance < best[0]:
            best = (distance, name)
    return best


def describe(
    repo: Repository,
    config: DescribeConfig | None = None,
    ref: str = "HEAD",
    *,
    logger: logging.Logger = logger,
    timeout: Optional[float] = None,
) -> DescribeResult:
    """
    Label `ref` by its nearest ancestor tag, like `git describe`.

    Raises RepositoryStateError when `ref` is not a commit and
    DistanceComputationFailure when the graph cannot be walked.
    """
    config = config or DescribeConfig()
    deadline = deadline_after(timeout)

    logger.info(
        "describe %s: --abbrev=%s --always=%s --tags=%s --long=%s --dirty=%s --match=%s",
        ref,
        config.abbrev,
        config.always,
        config.tags,
        config.long,
        config.dirty or "",
        config.match or "",
    )

    index = build_tag_index(
        repo, match=config.match, include_lightweight=config.tags, logger=logger
    )
    start = resolve_start(repo, ref)
    dirty = repo.is_working_tree_dirty()

    on_tag_name = index.first_name(start)
    if on_tag_name is not None and not config.long:
        logger.info("Commit %s is tagged [%s] and --long is off, returning.", start, on_tag_name)
        return build_result(
            start=start,
            on_tag_name=on_tag_name,
            candidate=None,
            dirty=dirty,
            config=config,
            abbreviate=repo.abbreviate,
        )

    try:
        boundaries = find_boundary_commits(repo, start, index, deadline=deadline, logger=logger)
    except DistanceComputationFailure as e:
        if not config.always:
            raise
        logger.warning("Unable to find commits until some tag, falling back to commit id: %s", e)
        boundaries = []

    candidate = nearest_candidate(
        repo, start, index, boundaries, deadline=deadline, logger=logger
    )
    if candidate is not None:
        logger.info("Nearest tag is [%s], %d commit(s) away", candidate[1], candidate[0])

    return build_result(
        start=start,
        on_tag_name=on_tag_name,
        candidate=candidate,
        dirty=dirty,
        config=config,
        abbreviate=repo.abbreviate,
    )
