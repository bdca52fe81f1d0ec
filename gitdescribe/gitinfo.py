from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import DescribeConfig, Defaults
from .describe import resolve_start, describe, nearest_candidate
from .distance import ancestors, count_exclusive, deadline_after
from .repository import Repository
from .search import find_boundary_commits
from .tagindex import build_tag_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AheadBehind:
    ahead: int
    behind: int


@dataclass(frozen=True)
class GitInfo:
    commit: str
    commit_abbrev: str
    dirty: bool
    describe: str
    tags: List[str]
    branch: Optional[str] = None
    detached: bool = False
    commit_time: Optional[datetime] = None
    commit_message_short: str = ""
    commit_author_name: Optional[str] = None
    commit_author_email: Optional[str] = None
    total_commit_count: int = 0
    closest_tag_name: Optional[str] = None
    closest_tag_commit_count: Optional[int] = None
    ahead: Optional[int] = None
    behind: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["commit_time"] = self.commit_time.isoformat() if self.commit_time else None
        return d


def tags_at(repo: Repository, ref: str = "HEAD") -> List[str]:
    """Every tag (annotated or lightweight) pointing at `ref`, newest first."""
    commit = resolve_start(repo, ref)
    index = build_tag_index(repo, include_lightweight=True)
    return [t.name for t in index.tags_for(commit)]


def closest_tag(repo: Repository, ref: str = "HEAD") -> Optional[Tuple[str, int]]:
    """
    (name, commit count) of the nearest tag, lightweight tags included.

    Same answer as `git describe --tags --abbrev=0` plus
    `git rev-list --count <tag>..<ref>`. None when no tag is reachable.
    """
    start = resolve_start(repo, ref)
    index = build_tag_index(repo, include_lightweight=True)
    boundaries = find_boundary_commits(repo, start, index)
    candidate = nearest_candidate(repo, start, index, boundaries)
    if candidate is None:
        return None
    distance, name = candidate
    return (name, distance)


def ahead_behind(repo: Repository, local: str, remote: str) -> AheadBehind:
    a = resolve_start(repo, local)
    b = resolve_start(repo, remote)
    return AheadBehind(
        ahead=count_exclusive(repo, a, b),
        behind=count_exclusive(repo, b, a),
    )


def capture_git_info(
    repo: Repository,
    config: DescribeConfig | None = None,
    ref: str = "HEAD",
    *,
    against: Optional[str] = None,
    timeout: Optional[float] = None,
) -> GitInfo:
    config = config or DescribeConfig()
    commit = resolve_start(repo, ref)
    desc = describe(repo, config, ref, timeout=timeout)

    meta = repo.read_commit(commit)
    branch = repo.current_branch()
    closest = closest_tag(repo, ref)
    ab = ahead_behind(repo, ref, against) if against else None

    return GitInfo(
        commit=commit,
        commit_abbrev=repo.abbreviate(commit, config.abbrev or Defaults.abbrev),
        dirty=repo.is_working_tree_dirty(),
        describe=str(desc),
        tags=tags_at(repo, ref),
        branch=branch,
        detached=branch is None,
        commit_time=meta.committed_at,
        commit_message_short=meta.short_message,
        commit_author_name=meta.author_name,
        commit_author_email=meta.author_email,
        total_commit_count=len(ancestors(repo, commit, deadline=deadline_after(timeout))),
        closest_tag_name=closest[0] if closest else None,
        closest_tag_commit_count=closest[1] if closest else None,
        ahead=ab.ahead if ab else None,
        behind=ab.behind if ab else None,
    )
