from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

from .errors import ConfigurationError, TagResolutionWarning
from .model import Commit, CommitId, RawTag

# Guard against cyclic or absurdly deep tag-of-tag chains.
MAX_TAG_CHAIN = 32

BACKENDS = ("native", "pygit2")


class Repository(Protocol):
    """The only view of a repository the describe engine needs."""

    def resolve(self, ref: str) -> CommitId: ...

    def parents_of(self, commit: CommitId) -> Tuple[CommitId, ...]: ...

    def all_tags(self) -> List[RawTag]: ...

    def dereference_tag_chain(self, target: str) -> CommitId: ...

    def is_working_tree_dirty(self) -> bool: ...

    def abbreviate(self, commit: CommitId, min_length: int) -> str: ...

    # build metadata only; the describe engine never calls these

    def read_commit(self, commit: CommitId) -> Commit: ...

    def current_branch(self) -> Optional[str]:
        """Short name of the checked-out branch, None when HEAD is detached."""
        ...


def follow_tag_chain(
    target: str,
    peel_once: Callable[[str], Tuple[str, Optional[str]]],
    *,
    max_depth: int = MAX_TAG_CHAIN,
) -> CommitId:
    """
    Peel `target` until a commit is reached.

    `peel_once(oid)` returns (object_type, next_oid); next_oid is only
    meaningful for "tag" objects.
    """
    seen: set[str] = set()
    cur = target
    for _ in range(max_depth + 1):
        kind, nxt = peel_once(cur)
        if kind == "commit":
            return cur
        if kind != "tag" or nxt is None:
            raise TagResolutionWarning(f"{target} resolves to a {kind}, not a commit")
        if nxt in seen:
            raise TagResolutionWarning(f"tag chain starting at {target} is cyclic")
        seen.add(cur)
        cur = nxt
    raise TagResolutionWarning(
        f"tag chain starting at {target} is longer than {max_depth} objects"
    )


def open_repository(path: Path | None = None, backend: str = "native") -> Repository:
    """Open the repository containing `path` with the requested backend."""
    path = path or Path.cwd()
    if backend == "native":
        from .nativegit import NativeGitRepository

        return NativeGitRepository.open(path)
    if backend == "pygit2":
        from .libgit import Pygit2Repository

        return Pygit2Repository.open(path)
    raise ConfigurationError(f"backend must be one of: {', '.join(BACKENDS)}")
