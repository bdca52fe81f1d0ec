from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import RepositoryStateError, TagResolutionWarning
from .model import (
    Commit,
    CommitId,
    RawTag,
    check_abbrev_length,
    from_epoch,
    shortest_unique_prefix,
)
from .repository import follow_tag_chain

logger = logging.getLogger(__name__)


class GitCommandError(RuntimeError):
    """Raised when the git executable exits non-zero."""


def _git(args: list[str], cwd: Path) -> str:
    logger.debug("git %s", " ".join(args))
    try:
        r = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise GitCommandError("git executable not found") from e
    if r.returncode != 0:
        raise GitCommandError(r.stderr.strip() or "git command failed")
    return r.stdout.strip()


_TAG_FORMAT = "%(refname:strip=2)%00%(objectname)%00%(objecttype)%00%(taggerdate:unix)"
_COMMIT_FORMAT = "%P%x00%ct%x00%an%x00%ae%x00%B"

# shortest abbreviation `git rev-parse --short` will print
GIT_MIN_ABBREV = 4


class NativeGitRepository:
    """Repository backed by the `git` executable."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._parents: Dict[CommitId, Tuple[CommitId, ...]] = {}

    @classmethod
    def open(cls, path: Path) -> "NativeGitRepository":
        try:
            root = _git(["rev-parse", "--show-toplevel"], path)
        except GitCommandError as e:
            raise RepositoryStateError(f"{path} is not inside a git repository: {e}") from e
        return cls(Path(root))

    def resolve(self, ref: str) -> CommitId:
        try:
            return _git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], self.root)
        except GitCommandError as e:
            raise RepositoryStateError(f"Cannot resolve '{ref}' to a commit: {e}") from e

    def _load_parents(self, commit: CommitId) -> None:
        # one rev-list call fills the cache for the whole ancestry of `commit`
        out = _git(["rev-list", "--parents", commit], self.root)
        for line in out.splitlines():
            ids = line.split()
            if ids:
                self._parents[ids[0]] = tuple(ids[1:])

    def parents_of(self, commit: CommitId) -> Tuple[CommitId, ...]:
        if commit not in self._parents:
            self._load_parents(commit)
        return self._parents[commit]

    def all_tags(self) -> List[RawTag]:
        out = _git(["for-each-ref", f"--format={_TAG_FORMAT}", "refs/tags"], self.root)
        tags: List[RawTag] = []
        for line in out.splitlines():
            parts = line.split("\x00")
            if len(parts) != 4:
                logger.warning("Unexpected for-each-ref line: %r", line)
                continue
            name, oid, kind, tagger_ts = parts
            tags.append(
                RawTag(
                    name=name,
                    target=oid,
                    is_tag_object=(kind == "tag"),
                    created_at=from_epoch(int(tagger_ts)) if tagger_ts.strip() else None,
                )
            )
        return tags

    def _peel_once(self, oid: str) -> Tuple[str, Optional[str]]:
        try:
            kind = _git(["cat-file", "-t", oid], self.root)
            if kind != "tag":
                return (kind, None)
            body = _git(["cat-file", "tag", oid], self.root)
        except GitCommandError as e:
            raise TagResolutionWarning(f"cannot read object {oid}: {e}") from e
        for line in body.splitlines():
            if line.startswith("object "):
                return ("tag", line.split(" ", 1)[1].strip())
            if not line:
                break
        raise TagResolutionWarning(f"tag object {oid} has no 'object' header")

    def dereference_tag_chain(self, target: str) -> CommitId:
        return follow_tag_chain(target, self._peel_once)

    def is_working_tree_dirty(self) -> bool:
        # untracked files do not make the tree dirty, same as `git describe --dirty`
        status = _git(["status", "--porcelain", "--untracked-files=no"], self.root)
        return any(line.strip() for line in status.splitlines())

    def abbreviate(self, commit: CommitId, min_length: int) -> str:
        check_abbrev_length(min_length)
        if min_length >= GIT_MIN_ABBREV:
            return _git(["rev-parse", f"--short={min_length}", commit], self.root)
        # git never prints fewer than 4 digits; scan only ids sharing the short prefix
        prefix = commit[:min_length]
        out = _git(
            ["cat-file", "--batch-all-objects", "--batch-check=%(objectname)"], self.root
        )
        near = [oid for oid in out.split() if oid.startswith(prefix)]
        return shortest_unique_prefix(commit, near, min_length)

    def read_commit(self, commit: CommitId) -> Commit:
        out = _git(["log", "-1", f"--format={_COMMIT_FORMAT}", commit], self.root)
        parents, ts, name, email, message = out.split("\x00", 4)
        return Commit(
            id=commit,
            parents=tuple(parents.split()),
            committed_at=from_epoch(int(ts)),
            message=message,
            author_name=name,
            author_email=email,
        )

    def current_branch(self) -> Optional[str]:
        try:
            return _git(["symbolic-ref", "--quiet", "--short", "HEAD"], self.root)
        except GitCommandError:
            # exits 1 when HEAD is detached
            return None
