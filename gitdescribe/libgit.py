"""Repository backed by libgit2 through pygit2."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import pygit2
from pygit2.enums import FileStatus

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

_TAG_PREFIX = "refs/tags/"
_BRANCH_PREFIX = "refs/heads/"

# libgit2 rejects shorter object id prefixes (GIT_OID_MINPREFIXLEN)
MIN_PREFIX_LOOKUP = 4

# untracked and ignored files do not make the tree dirty
_NOT_DIRTY = FileStatus.WT_NEW | FileStatus.IGNORED


class Pygit2Repository:
    def __init__(self, repo: pygit2.Repository) -> None:
        self.repo = repo

    @classmethod
    def open(cls, path: Path) -> "Pygit2Repository":
        git_dir = pygit2.discover_repository(str(path))
        if git_dir is None:
            raise RepositoryStateError(f"{path} is not inside a git repository")
        return cls(pygit2.Repository(git_dir))

    def resolve(self, ref: str) -> CommitId:
        try:
            commit = self.repo.revparse_single(ref).peel(pygit2.Commit)
        except (KeyError, ValueError, pygit2.GitError) as e:
            raise RepositoryStateError(f"Cannot resolve '{ref}' to a commit: {e}") from e
        return str(commit.id)

    def parents_of(self, commit: CommitId) -> Tuple[CommitId, ...]:
        obj = self.repo[commit]
        if not isinstance(obj, pygit2.Commit):
            raise ValueError(f"{commit} is not a commit")
        return tuple(str(p) for p in obj.parent_ids)

    def all_tags(self) -> List[RawTag]:
        tags: List[RawTag] = []
        for refname in self.repo.listall_references():
            if not refname.startswith(_TAG_PREFIX):
                continue
            ref = self.repo.lookup_reference(refname)
            target = ref.target
            if not isinstance(target, pygit2.Oid):
                # symbolic tag ref; follow it to the object it names
                target = ref.resolve().target
            obj = self.repo.get(target)
            tagger = getattr(obj, "tagger", None) if isinstance(obj, pygit2.Tag) else None
            tags.append(
                RawTag(
                    name=refname[len(_TAG_PREFIX):],
                    target=str(target),
                    is_tag_object=isinstance(obj, pygit2.Tag),
                    created_at=from_epoch(tagger.time) if tagger is not None else None,
                )
            )
        return tags

    def _peel_once(self, oid: str) -> Tuple[str, Optional[str]]:
        try:
            obj = self.repo.get(oid)
        except (ValueError, pygit2.GitError) as e:
            raise TagResolutionWarning(f"cannot read object {oid}: {e}") from e
        if obj is None:
            raise TagResolutionWarning(f"object {oid} is missing")
        if isinstance(obj, pygit2.Commit):
            return ("commit", None)
        if isinstance(obj, pygit2.Tag):
            return ("tag", str(obj.target))
        return (obj.type_str, None)

    def dereference_tag_chain(self, target: str) -> CommitId:
        return follow_tag_chain(target, self._peel_once)

    def is_working_tree_dirty(self) -> bool:
        for path, flags in self.repo.status().items():
            if flags & ~_NOT_DIRTY:
                logger.debug("dirty: %s (%s)", path, flags)
                return True
        return False

    def abbreviate(self, commit: CommitId, min_length: int) -> str:
        check_abbrev_length(min_length)
        if min_length < MIN_PREFIX_LOOKUP:
            prefix = commit[:min_length]
            near = [str(oid) for oid in self.repo.odb if str(oid).startswith(prefix)]
            return shortest_unique_prefix(commit, near, min_length)

        for n in range(min_length, len(commit) + 1):
            try:
                # ambiguous prefixes raise; a unique one finds our commit
                self.repo[commit[:n]]
            except ValueError:
                continue
            return commit[:n]
        return commit

    def read_commit(self, commit: CommitId) -> Commit:
        obj = self.repo[commit]
        if not isinstance(obj, pygit2.Commit):
            raise ValueError(f"{commit} is not a commit")
        return Commit(
            id=str(obj.id),
            parents=tuple(str(p) for p in obj.parent_ids),
            committed_at=from_epoch(obj.commit_time),
            message=obj.message,
            author_name=obj.author.name,
            author_email=obj.author.email,
        )

    def current_branch(self) -> Optional[str]:
        if self.repo.head_is_detached:
            return None
        target = self.repo.lookup_reference("HEAD").target
        name = str(target)
        return name[len(_BRANCH_PREFIX):] if name.startswith(_BRANCH_PREFIX) else name
