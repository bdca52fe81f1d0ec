from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import RepositoryStateError, TagResolutionWarning
from .model import Commit, CommitId, RawTag, shortest_unique_prefix
from .repository import follow_tag_chain


def _oid(*parts: str) -> str:
    h = hashlib.sha1()
    for p in parts:
        h.update(p.encode("utf-8"))
        h.update(b"\0")
    return h.hexdigest()


class MemoryRepository:
    """
    Commit graph held in dicts. Ids are sha1 digests of the object content,
    so equal histories built twice get equal ids.
    """

    def __init__(self) -> None:
        self.commits: Dict[CommitId, Commit] = {}
        # tag object id -> (target oid, created_at)
        self.tag_objects: Dict[str, Tuple[str, Optional[datetime]]] = {}
        # "refs/tags/<name>" minus the prefix -> raw target
        self.tag_refs: Dict[str, str] = {}
        self.branches: Dict[str, CommitId] = {}
        self.other_objects: set[str] = set()
        self.head: Optional[CommitId] = None
        # branch HEAD points at; None means detached
        self.head_branch: Optional[str] = None
        self.dirty = False

    # -- building ------------------------------------------------------------

    def commit(
        self,
        parents: Iterable[CommitId] = (),
        *,
        message: str = "",
        when: Optional[datetime] = None,
        author: Optional[Tuple[str, str]] = None,
        move_head: bool = True,
    ) -> CommitId:
        parents = tuple(parents)
        for p in parents:
            if p not in self.commits:
                raise KeyError(f"unknown parent commit {p}")
        oid = _oid("commit", message, *parents, str(len(self.commits)))
        self.commits[oid] = Commit(
            id=oid,
            parents=parents,
            committed_at=when,
            message=message,
            author_name=author[0] if author else None,
            author_email=author[1] if author else None,
        )
        if move_head:
            self.head = oid
            if self.head_branch:
                self.branches[self.head_branch] = oid
        return oid

    def line(self, n: int, parent: Optional[CommitId] = None) -> List[CommitId]:
        """Append `n` commits in a straight line; return them oldest first."""
        out: List[CommitId] = []
        for i in range(n):
            parents = (parent,) if parent else ()
            parent = self.commit(parents, message=f"line {len(self.commits)} {i}")
            out.append(parent)
        return out

    def tag(
        self,
        name: str,
        target: str,
        *,
        annotated: bool = True,
        when: Optional[datetime] = None,
    ) -> str:
        """Create refs/tags/<name>. Annotated tags get their own tag object."""
        if annotated:
            oid = _oid("tag", name, target, str(when))
            self.tag_objects[oid] = (target, when)
            self.tag_refs[name] = oid
            return oid
        self.tag_refs[name] = target
        return target

    def add_blob(self, content: str) -> str:
        oid = _oid("blob", content)
        self.other_objects.add(oid)
        return oid

    # -- Repository ----------------------------------------------------------

    def resolve(self, ref: str) -> CommitId:
        if ref == "HEAD":
            if self.head is None:
                raise RepositoryStateError("HEAD does not point at a commit (empty repository).")
            return self.head
        if ref in self.branches:
            return self.branches[ref]
        if ref in self.tag_refs:
            try:
                return self.dereference_tag_chain(self.tag_refs[ref])
            except TagResolutionWarning as e:
                raise RepositoryStateError(f"Cannot resolve '{ref}' to a commit: {e}") from e
        matches = [c for c in self.commits if c.startswith(ref.lower())] if ref else []
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise RepositoryStateError(f"Ambiguous commit reference '{ref}'.")
        raise RepositoryStateError(f"Cannot resolve '{ref}' to a commit.")

    def parents_of(self, commit: CommitId) -> Tuple[CommitId, ...]:
        return self.commits[commit].parents

    def all_tags(self) -> List[RawTag]:
        out: List[RawTag] = []
        for name, target in sorted(self.tag_refs.items()):
            obj = self.tag_objects.get(target)
            out.append(
                RawTag(
                    name=name,
                    target=target,
                    is_tag_object=obj is not None,
                    created_at=obj[1] if obj else None,
                )
            )
        return out

    def _peel_once(self, oid: str) -> Tuple[str, Optional[str]]:
        if oid in self.commits:
            return ("commit", None)
        if oid in self.tag_objects:
            return ("tag", self.tag_objects[oid][0])
        if oid in self.other_objects:
            return ("blob", None)
        raise TagResolutionWarning(f"object {oid} is missing")

    def dereference_tag_chain(self, target: str) -> CommitId:
        return follow_tag_chain(target, self._peel_once)

    def is_working_tree_dirty(self) -> bool:
        return self.dirty

    def abbreviate(self, commit: CommitId, min_length: int) -> str:
        all_ids = [*self.commits, *self.tag_objects, *self.other_objects]
        return shortest_unique_prefix(commit, all_ids, min_length)

    def read_commit(self, commit: CommitId) -> Commit:
        return self.commits[commit]

    def current_branch(self) -> Optional[str]:
        return self.head_branch
