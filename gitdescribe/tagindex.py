from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Pattern

from .errors import TagResolutionWarning
from .model import CommitId, Tag
from .repository import Repository

logger = logging.getLogger(__name__)


def glob_to_regex(pattern: Optional[str]) -> Pattern[str]:
    """
    Compile a `--match` glob into a full-match regex.

    `*` matches any run of characters, `?` exactly one; everything else is
    literal. None and "*" match every name.
    """
    if pattern is None or pattern == "*":
        return re.compile(r".*", re.DOTALL)
    parts: List[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def _tag_order(tag: Tag):
    # newest first; undated (lightweight) after dated; then name ascending
    if tag.created_at is None:
        return (1, 0.0, tag.name)
    return (0, -tag.created_at.timestamp(), tag.name)


@dataclass
class TagIndex:
    by_commit: Dict[CommitId, List[Tag]] = field(default_factory=dict)

    def __contains__(self, commit: object) -> bool:
        return commit in self.by_commit

    def __len__(self) -> int:
        return len(self.by_commit)

    def __iter__(self) -> Iterator[CommitId]:
        return iter(self.by_commit)

    def tags_for(self, commit: CommitId) -> List[Tag]:
        return list(self.by_commit.get(commit, []))

    def first_name(self, commit: CommitId) -> Optional[str]:
        tags = self.by_commit.get(commit)
        return tags[0].name if tags else None

    def add(self, tag: Tag) -> None:
        tags = self.by_commit.setdefault(tag.target, [])
        tags.append(tag)
        tags.sort(key=_tag_order)


def build_tag_index(
    repo: Repository,
    *,
    match: Optional[str] = None,
    include_lightweight: bool = False,
    logger: logging.Logger = logger,
) -> TagIndex:
    """
    Resolve every tag ref to its commit and group the survivors by commit.

    A tag that cannot be resolved is logged and skipped; it never aborts
    the build of the index.
    """
    name_re = glob_to_regex(match)
    index = TagIndex()

    raw_tags = repo.all_tags()
    logger.debug("Tag refs %s", [t.name for t in raw_tags])

    for raw in raw_tags:
        if not name_re.fullmatch(raw.name):
            logger.debug("Skipping tag [%s]: does not match [%s]", raw.name, match)
            continue
        if not raw.is_tag_object and not include_lightweight:
            logger.debug("Skipping lightweight tag [%s]", raw.name)
            continue

        try:
            commit = repo.dereference_tag_chain(raw.target)
        except TagResolutionWarning as e:
            logger.warning("Failed while resolving tag [%s]: %s", raw.name, e)
            continue

        tag = Tag(
            name=raw.name,
            target=commit,
            annotated=raw.is_tag_object,
            created_at=raw.created_at if raw.is_tag_object else None,
        )
        logger.debug(
            "Including %s tag [%s] -> %s",
            "annotated" if tag.annotated else "lightweight",
            tag.name,
            commit,
        )
        index.add(tag)

    return index
