from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from .config import DescribeConfig
from .model import CommitId


@dataclass(frozen=True)
class _Marked:
    dirty: bool = False
    dirty_marker: Optional[str] = None

    def _suffix(self) -> str:
        return self.dirty_marker if (self.dirty and self.dirty_marker) else ""


@dataclass(frozen=True)
class OnTag(_Marked):
    name: str = ""

    def __str__(self) -> str:
        return self.name + self._suffix()


@dataclass(frozen=True)
class TagWithDistance(_Marked):
    """
    v1.0.4-14-g2414721-DEV
      |    |   |       '-- dirty marker, only when the tree is dirty
      |    |   '---------- "g" + abbreviated commit id
      |    '-------------- commits since the tag
      '------------------- nearest tag
    """

    name: str = ""
    distance: int = 0
    commit: CommitId = ""
    abbrev: Optional[str] = None

    def __str__(self) -> str:
        if self.abbrev is None:
            return self.name + self._suffix()
        return f"{self.name}-{self.distance}-g{self.abbrev}{self._suffix()}"


@dataclass(frozen=True)
class CommitOnly(_Marked):
    """A bare abbreviated commit id; no "g" prefix."""

    commit: CommitId = ""
    abbrev: Optional[str] = None

    def __str__(self) -> str:
        return (self.abbrev or "") + self._suffix()


@dataclass(frozen=True)
class Empty:
    def __str__(self) -> str:
        return ""


EMPTY = Empty()

DescribeResult = Union[OnTag, TagWithDistance, CommitOnly, Empty]

# (distance, tag name) of the nearest tagged commit
Candidate = Tuple[int, str]


def build_result(
    *,
    start: CommitId,
    on_tag_name: Optional[str],
    candidate: Optional[Candidate],
    dirty: bool,
    config: DescribeConfig,
    abbreviate: Callable[[CommitId, int], str],
) -> DescribeResult:
    """
    Pick the describe output shape. The order of the checks matters:

      1. on a tag, not --long             -> tag
      2. no candidate                     -> commit (--always) or nothing
      3. distance > 0 or --long           -> tag-N-gHASH
      4. distance == 0                    -> tag
      5. --always                         -> commit, else nothing

    `abbreviate` is only called when a hash is going to be printed.
    """
    marker = config.dirty

    def _abbrev() -> Optional[str]:
        return None if config.tag_only else abbreviate(start, config.abbrev)

    def _commit_only() -> DescribeResult:
        return CommitOnly(dirty=dirty, dirty_marker=marker, commit=start, abbrev=_abbrev())

    if on_tag_name is not None and not config.long:
        return OnTag(dirty=dirty, dirty_marker=marker, name=on_tag_name)

    if candidate is None:
        return _commit_only() if config.always else EMPTY

    distance, name = candidate
    if distance > 0 or config.long:
        return TagWithDistance(
            dirty=dirty,
            dirty_marker=marker,
            name=name,
            distance=distance,
            commit=start,
            abbrev=_abbrev(),
        )
    if distance == 0:
        return OnTag(dirty=dirty, dirty_marker=marker, name=name)

    return _commit_only() if config.always else EMPTY
