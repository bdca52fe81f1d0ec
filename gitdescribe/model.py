from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from .errors import ConfigurationError

CommitId = str

MIN_ABBREV = 2
MAX_ABBREV = 40


def from_epoch(ts: Optional[int]) -> Optional[datetime]:
    if ts is None:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc)


@dataclass(frozen=True)
class Commit:
    id: CommitId
    parents: Tuple[CommitId, ...] = ()
    committed_at: Optional[datetime] = None
    message: str = ""
    author_name: Optional[str] = None
    author_email: Optional[str] = None

    @property
    def short_message(self) -> str:
        """First paragraph of the message on one line, like `git log --format=%s`."""
        para = self.message.strip().split("\n\n", 1)[0]
        return " ".join(line.strip() for line in para.splitlines() if line.strip())


@dataclass(frozen=True)
class RawTag:
    """A tag ref as the backend sees it, before following the tag chain."""

    name: str
    target: str
    is_tag_object: bool
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Tag:
    name: str
    target: CommitId
    annotated: bool
    created_at: Optional[datetime] = None


def check_abbrev_length(n: int) -> None:
    if n < MIN_ABBREV or n > MAX_ABBREV:
        raise ConfigurationError(
            f"Commit abbreviation length must be in [{MIN_ABBREV}, {MAX_ABBREV}] (was {n})."
        )


def shortest_unique_prefix(oid: str, all_ids: Iterable[str], min_length: int) -> str:
    """
    Return the shortest prefix of `oid` that no other id in `all_ids` shares,
    never shorter than `min_length`.
    """
    check_abbrev_length(min_length)
    oid = oid.lower()
    longest_shared = 0
    for other in all_ids:
        other = other.lower()
        if other == oid:
            continue
        n = 0
        for a, b in zip(oid, other):
            if a != b:
                break
            n += 1
        if n > longest_shared:
            longest_shared = n
    return oid[: min(len(oid), max(min_length, longest_shared + 1))]
