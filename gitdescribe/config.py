from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError
from .model import MAX_ABBREV, MIN_ABBREV


@dataclass(frozen=True)
class Defaults:
    config_file_name: str = ".gitdescribe.yaml"
    abbrev: int = 7
    dirty_marker: str = "-dirty"
    backend: str = "native"


@dataclass(frozen=True)
class DescribeConfig:
    """
    Options of one describe call, named after the `git describe` flags:

      abbrev  --abbrev=N   hash length; 0 hides the hash (tag-only mode)
      always  --always     fall back to the abbreviated commit when no tag is found
      tags    --tags       include lightweight tags
      long    --long       always print tag-N-gHASH, even on a tag
      dirty   --dirty=MARK marker appended when the working tree is dirty
      match   --match=GLOB only consider tags matching the glob
    """

    abbrev: int = Defaults.abbrev
    always: bool = False
    tags: bool = False
    long: bool = False
    dirty: Optional[str] = None
    match: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.abbrev, bool) or not isinstance(self.abbrev, int):
            raise ConfigurationError(f"abbrev must be an integer (was {self.abbrev!r}).")
        if self.abbrev != 0 and not (MIN_ABBREV <= self.abbrev <= MAX_ABBREV):
            raise ConfigurationError(
                f"abbrev must be 0 or in [{MIN_ABBREV}, {MAX_ABBREV}] (was {self.abbrev})."
            )
        if self.match == "*":
            object.__setattr__(self, "match", None)

    @property
    def tag_only(self) -> bool:
        return self.abbrev == 0

    def merged(self, **overrides: Any) -> "DescribeConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


_BOOL_KEYS = ("always", "tags", "long")
_STR_KEYS = ("dirty", "match")


def config_from_mapping(data: Dict[str, Any], source: str = "<mapping>") -> DescribeConfig:
    known = {f.name for f in fields(DescribeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown key(s) in {source}: {', '.join(unknown)}")

    for k in _BOOL_KEYS:
        if k in data and not isinstance(data[k], bool):
            raise ConfigurationError(f"{source}: '{k}' must be true or false.")
    for k in _STR_KEYS:
        if k in data and data[k] is not None and not isinstance(data[k], str):
            raise ConfigurationError(f"{source}: '{k}' must be a string.")

    return DescribeConfig(**data)


def load_config(path: Path | None = None) -> DescribeConfig:
    """
    Read describe options from a YAML file.

    A missing file yields the defaults; an empty file too.
    """
    p = path or Path(Defaults.config_file_name)
    if not p.exists():
        return DescribeConfig()

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {p}: {e}")

    if data is None:
        return DescribeConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid config file {p}: expected a mapping, got {type(data).__name__}."
        )
    return config_from_mapping(data, source=str(p))
