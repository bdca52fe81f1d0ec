from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _dist_version
from pathlib import Path
from typing import Optional

from .config import DescribeConfig, Defaults
from .describe import describe
from .errors import DescribeError
from .repository import open_repository

# used when the distribution is not installed (running from a checkout)
__version__ = "0.3.0"

_DIST_NAME = "gitdescribe"


def _installed_version() -> Optional[str]:
    try:
        return _dist_version(_DIST_NAME)
    except PackageNotFoundError:
        return None


def source_describe(root: Path | None = None) -> Optional[str]:
    """Describe the checkout this package is imported from, if it is one."""
    root = root or Path(__file__).resolve().parent.parent
    if not (root / ".git").exists():
        return None
    try:
        repo = open_repository(root)
        cfg = DescribeConfig(always=True, dirty=Defaults.dirty_marker)
        return str(describe(repo, cfg))
    except (DescribeError, RuntimeError):
        return None


def get_version(verbose: bool = False) -> str:
    installed = _installed_version()
    if not verbose:
        return installed or __version__

    parts = [installed or f"{__version__} (not installed)"]
    checkout = source_describe()
    if checkout:
        parts.append(f"source {checkout}")
    return ", ".join(parts)
