# tests/conftest.py
from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict

import pytest
from typer.testing import CliRunner

from gitdescribe.memory import MemoryRepository

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    return EPOCH + timedelta(days=n)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()


@dataclass
class GitSandbox:
    """A throwaway repository driven through the git executable."""

    root: Path
    env: Dict[str, str]
    clock: int = 0
    commits: list = field(default_factory=list)

    def git(self, *args: str) -> str:
        r = subprocess.run(
            ["git", *args],
            cwd=str(self.root),
            env=self.env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=True,
        )
        return r.stdout.strip()

    def _tick(self) -> None:
        self.clock += 1
        stamp = f"{1767225600 + self.clock * 3600} +0000"
        self.env["GIT_AUTHOR_DATE"] = stamp
        self.env["GIT_COMMITTER_DATE"] = stamp

    def commit(self, message: str, *, path: str = "file.txt") -> str:
        self._tick()
        (self.root / path).write_text(f"{message}\n", encoding="utf-8")
        self.git("add", path)
        self.git("commit", "-q", "-m", message)
        sha = self.git("rev-parse", "HEAD")
        self.commits.append(sha)
        return sha

    def tag(self, name: str, *, annotated: bool = True, target: str = "HEAD") -> None:
        self._tick()
        if annotated:
            self.git("tag", "-a", name, "-m", f"release {name}", target)
        else:
            self.git("tag", name, target)

    def describe(self, *args: str) -> str:
        return self.git("describe", *args)


@pytest.fixture
def git_sandbox(tmp_path: Path) -> GitSandbox:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    root = tmp_path / "work"
    root.mkdir()
    env = dict(os.environ)
    env.update(
        {
            "HOME": str(tmp_path),
            "GIT_CONFIG_NOSYSTEM": "1",
            "GIT_CONFIG_GLOBAL": os.devnull,
            "GIT_AUTHOR_NAME": "Build Bot",
            "GIT_AUTHOR_EMAIL": "bot@example.invalid",
            "GIT_COMMITTER_NAME": "Build Bot",
            "GIT_COMMITTER_EMAIL": "bot@example.invalid",
        }
    )
    sb = GitSandbox(root=root, env=env)
    sb.git("init", "-q")
    sb.git("config", "commit.gpgsign", "false")
    sb.git("config", "tag.gpgsign", "false")
    return sb


@pytest.fixture
def released_repo(git_sandbox: GitSandbox) -> GitSandbox:
    """
    c1 (v1.0, annotated) - c2 (v1.1-rc, annotated) - c3 (light, lightweight) - c4  <- HEAD
    """
    git_sandbox.commit("c1")
    git_sandbox.tag("v1.0")
    git_sandbox.commit("c2")
    git_sandbox.tag("v1.1-rc")
    git_sandbox.commit("c3")
    git_sandbox.tag("light", annotated=False)
    git_sandbox.commit("c4")
    return git_sandbox
