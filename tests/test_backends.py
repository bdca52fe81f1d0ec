from __future__ import annotations

import pytest

from gitdescribe import nativegit
from gitdescribe.config import DescribeConfig
from gitdescribe.describe import describe
from gitdescribe.errors import RepositoryStateError
from gitdescribe.model import shortest_unique_prefix
from gitdescribe.repository import open_repository


@pytest.fixture(params=["native", "pygit2"])
def backend(request):
    if request.param == "pygit2":
        pytest.importorskip("pygit2")
    return request.param


# (our options, equivalent `git describe` arguments)
AGAINST_GIT = [
    (dict(), []),
    (dict(tags=True), ["--tags"]),
    (dict(long=True), ["--long"]),
    (dict(match="v1.0*"), ["--match", "v1.0*"]),
    (dict(abbrev=10), ["--abbrev=10"]),
    (dict(abbrev=0), ["--abbrev=0"]),
    (dict(tags=True, long=True, abbrev=12), ["--tags", "--long", "--abbrev=12"]),
]


@pytest.mark.parametrize(
    "opts, git_args", AGAINST_GIT, ids=[" ".join(a) or "default" for _, a in AGAINST_GIT]
)
def test_same_label_as_git(released_repo, backend, opts, git_args):
    repo = open_repository(released_repo.root, backend=backend)
    assert str(describe(repo, DescribeConfig(**opts))) == released_repo.describe(*git_args)


def test_dirty_marker_matches_git(released_repo, backend):
    (released_repo.root / "file.txt").write_text("edited\n", encoding="utf-8")
    repo = open_repository(released_repo.root, backend=backend)

    ours = str(describe(repo, DescribeConfig(dirty="-dirty")))
    assert ours == released_repo.describe("--dirty=-dirty")
    assert ours.endswith("-dirty")


def test_untracked_file_is_not_dirty(released_repo, backend):
    (released_repo.root / "scratch.txt").write_text("x\n", encoding="utf-8")
    repo = open_repository(released_repo.root, backend=backend)
    assert repo.is_working_tree_dirty() is False


def test_on_tag_matches_git(released_repo, backend):
    repo = open_repository(released_repo.root, backend=backend)
    first = released_repo.commits[0]
    assert str(describe(repo, DescribeConfig(), ref=first)) == released_repo.describe(first)
    assert str(describe(repo, DescribeConfig(long=True), ref=first)) == released_repo.describe(
        "--long", first
    )


@pytest.mark.parametrize("n", [4, 7, 12, 40])
def test_abbreviate_matches_rev_parse(released_repo, backend, n):
    repo = open_repository(released_repo.root, backend=backend)
    for sha in released_repo.commits:
        assert repo.abbreviate(sha, n) == released_repo.git("rev-parse", f"--short={n}", sha)


@pytest.mark.parametrize("n", [2, 3])
def test_abbreviate_below_git_minimum(released_repo, backend, n):
    repo = open_repository(released_repo.root, backend=backend)
    every_id = released_repo.git(
        "cat-file", "--batch-all-objects", "--batch-check=%(objectname)"
    ).split()
    for sha in released_repo.commits:
        assert repo.abbreviate(sha, n) == shortest_unique_prefix(sha, every_id, n)


def test_native_abbreviate_asks_git_for_the_short_id(released_repo, monkeypatch):
    calls = []
    real_git = nativegit._git

    def recording_git(args, cwd):
        calls.append(args)
        return real_git(args, cwd)

    repo = open_repository(released_repo.root, backend="native")
    monkeypatch.setattr(nativegit, "_git", recording_git)
    repo.abbreviate(released_repo.commits[-1], 7)

    assert calls == [["rev-parse", "--short=7", released_repo.commits[-1]]]


def test_raw_tags_and_dereference(released_repo, backend):
    repo = open_repository(released_repo.root, backend=backend)
    raw = {t.name: t for t in repo.all_tags()}

    assert set(raw) == {"v1.0", "v1.1-rc", "light"}
    assert raw["v1.0"].is_tag_object and raw["v1.0"].created_at is not None
    assert not raw["light"].is_tag_object and raw["light"].created_at is None
    assert repo.dereference_tag_chain(raw["v1.0"].target) == released_repo.commits[0]
    assert repo.dereference_tag_chain(raw["light"].target) == released_repo.commits[2]


def test_parents_follow_history(released_repo, backend):
    repo = open_repository(released_repo.root, backend=backend)
    c1, c2, c3, c4 = released_repo.commits
    assert repo.parents_of(c4) == (c3,)
    assert repo.parents_of(c1) == ()


def test_resolve_unknown_ref(released_repo, backend):
    repo = open_repository(released_repo.root, backend=backend)
    with pytest.raises(RepositoryStateError):
        repo.resolve("does-not-exist")


def test_empty_repository(git_sandbox, backend):
    repo = open_repository(git_sandbox.root, backend=backend)
    with pytest.raises(RepositoryStateError):
        describe(repo, DescribeConfig(always=True))


def test_read_commit_metadata(released_repo, backend):
    repo = open_repository(released_repo.root, backend=backend)
    c3, c4 = released_repo.commits[2:]
    meta = repo.read_commit(c4)

    assert meta.id == c4
    assert meta.parents == (c3,)
    assert meta.short_message == "c4"
    assert (meta.author_name, meta.author_email) == ("Build Bot", "bot@example.invalid")
    assert int(meta.committed_at.timestamp()) == int(released_repo.git("log", "-1", "--format=%ct", c4))


def test_current_branch_and_detached_head(released_repo, backend):
    branch = released_repo.git("symbolic-ref", "--short", "HEAD")
    repo = open_repository(released_repo.root, backend=backend)
    assert repo.current_branch() == branch

    released_repo.git("checkout", "-q", "--detach", "HEAD")
    repo = open_repository(released_repo.root, backend=backend)
    assert repo.current_branch() is None
