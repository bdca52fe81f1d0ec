from __future__ import annotations

import random
from typing import Dict, Tuple

import pytest
from hypothesis import given, settings, strategies as st

from gitdescribe.distance import ancestors, count_exclusive
from gitdescribe.errors import DistanceComputationFailure
from gitdescribe.search import find_boundary_commits
from gitdescribe.tagindex import build_tag_index

from conftest import day


class _Graph:
    """Bare parents map; enough for the walkers."""

    def __init__(self, parents: Dict[str, Tuple[str, ...]]) -> None:
        self.parents = parents

    def parents_of(self, commit: str) -> Tuple[str, ...]:
        return self.parents[commit]


def _brute_force(parents: Dict[str, Tuple[str, ...]], start: str, boundary: str) -> int:
    def reach(c: str) -> set:
        out, todo = set(), [c]
        while todo:
            x = todo.pop()
            if x not in out:
                out.add(x)
                todo.extend(parents[x])
        return out

    return len(reach(start) - reach(boundary))


# -- search ---------------------------------------------------------------------


def test_search_stops_at_tagged_commit(repo):
    older = repo.commit()
    repo.tag("old", older, when=day(1))
    tagged = repo.commit([older])
    repo.tag("new", tagged, when=day(2))
    head = repo.line(3, parent=tagged)[-1]

    idx = build_tag_index(repo)
    assert find_boundary_commits(repo, head, idx) == [tagged]


def test_search_returns_every_branch_boundary(repo):
    base = repo.commit()
    left = repo.commit([base], message="left")
    right = repo.commit([base], message="right")
    repo.tag("L", left, when=day(1))
    repo.tag("R", right, when=day(2))
    merge = repo.commit([left, right], message="merge")

    idx = build_tag_index(repo)
    assert find_boundary_commits(repo, merge, idx) == [left, right]


def test_search_without_tags_is_empty(repo):
    head = repo.line(4)[-1]
    assert find_boundary_commits(repo, head, build_tag_index(repo)) == []


def test_search_on_tagged_start_returns_start(repo):
    c = repo.commit()
    repo.tag("here", c, when=day(1))
    assert find_boundary_commits(repo, c, build_tag_index(repo)) == [c]


# -- distance -------------------------------------------------------------------


def test_straight_line_distance(repo):
    commits = repo.line(6)
    assert count_exclusive(repo, commits[-1], commits[1]) == 4
    assert count_exclusive(repo, commits[1], commits[1]) == 0


def test_boundary_ahead_of_start_counts_zero(repo):
    commits = repo.line(3)
    assert count_exclusive(repo, commits[0], commits[2]) == 0


def test_merge_counts_side_branch_once(repo):
    #   tag - a - b - merge
    #      \- x - y -/
    tag = repo.commit()
    a = repo.commit([tag], message="a")
    b = repo.commit([a], message="b")
    x = repo.commit([tag], message="x")
    y = repo.commit([x], message="y")
    merge = repo.commit([b, y], message="merge")

    assert count_exclusive(repo, merge, tag) == 5
    assert count_exclusive(repo, merge, b) == 3  # merge, x, y


def test_ancestors_include_start(repo):
    commits = repo.line(3)
    assert ancestors(repo, commits[-1]) == set(commits)


def test_missing_parent_is_a_hard_failure():
    g = _Graph({"head": ("gone",), "tag": ()})
    with pytest.raises(DistanceComputationFailure):
        count_exclusive(g, "head", "tag")


def test_expired_deadline_aborts_walk(repo):
    commits = repo.line(5)
    with pytest.raises(DistanceComputationFailure, match="could not determine distance"):
        count_exclusive(repo, commits[-1], commits[0], deadline=0.0)


@st.composite
def _dag_with_shuffles(draw):
    n = draw(st.integers(min_value=2, max_value=25))
    parents: Dict[str, Tuple[str, ...]] = {"c0": ()}
    for i in range(1, n):
        k = draw(st.integers(min_value=1, max_value=min(3, i)))
        picks = draw(
            st.lists(st.integers(0, i - 1), min_size=k, max_size=k, unique=True)
        )
        parents[f"c{i}"] = tuple(f"c{p}" for p in picks)
    start = f"c{draw(st.integers(0, n - 1))}"
    boundary = f"c{draw(st.integers(0, n - 1))}"
    seed = draw(st.integers(0, 2**32 - 1))
    return parents, start, boundary, seed


@settings(max_examples=200, deadline=None)
@given(_dag_with_shuffles())
def test_distance_ignores_parent_order(case):
    parents, start, boundary, seed = case
    rnd = random.Random(seed)
    shuffled = {}
    for c, ps in parents.items():
        ps = list(ps)
        rnd.shuffle(ps)
        shuffled[c] = tuple(ps)

    expected = _brute_force(parents, start, boundary)
    assert count_exclusive(_Graph(parents), start, boundary) == expected
    assert count_exclusive(_Graph(shuffled), start, boundary) == expected
