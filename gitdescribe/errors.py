from __future__ import annotations


class DescribeError(Exception):
    """Base error for describe failures."""


class ConfigurationError(DescribeError, ValueError):
    """Raised when the describe options cannot be honoured."""


class RepositoryStateError(DescribeError):
    """Raised when there is no commit to describe (bad ref, empty repo, not a repo)."""


class TagResolutionWarning(DescribeError):
    """Raised by a backend when a single tag ref cannot be resolved to a commit.

    The tag index logs it and skips that tag; it never aborts a describe call.
    """


class DistanceComputationFailure(DescribeError):
    """Raised when the commit graph could not be walked to the end."""
