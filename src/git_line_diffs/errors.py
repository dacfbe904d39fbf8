"""
Error taxonomy for the aggregation pipeline.

None of these reach the end user as a crash: the refresh coordinator
absorbs them into reduced data plus a diagnostic entry on the snapshot.
"""
from __future__ import annotations


class GitLineDiffsError(Exception):
    """Base class for git-line-diffs failures."""


class SourceUnavailable(GitLineDiffsError):
    """The version-control integration cannot be used yet (retry later)."""


class DiffRetrievalFailure(GitLineDiffsError):
    """Obtaining the diff for one pending change failed."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        msg = f"diff failed for {path}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class EnumerationFailure(GitLineDiffsError):
    """Listing a repository's pending changes or commit log failed."""

    def __init__(self, repository: str, detail: str = "") -> None:
        self.repository = repository
        self.detail = detail
        msg = f"could not enumerate {repository}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
