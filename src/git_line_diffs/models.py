from __future__ import annotations

import dataclasses
from pathlib import Path

UNKNOWN_AUTHOR = "Unknown"


@dataclasses.dataclass(frozen=True)
class DiffStats:
    added: int = 0
    removed: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.removed


@dataclasses.dataclass(frozen=True)
class FileChange:
    file_name: str
    added: int = 0
    removed: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.removed


@dataclasses.dataclass(frozen=True)
class AuthorChange:
    author_name: str
    added: int = 0
    removed: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.removed


@dataclasses.dataclass(frozen=True)
class CommitSummary:
    message: str
    added: int = 0
    removed: int = 0
    files_touched: int = 0
    sha: str = ""
    author_name: str = ""


@dataclasses.dataclass(frozen=True)
class PendingChange:
    path: Path  # absolute
    status: str = "modified"


@dataclasses.dataclass(frozen=True)
class CommitLogEntry:
    sha: str
    message: str
    author_name: str = ""
    author_email: str = ""
    committed_at: str = ""
    insertions: int = 0
    deletions: int = 0
    files_touched: int = 0

    def summary(self) -> CommitSummary:
        return CommitSummary(
            message=self.message,
            added=self.insertions,
            removed=self.deletions,
            files_touched=self.files_touched,
            sha=self.sha,
            author_name=self.author_name,
        )


@dataclasses.dataclass(frozen=True)
class AggregateSnapshot:
    files: tuple[FileChange, ...] = ()
    authors: tuple[AuthorChange, ...] = ()
    commits: tuple[CommitSummary, ...] = ()
    total_files_changed: int = 0
    total_added: int = 0
    total_removed: int = 0
    repositories: int = 0
    errors: tuple[str, ...] = ()
    refreshed_at: str | None = None
    reason: str = ""

    def file(self, file_name: str) -> FileChange | None:
        for f in self.files:
            if f.file_name == file_name:
                return f
        return None

    def author(self, author_name: str) -> AuthorChange | None:
        for a in self.authors:
            if a.author_name == author_name:
                return a
        return None


def empty_snapshot() -> AggregateSnapshot:
    return AggregateSnapshot()


def status_text(snapshot: AggregateSnapshot) -> str:
    return f"Files Changed: {snapshot.total_files_changed} (+{snapshot.total_added} / -{snapshot.total_removed})"
