from __future__ import annotations

import dataclasses
import datetime as dt
import threading

from .models import UNKNOWN_AUTHOR, AggregateSnapshot, AuthorChange, CommitSummary, FileChange

DEFAULT_MAX_COMMITS = 50


class ChangeAggregator:
    """
    Owns the live per-file / per-author / per-commit aggregate for one refresh pass.

    All mutation goes through the record_* methods, which take the instance lock,
    so concurrent diff workers can report into the same aggregator. Nothing here
    is module-level state: one aggregator per workspace is fine.
    """

    def __init__(self, max_commits: int = DEFAULT_MAX_COMMITS) -> None:
        self.max_commits = max(0, int(max_commits))
        self._lock = threading.Lock()
        self._files: dict[str, FileChange] = {}
        self._authors: dict[str, AuthorChange] = {}
        self._commits: list[CommitSummary] = []
        self._pending_changes = 0
        self._repositories = 0
        self._errors: list[str] = []
        self._reason = ""

    def reset(self, reason: str = "") -> None:
        with self._lock:
            self._files = {}
            self._authors = {}
            self._commits = []
            self._pending_changes = 0
            self._repositories = 0
            self._errors = []
            self._reason = reason

    def record_file_change(self, path: str, added: int, removed: int) -> None:
        added = max(0, int(added))
        removed = max(0, int(removed))
        with self._lock:
            cur = self._files.get(path)
            if cur is None:
                self._files[path] = FileChange(file_name=path, added=added, removed=removed)
                return
            self._files[path] = dataclasses.replace(cur, added=cur.added + added, removed=cur.removed + removed)

    def record_author_change(self, author: str | None, added: int, removed: int) -> None:
        key = (author or "").strip() or UNKNOWN_AUTHOR
        added = max(0, int(added))
        removed = max(0, int(removed))
        with self._lock:
            cur = self._authors.get(key)
            if cur is None:
                self._authors[key] = AuthorChange(author_name=key, added=added, removed=removed)
                return
            self._authors[key] = dataclasses.replace(cur, added=cur.added + added, removed=cur.removed + removed)

    def record_commit(self, summary: CommitSummary) -> bool:
        """Append a commit in source order; returns False once the cap is reached."""
        with self._lock:
            if len(self._commits) >= self.max_commits:
                return False
            self._commits.append(summary)
            return True

    def record_pending_changes(self, count: int) -> None:
        with self._lock:
            self._pending_changes += max(0, int(count))

    def record_repository(self) -> None:
        with self._lock:
            self._repositories += 1

    def record_error(self, message: str) -> None:
        with self._lock:
            self._errors.append(message)

    def snapshot(self) -> AggregateSnapshot:
        with self._lock:
            files = tuple(self._files.values())
            authors = tuple(self._authors.values())
            return AggregateSnapshot(
                files=files,
                authors=authors,
                commits=tuple(self._commits),
                total_files_changed=self._pending_changes,
                total_added=sum(f.added for f in files),
                total_removed=sum(f.removed for f in files),
                repositories=self._repositories,
                errors=tuple(self._errors),
                refreshed_at=dt.datetime.now(tz=dt.timezone.utc).isoformat(),
                reason=self._reason,
            )
