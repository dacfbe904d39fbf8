from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Protocol, Sequence

from .aggregate import DEFAULT_MAX_COMMITS, ChangeAggregator
from .diffstat import parse_diff_stats
from .errors import DiffRetrievalFailure, EnumerationFailure, SourceUnavailable
from .models import UNKNOWN_AUTHOR, AggregateSnapshot, CommitLogEntry, DiffStats, PendingChange, empty_snapshot

logger = logging.getLogger(__name__)


class Repository(Protocol):
    name: str

    def pending_changes(self) -> Sequence[PendingChange]: ...

    def commit_log(self, max_entries: int, include_short_stats: bool = True) -> Sequence[CommitLogEntry]: ...

    def diff_against_head(self, path: Path, status: str = "modified") -> str: ...


class ChangeSource(Protocol):
    def list_repositories(self) -> Sequence[Repository]: ...

    def relative_path(self, path: Path) -> str: ...


class RefreshCoordinator:
    """
    Drives reset -> collect -> snapshot passes against one aggregator.

    `refresh` runs a pass in the calling thread; `request_refresh` queues one on
    a single worker thread and coalesces requests that arrive while a queued
    pass has not started yet. Either way only one pass touches the aggregator
    at a time.
    """

    def __init__(
        self,
        source: ChangeSource,
        aggregator: ChangeAggregator | None = None,
        *,
        max_commits: int = DEFAULT_MAX_COMMITS,
        jobs: int = 4,
    ) -> None:
        self.source = source
        self.max_commits = max(0, int(max_commits))
        self.aggregator = aggregator if aggregator is not None else ChangeAggregator(max_commits=self.max_commits)
        self.jobs = max(1, int(jobs))

        self._pass_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._snapshot = empty_snapshot()
        self._has_refreshed = False
        self._queued: Future[AggregateSnapshot] | None = None
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="git-line-diffs-refresh")
        self._closed = False

    def current_snapshot(self) -> AggregateSnapshot:
        with self._state_lock:
            return self._snapshot

    @property
    def has_refreshed(self) -> bool:
        with self._state_lock:
            return self._has_refreshed

    def request_refresh(self, reason: str = "manual") -> Future[AggregateSnapshot]:
        with self._state_lock:
            if self._closed:
                raise RuntimeError("refresh coordinator is closed")
            if self._queued is not None:
                logger.debug("refresh (%s) coalesced into queued pass", reason)
                return self._queued
            fut = self._worker.submit(self._run_queued, reason)
            self._queued = fut
            return fut

    def _run_queued(self, reason: str) -> AggregateSnapshot:
        with self._state_lock:
            # Triggers from here on need a new pass: this one may already have read stale state.
            self._queued = None
        return self.refresh(reason)

    def close(self) -> None:
        with self._state_lock:
            self._closed = True
            queued = self._queued
            self._queued = None
        if queued is not None:
            queued.cancel()
        self._worker.shutdown(wait=True)

    def refresh(self, reason: str = "manual") -> AggregateSnapshot:
        with self._pass_lock:
            try:
                repositories = list(self.source.list_repositories())
            except SourceUnavailable as e:
                logger.info("refresh (%s) skipped: %s", reason, e)
                return self.current_snapshot()
            except Exception as e:
                logger.warning("refresh (%s) skipped: could not list repositories: %s", reason, e)
                return self.current_snapshot()

            self.aggregator.reset(reason)
            for repo in repositories:
                self._collect_repository(repo)
            snapshot = self.aggregator.snapshot()

            with self._state_lock:
                self._snapshot = snapshot
                self._has_refreshed = True
            logger.info(
                "refresh (%s): %d repos, %d pending changes, %d files, +%d/-%d",
                reason,
                snapshot.repositories,
                snapshot.total_files_changed,
                len(snapshot.files),
                snapshot.total_added,
                snapshot.total_removed,
            )
            return snapshot

    def _collect_repository(self, repo: Repository) -> None:
        name = getattr(repo, "name", repr(repo))
        try:
            changes = list(repo.pending_changes())
            log = list(repo.commit_log(self.max_commits, True))
        except Exception as e:
            err = e if isinstance(e, EnumerationFailure) else EnumerationFailure(name, str(e))
            logger.warning("%s", err)
            self.aggregator.record_error(str(err))
            return

        self.aggregator.record_repository()
        for entry in log:
            self.aggregator.record_commit(entry.summary())

        self.aggregator.record_pending_changes(len(changes))
        if not changes:
            return

        # Known approximation: every pending change is credited to the newest commit's author.
        author = (log[0].author_name if log else "") or UNKNOWN_AUTHOR

        if self.jobs == 1 or len(changes) == 1:
            results = [self._diff_stats(repo, change) for change in changes]
        else:
            with ThreadPoolExecutor(max_workers=min(self.jobs, len(changes))) as ex:
                futs = [ex.submit(self._diff_stats, repo, change) for change in changes]
                results = [f.result() for f in futs]

        for change, stats in zip(changes, results):
            if stats is None:
                continue
            rel = self.source.relative_path(change.path)
            self.aggregator.record_file_change(rel, stats.added, stats.removed)
            self.aggregator.record_author_change(author, stats.added, stats.removed)

    def _diff_stats(self, repo: Repository, change: PendingChange) -> DiffStats | None:
        try:
            diff = repo.diff_against_head(change.path, change.status)
        except Exception as e:
            err = e if isinstance(e, DiffRetrievalFailure) else DiffRetrievalFailure(str(change.path), str(e))
            logger.warning("skipping %s", err)
            self.aggregator.record_error(str(err))
            return None
        return parse_diff_stats(diff)
