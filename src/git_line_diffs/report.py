from __future__ import annotations

import dataclasses

from .models import AggregateSnapshot, AuthorChange, CommitSummary, status_text

DEFAULT_HIGH_IMPACT_THRESHOLD = 500


@dataclasses.dataclass(frozen=True)
class FileRow:
    file_name: str
    added: int
    removed: int
    high_impact: bool = False

    @property
    def changed(self) -> int:
        return self.added + self.removed


@dataclasses.dataclass(frozen=True)
class PresentationModel:
    files: tuple[FileRow, ...]
    authors: tuple[AuthorChange, ...]
    commits: tuple[CommitSummary, ...]
    status: str
    total_files_changed: int
    total_added: int
    total_removed: int
    high_impact_threshold: int
    repositories: int = 0
    errors: tuple[str, ...] = ()
    refreshed_at: str | None = None


@dataclasses.dataclass(frozen=True)
class ReportFormatter:
    high_impact_threshold: int = DEFAULT_HIGH_IMPACT_THRESHOLD

    def is_high_impact(self, added: int, removed: int) -> bool:
        return added + removed > self.high_impact_threshold

    def format(self, snapshot: AggregateSnapshot) -> PresentationModel:
        # sorted() is stable: equal-impact files keep aggregator insertion order.
        files = sorted(snapshot.files, key=lambda f: -(f.added + f.removed))
        rows = tuple(
            FileRow(
                file_name=f.file_name,
                added=f.added,
                removed=f.removed,
                high_impact=self.is_high_impact(f.added, f.removed),
            )
            for f in files
        )
        return PresentationModel(
            files=rows,
            authors=tuple(snapshot.authors),
            commits=tuple(snapshot.commits),
            status=status_text(snapshot),
            total_files_changed=snapshot.total_files_changed,
            total_added=snapshot.total_added,
            total_removed=snapshot.total_removed,
            high_impact_threshold=self.high_impact_threshold,
            repositories=snapshot.repositories,
            errors=tuple(snapshot.errors),
            refreshed_at=snapshot.refreshed_at,
        )
