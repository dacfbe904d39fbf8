from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from .diffstat import parse_shortstat
from .errors import DiffRetrievalFailure, EnumerationFailure, SourceUnavailable
from .models import CommitLogEntry, PendingChange
from .paths import as_relative_path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60

DEFAULT_EXCLUDE_DIRNAMES = frozenset(
    {
        ".git",
        ".venv",
        "node_modules",
        "vendor",
        "dist",
        "build",
        "target",
        ".idea",
        ".pytest_cache",
        "__pycache__",
    }
)

# porcelain v1 status letter -> pending change status
_STATUS_BY_CODE = {
    "M": "modified",
    "D": "deleted",
    "A": "added",
    "R": "renamed",
    "C": "copied",
    "T": "type_changed",
    "U": "conflicted",
    "?": "untracked",
}


def run_git(args: list[str], cwd: Path, timeout_s: int = DEFAULT_TIMEOUT_S) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def git_available() -> bool:
    try:
        code, _out, _err = run_git(["--version"], cwd=Path.cwd(), timeout_s=10)
    except (OSError, subprocess.SubprocessError):
        return False
    return code == 0


def discover_git_roots(root: Path, exclude_dirnames: set[str] | frozenset[str]) -> list[Path]:
    roots: list[Path] = []

    def onerror(err: OSError) -> None:
        logger.debug("skipping unreadable directory: %s", err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        has_git = ".git" in dirnames or ".git" in filenames
        if has_git:
            roots.append(Path(dirpath))
        dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirnames and d != ".git")
    return roots


def get_repo_toplevel(candidate: Path) -> Optional[Path]:
    try:
        code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    except (OSError, subprocess.SubprocessError):
        return None
    if code != 0 or not out.strip():
        return None
    return Path(out.strip()).resolve()


def parse_porcelain_status(out: str, repo_root: Path) -> list[PendingChange]:
    """
    Parse `git status --porcelain=v1 -z` output into working-tree changes.

    Only entries with a working-tree column (Y) set, or untracked files, are
    pending changes; index-only entries are already staged.
    """
    changes: list[PendingChange] = []
    tokens = out.split("\0")
    i = 0
    while i < len(tokens):
        entry = tokens[i]
        i += 1
        if len(entry) < 4:
            continue
        x, y, path = entry[0], entry[1], entry[3:]
        if x in "RC" or y in "RC":
            # the rename/copy source follows as its own token
            i += 1
        if x == "!" and y == "!":
            continue
        if x == "?" and y == "?":
            changes.append(PendingChange(path=repo_root / path, status="untracked"))
            continue
        if x == "U" or y == "U" or (x == y and x in "AD"):
            changes.append(PendingChange(path=repo_root / path, status="conflicted"))
            continue
        if y == " ":
            continue
        changes.append(PendingChange(path=repo_root / path, status=_STATUS_BY_CODE.get(y, "modified")))
    return changes


LOG_RECORD_MARK = "@@@"
LOG_PRETTY = LOG_RECORD_MARK + "%H%x09%an%x09%ae%x09%aI%x09%s"


def parse_commit_log(out: str) -> list[CommitLogEntry]:
    entries: list[CommitLogEntry] = []
    current: dict[str, str] | None = None
    shortstat = ""

    def flush() -> None:
        if current is None:
            return
        files, ins, dels = parse_shortstat(shortstat)
        entries.append(
            CommitLogEntry(
                sha=current["sha"],
                message=current["message"],
                author_name=current["author_name"],
                author_email=current["author_email"],
                committed_at=current["committed_at"],
                insertions=ins,
                deletions=dels,
                files_touched=files,
            )
        )

    for raw_line in out.splitlines():
        line = raw_line.rstrip("\n")
        if line.startswith(LOG_RECORD_MARK):
            flush()
            parts = line[len(LOG_RECORD_MARK) :].split("\t", 4)
            parts += [""] * (5 - len(parts))
            current = {
                "sha": parts[0],
                "author_name": parts[1],
                "author_email": parts[2],
                "committed_at": parts[3],
                "message": parts[4],
            }
            shortstat = ""
            continue
        if current is not None and "changed" in line:
            shortstat = line
    flush()
    return entries


class GitRepository:
    """One git working tree, queried through the git CLI."""

    def __init__(self, root: Path, timeout_s: int = DEFAULT_TIMEOUT_S) -> None:
        self.root = Path(root)
        self.timeout_s = timeout_s

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root)!r})"

    @property
    def name(self) -> str:
        return str(self.root)

    def _git(self, args: list[str]) -> tuple[int, str, str]:
        return run_git(args, cwd=self.root, timeout_s=self.timeout_s)

    def has_head(self) -> bool:
        code, _out, _err = self._git(["rev-parse", "--verify", "--quiet", "HEAD"])
        return code == 0

    def pending_changes(self) -> list[PendingChange]:
        try:
            code, out, err = self._git(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        except (OSError, subprocess.SubprocessError) as e:
            raise EnumerationFailure(self.name, f"git status failed: {e}") from e
        if code != 0:
            raise EnumerationFailure(self.name, f"git status exited {code}: {err.strip()[:500]}")
        return parse_porcelain_status(out, self.root)

    def commit_log(self, max_entries: int, include_short_stats: bool = True) -> list[CommitLogEntry]:
        try:
            if not self.has_head():
                return []
            args = ["log", "-n", str(max(0, int(max_entries))), f"--pretty=format:{LOG_PRETTY}"]
            if include_short_stats:
                args.append("--shortstat")
            code, out, err = self._git(args)
        except (OSError, subprocess.SubprocessError) as e:
            raise EnumerationFailure(self.name, f"git log failed: {e}") from e
        if code != 0:
            raise EnumerationFailure(self.name, f"git log exited {code}: {err.strip()[:500]}")
        return parse_commit_log(out)

    def diff_against_head(self, path: Path, status: str = "modified") -> str:
        path = Path(path)
        try:
            rel = path.relative_to(self.root).as_posix()
        except ValueError:
            rel = str(path)

        ok_codes = {0}
        if status == "untracked":
            args = ["diff", "--no-color", "--no-ext-diff", "--no-index", "--", os.devnull, rel]
            ok_codes.add(1)  # --no-index exits 1 when the files differ
        elif self.has_head():
            args = ["diff", "--no-color", "--no-ext-diff", "HEAD", "--", rel]
        else:
            args = ["diff", "--no-color", "--no-ext-diff", "--", rel]

        try:
            code, out, err = self._git(args)
        except (OSError, subprocess.SubprocessError) as e:
            raise DiffRetrievalFailure(rel, str(e)) from e
        if code not in ok_codes:
            raise DiffRetrievalFailure(rel, f"git diff exited {code}: {err.strip()[:500]}")
        return out

    def fingerprint(self) -> str:
        """
        HEAD, porcelain status and the size/mtime of every pending path.

        The stat part catches further edits to a file that is already modified,
        which leave the status text unchanged.
        """
        code, head, _ = self._git(["rev-parse", "--verify", "--quiet", "HEAD"])
        code2, status, _ = self._git(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        parts = [head.strip() if code == 0 else "-", status if code2 == 0 else "-"]
        if code2 == 0:
            for change in parse_porcelain_status(status, self.root):
                try:
                    st = change.path.stat()
                except OSError:
                    parts.append(f"{change.path}:gone")
                    continue
                parts.append(f"{change.path}:{st.st_mtime_ns}:{st.st_size}")
        return "|".join(parts)


class GitSource:
    """
    Repository enumeration for a set of workspace roots.

    Each root resolves to the repository containing it; with
    `discover_nested` the roots are also walked for nested repositories.
    """

    def __init__(
        self,
        workspace_roots: list[Path],
        *,
        discover_nested: bool = False,
        exclude_dirnames: set[str] | frozenset[str] = DEFAULT_EXCLUDE_DIRNAMES,
        timeout_s: int = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.workspace_roots = [Path(r).resolve() for r in workspace_roots]
        self.discover_nested = discover_nested
        self.exclude_dirnames = set(exclude_dirnames) | {".git"}
        self.timeout_s = timeout_s

    def is_available(self) -> bool:
        return git_available()

    def list_repositories(self) -> list[GitRepository]:
        if not self.is_available():
            raise SourceUnavailable("git executable is not available")

        seen: set[Path] = set()
        repos: list[GitRepository] = []
        for root in self.workspace_roots:
            candidates = [root]
            if self.discover_nested and root.is_dir():
                candidates += discover_git_roots(root, self.exclude_dirnames)
            for cand in candidates:
                top = get_repo_toplevel(cand)
                if top is None or top in seen:
                    continue
                seen.add(top)
                repos.append(GitRepository(top, timeout_s=self.timeout_s))
        return repos

    def relative_path(self, path: Path) -> str:
        return as_relative_path(path, self.workspace_roots)

    def fingerprint(self) -> str:
        parts: list[str] = []
        for repo in self.list_repositories():
            try:
                parts.append(f"{repo.root}:{repo.fingerprint()}")
            except (OSError, subprocess.SubprocessError) as e:
                parts.append(f"{repo.root}:error:{e}")
        return "\n".join(parts)
