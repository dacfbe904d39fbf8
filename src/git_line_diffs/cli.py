from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from .availability import wait_until_available
from .config import Settings, load_config
from .git import GitSource
from .logging_config import setup_logging
from .models import AggregateSnapshot, status_text
from .paths import OpenFileRequest, normalize_relative_path, parse_open_file_request, resolve_open_file_request
from .refresh import RefreshCoordinator
from .report import ReportFormatter
from .render import THEMES, render_text
from .watch import ChangeWatcher
from .write import REPORT_FORMATS, render_report, write_reports

logger = logging.getLogger(__name__)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--root", type=Path, action="append", default=None, help="Workspace root (repeatable; default: config or cwd).")
    p.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    p.add_argument("--log-level", type=str, default="", help="Logging level (DEBUG, INFO, WARNING, ...).")


def _add_refresh_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--max-commits", type=int, default=0, help="Number of recent commits to summarize (default 50).")
    p.add_argument("--jobs", type=int, default=0, help="Parallel diff lookups per repository.")
    p.add_argument("--nested", action="store_true", help="Also discover git repositories nested under the roots.")
    p.add_argument("--wait", type=float, default=0.0, help="Seconds to wait for git to become available (0 = try once).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-line-diffs",
        description="Summarize working-tree line changes per file, author and recent commit.",
    )
    _add_common(parser)
    _add_refresh_options(parser)
    parser.add_argument("--threshold", type=int, default=0, help="Changed-line count above which a file is flagged high impact (default 500).")
    parser.add_argument("--format", choices=list(REPORT_FORMATS), default="text", help="Report format written to stdout.")
    parser.add_argument("--out", type=Path, default=None, help="Write every report format into this directory instead of stdout.")
    parser.add_argument("--theme", choices=sorted(THEMES), default=None, help="HTML report theme.")
    parser.add_argument("--top", type=int, default=0, help="Only list the N largest files in the text report.")
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    config = load_config(args.config)
    settings = Settings.from_config(config, base_dir=args.config.resolve().parent if config else Path.cwd())
    overrides: dict[str, object] = {}
    if args.root:
        overrides["workspace_roots"] = tuple(Path(r) for r in args.root)
    if getattr(args, "max_commits", 0) and args.max_commits > 0:
        overrides["max_commits"] = int(args.max_commits)
    if getattr(args, "jobs", 0) and args.jobs > 0:
        overrides["jobs"] = int(args.jobs)
    if getattr(args, "nested", False):
        overrides["discover_nested_repos"] = True
    if getattr(args, "threshold", 0) and args.threshold > 0:
        overrides["high_impact_threshold"] = int(args.threshold)
    if getattr(args, "theme", None):
        overrides["theme"] = str(args.theme)
    if getattr(args, "interval", 0) and args.interval > 0:
        overrides["poll_interval_s"] = float(args.interval)
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _source_for(settings: Settings) -> GitSource:
    return GitSource(
        list(settings.workspace_roots),
        discover_nested=settings.discover_nested_repos,
        exclude_dirnames=settings.exclude_dirnames,
    )


def _refresh_once(args: argparse.Namespace, settings: Settings) -> AggregateSnapshot | None:
    source = _source_for(settings)
    if args.wait > 0:
        policy = dataclasses.replace(settings.availability, max_delay_s=min(settings.availability.max_delay_s, args.wait))
        attempts = max(1, int(args.wait / max(policy.initial_delay_s, 0.01)))
        policy = dataclasses.replace(policy, max_attempts=attempts)
    else:
        policy = dataclasses.replace(settings.availability, max_attempts=1)
    if not wait_until_available(source.is_available, policy):
        print("git is not available; nothing to report.", file=sys.stderr)
        return None

    coordinator = RefreshCoordinator(source, max_commits=settings.max_commits, jobs=settings.jobs)
    try:
        snapshot = coordinator.refresh("cli")
        refreshed = coordinator.has_refreshed
    finally:
        coordinator.close()
    if not refreshed:
        print("Could not list git repositories; nothing to report.", file=sys.stderr)
        return None
    if snapshot.repositories == 0 and not snapshot.errors:
        roots = ", ".join(str(r) for r in settings.workspace_roots)
        print(f"No git repositories found under: {roots}", file=sys.stderr)
        return None
    return snapshot


def _report_main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        settings = _load_settings(args)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    setup_logging(args.log_level, settings.log_level)

    snapshot = _refresh_once(args, settings)
    if snapshot is None:
        return 2

    model = ReportFormatter(high_impact_threshold=settings.high_impact_threshold).format(snapshot)
    if args.out is not None:
        written = write_reports(report_dir=args.out, model=model, theme=settings.theme)
        for path in written:
            logger.info("wrote %s", path)
        print(model.status)
        print(f"Done. Reports in: {args.out}")
        return 0

    if args.format == "text" and args.top > 0:
        sys.stdout.write(render_text(model, top_n=int(args.top)))
    else:
        sys.stdout.write(render_report(model, args.format, theme=settings.theme))
    return 0


def _status_main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="git-line-diffs status", description="Print the one-line change summary.")
    _add_common(p)
    _add_refresh_options(p)
    args = p.parse_args(argv)
    try:
        settings = _load_settings(args)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    setup_logging(args.log_level, settings.log_level)

    snapshot = _refresh_once(args, settings)
    if snapshot is None:
        return 2
    print(status_text(snapshot))
    return 0


def _watch_main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="git-line-diffs watch", description="Print the change summary every time the working tree changes.")
    _add_common(p)
    _add_refresh_options(p)
    p.add_argument("--interval", type=float, default=0.0, help="Seconds between working-tree polls (default 2).")
    p.add_argument("--duration", type=float, default=0.0, help="Stop after this many seconds (0 = run until interrupted).")
    args = p.parse_args(argv)
    try:
        settings = _load_settings(args)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    setup_logging(args.log_level, settings.log_level)

    source = _source_for(settings)
    coordinator = RefreshCoordinator(source, max_commits=settings.max_commits, jobs=settings.jobs)
    last_status: list[str] = []

    def on_snapshot(snapshot: AggregateSnapshot) -> None:
        status = status_text(snapshot)
        if last_status and last_status[-1] == status:
            return
        last_status.append(status)
        print(status, flush=True)

    watcher = ChangeWatcher(
        coordinator,
        source,
        interval_s=settings.poll_interval_s,
        periodic_refresh_s=settings.periodic_refresh_s,
        policy=settings.availability,
        on_snapshot=on_snapshot,
    )
    watcher.start()
    try:
        if args.duration > 0:
            watcher.join(timeout=args.duration)
        else:
            while not watcher.stopped:
                watcher.join(timeout=1.0)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
        coordinator.close()
    return 0


def _open_main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="git-line-diffs open", description="Resolve a report file path against the first workspace root.")
    _add_common(p)
    p.add_argument("file_path", nargs="?", default="", help="Workspace-relative path from the report.")
    p.add_argument("--message", type=str, default="", help='Raw request, e.g. \'{"command": "openFile", "filePath": "src/a.py"}\'.')
    args = p.parse_args(argv)
    try:
        settings = _load_settings(args)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    setup_logging(args.log_level, settings.log_level)

    try:
        if args.message:
            request = parse_open_file_request(json.loads(args.message))
        elif args.file_path:
            request = OpenFileRequest(file_path=normalize_relative_path(args.file_path))
        else:
            p.error("either FILE_PATH or --message is required")
        path = resolve_open_file_request(request, list(settings.workspace_roots))
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Invalid open-file request: {e}", file=sys.stderr)
        return 1
    print(path)
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] in ("-h", "--help"):
        p = _build_parser()
        p.print_help()
        print("")
        print("commands:")
        print("  report   Refresh once and print the report (default).")
        print("  status   Refresh once and print only the summary line.")
        print("  watch    Keep refreshing as the working tree changes.")
        print("  open     Resolve a report file path to an absolute path.")
        print("")
        print("Run `git-line-diffs <command> --help` for command-specific options.")
        return 0
    if argv and argv[0] == "report":
        return _report_main(argv[1:])
    if argv and argv[0] == "status":
        return _status_main(argv[1:])
    if argv and argv[0] == "watch":
        return _watch_main(argv[1:])
    if argv and argv[0] == "open":
        return _open_main(argv[1:])
    return _report_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
