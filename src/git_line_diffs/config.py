from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .aggregate import DEFAULT_MAX_COMMITS
from .availability import RetryPolicy
from .git import DEFAULT_EXCLUDE_DIRNAMES
from .render import THEMES
from .report import DEFAULT_HIGH_IMPACT_THRESHOLD


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a JSON object")
    return data


def _positive_int(value: object, default: int) -> int:
    try:
        n = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def _non_negative_float(value: object, default: float) -> float:
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return f if f >= 0 else default


@dataclasses.dataclass(frozen=True)
class Settings:
    workspace_roots: tuple[Path, ...] = (Path("."),)
    max_commits: int = DEFAULT_MAX_COMMITS
    high_impact_threshold: int = DEFAULT_HIGH_IMPACT_THRESHOLD
    jobs: int = 4
    discover_nested_repos: bool = False
    exclude_dirnames: frozenset[str] = DEFAULT_EXCLUDE_DIRNAMES
    poll_interval_s: float = 2.0
    periodic_refresh_s: float = 0.0
    availability: RetryPolicy = RetryPolicy()
    theme: str = "dark"
    log_level: str = ""

    @classmethod
    def from_config(cls, config: dict, *, base_dir: Path | None = None) -> "Settings":
        """Build settings from a config.json dict; relative roots resolve against `base_dir`."""
        defaults = cls()
        base = base_dir or Path.cwd()

        roots_cfg = [str(r) for r in (config.get("workspace_roots") or []) if str(r).strip()]
        roots = tuple((base / r) for r in roots_cfg) if roots_cfg else (base,)

        avail_cfg = config.get("availability") if isinstance(config.get("availability"), dict) else {}
        max_attempts = avail_cfg.get("max_attempts")
        policy = RetryPolicy(
            initial_delay_s=_non_negative_float(avail_cfg.get("initial_delay_s"), defaults.availability.initial_delay_s),
            max_delay_s=_non_negative_float(avail_cfg.get("max_delay_s"), defaults.availability.max_delay_s),
            backoff=_non_negative_float(avail_cfg.get("backoff"), defaults.availability.backoff),
            max_attempts=_positive_int(max_attempts, 1) if max_attempts is not None else None,
        )

        theme = str(config.get("theme", defaults.theme) or defaults.theme).strip().lower()
        if theme not in THEMES:
            theme = defaults.theme

        exclude = config.get("exclude_dirnames")
        exclude_dirnames = frozenset(str(d) for d in exclude) if isinstance(exclude, list) and exclude else defaults.exclude_dirnames

        return cls(
            workspace_roots=roots,
            max_commits=_positive_int(config.get("max_commits"), defaults.max_commits),
            high_impact_threshold=_positive_int(config.get("high_impact_threshold"), defaults.high_impact_threshold),
            jobs=_positive_int(config.get("jobs"), defaults.jobs),
            discover_nested_repos=bool(config.get("discover_nested_repos", defaults.discover_nested_repos)),
            exclude_dirnames=exclude_dirnames,
            poll_interval_s=_non_negative_float(config.get("poll_interval_s"), defaults.poll_interval_s) or defaults.poll_interval_s,
            periodic_refresh_s=_non_negative_float(config.get("periodic_refresh_s"), defaults.periodic_refresh_s),
            availability=policy,
            theme=theme,
            log_level=str(config.get("log_level") or "").strip().upper(),
        )
