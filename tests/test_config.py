from __future__ import annotations

import json
from pathlib import Path

import pytest

from git_line_diffs.availability import RetryPolicy
from git_line_diffs.config import Settings, load_config


def test_load_missing_config_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.json") == {}


def test_load_rejects_non_object(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_defaults(tmp_path: Path) -> None:
    s = Settings.from_config({}, base_dir=tmp_path)
    assert s.workspace_roots == (tmp_path,)
    assert s.max_commits == 50
    assert s.high_impact_threshold == 500
    assert s.theme == "dark"
    assert s.availability == RetryPolicy()


def test_values_and_clamping(tmp_path: Path) -> None:
    config = json.loads(
        """
        {
          "workspace_roots": ["repo_a", "repo_b"],
          "max_commits": 0,
          "high_impact_threshold": 200,
          "jobs": -3,
          "discover_nested_repos": true,
          "exclude_dirnames": ["node_modules"],
          "poll_interval_s": 0.5,
          "periodic_refresh_s": 30,
          "availability": {"initial_delay_s": 0.1, "max_delay_s": 5, "backoff": 3, "max_attempts": 7},
          "theme": "neon",
          "log_level": "debug"
        }
        """
    )
    s = Settings.from_config(config, base_dir=tmp_path)
    assert s.workspace_roots == (tmp_path / "repo_a", tmp_path / "repo_b")
    assert s.max_commits == 50
    assert s.high_impact_threshold == 200
    assert s.jobs == 4
    assert s.discover_nested_repos is True
    assert s.exclude_dirnames == frozenset({"node_modules"})
    assert s.poll_interval_s == 0.5
    assert s.periodic_refresh_s == 30.0
    assert s.availability == RetryPolicy(initial_delay_s=0.1, max_delay_s=5.0, backoff=3.0, max_attempts=7)
    assert s.theme == "dark"
    assert s.log_level == "DEBUG"
