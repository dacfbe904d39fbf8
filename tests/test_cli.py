from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

import pytest

from git_line_diffs.cli import main
from git_line_diffs.errors import SourceUnavailable
from git_line_diffs.git import GitSource


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    _run(["git", "init", "-q"], cwd=repo)
    _run(["git", "config", "user.name", "Carol"], cwd=repo)
    _run(["git", "config", "user.email", "carol@example.com"], cwd=repo)
    (repo / "main.py").write_text("print(1)\n", encoding="utf-8")
    _run(["git", "add", "main.py"], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_DATE"] = "2025-01-01T00:00:00Z"
    env["GIT_COMMITTER_DATE"] = "2025-01-01T00:00:00Z"
    _run(["git", "commit", "-q", "-m", "init"], cwd=repo, env=env)
    (repo / "main.py").write_text("print(2)\nprint(3)\n", encoding="utf-8")
    return repo


def test_root_help_mentions_commands(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--help"]) == 0
    out = capsys.readouterr().out
    for cmd in ("report", "status", "watch", "open"):
        assert cmd in out


def test_status_command(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["status", "--root", str(repo), "--config", str(tmp_path / "missing.json")])
    assert code == 0
    assert capsys.readouterr().out.strip() == "Files Changed: 1 (+2 / -1)"


def test_json_report(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--root", str(repo), "--config", str(tmp_path / "missing.json"), "--format", "json", "--threshold", "2"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["files"] == [{"file_name": "main.py", "added": 2, "removed": 1, "high_impact": True, "changed": 3}]
    assert data["authors"] == [{"author_name": "Carol", "added": 2, "removed": 1}]
    assert [c["message"] for c in data["commits"]] == ["init"]


def test_report_out_dir(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out_dir = tmp_path / "reports"
    code = main(["report", "--root", str(repo), "--config", str(tmp_path / "missing.json"), "--out", str(out_dir)])
    assert code == 0
    assert (out_dir / "report.txt").exists()
    assert (out_dir / "html" / "report.html").exists()
    assert "Done. Reports in:" in capsys.readouterr().out


def test_config_file_supplies_roots(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"workspace_roots": ["repo"], "max_commits": 5}), encoding="utf-8")
    assert main(["status", "--config", str(cfg)]) == 0
    assert capsys.readouterr().out.strip() == "Files Changed: 1 (+2 / -1)"


def test_no_repositories_exits_2(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    assert main(["status", "--root", str(empty), "--config", str(tmp_path / "missing.json")]) == 2


def test_invalid_config_exits_1(tmp_path: Path) -> None:
    cfg = tmp_path / "config.json"
    cfg.write_text("{not json", encoding="utf-8")
    assert main(["status", "--config", str(cfg)]) == 1


def test_open_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    missing = str(tmp_path / "missing.json")
    assert main(["open", "src/a.py", "--root", str(tmp_path), "--config", missing]) == 0
    assert capsys.readouterr().out.strip() == str(tmp_path.resolve() / "src" / "a.py")

    msg = json.dumps({"command": "openFile", "filePath": "lib/b.py"})
    assert main(["open", "--message", msg, "--root", str(tmp_path), "--config", missing]) == 0
    assert capsys.readouterr().out.strip() == str(tmp_path.resolve() / "lib" / "b.py")

    assert main(["open", "../x.py", "--root", str(tmp_path), "--config", missing]) == 1


def test_watch_runs_for_a_bounded_duration(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["watch", "--root", str(repo), "--config", str(tmp_path / "missing.json"), "--interval", "0.05", "--duration", "1.5"])
    assert code == 0
    assert "Files Changed: 1 (+2 / -1)" in capsys.readouterr().out


def test_listing_failure_is_reported_not_mistaken_for_no_repos(
    repo: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def fail(self: GitSource) -> list:
        raise SourceUnavailable("git went away")

    monkeypatch.setattr(GitSource, "list_repositories", fail)
    code = main(["status", "--root", str(repo), "--config", str(tmp_path / "missing.json")])
    assert code == 2
    err = capsys.readouterr().err
    assert "Could not list git repositories" in err
    assert "No git repositories found" not in err
