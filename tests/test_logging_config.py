from __future__ import annotations

import logging

import pytest

from git_line_diffs.logging_config import LOG_LEVEL_ENV, resolve_log_level


def test_first_valid_candidate_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
    assert resolve_log_level("debug", "INFO") == logging.DEBUG
    assert resolve_log_level("", "info") == logging.INFO
    assert resolve_log_level("", "") == logging.ERROR


def test_falls_back_to_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    assert resolve_log_level(None, "") == logging.WARNING
    assert resolve_log_level("chatty") == logging.WARNING
