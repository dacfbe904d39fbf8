from __future__ import annotations

from git_line_diffs.diffstat import parse_diff_stats, parse_shortstat
from git_line_diffs.models import DiffStats


def test_headers_are_not_counted() -> None:
    diff = "+++ b/file\n+line1\n+line2\n--- a/file\n-old1\n"
    assert parse_diff_stats(diff) == DiffStats(added=2, removed=1)


def test_empty_and_none_yield_zero() -> None:
    assert parse_diff_stats("") == DiffStats(0, 0)
    assert parse_diff_stats(None) == DiffStats(0, 0)


def test_parse_is_deterministic() -> None:
    diff = "--- a/x\n+++ b/x\n@@ -1,2 +1,2 @@\n-a\n+b\n c\n"
    assert parse_diff_stats(diff) == parse_diff_stats(diff) == DiffStats(1, 1)


def test_git_diff_with_hunks() -> None:
    diff = "\n".join(
        [
            "diff --git a/src/a.py b/src/a.py",
            "index 83db48f..bf269f4 100644",
            "--- a/src/a.py",
            "+++ b/src/a.py",
            "@@ -1,4 +1,5 @@",
            " import os",
            "-x = 1",
            "+x = 2",
            "+y = 3",
            " ",
            " print(x)",
            "@@ -10 +11,2 @@ def f():",
            "-    return 1",
            "+    return 2",
            "+    # done",
            "\\ No newline at end of file",
        ]
    )
    assert parse_diff_stats(diff) == DiffStats(added=4, removed=2)


def test_content_lines_that_look_like_headers_inside_hunk() -> None:
    diff = "\n".join(
        [
            "--- a/q.sql",
            "+++ b/q.sql",
            "@@ -1,2 +1,2 @@",
            "--- old comment",
            "+++ new counter",
            " select 1;",
        ]
    )
    assert parse_diff_stats(diff) == DiffStats(added=1, removed=1)


def test_new_file_against_dev_null() -> None:
    diff = "--- /dev/null\n+++ b/new.txt\n@@ -0,0 +1,3 @@\n+a\n+b\n+c\n"
    assert parse_diff_stats(diff) == DiffStats(added=3, removed=0)


def test_binary_and_mode_only_diffs() -> None:
    assert parse_diff_stats("diff --git a/img.png b/img.png\nBinary files a/img.png and b/img.png differ\n") == DiffStats()
    assert parse_diff_stats("diff --git a/run.sh b/run.sh\nold mode 100644\nnew mode 100755\n") == DiffStats()


def test_truncated_hunk_is_tolerated() -> None:
    diff = "@@ -1,5 +1,5 @@\n-a\n+b\n"
    assert parse_diff_stats(diff) == DiffStats(added=1, removed=1)


def test_malformed_hunk_header_falls_back_to_prefixes() -> None:
    diff = "@@ garbage @@\n+a\n-b\n+c\n"
    assert parse_diff_stats(diff) == DiffStats(added=2, removed=1)


def test_combined_diff_uses_one_column_per_parent() -> None:
    diff = (
        "diff --cc conflict.txt\n"
        "index 1111111,2222222..0000000\n"
        "--- a/conflict.txt\n"
        "+++ b/conflict.txt\n"
        "@@@ -1,3 -1,3 +1,4 @@@\n"
        "  shared\n"
        "+ ours\n"
        " +theirs\n"
        "++both\n"
        "- gone\n"
        "\\ No newline at end of file\n"
    )
    assert parse_diff_stats(diff) == DiffStats(added=3, removed=1)


def test_parse_shortstat() -> None:
    assert parse_shortstat(" 3 files changed, 10 insertions(+), 2 deletions(-)") == (3, 10, 2)
    assert parse_shortstat(" 1 file changed, 1 insertion(+)") == (1, 1, 0)
    assert parse_shortstat(" 2 files changed, 5 deletions(-)") == (2, 0, 5)
    assert parse_shortstat("") == (0, 0, 0)
    assert parse_shortstat("nonsense") == (0, 0, 0)
