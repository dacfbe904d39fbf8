from __future__ import annotations

from .models import DiffStats


def _hunk_lengths(line: str) -> tuple[int, int]:
    # "@@ -12,3 +12,4 @@ optional section" -> (3, 4); a missing length means 1.
    parts = line.split()
    if len(parts) < 3 or parts[0] != "@@":
        return 0, 0
    old_spec, new_spec = parts[1], parts[2]
    if not old_spec.startswith("-") or not new_spec.startswith("+"):
        return 0, 0

    def length(spec: str) -> int:
        body = spec[1:]
        if "," not in body:
            return 1 if body.isdigit() else 0
        _start, count = body.split(",", 1)
        return int(count) if count.isdigit() else 0

    return length(old_spec), length(new_spec)


def _combined_columns(line: str) -> int:
    # "@@@ -1,2 -1,2 +1,3 @@@" (merge with two parents) -> 2 prefix columns per line
    marker = line.split(" ", 1)[0]
    if len(marker) >= 3 and marker == "@" * len(marker):
        return len(marker) - 1
    return 0


def parse_diff_stats(diff_text: str | None) -> DiffStats:
    """
    Count added/removed lines in a single-file unified diff.

    Each line is classified by its leading character. `+++`/`---` file headers
    are skipped; inside a hunk the `@@` header's line counts decide where the
    hunk ends, so content lines that happen to start with `++`/`--` still count.
    Combined (`@@@`) hunks carry one prefix column per parent; a line counts as
    added if any column is `+`, else removed if any column is `-`.
    Empty, binary or otherwise malformed input yields zero counts.
    """
    if not diff_text:
        return DiffStats()

    added = 0
    removed = 0
    old_left = 0
    new_left = 0
    columns = 0
    for line in diff_text.splitlines():
        if columns > 0:
            prefix = line[:columns]
            if line == "" or line.startswith("\\"):
                continue
            if len(prefix) == columns and all(c in " +-" for c in prefix):
                if "+" in prefix:
                    added += 1
                elif "-" in prefix:
                    removed += 1
                continue
            columns = 0

        if old_left > 0 or new_left > 0:
            tag = line[:1]
            if tag == "+":
                added += 1
                new_left -= 1
                continue
            if tag == "-":
                removed += 1
                old_left -= 1
                continue
            if tag == " " or line == "":
                old_left -= 1
                new_left -= 1
                continue
            if tag == "\\":
                continue
            # Hunk ended early (truncated diff); classify this line from scratch.
            old_left = 0
            new_left = 0

        if line.startswith("@@@"):
            columns = _combined_columns(line)
            if columns > 0:
                continue
        if line.startswith("@@"):
            old_left, new_left = _hunk_lengths(line)
            continue
        if line.startswith("+++") or line.startswith("---"):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return DiffStats(added=added, removed=removed)


def parse_shortstat(text: str | None) -> tuple[int, int, int]:
    """Parse `N files changed, N insertions(+), N deletions(-)` into (files, insertions, deletions)."""
    files = 0
    insertions = 0
    deletions = 0
    for part in (text or "").strip().split(","):
        tokens = part.split()
        if len(tokens) < 2:
            continue
        try:
            n = int(tokens[0])
        except ValueError:
            continue
        word = tokens[1]
        if word.startswith("file"):
            files = n
        elif word.startswith("insertion"):
            insertions = n
        elif word.startswith("deletion"):
            deletions = n
    return files, insertions, deletions
