from __future__ import annotations

import dataclasses
import html

from .report import PresentationModel

BANNER = r"""
+------------------------------------------------------------------------+
|                             GIT LINE DIFFS                              |
+------------------------------------------------------------------------+
""".strip("\n")

THEMES: dict[str, dict[str, str]] = {
    "dark": {
        "text": "#ffffff",
        "bg": "#1e1e1e",
        "border": "#333333",
        "stripe": "#2a2a2a",
        "high_impact": "#444444",
    },
    "light": {
        "text": "#000000",
        "bg": "#f3f3f3",
        "border": "#dddddd",
        "stripe": "#f9f9f9",
        "high_impact": "#ffcccc",
    },
}


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: int, max_value: int, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def render_text(model: PresentationModel, *, top_n: int = 0) -> str:
    lines: list[str] = []
    lines.append(BANNER)
    lines.append("")
    lines.append(model.status)
    lines.append(f"Repositories: {fmt_int(model.repositories)}")
    if model.refreshed_at:
        lines.append(f"Refreshed at: {model.refreshed_at}")
    lines.append("")

    files = model.files[:top_n] if top_n > 0 else model.files
    lines.append("Changed files (added + removed)")
    lines.append("-" * 72)
    max_changed = model.files[0].changed if model.files else 0
    for row in files:
        mark = "!" if row.high_impact else " "
        lines.append(
            f"{mark} {trunc(row.file_name, 34):34} {'+' + fmt_int(row.added):>8} {'-' + fmt_int(row.removed):>8}  "
            f"{bar(row.changed, max_changed, width=16)}"
        )
    if not model.files:
        lines.append("(no working-tree changes)")
    elif len(files) < len(model.files):
        lines.append(f"... {len(model.files) - len(files)} more")
    if any(r.high_impact for r in model.files):
        lines.append(f"! = more than {fmt_int(model.high_impact_threshold)} changed lines")
    lines.append("")

    lines.append("Contributor insights")
    lines.append("-" * 72)
    for a in model.authors:
        lines.append(f"{trunc(a.author_name, 40):40} {'+' + fmt_int(a.added):>12} {'-' + fmt_int(a.removed):>12}")
    if not model.authors:
        lines.append("(none)")
    lines.append("")

    lines.append(f"Diffs on last {len(model.commits)} commits")
    lines.append("-" * 72)
    for c in model.commits:
        lines.append(
            f"{trunc(c.message, 44):44} {'+' + fmt_int(c.added):>8} {'-' + fmt_int(c.removed):>8}  "
            f"{fmt_int(c.files_touched)} files"
        )
    if not model.commits:
        lines.append("(no commits)")

    if model.errors:
        lines.append("")
        lines.append(f"Skipped ({len(model.errors)})")
        lines.append("-" * 72)
        for e in model.errors:
            lines.append(f"- {e}")
    return "\n".join(lines) + "\n"


def _md_cell(s: str) -> str:
    return s.replace("|", "\\|").replace("\n", " ")


def render_markdown(model: PresentationModel) -> str:
    lines: list[str] = []
    lines.append("# Git line diffs")
    lines.append("")
    lines.append(f"**{model.status}**")
    lines.append("")
    lines.append("## Files")
    lines.append("")
    if model.files:
        lines.append("| File | Added | Removed | High impact |")
        lines.append("|---|---:|---:|:---:|")
        for row in model.files:
            lines.append(
                f"| `{_md_cell(row.file_name)}` | +{fmt_int(row.added)} | -{fmt_int(row.removed)} | {'yes' if row.high_impact else ''} |"
            )
    else:
        lines.append("_No working-tree changes._")
    lines.append("")
    lines.append("## Contributor insights")
    lines.append("")
    for a in model.authors:
        lines.append(f"- {_md_cell(a.author_name)}: +{fmt_int(a.added)} / -{fmt_int(a.removed)}")
    if not model.authors:
        lines.append("_None._")
    lines.append("")
    lines.append(f"## Diffs on last {len(model.commits)} commits")
    lines.append("")
    for c in model.commits:
        lines.append(f"- {_md_cell(c.message)} (+{fmt_int(c.added)} / -{fmt_int(c.removed)} in {fmt_int(c.files_touched)} files)")
    if not model.commits:
        lines.append("_No commits._")
    if model.errors:
        lines.append("")
        lines.append("## Skipped")
        lines.append("")
        for e in model.errors:
            lines.append(f"- {_md_cell(e)}")
    return "\n".join(lines) + "\n"


def render_html(model: PresentationModel, *, theme: str = "dark") -> str:
    colors = THEMES.get(theme, THEMES["dark"])
    esc = html.escape

    row_parts: list[str] = []
    for r in model.files:
        cls = ' class="high-impact"' if r.high_impact else ""
        row_parts.append(
            f'<tr data-file-path="{esc(r.file_name)}"{cls}>'
            f'<td><a href="#">{esc(r.file_name)}</a></td>'
            f'<td class="added">+{r.added}</td>'
            f'<td class="removed">-{r.removed}</td>'
            "</tr>\n"
        )
    rows = "".join(row_parts)
    commits = "".join(
        f'<li>{esc(c.message)} (<span class="added">+{c.added}</span> / '
        f'<span class="removed">-{c.removed}</span> in {c.files_touched} files)</li>\n'
        for c in model.commits
    )
    authors = "".join(
        f'<li>{esc(a.author_name)}: <span class="added">+{a.added}</span> / '
        f'<span class="removed">-{a.removed}</span></li>\n'
        for a in model.authors
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Git line diffs</title>
<style>
  body {{ font-family: Arial, sans-serif; margin: 0; padding: 20px; background-color: {colors["bg"]}; color: {colors["text"]}; }}
  h2 {{ font-size: 1.25em; margin-bottom: 10px; }}
  .columns {{ display: flex; margin-bottom: 20px; }}
  .columns > div {{ display: flex; flex-direction: column; width: 50%; }}
  .columns ul {{ overflow-y: auto; max-height: 300px; }}
  table {{ width: 100%; border-collapse: collapse; margin-bottom: 20px; }}
  th, td {{ border: 1px solid {colors["border"]}; padding: 8px; text-align: left; color: {colors["text"]}; }}
  tbody tr:nth-child(even) {{ background-color: {colors["stripe"]}; }}
  tbody tr.high-impact {{ background-color: {colors["high_impact"]}; }}
  .added {{ color: green; }}
  .removed {{ color: red; }}
</style>
</head>
<body>
<p class="status">{esc(model.status)}</p>
<div class="columns">
  <div>
    <h2>Diffs on last {len(model.commits)} commits:</h2>
    <ul>
{commits}    </ul>
  </div>
  <div>
    <h2>Contributor Insights:</h2>
    <ul>
{authors}    </ul>
  </div>
</div>
<table>
<thead><tr><th>File</th><th>Added</th><th>Removed</th></tr></thead>
<tbody>
{rows}</tbody>
</table>
<script>
  const host = typeof acquireVsCodeApi === "function" ? acquireVsCodeApi() : window.parent;
  document.querySelectorAll("tbody tr").forEach((row) => {{
    row.addEventListener("click", () => {{
      host.postMessage({{ command: "openFile", filePath: row.dataset.filePath }}, "*");
    }});
  }});
</script>
</body>
</html>
"""


def model_to_dict(model: PresentationModel) -> dict[str, object]:
    return {
        "status": model.status,
        "refreshed_at": model.refreshed_at,
        "repositories": model.repositories,
        "total_files_changed": model.total_files_changed,
        "total_added": model.total_added,
        "total_removed": model.total_removed,
        "high_impact_threshold": model.high_impact_threshold,
        "files": [{**dataclasses.asdict(r), "changed": r.changed} for r in model.files],
        "authors": [dataclasses.asdict(a) for a in model.authors],
        "commits": [dataclasses.asdict(c) for c in model.commits],
        "errors": list(model.errors),
    }
