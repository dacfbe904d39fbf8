from __future__ import annotations

import json
from pathlib import Path

from .render import model_to_dict, render_html, render_markdown, render_text
from .report import PresentationModel

REPORT_FORMATS = ("text", "md", "html", "json")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data, indent=2, sort_keys=False) + "\n", encoding="utf-8")


def render_report(model: PresentationModel, fmt: str, *, theme: str = "dark") -> str:
    if fmt == "text":
        return render_text(model)
    if fmt == "md":
        return render_markdown(model)
    if fmt == "html":
        return render_html(model, theme=theme)
    if fmt == "json":
        return json.dumps(model_to_dict(model), indent=2, sort_keys=False) + "\n"
    raise ValueError(f"unknown report format: {fmt!r}")


def write_reports(
    *,
    report_dir: Path,
    model: PresentationModel,
    formats: tuple[str, ...] = REPORT_FORMATS,
    theme: str = "dark",
) -> list[Path]:
    """Write the requested formats under `report_dir`; returns the written paths."""
    written: list[Path] = []
    ensure_dir(report_dir)
    for fmt in formats:
        if fmt == "text":
            path = report_dir / "report.txt"
        elif fmt == "md":
            path = report_dir / "markup" / "report.md"
        elif fmt == "html":
            path = report_dir / "html" / "report.html"
        elif fmt == "json":
            path = report_dir / "json" / "report.json"
        else:
            raise ValueError(f"unknown report format: {fmt!r}")
        ensure_dir(path.parent)
        if fmt == "json":
            write_json(path, model_to_dict(model))
        else:
            path.write_text(render_report(model, fmt, theme=theme), encoding="utf-8")
        written.append(path)
    return written
