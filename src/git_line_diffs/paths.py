from __future__ import annotations

import dataclasses
from pathlib import Path, PurePosixPath

OPEN_FILE_COMMAND = "openFile"


def normalize_relative_path(path: str) -> str:
    p = path.replace("\\", "/").strip()
    while p.startswith("./"):
        p = p[2:]
    return p


def as_relative_path(path: Path | str, workspace_roots: list[Path]) -> str:
    """
    Workspace-relative POSIX path for `path`.

    The first root that contains the path wins; a path outside every root
    comes back unchanged (as POSIX).
    """
    p = Path(path)
    for root in workspace_roots:
        try:
            rel = p.relative_to(root)
        except ValueError:
            continue
        return rel.as_posix()
    return p.as_posix()


@dataclasses.dataclass(frozen=True)
class OpenFileRequest:
    file_path: str
    command: str = OPEN_FILE_COMMAND

    def to_message(self) -> dict[str, str]:
        return {"command": self.command, "filePath": self.file_path}


def parse_open_file_request(message: object) -> OpenFileRequest:
    if not isinstance(message, dict):
        raise ValueError("open-file request must be an object")
    if message.get("command") != OPEN_FILE_COMMAND:
        raise ValueError(f"unsupported command: {message.get('command')!r}")
    file_path = message.get("filePath")
    if not isinstance(file_path, str) or not file_path.strip():
        raise ValueError("open-file request needs a non-empty filePath")
    return OpenFileRequest(file_path=normalize_relative_path(file_path))


def resolve_open_file_request(request: OpenFileRequest, workspace_roots: list[Path]) -> Path:
    """Resolve the request against the first workspace root."""
    if not workspace_roots:
        raise ValueError("no workspace root to resolve against")
    rel = PurePosixPath(normalize_relative_path(request.file_path))
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"file path escapes the workspace: {request.file_path!r}")
    root = Path(workspace_roots[0]).resolve()
    return root.joinpath(*rel.parts)
