"""Derive installed workflows from artifact contents.

There is no installed-state file. Every status check re-reads the
artifact directory and trusts only the ``# workflow: <id>`` line each
artifact carries. Unreadable or unmarked files are skipped, never fatal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from btw_engine.fs import FileSystem, is_backup

logger = logging.getLogger(__name__)

METADATA_HEADER = "# BTW metadata"
_WORKFLOW_RE = re.compile(r"^# workflow: (?P<workflow_id>.+?)\s*$")
_INJECTED_RE = re.compile(r"^# injected: (?P<timestamp>.+?)\s*$")


@dataclass(frozen=True)
class OwnershipMarker:
    workflow_id: str
    injected_at: str | None = None


def parse_marker(text: str) -> OwnershipMarker | None:
    """Read the ownership marker from artifact text.

    Only the leading ``---`` header block is searched; a file without one
    is user content. Stops at the first ``# workflow:`` line; the
    ``# injected:`` line is only looked for directly after it.
    """
    lines = text.splitlines()
    if not lines or lines[0] != "---":
        return None
    try:
        lines = lines[1:lines.index("---", 1)]
    except ValueError:
        return None
    for i, line in enumerate(lines):
        match = _WORKFLOW_RE.match(line)
        if not match:
            continue
        injected_at = None
        if i + 1 < len(lines):
            ts = _INJECTED_RE.match(lines[i + 1])
            if ts:
                injected_at = ts.group("timestamp")
        return OwnershipMarker(match.group("workflow_id"), injected_at)
    return None


@dataclass
class OwnershipScan:
    """Artifact path -> owning workflow id, in file-name order."""

    owners: dict[Path, str] = field(default_factory=dict)

    def workflow_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for wid in self.owners.values():
            seen.setdefault(wid, None)
        return list(seen)

    def paths_for(self, workflow_id: str) -> list[Path]:
        return [p for p, wid in self.owners.items() if wid == workflow_id]

    def all_paths(self) -> list[Path]:
        return list(self.owners)

    def owns(self, workflow_id: str) -> bool:
        return workflow_id in self.owners.values()

    def owner_of(self, path: Path) -> str | None:
        return self.owners.get(Path(path))

    def __bool__(self) -> bool:
        return bool(self.owners)


def scan_owners(fs: FileSystem, directory: Path, extension: str) -> OwnershipScan:
    """Scan ``directory`` for BTW-owned ``*<extension>`` artifacts."""
    scan = OwnershipScan()
    try:
        entries = fs.listdir(directory)
    except OSError:
        return scan

    for entry in entries:
        if not entry.is_file or is_backup(entry.name) or not entry.name.endswith(extension):
            continue
        try:
            content = fs.read_text(entry.path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable artifact %s: %s", entry.path, exc)
            continue
        marker = parse_marker(content)
        if marker:
            scan.owners[Path(entry.path)] = marker.workflow_id
    return scan
