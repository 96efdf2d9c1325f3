"""Per-target injection: artifact generation and scaffold reconciliation.

One strategy instance handles one AI target. The algorithm lives here;
targets differ only in their ``TargetLayout`` and header lines.

Layout written into a project (Claude shown):
    .claude/agents/<agent-id>.md   one artifact per agent, marker in header
    CLAUDE.md                      user document with one owned region
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

import yaml

from btw_engine import BTW_VERSION
from btw_engine.errors import BTWError, ErrorCode
from btw_engine.fs import BACKUP_SUFFIX, FileSystem, backup_path_for, is_backup
from btw_engine.injection import markers
from btw_engine.injection.ownership import (
    METADATA_HEADER,
    OwnershipScan,
    parse_marker,
    scan_owners,
)
from btw_engine.manifest import AgentDefinition, Manifest
from btw_engine.types import MergeMode, Target

logger = logging.getLogger(__name__)

_YAML_SPECIALS = (":", "#", "\n", "\r", "\t")
# Characters YAML forbids raw or folds as line breaks inside quotes.
_UNPRINTABLE_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\u2028\u2029]")


@dataclass(frozen=True)
class TargetLayout:
    """Where a target keeps its configuration, relative to the project root."""

    root_dir: str
    artifact_dir: str
    artifact_ext: str
    shared_document: str
    settings_file: str | None = None
    model_map: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedPaths:
    root: Path
    artifacts: Path
    shared_document: Path
    settings: Path | None


@dataclass(frozen=True)
class InjectOptions:
    project_root: Path
    backup: bool = True
    force: bool = False
    merge: bool = False


@dataclass(frozen=True)
class EjectOptions:
    project_root: Path
    workflow_id: str | None = None
    clean: bool = False


@dataclass
class InjectionResult:
    target: Target
    config_path: Path
    agent_paths: list[Path] = field(default_factory=list)
    agent_count: int = 0
    backup_created: bool = False
    backup_path: Path | None = None


@dataclass(frozen=True)
class InjectionStatus:
    is_injected: bool
    workflow_id: str | None = None
    workflow_ids: tuple[str, ...] = ()
    has_backup: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def yaml_scalar(value: str) -> str:
    """Render ``value`` so a YAML parser reads back the same string.

    Plain when safe, otherwise double-quoted with backslash escapes.
    """
    needs_quotes = (
        value == ""
        or any(ch in value for ch in _YAML_SPECIALS)
        or value.startswith(" ")
        or value.endswith(" ")
        or _UNPRINTABLE_RE.search(value) is not None
    )
    if not needs_quotes:
        try:
            needs_quotes = yaml.safe_load(value) != value
        except yaml.YAMLError:
            needs_quotes = True
    if not needs_quotes:
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    escaped = _UNPRINTABLE_RE.sub(_escape_char, escaped)
    return f'"{escaped}"'


def _escape_char(match: re.Match) -> str:
    code = ord(match.group())
    return f"\\x{code:02x}" if code <= 0xFF else f"\\u{code:04x}"


def split_header(content: str) -> str | None:
    """Return the text between the leading ``---`` lines, or None."""
    lines = content.splitlines()
    if not lines or lines[0] != "---":
        return None
    try:
        end = lines.index("---", 1)
    except ValueError:
        return None
    return "\n".join(lines[1:end])


class InjectionStrategy:
    """Reconciles one target's scaffold against workflow manifests."""

    target: Target
    layout: TargetLayout

    def __init__(
        self,
        fs: FileSystem | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.fs = fs or FileSystem()
        self._clock = clock or _utcnow

    # ── Paths and scanning ───────────────────────────────────────────

    def can_handle(self, target: Target | str) -> bool:
        return target == self.target

    def resolve_paths(self, project_root: Path | str) -> ResolvedPaths:
        root = Path(project_root)
        return ResolvedPaths(
            root=root / self.layout.root_dir,
            artifacts=root / self.layout.artifact_dir,
            shared_document=root / self.layout.shared_document,
            settings=root / self.layout.settings_file if self.layout.settings_file else None,
        )

    def artifact_path(self, project_root: Path | str, agent_id: str) -> Path:
        return self.resolve_paths(project_root).artifacts / f"{agent_id}{self.layout.artifact_ext}"

    def scan(self, project_root: Path | str) -> OwnershipScan:
        paths = self.resolve_paths(project_root)
        return scan_owners(self.fs, paths.artifacts, self.layout.artifact_ext)

    def injected_workflow_ids(self, project_root: Path | str) -> list[str]:
        return self.scan(project_root).workflow_ids()

    def is_workflow_injected(self, project_root: Path | str, workflow_id: str) -> bool:
        return self.scan(project_root).owns(workflow_id)

    def timestamp(self) -> str:
        return self._clock().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    # ── Inject ───────────────────────────────────────────────────────

    def inject(self, manifest: Manifest, options: InjectOptions) -> InjectionResult:
        """Write the manifest's agents and shared-document region.

        Raises:
            BTWError: INJECTION_FAILED if the workflow is already injected
                (without force), an agent file name is taken by content this
                workflow does not own, or any write fails.
        """
        paths = self.resolve_paths(options.project_root)
        try:
            scan = self.scan(options.project_root)
            if not options.force and scan.owns(manifest.id):
                raise BTWError(
                    ErrorCode.INJECTION_FAILED,
                    f"Workflow '{manifest.id}' is already injected. Use --force to re-inject.",
                    context={"workflowId": manifest.id, "target": self.target.value},
                )
            self._check_conflicts(manifest, options.project_root, scan)

            self.fs.mkdir(paths.root)
            self.fs.mkdir(paths.artifacts)

            owned = scan.paths_for(manifest.id)
            backup_created, backup_path = False, None
            if options.backup and owned:
                backup_created, backup_path = self._snapshot(owned)

            if options.force:
                for path in owned:
                    self.fs.remove(path)

            agent_paths = []
            for agent in manifest.agents:
                path = self.artifact_path(options.project_root, agent.id)
                self.fs.write_text(
                    path, self.generate_artifact(agent, manifest.id), create_dirs=True,
                )
                agent_paths.append(path)

            self._update_shared_document(paths.shared_document, manifest, options)
        except BTWError:
            raise
        except (OSError, UnicodeDecodeError) as exc:
            raise BTWError(
                ErrorCode.INJECTION_FAILED,
                f"Failed to inject workflow into {self.target.value} configuration: {exc}",
                cause=exc,
                context={"workflowId": manifest.id, "target": self.target.value},
            ) from exc

        logger.info(
            "Injected '%s' into %s (%d agents)",
            manifest.id, self.target.value, len(agent_paths),
        )
        return InjectionResult(
            target=self.target,
            config_path=paths.shared_document,
            agent_paths=agent_paths,
            agent_count=len(agent_paths),
            backup_created=backup_created,
            backup_path=backup_path,
        )

    def _check_conflicts(
        self, manifest: Manifest, project_root: Path | str, scan: OwnershipScan,
    ) -> None:
        for agent in manifest.agents:
            path = self.artifact_path(project_root, agent.id)
            if not self.fs.exists(path):
                continue
            owner = scan.owner_of(path)
            if owner == manifest.id:
                continue
            held_by = f"workflow '{owner}'" if owner else "a file not managed by BTW"
            raise BTWError(
                ErrorCode.INJECTION_FAILED,
                f"Cannot write agent '{agent.id}': {path} is owned by {held_by}.",
                context={"workflowId": manifest.id, "path": str(path), "owner": owner},
            )

    def _snapshot(self, files: list[Path]) -> tuple[bool, Path | None]:
        created, last = False, None
        for path in files:
            try:
                last = self.fs.backup(path)
                created = True
            except OSError as exc:
                logger.warning("Backup of %s failed, continuing: %s", path, exc)
        return created, last

    def _update_shared_document(
        self, path: Path, manifest: Manifest, options: InjectOptions,
    ) -> None:
        if options.merge:
            mode = MergeMode.MERGE
        elif options.force:
            mode = MergeMode.REPLACE
        else:
            mode = MergeMode.APPEND

        existing = self.fs.read_text(path) if self.fs.exists(path) else None
        outcome = markers.merge(existing, self.generate_shared_document(manifest), mode)
        if outcome.action != "unchanged":
            self.fs.write_text(path, outcome.text, create_dirs=True)
        logger.debug("Shared document %s: %s", path, outcome.action)

    # ── Eject ────────────────────────────────────────────────────────

    def eject(self, options: EjectOptions) -> None:
        """Remove owned artifacts for one workflow, or for all workflows.

        Raises:
            BTWError: EJECTION_FAILED if a removal or rewrite fails.
        """
        paths = self.resolve_paths(options.project_root)
        try:
            scan = self.scan(options.project_root)
            doomed = (
                scan.paths_for(options.workflow_id)
                if options.workflow_id
                else scan.all_paths()
            )
            for path in doomed:
                self.fs.remove(path)
                backup = backup_path_for(path)
                if self.fs.exists(backup):
                    self.fs.remove(backup)

            self._remove_if_empty(paths.artifacts)
            self._strip_shared_document(paths.shared_document, options.workflow_id)

            if options.clean:
                self._remove_if_empty(paths.root)
        except BTWError:
            raise
        except (OSError, UnicodeDecodeError) as exc:
            raise BTWError(
                ErrorCode.EJECTION_FAILED,
                f"Failed to eject workflow from {self.target.value} configuration: {exc}",
                cause=exc,
                context={"workflowId": options.workflow_id, "target": self.target.value},
            ) from exc

        logger.info(
            "Ejected %s from %s (%d artifacts)",
            f"'{options.workflow_id}'" if options.workflow_id else "all workflows",
            self.target.value, len(doomed),
        )

    def _strip_shared_document(self, path: Path, workflow_id: str | None) -> None:
        if not self.fs.exists(path):
            return
        content = self.fs.read_text(path)
        if markers.locate(content) is None:
            return
        if workflow_id and markers.region_owner(content) != workflow_id:
            return
        cleaned = markers.strip(content)
        if cleaned.strip():
            self.fs.write_text(path, cleaned)
        else:
            self.fs.remove(path)

    def _remove_if_empty(self, directory: Path) -> None:
        if not self.fs.is_dir(directory):
            return
        if not self.fs.listdir(directory):
            self.fs.remove(directory, recursive=True)

    # ── Status / validation (never raise) ────────────────────────────

    def get_status(self, project_root: Path | str) -> InjectionStatus:
        try:
            scan = self.scan(project_root)
            if not scan:
                return InjectionStatus(is_injected=False)
            ids = scan.workflow_ids()
            has_backup = any(
                self.fs.exists(backup_path_for(p)) for p in scan.all_paths()
            )
            return InjectionStatus(
                is_injected=True,
                workflow_id=ids[0],
                workflow_ids=tuple(sorted(ids)),
                has_backup=has_backup,
            )
        except Exception as exc:
            logger.debug("Status check for %s failed: %s", self.target.value, exc)
            return InjectionStatus(is_injected=False)

    def validate(self, project_root: Path | str) -> bool:
        """Check that owned artifacts and structured config files parse."""
        paths = self.resolve_paths(project_root)
        try:
            if self.fs.is_dir(paths.artifacts):
                for entry in self.fs.listdir(paths.artifacts):
                    if not entry.is_file or is_backup(entry.name):
                        continue
                    if not entry.name.endswith(self.layout.artifact_ext):
                        continue
                    content = self.fs.read_text(entry.path)
                    if parse_marker(content) is None:
                        continue
                    header = split_header(content)
                    if header is None or not isinstance(yaml.safe_load(header), dict):
                        return False

            if paths.settings and self.fs.exists(paths.settings):
                json.loads(self.fs.read_text(paths.settings))

            if self.fs.exists(paths.shared_document):
                self.fs.read_text(paths.shared_document)
            return True
        except Exception as exc:
            logger.debug("Validation of %s failed: %s", self.target.value, exc)
            return False

    # ── Backups ──────────────────────────────────────────────────────

    def restore_backups(
        self, project_root: Path | str, workflow_id: str | None = None,
    ) -> list[Path]:
        """Copy ``.btw-backup`` artifacts back into place.

        With ``workflow_id``, only backups whose content that workflow owns.
        """
        paths = self.resolve_paths(project_root)
        if not self.fs.is_dir(paths.artifacts):
            return []
        restored = []
        try:
            for entry in self.fs.listdir(paths.artifacts):
                if not entry.is_file or not is_backup(entry.name):
                    continue
                original = entry.path.with_name(entry.name[: -len(BACKUP_SUFFIX)])
                if workflow_id:
                    marker = parse_marker(self.fs.read_text(entry.path))
                    if marker is None or marker.workflow_id != workflow_id:
                        continue
                self.fs.restore(original)
                restored.append(original)
        except (OSError, UnicodeDecodeError) as exc:
            raise BTWError(
                ErrorCode.INJECTION_FAILED,
                f"Failed to restore {self.target.value} backups: {exc}",
                cause=exc,
            ) from exc
        return restored

    # ── Generation ───────────────────────────────────────────────────

    def map_model(self, model: str) -> str:
        return self.layout.model_map.get(model, model)

    def header_lines(self, agent: AgentDefinition) -> list[str]:
        lines = [
            f"name: {yaml_scalar(agent.id)}",
            f"description: {yaml_scalar(agent.description)}",
        ]
        if agent.model:
            lines.append(f"model: {yaml_scalar(self.map_model(agent.model))}")
        return lines

    def generate_artifact(self, agent: AgentDefinition, workflow_id: str) -> str:
        lines = ["---"]
        lines.extend(self.header_lines(agent))
        lines.append(METADATA_HEADER)
        lines.append(f"# workflow: {workflow_id}")
        lines.append(f"# injected: {self.timestamp()}")
        lines.append("---")
        lines.append("")
        lines.append(agent.system_prompt)
        return "\n".join(lines)

    def generate_shared_document(self, manifest: Manifest) -> str:
        timestamp = self.timestamp()
        lines = [f"# {manifest.name}", ""]

        if manifest.description:
            lines += [manifest.description, ""]

        lines += ["## Workflow Information", ""]
        lines.append(f"- **Workflow ID:** {manifest.id}")
        lines.append(f"- **Version:** {manifest.version}")
        if manifest.author:
            lines.append(f"- **Author:** {manifest.author}")
        if manifest.repository:
            lines.append(f"- **Repository:** {manifest.repository}")
        lines.append("")

        if manifest.agents:
            lines += [
                "## Available Agents",
                "",
                "This workflow provides the following specialized agents:",
                "",
            ]
            for agent in manifest.agents:
                lines.append(f"- **{agent.name}** (`{agent.id}`): {agent.description}")
            lines.append("")

        lines += ["---", "", f"*Injected by BTW v{BTW_VERSION} at {timestamp}*"]
        return markers.generate(manifest.id, "\n".join(lines), timestamp)

    def generate_config(self, manifest: Manifest) -> str | None:
        """JSON settings stub tagging the workflow, or None without a settings file."""
        if not self.layout.settings_file:
            return None
        return json.dumps({
            "_btw": {
                "workflowId": manifest.id,
                "injectedAt": self.timestamp(),
                "version": manifest.version,
            },
        }, indent=2)
