"""Workflow manifest model and btw.yaml loader."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from btw_engine.errors import BTWError, ErrorCode
from btw_engine.paths import MANIFEST_FILENAME
from btw_engine.types import Target


@dataclass(frozen=True)
class AgentDefinition:
    id: str
    name: str
    description: str
    system_prompt: str
    model: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    id: str
    name: str
    description: str
    version: str
    targets: frozenset[Target] = field(default_factory=frozenset)
    agents: tuple[AgentDefinition, ...] = ()
    author: str | None = None
    repository: str | None = None

    def supports(self, target: Target | str) -> bool:
        try:
            return Target(target) in self.targets
        except ValueError:
            return False


def _require(data: dict, key: str, where: str) -> str:
    value = data.get(key)
    if value is None or str(value).strip() == "":
        raise BTWError(
            ErrorCode.MANIFEST_INVALID,
            f"{where}: missing required field '{key}'",
        )
    return str(value)


def _list_field(data: dict, key: str, where: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise BTWError(
            ErrorCode.MANIFEST_INVALID,
            f"{where}: '{key}' must be a list, got {type(value).__name__}",
        )
    return value


def _parse_agent(raw: dict, index: int) -> AgentDefinition:
    if not isinstance(raw, dict):
        raise BTWError(ErrorCode.MANIFEST_INVALID, f"agents[{index}] is not a mapping")
    where = f"agents[{index}]"
    prompt = raw.get("systemPrompt", raw.get("system_prompt"))
    if prompt is None:
        raise BTWError(ErrorCode.MANIFEST_INVALID, f"{where}: missing required field 'systemPrompt'")
    agent_id = _require(raw, "id", where)
    return AgentDefinition(
        id=agent_id,
        name=str(raw.get("name") or agent_id),
        description=str(raw.get("description") or ""),
        system_prompt=str(prompt),
        model=str(raw["model"]) if raw.get("model") else None,
        tags=tuple(str(t) for t in _list_field(raw, "tags", where)),
    )


def manifest_from_dict(data: dict) -> Manifest:
    """Build a Manifest from parsed btw.yaml data.

    Raises:
        BTWError: MANIFEST_INVALID for missing fields or unknown targets.
    """
    if not isinstance(data, dict):
        raise BTWError(ErrorCode.MANIFEST_INVALID, "manifest is not a mapping")

    targets = set()
    for raw_target in _list_field(data, "targets", "manifest"):
        try:
            targets.add(Target(str(raw_target)))
        except ValueError:
            raise BTWError(
                ErrorCode.MANIFEST_INVALID,
                f"Unknown target '{raw_target}'. Valid: {', '.join(t.value for t in Target)}",
            ) from None

    return Manifest(
        id=_require(data, "id", "manifest"),
        name=_require(data, "name", "manifest"),
        description=str(data.get("description") or ""),
        version=_require(data, "version", "manifest"),
        targets=frozenset(targets),
        agents=tuple(
            _parse_agent(a, i) for i, a in enumerate(_list_field(data, "agents", "manifest"))
        ),
        author=data.get("author") or None,
        repository=data.get("repository") or None,
    )


def load_manifest(path: Path | str) -> Manifest:
    """Read and parse a btw.yaml file.

    Args:
        path: Path to btw.yaml, or the workflow directory containing it.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        BTWError: MANIFEST_INVALID if the YAML is malformed or incomplete.
    """
    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / MANIFEST_FILENAME

    with open(manifest_path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise BTWError(
                ErrorCode.MANIFEST_INVALID,
                f"{manifest_path} is not valid YAML: {exc}",
                cause=exc,
            ) from exc

    return manifest_from_dict(data)
