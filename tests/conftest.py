"""Shared test fixtures for btw-engine."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from btw_engine.injection.engine import InjectionEngine
from btw_engine.injection.targets import ClaudeStrategy
from btw_engine.manifest import AgentDefinition, Manifest
from btw_engine.types import Target

FROZEN_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
FROZEN_TS = "2024-01-01T00:00:00.000Z"


@pytest.fixture
def clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def claude(clock):
    return ClaudeStrategy(clock=clock)


@pytest.fixture
def engine(clock):
    return InjectionEngine(clock=clock)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def make_agent():
    def _make(agent_id="test-agent", description="A test agent for testing",
              prompt="You are a test agent. Follow these instructions carefully.",
              name=None, model=None):
        return AgentDefinition(
            id=agent_id,
            name=name or agent_id.replace("-", " ").title(),
            description=description,
            system_prompt=prompt,
            model=model,
        )
    return _make


@pytest.fixture
def make_manifest(make_agent):
    def _make(workflow_id="test-workflow", agents=None, targets=(Target.CLAUDE,), **overrides):
        fields = {
            "id": workflow_id,
            "name": workflow_id.replace("-", " ").title(),
            "description": "A test workflow for unit tests",
            "version": "1.0",
            "targets": frozenset(targets),
            "agents": tuple(agents) if agents is not None else (make_agent(),),
            "author": "Test Author",
            "repository": "https://github.com/test/workflow",
        }
        fields.update(overrides)
        return Manifest(**fields)
    return _make


@pytest.fixture
def workflows_dir(tmp_path):
    """Installed workflows: demo (claude, cursor) and other (claude)."""
    root = tmp_path / "workflows"
    entries = {
        "demo": {
            "id": "demo",
            "name": "Demo",
            "description": "Demo workflow",
            "version": "1.0.0",
            "targets": ["claude", "cursor"],
            "agents": [
                {"id": "writer", "name": "Writer", "description": "d", "systemPrompt": "p"},
            ],
        },
        "other": {
            "id": "other",
            "name": "Other",
            "description": "Another workflow",
            "version": "0.2.0",
            "targets": ["claude"],
            "agents": [
                {"id": "reviewer", "name": "Reviewer", "description": "Reviews code",
                 "system_prompt": "Review carefully."},
            ],
        },
    }
    for wid, data in entries.items():
        (root / wid).mkdir(parents=True)
        (root / wid / "btw.yaml").write_text(yaml.safe_dump(data, sort_keys=False))
    return root


def _snapshot(root: Path) -> dict[str, bytes]:
    """Every file under root, relative path -> bytes."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*")) if p.is_file()
    }


@pytest.fixture
def snapshot():
    return _snapshot


@pytest.fixture
def frozen_ts():
    return FROZEN_TS
