"""Installed workflow lookup.

Structure: $BTW_HOME/workflows/<workflow-id>/btw.yaml
"""

from __future__ import annotations

import logging
from pathlib import Path

from btw_engine.errors import BTWError, ErrorCode
from btw_engine.manifest import Manifest, load_manifest
from btw_engine.paths import MANIFEST_FILENAME, workflows_dir

logger = logging.getLogger(__name__)


class WorkflowCatalog:
    """Read-only view of the workflows installed under one directory."""

    def __init__(self, root: Path | str | None = None) -> None:
        self.root = Path(root) if root else workflows_dir()

    def discover(self) -> list[Path]:
        """Sorted list of btw.yaml paths, one per installed workflow."""
        if not self.root.is_dir():
            return []
        found = []
        for child in sorted(self.root.iterdir()):
            manifest_file = child / MANIFEST_FILENAME
            if child.is_dir() and manifest_file.is_file():
                found.append(manifest_file)
        return found

    def list_manifests(self) -> list[Manifest]:
        """All parseable manifests. Invalid ones are skipped."""
        manifests = []
        for path in self.discover():
            try:
                manifests.append(load_manifest(path))
            except (OSError, BTWError) as exc:
                logger.warning("Skipping workflow at %s: %s", path.parent, exc)
        return manifests

    def get(self, workflow_id: str) -> Manifest:
        """Manifest for ``workflow_id``.

        Raises:
            BTWError: WORKFLOW_NOT_FOUND if no installed workflow has that id.
        """
        direct = self.root / workflow_id / MANIFEST_FILENAME
        if direct.is_file():
            manifest = load_manifest(direct)
            if manifest.id == workflow_id:
                return manifest
        for manifest in self.list_manifests():
            if manifest.id == workflow_id:
                return manifest
        raise BTWError(
            ErrorCode.WORKFLOW_NOT_FOUND,
            f"Workflow '{workflow_id}' not found in {self.root}",
            context={"workflowId": workflow_id},
        )
