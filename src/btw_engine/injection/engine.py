"""Target-keyed dispatch over injection strategies.

The engine holds one strategy per target, built once at construction.
It caches nothing: every call reads the filesystem as it is now.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

from btw_engine.errors import BTWError, ErrorCode
from btw_engine.fs import FileSystem
from btw_engine.injection.strategy import (
    EjectOptions,
    InjectionResult,
    InjectionStatus,
    InjectionStrategy,
    InjectOptions,
)
from btw_engine.injection.targets import STRATEGY_CLASSES
from btw_engine.manifest import Manifest
from btw_engine.types import Target


class InjectionEngine:
    def __init__(
        self,
        fs: FileSystem | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.fs = fs or FileSystem()
        self._strategies: dict[Target, InjectionStrategy] = {
            target: cls(self.fs, clock) for target, cls in STRATEGY_CLASSES.items()
        }

    @property
    def targets(self) -> list[Target]:
        return list(self._strategies)

    def is_target_supported(self, target: Target | str) -> bool:
        try:
            return Target(target) in self._strategies
        except ValueError:
            return False

    def validate_manifest_for_target(self, manifest: Manifest, target: Target | str) -> bool:
        return manifest.supports(target)

    def get_strategy(self, target: Target | str) -> InjectionStrategy:
        """Strategy for ``target``.

        Raises:
            BTWError: UNSUPPORTED_TARGET for anything outside the table.
        """
        if not self.is_target_supported(target):
            valid = ", ".join(t.value for t in self._strategies)
            raise BTWError(
                ErrorCode.UNSUPPORTED_TARGET,
                f"Target '{getattr(target, 'value', target)}' is not supported. Valid: {valid}",
                context={"target": str(getattr(target, "value", target))},
            )
        return self._strategies[Target(target)]

    def inject(
        self, manifest: Manifest, target: Target | str, options: InjectOptions,
    ) -> InjectionResult:
        strategy = self.get_strategy(target)
        if not self.validate_manifest_for_target(manifest, strategy.target):
            supported = ", ".join(sorted(t.value for t in manifest.targets)) or "none"
            raise BTWError(
                ErrorCode.TARGET_MISMATCH,
                f"Workflow '{manifest.id}' does not support target "
                f"'{strategy.target.value}' (supported: {supported})",
                context={"workflowId": manifest.id, "target": strategy.target.value},
            )
        return strategy.inject(manifest, options)

    def eject(self, target: Target | str, options: EjectOptions) -> None:
        self.get_strategy(target).eject(options)

    def get_status(self, target: Target | str, project_root: Path | str) -> InjectionStatus:
        return self.get_strategy(target).get_status(project_root)

    def get_all_statuses(self, project_root: Path | str) -> dict[Target, InjectionStatus]:
        return {
            target: strategy.get_status(project_root)
            for target, strategy in self._strategies.items()
        }

    def validate(self, target: Target | str, project_root: Path | str) -> bool:
        return self.get_strategy(target).validate(project_root)

    def restore_backups(
        self, target: Target | str, project_root: Path | str, workflow_id: str | None = None,
    ) -> list[Path]:
        return self.get_strategy(target).restore_backups(project_root, workflow_id)
