"""Tests for target dispatch in InjectionEngine."""

import pytest

from btw_engine.errors import BTWError, ErrorCode
from btw_engine.injection.engine import InjectionEngine
from btw_engine.injection.strategy import EjectOptions, InjectOptions
from btw_engine.injection.targets import ClaudeStrategy, CursorStrategy
from btw_engine.types import Target


class TestDispatch:
    def test_targets(self, engine):
        assert set(engine.targets) == {Target.CLAUDE, Target.CURSOR, Target.WINDSURF, Target.COPILOT}

    @pytest.mark.parametrize("target", ["claude", "cursor", "windsurf", "copilot", Target.CLAUDE])
    def test_supported(self, engine, target):
        assert engine.is_target_supported(target)

    @pytest.mark.parametrize("target", ["vim", "", "CLAUDE"])
    def test_unsupported(self, engine, target):
        assert not engine.is_target_supported(target)

    def test_get_strategy(self, engine):
        assert isinstance(engine.get_strategy("claude"), ClaudeStrategy)
        assert isinstance(engine.get_strategy(Target.CURSOR), CursorStrategy)

    def test_get_strategy_unknown(self, engine):
        with pytest.raises(BTWError) as exc_info:
            engine.get_strategy("vim")
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_TARGET
        assert "vim" in exc_info.value.message
        assert exc_info.value.context == {"target": "vim"}

    def test_strategies_share_filesystem(self):
        engine = InjectionEngine()
        assert all(engine.get_strategy(t).fs is engine.fs for t in engine.targets)


class TestInjectEject:
    def test_inject_and_eject(self, engine, project, make_manifest):
        result = engine.inject(make_manifest(), "claude", InjectOptions(project_root=project))
        assert result.agent_count == 1
        assert engine.get_status(Target.CLAUDE, project).is_injected

        engine.eject("claude", EjectOptions(project_root=project, clean=True))
        assert not engine.get_status(Target.CLAUDE, project).is_injected

    def test_target_mismatch(self, engine, project, make_manifest, snapshot):
        manifest = make_manifest(targets=(Target.CLAUDE,))
        with pytest.raises(BTWError) as exc_info:
            engine.inject(manifest, Target.CURSOR, InjectOptions(project_root=project))
        assert exc_info.value.code == ErrorCode.TARGET_MISMATCH
        assert "claude" in exc_info.value.message
        assert snapshot(project) == {}

    def test_unsupported_target_on_inject(self, engine, project, make_manifest):
        with pytest.raises(BTWError) as exc_info:
            engine.inject(make_manifest(), "emacs", InjectOptions(project_root=project))
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_TARGET

    def test_validate_manifest_for_target(self, engine, make_manifest):
        manifest = make_manifest(targets=(Target.CLAUDE, Target.COPILOT))
        assert engine.validate_manifest_for_target(manifest, "copilot")
        assert not engine.validate_manifest_for_target(manifest, Target.WINDSURF)


class TestStatus:
    def test_all_statuses(self, engine, project, make_manifest):
        manifest = make_manifest(targets=(Target.CLAUDE, Target.WINDSURF))
        engine.inject(manifest, Target.WINDSURF, InjectOptions(project_root=project))

        statuses = engine.get_all_statuses(project)

        assert set(statuses) == set(Target)
        assert statuses[Target.WINDSURF].is_injected
        assert statuses[Target.WINDSURF].workflow_id == "test-workflow"
        assert not statuses[Target.CLAUDE].is_injected

    def test_validate(self, engine, project, make_manifest):
        engine.inject(make_manifest(), Target.CLAUDE, InjectOptions(project_root=project))
        assert engine.validate(Target.CLAUDE, project)

    def test_restore_backups(self, engine, project, make_manifest):
        engine.inject(make_manifest(), "claude", InjectOptions(project_root=project))
        engine.inject(make_manifest(), "claude", InjectOptions(project_root=project, force=True))

        restored = engine.restore_backups("claude", project)

        assert restored == [project / ".claude" / "agents" / "test-agent.md"]
