"""Scaffold layouts for each supported AI target."""

from __future__ import annotations

from btw_engine.injection.strategy import InjectionStrategy, TargetLayout, yaml_scalar
from btw_engine.manifest import AgentDefinition
from btw_engine.types import Target

# Claude Code subagents accept model aliases rather than full ids
CLAUDE_MODELS = {
    "claude-3-opus": "opus",
    "claude-3-sonnet": "sonnet",
    "claude-3-haiku": "haiku",
    "claude-opus-4": "opus",
    "claude-sonnet-4": "sonnet",
}

COPILOT_MODELS = {
    "claude-sonnet-4": "Claude Sonnet 4",
    "claude-3.5-sonnet": "Claude Sonnet 3.5",
    "gpt-4o": "GPT-4o",
    "gpt-4.1": "GPT-4.1",
}


class ClaudeStrategy(InjectionStrategy):
    target = Target.CLAUDE
    layout = TargetLayout(
        root_dir=".claude",
        artifact_dir=".claude/agents",
        artifact_ext=".md",
        shared_document="CLAUDE.md",
        settings_file=".claude/settings.json",
        model_map=CLAUDE_MODELS,
    )


class CursorStrategy(InjectionStrategy):
    target = Target.CURSOR
    layout = TargetLayout(
        root_dir=".cursor",
        artifact_dir=".cursor/rules",
        artifact_ext=".mdc",
        shared_document="AGENTS.md",
    )

    def header_lines(self, agent: AgentDefinition) -> list[str]:
        # Agent-requested rules: pulled in when the description matches.
        return super().header_lines(agent) + ["alwaysApply: false"]


class WindsurfStrategy(InjectionStrategy):
    target = Target.WINDSURF
    layout = TargetLayout(
        root_dir=".windsurf",
        artifact_dir=".windsurf/rules",
        artifact_ext=".md",
        shared_document=".windsurfrules",
    )

    def header_lines(self, agent: AgentDefinition) -> list[str]:
        return ["trigger: model_decision"] + super().header_lines(agent)


class CopilotStrategy(InjectionStrategy):
    target = Target.COPILOT
    layout = TargetLayout(
        root_dir=".github",
        artifact_dir=".github/chatmodes",
        artifact_ext=".chatmode.md",
        shared_document=".github/copilot-instructions.md",
        model_map=COPILOT_MODELS,
    )

    def header_lines(self, agent: AgentDefinition) -> list[str]:
        # The chat mode name is taken from the file name.
        lines = [f"description: {yaml_scalar(agent.description)}"]
        if agent.model:
            lines.append(f"model: {yaml_scalar(self.map_model(agent.model))}")
        return lines


STRATEGY_CLASSES: dict[Target, type[InjectionStrategy]] = {
    Target.CLAUDE: ClaudeStrategy,
    Target.CURSOR: CursorStrategy,
    Target.WINDSURF: WindsurfStrategy,
    Target.COPILOT: CopilotStrategy,
}
