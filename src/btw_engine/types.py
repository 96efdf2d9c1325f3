from __future__ import annotations

from enum import Enum


class Target(str, Enum):
    CLAUDE = "claude"
    CURSOR = "cursor"
    WINDSURF = "windsurf"
    COPILOT = "copilot"


class MergeMode(str, Enum):
    MERGE = "merge"
    REPLACE = "replace"
    APPEND = "append"
