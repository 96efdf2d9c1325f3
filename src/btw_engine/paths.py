"""Local path and default resolution.

Resolves the BTW home directory and CLI defaults. Uses environment
variables when available, falls back to conventional defaults.

Environment variables:
    BTW_HOME: BTW data directory (default: ~/.btw)
    BTW_TARGET: default AI target for CLI commands (default: claude)
"""

from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".btw"
_DEFAULT_TARGET = "claude"

MANIFEST_FILENAME = "btw.yaml"


def btw_home() -> Path:
    """Return the BTW data directory."""
    return Path(os.environ.get("BTW_HOME", str(_DEFAULT_HOME))).expanduser()


def workflows_dir() -> Path:
    """Return the directory holding installed workflows (one subdir each)."""
    return btw_home() / "workflows"


def default_target() -> str:
    """Return the AI target used when the CLI is given none."""
    return os.environ.get("BTW_TARGET", _DEFAULT_TARGET)
