"""Error taxonomy for injection and ejection."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INJECTION_FAILED = "INJECTION_FAILED"
    EJECTION_FAILED = "EJECTION_FAILED"
    UNSUPPORTED_TARGET = "UNSUPPORTED_TARGET"
    TARGET_MISMATCH = "TARGET_MISMATCH"
    WORKFLOW_NOT_FOUND = "WORKFLOW_NOT_FOUND"
    MANIFEST_INVALID = "MANIFEST_INVALID"


class BTWError(Exception):
    """Single failure type raised by the engine.

    Callers branch on ``code``; ``message`` is for humans only.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"
