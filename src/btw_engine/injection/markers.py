"""Owned-region handling for shared instruction documents.

A shared document (CLAUDE.md, .windsurfrules, ...) belongs to the user.
BTW owns at most one region inside it:

    <!-- BTW_START -->
    <!-- BTW:<workflow-id>:<timestamp> -->
    ...
    <!-- BTW_END -->

A region exists only when a start sentinel is followed later by an end
sentinel. Anything else (missing end, reversed order) means no region,
and the document is treated as wholly user-owned.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from btw_engine.types import MergeMode

logger = logging.getLogger(__name__)

BTW_START_MARKER = "<!-- BTW_START -->"
BTW_END_MARKER = "<!-- BTW_END -->"

# Placed between user content and an appended region.
SEPARATOR = "\n---\n\n"

_OWNER_RE = re.compile(r"<!-- BTW:(?P<workflow_id>[^:\s]+):(?P<timestamp>\S+) -->")


@dataclass(frozen=True)
class RegionSpan:
    """Half-open [start, end) slice covering both sentinels."""

    start: int
    end: int


@dataclass(frozen=True)
class MergeOutcome:
    text: str
    action: str  # created | replaced | appended | unchanged


def owner_comment(workflow_id: str, timestamp: str) -> str:
    return f"<!-- BTW:{workflow_id}:{timestamp} -->"


def generate(workflow_id: str, body: str, timestamp: str) -> str:
    """Frame ``body`` as an owned region for ``workflow_id``."""
    return "\n".join([
        BTW_START_MARKER,
        owner_comment(workflow_id, timestamp),
        "",
        body.rstrip("\n"),
        "",
        BTW_END_MARKER,
    ])


def locate(document: str) -> RegionSpan | None:
    start = document.find(BTW_START_MARKER)
    if start == -1:
        return None
    end = document.find(BTW_END_MARKER, start + len(BTW_START_MARKER))
    if end == -1 or end <= start:
        return None
    return RegionSpan(start, end + len(BTW_END_MARKER))


def has_btw_content(document: str) -> bool:
    return BTW_START_MARKER in document or BTW_END_MARKER in document


def region_owner(document: str) -> str | None:
    """Workflow id recorded inside the owned region, if there is one."""
    span = locate(document)
    if span is None:
        return None
    match = _OWNER_RE.search(document, span.start, span.end)
    return match.group("workflow_id") if match else None


def _append(document: str, region: str) -> str:
    if not document.strip():
        return region + "\n"
    if document.endswith("\n"):
        return document + SEPARATOR + region + "\n"
    # Unterminated document: the padding newline joins the separator and
    # nothing follows the region.
    return document + "\n" + SEPARATOR + region


def merge(document: str | None, region: str, mode: MergeMode = MergeMode.APPEND) -> MergeOutcome:
    """Place ``region`` into ``document``.

    Bytes outside an existing owned region are never modified. A document
    without a well-formed region gets the new region appended.
    """
    if document is None:
        return MergeOutcome(region + "\n", "created")

    span = locate(document)
    if span is None:
        if mode is not MergeMode.MERGE and has_btw_content(document):
            # Stray sentinel without a matching partner: nothing to replace.
            logger.warning("Shared document has an unterminated BTW region; appending")
        return MergeOutcome(_append(document, region), "appended")

    text = document[:span.start] + region + document[span.end:]
    return MergeOutcome(text, "unchanged" if text == document else "replaced")


def strip(document: str) -> str:
    """Remove the owned region and the separator placed before it.

    Returns the document unchanged if no well-formed region exists.
    """
    span = locate(document)
    if span is None:
        return document

    before = document[:span.start]
    after = document[span.end:]
    if not after and before.endswith("\n" + SEPARATOR):
        return before[:-len(SEPARATOR) - 1]
    if before.endswith(SEPARATOR):
        before = before[:-len(SEPARATOR)]
    if after.startswith("\n"):
        after = after[1:]
    return before + after
