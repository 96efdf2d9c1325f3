"""Interactive inject/eject toggle loop.

States:
    LISTING -> BUSY -> LISTING            toggle succeeded
    LISTING -> BUSY -> ERROR -> LISTING   toggle failed (error shown briefly)
    LISTING -> EXITED                     quit

The item list is reloaded from disk after every toggle; nothing about
injection state is remembered between iterations.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from btw_engine.errors import BTWError
from btw_engine.injection.engine import InjectionEngine
from btw_engine.injection.strategy import EjectOptions, InjectOptions
from btw_engine.manifest import Manifest
from btw_engine.types import Target
from btw_engine.workflows import WorkflowCatalog

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    LISTING = "listing"
    BUSY = "busy"
    ERROR = "error"
    EXITED = "exited"


class Command(str, Enum):
    UP = "up"
    DOWN = "down"
    TOGGLE = "toggle"
    QUIT = "quit"


@dataclass(frozen=True)
class ListItem:
    id: str
    label: str
    description: str = ""
    is_active: bool = False


def workflow_items(
    catalog: WorkflowCatalog,
    engine: InjectionEngine,
    target: Target | str,
    project_root: Path | str,
) -> list[ListItem]:
    """Installed workflows that declare ``target``, with live injection state."""
    status = engine.get_status(target, project_root)
    items = []
    for manifest in catalog.list_manifests():
        if not manifest.supports(target):
            continue
        items.append(ListItem(
            id=manifest.id,
            label=manifest.name,
            description=manifest.description,
            is_active=status.is_injected and manifest.id in status.workflow_ids,
        ))
    return items


class TerminalIO:
    """Line-based rendering and command input."""

    KEYS = {
        "k": Command.UP, "up": Command.UP,
        "j": Command.DOWN, "down": Command.DOWN,
        "": Command.TOGGLE, "t": Command.TOGGLE,
        "q": Command.QUIT, "quit": Command.QUIT,
    }

    def __init__(
        self,
        title: str = "BTW Workflows",
        active_label: str = "injected",
        inactive_label: str = "available",
        empty_message: str = "No workflows found.",
        input_fn: Callable[[str], str] | None = None,
        print_fn: Callable[..., None] | None = None,
    ) -> None:
        self.title = title
        self.active_label = active_label
        self.inactive_label = inactive_label
        self.empty_message = empty_message
        self._input = input_fn or input
        self._print = print_fn or print

    def render(self, items: list[ListItem], selected: int) -> None:
        self._print(f"\n  {self.title}\n")
        if not items:
            self._print(f"  {self.empty_message}")
        for i, item in enumerate(items):
            cursor = ">" if i == selected else " "
            status = self.active_label if item.is_active else self.inactive_label
            desc = f" - {item.description}" if item.description else ""
            self._print(f"  {cursor} [{status}] {item.label}{desc}")
        self._print("\n  [k/j] Move  [Enter] Toggle inject/remove  [q] Quit")

    def read_command(self) -> Command:
        while True:
            try:
                raw = self._input("> ")
            except EOFError:
                return Command.QUIT
            command = self.KEYS.get(raw.strip().lower())
            if command is not None:
                return command

    def show_error(self, message: str) -> None:
        self._print(f"\n  Error: {message}\n")


class ToggleLoop:
    """Drives one interactive session for a single target and project."""

    def __init__(
        self,
        engine: InjectionEngine,
        target: Target | str,
        project_root: Path | str,
        load_items: Callable[[], list[ListItem]],
        load_manifest: Callable[[str], Manifest],
        io: TerminalIO,
        backup: bool = True,
        merge: bool = False,
        error_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.engine = engine
        self.target = target
        self.project_root = Path(project_root)
        self.load_items = load_items
        self.load_manifest = load_manifest
        self.io = io
        self.backup = backup
        self.merge = merge
        self.error_delay = error_delay
        self._sleep = sleep

        self.state = LoopState.LISTING
        self.items: list[ListItem] = []
        self.selected = 0

    def move(self, step: int) -> None:
        if self.items:
            self.selected = (self.selected + step) % len(self.items)

    def toggle(self, item: ListItem) -> None:
        if item.is_active:
            self.engine.eject(self.target, EjectOptions(
                project_root=self.project_root,
                workflow_id=item.id,
                clean=False,
            ))
        else:
            # The toggle itself is the request to overwrite, whatever the CLI --force says.
            self.engine.inject(self.load_manifest(item.id), self.target, InjectOptions(
                project_root=self.project_root,
                backup=self.backup,
                force=True,
                merge=self.merge,
            ))

    def refresh(self) -> None:
        self.items = self.load_items()
        if self.selected >= len(self.items):
            self.selected = max(0, len(self.items) - 1)

    def step(self, command: Command) -> None:
        """Apply one command from the LISTING state."""
        if command is Command.QUIT:
            self.state = LoopState.EXITED
            return
        if command is Command.UP:
            self.move(-1)
            return
        if command is Command.DOWN:
            self.move(1)
            return
        if not self.items:
            return

        item = self.items[self.selected]
        self.state = LoopState.BUSY
        try:
            self.toggle(item)
        except BTWError as exc:
            self.state = LoopState.ERROR
            logger.debug("Toggle of '%s' failed: %s", item.id, exc)
            self.io.show_error(exc.message)
            self._sleep(self.error_delay)
        finally:
            self.refresh()
            self.state = LoopState.LISTING

    def run(self) -> None:
        self.refresh()
        while self.state is not LoopState.EXITED:
            self.io.render(self.items, self.selected)
            self.step(self.io.read_command())
