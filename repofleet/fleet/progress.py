# Entrius 2025

"""Live status lines for the scan and process phases. Purely observational."""

import logging
from typing import Optional

from rich.console import Console
from rich.status import Status

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Sink for monotonically updating status text. The base class renders nothing."""

    def start(self, text: str) -> None:
        pass

    def update(self, text: str) -> None:
        pass

    def finish(self, text: str) -> None:
        pass


class NullProgressReporter(ProgressReporter):
    """Used for non-interactive runs and tests; only leaves a debug trail."""

    def finish(self, text: str) -> None:
        logger.debug(text)


class RichProgressReporter(ProgressReporter):
    """Spinner status line, replaced by a check mark line when a phase finishes."""

    def __init__(self, console: Console):
        self.console = console
        self._status: Optional[Status] = None

    def start(self, text: str) -> None:
        self._stop()
        self._status = self.console.status(text, spinner='dots')
        self._status.start()

    def update(self, text: str) -> None:
        if self._status is None:
            self.start(text)
            return
        self._status.update(text)

    def finish(self, text: str) -> None:
        self._stop()
        self.console.print(f'[green]✓[/green] {text}')
        logger.info(text)

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


def make_reporter(console: Console, interactive: Optional[bool] = None) -> ProgressReporter:
    """Pick a spinner for terminals and a silent reporter otherwise."""
    if interactive is None:
        interactive = console.is_terminal
    return RichProgressReporter(console) if interactive else NullProgressReporter()
