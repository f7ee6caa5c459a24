from __future__ import annotations

import logging
from typing import Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, message: str, *, title: str = "", seconds: int = 3) -> None: ...


class NullNotifier:
    def notify(self, message: str, *, title: str = "", seconds: int = 3) -> None:
        return None


class ConsoleNotifier:
    """Prints transient feedback to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def notify(self, message: str, *, title: str = "", seconds: int = 3) -> None:
        prefix = f"[bold]{title}[/bold] " if title else ""
        self._console.print(f"{prefix}{message}")


def notify_quietly(notifier: Notifier | None, message: str, *, title: str = "") -> None:
    if notifier is None:
        return
    try:
        notifier.notify(message, title=title)
    except Exception:
        logger.warning("notification failed: %s", message, exc_info=True)
