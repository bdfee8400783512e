"""
Console channel — Rich terminal output for notifications.

Used when no Slack webhook is configured, so notifications stay visible
during local development and from the CLI.
"""

from __future__ import annotations

import textwrap
from typing import Iterable

from rich.console import Console
from rich.panel import Panel

from planning_agent.notifications.channel import NotificationChannel


class ConsoleChannel(NotificationChannel):
    """Rich terminal output channel."""

    name: str = "console"

    def __init__(
        self,
        console: Console | None = None,
        alert_channels: Iterable[str] = (),
    ) -> None:
        self._console = console or Console()
        self.alert_channels = set(alert_channels)

    async def send(self, message: str, channel: str | None = None) -> bool:
        title = channel or "notification"

        if channel in self.alert_channels:
            self._console.print(Panel(message, title=title, border_style="red"))
            return True

        first, _, rest = message.partition("\n")
        self._console.print(f"\n[bold blue]{title}[/bold blue] {first}")
        if rest:
            self._console.print(textwrap.indent(rest, "  "))
        return True
