"""
NotificationChannel — abstract base class for outbound message sinks.

A channel only knows how to deliver an already-formatted message to a
destination. Formatting, throttling and routing live in the dispatcher,
which is handed a channel instance at construction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class NotificationChannel(ABC):
    """Base class for notification sinks."""

    name: str = "unnamed"

    @abstractmethod
    async def send(self, message: str, channel: str | None = None) -> bool:
        """Deliver ``message``, optionally to ``channel``.

        Returns True on success. Implementations must not raise for
        transport failures.
        """
        ...

    async def connect(self) -> None:
        """Open long-lived resources (HTTP client). No-op by default."""

    async def disconnect(self) -> None:
        """Release resources. No-op by default."""
