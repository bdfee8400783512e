"""
ChannelRouter — maps a notification category to its destination channel.

Budget alerts always go to the health channel; there is no separate budget
destination. A category with no mapping resolves to ``None``, which the
sink interprets as "post to the webhook's default channel".
"""

from __future__ import annotations

import logging

from planning_agent.notifications.config import NotificationConfig
from planning_agent.notifications.events import NotificationCategory

logger = logging.getLogger(__name__)


class ChannelRouter:
    """Resolves categories to channel ids from a NotificationConfig."""

    def __init__(self, config: NotificationConfig) -> None:
        self.config = config

    def resolve_channel(self, category: NotificationCategory | str) -> str | None:
        try:
            category = NotificationCategory(category)
        except ValueError:
            logger.debug("No channel mapping for unknown category %r", category)
            return None

        if category is NotificationCategory.BUDGET:
            category = NotificationCategory.HEALTH

        channel = getattr(self.config.channels, category.value, None)
        return channel or None

    def is_enabled(self, category: NotificationCategory | str) -> bool:
        """Whether a category is switched on. Unknown categories are off."""
        try:
            category = NotificationCategory(category)
        except ValueError:
            return False
        return bool(getattr(self.config.enabled, category.value, False))
