"""
NotificationDispatcher — the emitter-facing send API.

One coroutine per category. Each one checks that the category is enabled,
consults the throttle gate with the category's dedup key, formats the
payload, resolves the destination channel and hands the message to the
injected sink. Every method returns a bool and none of them raise: a broken
notification pipeline must not abort the planning, sync or health work that
triggered it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from planning_agent.notifications.channel import NotificationChannel
from planning_agent.notifications.config import NotificationConfig
from planning_agent.notifications.events import (
    AgentUpdate,
    BudgetAlert,
    ErrorReport,
    EventPayload,
    HealthSeverity,
    NotificationCategory,
    PlanningStatistics,
    SyncResult,
    SystemHealth,
    WorkflowEvent,
)
from planning_agent.notifications.formatter import format_message
from planning_agent.notifications.router import ChannelRouter
from planning_agent.notifications.throttle import ThrottleGate

logger = logging.getLogger(__name__)


# Dedup key per category: the "same logical event" for throttling.
_DEDUP_KEYS: dict[NotificationCategory, Callable[[Any], str]] = {
    NotificationCategory.PLANNING: lambda p: f"planning-{p.planning_title}",
    NotificationCategory.SYNC: lambda p: f"sync-{p.sync_type.value}",
    NotificationCategory.HEALTH: lambda p: f"health-{p.component}",
    NotificationCategory.BUDGET: lambda p: f"budget-{p.resource_type.value}",
    NotificationCategory.WORKFLOW: lambda p: f"workflow-{p.event_type.value}-{p.title}",
    NotificationCategory.AGENT: lambda p: f"agent-{p.agent_id}-{p.status.value}",
    NotificationCategory.ERRORS: lambda p: f"error-{p.context}",
}


class NotificationDispatcher:
    """Enablement → throttle → format → route → send, per category."""

    def __init__(
        self,
        sink: NotificationChannel,
        config: NotificationConfig | None = None,
        *,
        throttle: ThrottleGate | None = None,
    ) -> None:
        self.sink = sink
        self._config = (config or NotificationConfig()).model_copy(deep=True)
        self.router = ChannelRouter(self._config)
        self.throttle = throttle or ThrottleGate()
        self._apply_throttling()

    # ------------------------------------------------------------------
    # Category send methods
    # ------------------------------------------------------------------

    async def send_planning_statistics(self, stats: PlanningStatistics) -> bool:
        return await self._dispatch(NotificationCategory.PLANNING, stats)

    async def send_sync_status_update(self, result: SyncResult) -> bool:
        return await self._dispatch(NotificationCategory.SYNC, result)

    async def send_system_health_alert(self, health: SystemHealth) -> bool:
        """Send a health alert. Critical severity skips throttling when allowed."""
        return await self._dispatch(NotificationCategory.HEALTH, health)

    async def send_budget_alert(self, budget: BudgetAlert) -> bool:
        return await self._dispatch(NotificationCategory.BUDGET, budget)

    async def send_workflow_notification(self, event: WorkflowEvent) -> bool:
        return await self._dispatch(NotificationCategory.WORKFLOW, event)

    async def send_remote_agent_update(self, update: AgentUpdate) -> bool:
        return await self._dispatch(NotificationCategory.AGENT, update)

    async def send_error_notification(self, error_message: str, context: str) -> bool:
        """Report an operational error of the agent itself to the errors channel."""
        try:
            report = ErrorReport(error_message=error_message, context=context)
        except Exception:
            logger.exception("Could not build error report for context %r", context)
            return False
        return await self._dispatch(NotificationCategory.ERRORS, report)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, overrides: Mapping[str, Any] | NotificationConfig) -> None:
        """Merge ``overrides`` into the current config.

        Keys absent from ``overrides`` keep their values. The merged config
        is a private copy; later mutation of ``overrides`` has no effect.
        """
        if isinstance(overrides, NotificationConfig):
            overrides = overrides.model_dump(exclude_unset=True)
        self._config = self._config.merged(overrides)
        self.router.config = self._config
        self._apply_throttling()
        logger.info("Updated notification configuration: %s", sorted(overrides))

    def get_config(self) -> NotificationConfig:
        return self._config.model_copy(deep=True)

    def clear_throttle_cache(self) -> None:
        self.throttle.clear()
        logger.debug("Cleared notification throttle cache")

    def _apply_throttling(self) -> None:
        self.throttle.configure(
            self._config.throttling.interval_seconds,
            self._config.throttling.max_notifications_per_interval,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _bypasses_throttle(self, category: NotificationCategory, payload: Any) -> bool:
        # Only health alerts carry a severity that can skip the gate.
        return (
            category is NotificationCategory.HEALTH
            and payload.severity is HealthSeverity.CRITICAL
            and self._config.throttling.critical_bypass_throttle
        )

    async def _dispatch(self, category: NotificationCategory, payload: EventPayload) -> bool:
        dedup_key = "?"
        try:
            if not self.router.is_enabled(category):
                logger.debug("%s notifications disabled", category.value)
                return False

            dedup_key = _DEDUP_KEYS[category](payload)
            if self._bypasses_throttle(category, payload):
                logger.debug("Critical %s notification bypasses throttle: %s", category.value, dedup_key)
            elif self.throttle.should_throttle(category.value, dedup_key):
                logger.debug("%s notification throttled: %s", category.value, dedup_key)
                return False

            message = format_message(category, payload)
            channel = self.router.resolve_channel(category)

            logger.info(
                "Sending %s notification (%s) to %s",
                category.value, dedup_key, channel or "default channel",
            )
            return bool(await self.sink.send(message, channel))
        except Exception:
            logger.exception("Failed to dispatch %s notification (%s)", category.value, dedup_key)
            return False
