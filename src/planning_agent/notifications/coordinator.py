"""
NotificationCoordinator — the facade the rest of the planning agent talks to.

The coordinator owns one NotificationDispatcher (and with it the throttle
cache) plus the OperationalHealthMonitor, applies environment-specific
throttling, and exposes primitive-argument ``notify_*`` methods for the
planning agent, sync manager and webhook handlers.

Construct it explicitly and pass it to collaborators. ``get_coordinator`` is
a thin process-level accessor for entry points only.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from planning_agent.notifications.channel import NotificationChannel
from planning_agent.notifications.config import NotificationConfig
from planning_agent.notifications.dispatcher import NotificationDispatcher
from planning_agent.notifications.events import (
    AgentStatus,
    AgentType,
    AgentUpdate,
    PlanningStatistics,
    SyncResult,
    WorkflowEvent,
    WorkflowEventType,
    WorkflowStatus,
)
from planning_agent.notifications.health import HealthStatusReport, OperationalHealthMonitor
from planning_agent.notifications.throttle import ThrottleGate

logger = logging.getLogger(__name__)

MIN_HEALTH_CHECK_INTERVAL = 30.0  # seconds


class CoordinatorConfigError(ValueError):
    """Raised for programming-time misuse of the coordinator accessor."""


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class HealthMonitoringConfig(BaseModel):
    enabled: bool = True
    check_interval: Optional[float] = None  # seconds


class CoordinatorConfig(BaseModel):
    """Environment plus notification overrides for one process."""

    environment: Environment
    health_monitoring: HealthMonitoringConfig = Field(default_factory=HealthMonitoringConfig)
    notifications: dict[str, Any] = Field(default_factory=dict)  # partial NotificationConfig


# Throttling applied per environment before user overrides.
_ENVIRONMENT_THROTTLING: dict[Environment, dict[str, Any]] = {
    Environment.DEVELOPMENT: {"interval_seconds": 60.0, "max_notifications_per_interval": 10},
    Environment.STAGING: {"interval_seconds": 60.0, "max_notifications_per_interval": 5},
    Environment.PRODUCTION: {"interval_seconds": 30.0, "max_notifications_per_interval": 3},
}

_HEALTH_CHECK_INTERVALS: dict[Environment, float] = {
    Environment.DEVELOPMENT: 5 * 60,
    Environment.STAGING: 5 * 60,
    Environment.PRODUCTION: 2 * 60,
}


def create_default_config(environment: Environment | str) -> CoordinatorConfig:
    """Build the default coordinator config for ``environment``."""
    env = Environment(environment)
    return CoordinatorConfig(
        environment=env,
        health_monitoring=HealthMonitoringConfig(
            enabled=True,
            check_interval=_HEALTH_CHECK_INTERVALS[env],
        ),
        notifications={"throttling": dict(_ENVIRONMENT_THROTTLING[env])},
    )


def validate_config(config: CoordinatorConfig | Mapping[str, Any]) -> bool:
    """Check structural invariants. Logs and returns False instead of raising."""
    try:
        if not isinstance(config, CoordinatorConfig):
            config = CoordinatorConfig.model_validate(config)
        interval = config.health_monitoring.check_interval
        if config.health_monitoring.enabled and interval is not None:
            if interval < MIN_HEALTH_CHECK_INTERVAL:
                raise ValueError(
                    f"Health check interval too short (minimum {MIN_HEALTH_CHECK_INTERVAL:.0f} seconds)"
                )
        NotificationConfig().merged(config.notifications)
    except (ValidationError, ValueError, TypeError) as exc:
        logger.error("Invalid coordinator configuration: %s", exc)
        return False
    return True


def build_notification_config(config: CoordinatorConfig) -> NotificationConfig:
    """Environment throttling defaults with the config's overrides on top."""
    base = NotificationConfig().merged({"throttling": _ENVIRONMENT_THROTTLING[config.environment]})
    return base.merged(config.notifications)


class NotificationCoordinator:
    """Owns the dispatcher and health monitor for one process."""

    def __init__(
        self,
        config: CoordinatorConfig,
        sink: NotificationChannel,
        *,
        throttle: ThrottleGate | None = None,
    ) -> None:
        self.config = config.model_copy(deep=True)
        self.dispatcher = NotificationDispatcher(
            sink,
            build_notification_config(self.config),
            throttle=throttle,
        )
        notification_config = self.dispatcher.get_config()
        self.health_monitor = OperationalHealthMonitor(
            self.dispatcher,
            interval=self.config.health_monitoring.check_interval or _HEALTH_CHECK_INTERVALS[self.config.environment],
            thresholds=notification_config.thresholds,
            on_tick=self.dispatcher.throttle.evict_stale,
        )
        self.initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self.initialized:
            logger.warning("Notification coordinator already initialized")
            return

        logger.info(
            "Initializing notification coordinator (environment=%s, health monitoring=%s)",
            self.config.environment.value, self.config.health_monitoring.enabled,
        )
        await self.dispatcher.sink.connect()
        if self.config.health_monitoring.enabled:
            await self.health_monitor.start()
        self.initialized = True
        logger.info("Notification coordinator initialized")

    async def shutdown(self) -> None:
        if not self.initialized:
            return

        logger.info("Shutting down notification coordinator")
        try:
            await self.health_monitor.stop()
            await self.dispatcher.sink.disconnect()
        except Exception:
            logger.exception("Error shutting down notification coordinator")
        self.initialized = False
        logger.info("Notification coordinator shut down")

    async def __aenter__(self) -> "NotificationCoordinator":
        await self.initialize()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Facade
    # ------------------------------------------------------------------

    async def notify_planning_completion(
        self,
        title: str,
        epic_count: int,
        feature_count: int,
        story_count: int,
        enabler_count: int,
        duration_minutes: float,
        source_document: str,
        source_url: str | None = None,
    ) -> bool:
        try:
            stats = PlanningStatistics(
                planning_title=title,
                epic_count=epic_count,
                feature_count=feature_count,
                story_count=story_count,
                enabler_count=enabler_count,
                duration_minutes=duration_minutes,
                source_document=source_document,
                source_url=source_url,
            )
        except ValidationError:
            logger.exception("Invalid planning completion notification for %r", title)
            return False
        return await self.dispatcher.send_planning_statistics(stats)

    async def notify_sync_status(self, sync_result: Mapping[str, Any]) -> bool:
        """Send a sync summary.

        ``sync_result`` carries sync_type, linear_updates, confluence_updates,
        conflicts_detected, conflicts_resolved, conflicts_pending,
        next_sync_minutes and optionally errors.
        """
        try:
            result = SyncResult.model_validate(dict(sync_result))
        except ValidationError:
            logger.exception("Invalid sync status notification")
            return False
        return await self.dispatcher.send_sync_status_update(result)

    async def notify_workflow_update(
        self,
        event_type: WorkflowEventType | str,
        title: str,
        description: str,
        status: WorkflowStatus | str,
        url: str | None = None,
        assignee: str | None = None,
    ) -> bool:
        try:
            event = WorkflowEvent(
                event_type=event_type,
                title=title,
                description=description,
                status=status,
                url=url,
                assignee=assignee,
            )
        except ValidationError:
            logger.exception("Invalid workflow notification for %r", title)
            return False
        return await self.dispatcher.send_workflow_notification(event)

    async def notify_agent_update(
        self,
        agent_id: str,
        agent_type: AgentType | str,
        status: AgentStatus | str,
        task_title: str,
        message: str,
        task_url: str | None = None,
        assignee: str | None = None,
    ) -> bool:
        try:
            update = AgentUpdate(
                agent_id=agent_id,
                agent_type=agent_type,
                status=status,
                task_title=task_title,
                message=message,
                task_url=task_url,
                assignee=assignee,
            )
        except ValidationError:
            logger.exception("Invalid agent update notification for %r", agent_id)
            return False
        return await self.dispatcher.send_remote_agent_update(update)

    async def notify_error(self, error_message: str, context: str) -> bool:
        return await self.dispatcher.send_error_notification(error_message, context)

    # ------------------------------------------------------------------
    # Health monitoring inputs
    # ------------------------------------------------------------------

    def register_oauth_token(self, service: str, expires_at: float, refresh_token: str | None = None) -> bool:
        try:
            self.health_monitor.register_oauth_token(service, expires_at, refresh_token)
        except Exception:
            logger.exception("Failed to register OAuth token for %s", service)
            return False
        return True

    async def update_api_usage(self, service: str, usage: float, limit: float, reset_time: float) -> bool:
        try:
            return await self.health_monitor.update_api_usage(service, usage, limit, reset_time)
        except Exception:
            logger.exception("Failed to record API usage for %s", service)
            return False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_health_status(self) -> HealthStatusReport:
        return self.health_monitor.get_health_status()

    def get_coordinator_stats(self) -> dict[str, Any]:
        return {
            "environment": self.config.environment.value,
            "health_monitoring_enabled": self.config.health_monitoring.enabled,
            "initialized": self.initialized,
            "health_status": self.get_health_status() if self.initialized else None,
            "throttle_entries": len(self.dispatcher.throttle),
            "notification_config": self.dispatcher.get_config(),
        }

    def update_notification_config(self, overrides: Mapping[str, Any]) -> None:
        self.dispatcher.update_config(overrides)
        self.health_monitor.thresholds = self.dispatcher.get_config().thresholds


# ---------------------------------------------------------------------------
# Process-level accessor (entry points only)
# ---------------------------------------------------------------------------

_instance: NotificationCoordinator | None = None


def get_coordinator(
    config: CoordinatorConfig | None = None,
    sink: NotificationChannel | None = None,
) -> NotificationCoordinator:
    """Return the process coordinator, creating it on first use.

    The first call must supply ``config``. Later calls return the existing
    instance; a different ``config`` is ignored with a warning.
    """
    global _instance
    if _instance is None:
        if config is None:
            raise CoordinatorConfigError("get_coordinator() needs a config on first use")
        if sink is None:
            from planning_agent.notifications.channels.slack import SlackChannel

            sink = SlackChannel()
        _instance = NotificationCoordinator(config, sink)
    elif config is not None and config != _instance.config:
        logger.warning(
            "Notification coordinator already configured for %s; ignoring new config",
            _instance.config.environment.value,
        )
    return _instance


async def reset_coordinator() -> None:
    """Shut down and forget the process coordinator."""
    global _instance
    if _instance is not None:
        await _instance.shutdown()
    _instance = None
