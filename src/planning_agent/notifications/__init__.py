"""
Notification layer for the planning agent.

Turns internal events (planning completion, sync status, health and budget
alerts, workflow events, agent updates) into throttled, category-routed
Slack messages without ever failing the caller.
"""

from planning_agent.notifications.channel import NotificationChannel
from planning_agent.notifications.config import (
    ChannelMap,
    EnabledConfig,
    NotificationConfig,
    ThresholdConfig,
    ThrottlingConfig,
)
from planning_agent.notifications.coordinator import (
    CoordinatorConfig,
    CoordinatorConfigError,
    Environment,
    NotificationCoordinator,
    create_default_config,
    get_coordinator,
    reset_coordinator,
    validate_config,
)
from planning_agent.notifications.dispatcher import NotificationDispatcher
from planning_agent.notifications.events import (
    AgentUpdate,
    BudgetAlert,
    ErrorReport,
    NotificationCategory,
    PlanningStatistics,
    SyncResult,
    SystemHealth,
    WorkflowEvent,
)
from planning_agent.notifications.formatter import format_message
from planning_agent.notifications.health import OperationalHealthMonitor
from planning_agent.notifications.router import ChannelRouter
from planning_agent.notifications.throttle import ThrottleGate

__all__ = [
    "AgentUpdate",
    "BudgetAlert",
    "ChannelMap",
    "ChannelRouter",
    "CoordinatorConfig",
    "CoordinatorConfigError",
    "EnabledConfig",
    "ErrorReport",
    "Environment",
    "NotificationCategory",
    "NotificationChannel",
    "NotificationConfig",
    "NotificationCoordinator",
    "NotificationDispatcher",
    "OperationalHealthMonitor",
    "PlanningStatistics",
    "SyncResult",
    "SystemHealth",
    "ThresholdConfig",
    "ThrottleGate",
    "ThrottlingConfig",
    "WorkflowEvent",
    "create_default_config",
    "format_message",
    "get_coordinator",
    "reset_coordinator",
    "validate_config",
]
