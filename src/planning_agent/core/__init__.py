"""
Core configuration for the planning agent.

Provides:
- Path constants (AGENT_HOME, AGENT_CONFIG_FILE)
- Configuration models (AgentConfig, SlackConfig)
- Config loading/saving with environment variable overrides
- create_coordinator: entry-point factory for the notification coordinator
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from planning_agent.notifications.coordinator import (
    CoordinatorConfig,
    Environment,
    HealthMonitoringConfig,
    NotificationCoordinator,
    create_default_config,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

AGENT_HOME: Path = Path.home() / ".planning-agent"
AGENT_CONFIG_FILE: Path = AGENT_HOME / "config.yaml"

WEBHOOK_ENV_VAR = "SLACK_WEBHOOK_URL"
ENVIRONMENT_ENV_VAR = "PLANNING_AGENT_ENV"


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class SlackConfig(BaseModel):
    """Outbound Slack webhook settings."""

    webhook_url: str = ""
    timeout: float = 10.0


class AgentConfig(BaseModel):
    """Main configuration for the planning agent."""

    environment: Environment = Environment.DEVELOPMENT
    slack: SlackConfig = Field(default_factory=SlackConfig)
    health_monitoring: HealthMonitoringConfig | None = None
    notifications: dict[str, Any] = Field(default_factory=dict)  # partial NotificationConfig

    def coordinator_config(self) -> CoordinatorConfig:
        """Environment defaults with this config's overrides applied."""
        base = create_default_config(self.environment)
        if self.health_monitoring is not None:
            base.health_monitoring = self.health_monitoring.model_copy()
        merged = dict(base.notifications)
        for key, value in self.notifications.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        base.notifications = merged
        return base


# ---------------------------------------------------------------------------
# Config loading/saving
# ---------------------------------------------------------------------------


def load_config(apply_env: bool = True) -> AgentConfig:
    """Load configuration from YAML, apply env overrides, or return defaults.

    Pass ``apply_env=False`` to get exactly what the file holds, e.g. before
    editing and saving it back.
    """
    config = AgentConfig()
    if AGENT_CONFIG_FILE.exists():
        try:
            data = yaml.safe_load(AGENT_CONFIG_FILE.read_text()) or {}
            config = AgentConfig(**data)
        except Exception:
            logger.warning("Ignoring unreadable config file %s", AGENT_CONFIG_FILE, exc_info=True)

    if not apply_env:
        return config

    webhook = os.environ.get(WEBHOOK_ENV_VAR)
    if webhook:
        config.slack.webhook_url = webhook
    environment = os.environ.get(ENVIRONMENT_ENV_VAR)
    if environment:
        try:
            config.environment = Environment(environment)
        except ValueError:
            logger.warning("Unknown %s=%r, keeping %s", ENVIRONMENT_ENV_VAR, environment, config.environment.value)
    return config


def save_config(config: AgentConfig) -> None:
    """Save configuration to YAML file."""
    AGENT_HOME.mkdir(parents=True, exist_ok=True)
    AGENT_CONFIG_FILE.write_text(
        yaml.dump(config.model_dump(mode="json", exclude_none=True), default_flow_style=False)
    )


def create_coordinator(config: AgentConfig | None = None) -> NotificationCoordinator:
    """Wire a coordinator for this process: Slack if a webhook is set, console otherwise."""
    from planning_agent.notifications.channels.console import ConsoleChannel
    from planning_agent.notifications.channels.slack import SlackChannel

    config = config or load_config()
    coordinator_config = config.coordinator_config()

    if config.slack.webhook_url:
        sink = SlackChannel(config.slack.webhook_url, timeout=config.slack.timeout)
    else:
        logger.info("No Slack webhook configured; notifications go to the console")
        channels = coordinator_config.notifications.get("channels", {})
        sink = ConsoleChannel(alert_channels=[
            channels.get("errors", "#critical-alerts"),
            channels.get("health", "#system-alerts"),
        ])
    return NotificationCoordinator(coordinator_config, sink)


__all__ = [
    "AGENT_HOME",
    "AGENT_CONFIG_FILE",
    "AgentConfig",
    "SlackConfig",
    "load_config",
    "save_config",
    "create_coordinator",
]
