"""
Configuration models for the notification layer.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, Field


class ChannelMap(BaseModel):
    """Destination channel per category. Budget alerts use ``health``."""

    planning: str = "#planning-ops"
    health: str = "#system-alerts"
    sync: str = "#sync-status"
    workflow: str = "#dev-workflow"
    agent: str = "#agent-updates"
    errors: str = "#critical-alerts"


class ThresholdConfig(BaseModel):
    """Warning thresholds consumed by the health monitor."""

    token_expiration_warning_days: float = 7
    api_usage_warning_percentage: float = 80
    memory_usage_warning_percentage: float = 85
    disk_usage_warning_percentage: float = 90


class EnabledConfig(BaseModel):
    """On/off switch per category."""

    planning: bool = True
    sync: bool = True
    health: bool = True
    budget: bool = True
    workflow: bool = True
    agent: bool = True
    errors: bool = True


class ThrottlingConfig(BaseModel):
    interval_seconds: float = 60.0
    max_notifications_per_interval: int = 5
    critical_bypass_throttle: bool = True


class NotificationConfig(BaseModel):
    """Top-level notification configuration."""

    channels: ChannelMap = Field(default_factory=ChannelMap)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    enabled: EnabledConfig = Field(default_factory=EnabledConfig)
    throttling: ThrottlingConfig = Field(default_factory=ThrottlingConfig)

    def merged(self, overrides: Mapping[str, Any] | None) -> "NotificationConfig":
        """Return a new config with ``overrides`` deep-merged over this one.

        Only the keys present in ``overrides`` change; the receiver is left
        untouched and the result shares no mutable state with it.
        """
        data = self.model_dump()
        _deep_merge(data, dict(overrides or {}))
        return NotificationConfig.model_validate(data)


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, BaseModel):
            value = value.model_dump(exclude_unset=True)
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
