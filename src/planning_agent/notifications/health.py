"""
OperationalHealthMonitor — periodic checks that feed health and budget alerts.

Tracks OAuth token expiry and API usage per service, samples host memory
and disk through psutil, and reports anything past its threshold through
the shared NotificationDispatcher. Runs as an asyncio background task
started and stopped by the coordinator.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

import psutil
from pydantic import BaseModel, Field

from planning_agent.notifications.config import ThresholdConfig
from planning_agent.notifications.dispatcher import NotificationDispatcher
from planning_agent.notifications.events import (
    BudgetAlert,
    HealthSeverity,
    HealthStatus,
    ResourceType,
    SystemHealth,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
API_CRITICAL_PERCENTAGE = 90.0
MEMORY_CRITICAL_PERCENTAGE = 95.0


class OverallHealth(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class TokenInfo(BaseModel):
    service: str
    expires_at: float  # epoch seconds
    refresh_token: Optional[str] = None


class APIUsageInfo(BaseModel):
    service: str
    usage: float
    limit: float
    reset_time: float  # epoch seconds
    last_updated: float

    @property
    def usage_percentage(self) -> float:
        if self.limit <= 0:
            return 100.0 if self.usage > 0 else 0.0
        return self.usage / self.limit * 100


class HealthStatusReport(BaseModel):
    overall: OverallHealth = OverallHealth.HEALTHY
    components: list[str] = Field(default_factory=list)
    last_updated: float


def _epoch(value: float | datetime) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


def _format_epoch(seconds: float, fmt: str | None = None) -> str:
    """Render epoch seconds for logs and alert text; out-of-range values stay raw."""
    try:
        moment = datetime.fromtimestamp(seconds)
    except (ValueError, OverflowError, OSError):
        return f"{seconds:g} (epoch)"
    return moment.strftime(fmt) if fmt else moment.isoformat()


def _memory_percent() -> float:
    return float(psutil.virtual_memory().percent)


def _disk_percent() -> float:
    return float(psutil.disk_usage("/").percent)


class OperationalHealthMonitor:
    """Checks token expiry, API budgets and host resources on an interval."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        interval: float = 300,
        thresholds: ThresholdConfig | None = None,
        notifications_enabled: bool = True,
        clock: Callable[[], float] = time.time,
        memory_probe: Callable[[], float] | None = None,
        disk_probe: Callable[[], float] | None = None,
        on_tick: Callable[[], Any] | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.interval = interval
        self.thresholds = thresholds or ThresholdConfig()
        self.notifications_enabled = notifications_enabled
        self._clock = clock
        self._memory_probe = memory_probe or _memory_percent
        self._disk_probe = disk_probe or _disk_percent
        self._on_tick = on_tick
        self._tokens: dict[str, TokenInfo] = {}
        self._api_usage: dict[str, APIUsageInfo] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Run one check immediately, then keep checking in the background."""
        if self.running:
            return
        logger.info(
            "Starting operational health monitoring (interval=%ss, notifications=%s)",
            self.interval, self.notifications_enabled,
        )
        await self.run_checks()
        if self.interval > 0:
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Operational health monitoring stopped")
        self._task = None

    async def _loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                await self.run_checks()
        except asyncio.CancelledError:
            return

    # ------------------------------------------------------------------
    # Inputs from collaborators
    # ------------------------------------------------------------------

    def register_oauth_token(
        self,
        service: str,
        expires_at: float | datetime,
        refresh_token: str | None = None,
    ) -> None:
        info = TokenInfo(service=service, expires_at=_epoch(expires_at), refresh_token=refresh_token)
        self._tokens[service] = info
        logger.info(
            "Registered OAuth token for monitoring: %s (expires %s)",
            service, _format_epoch(info.expires_at),
        )

    def record_api_usage(
        self,
        service: str,
        usage: float,
        limit: float,
        reset_time: float | datetime,
    ) -> BudgetAlert | None:
        """Store usage; return the budget alert to raise, if over threshold."""
        info = APIUsageInfo(
            service=service,
            usage=usage,
            limit=limit,
            reset_time=_epoch(reset_time),
            last_updated=self._clock(),
        )
        self._api_usage[service] = info

        percent = info.usage_percentage
        if percent <= self.thresholds.api_usage_warning_percentage:
            return None

        reset_at = _format_epoch(info.reset_time, "%H:%M:%S")
        return BudgetAlert(
            resource_type=ResourceType.API_USAGE,
            current_usage=usage,
            limit=limit,
            usage_percentage=percent,
            timeframe=f"Resets at {reset_at}",
            action_required=(
                "Reduce API usage immediately"
                if percent > API_CRITICAL_PERCENTAGE
                else "Monitor API usage closely"
            ),
        )

    async def update_api_usage(
        self,
        service: str,
        usage: float,
        limit: float,
        reset_time: float | datetime,
    ) -> bool:
        """Record usage and send a budget alert when over threshold."""
        alert = self.record_api_usage(service, usage, limit, reset_time)
        if alert is None or not self.notifications_enabled:
            return False
        return await self.dispatcher.send_budget_alert(alert)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_health_status(self) -> HealthStatusReport:
        now = self._clock()
        overall = OverallHealth.HEALTHY
        components: list[str] = []

        def escalate(level: OverallHealth) -> None:
            nonlocal overall
            if overall is not OverallHealth.CRITICAL:
                overall = level

        for service, token in self._tokens.items():
            days_left = (token.expires_at - now) / SECONDS_PER_DAY
            if days_left <= 0:
                escalate(OverallHealth.CRITICAL)
                components.append(f"{service}-oauth-expired")
            elif days_left <= self.thresholds.token_expiration_warning_days:
                escalate(OverallHealth.WARNING)
                components.append(f"{service}-oauth-expiring")

        for service, api in self._api_usage.items():
            percent = api.usage_percentage
            if percent > API_CRITICAL_PERCENTAGE:
                escalate(OverallHealth.CRITICAL)
                components.append(f"{service}-api-critical")
            elif percent > self.thresholds.api_usage_warning_percentage:
                escalate(OverallHealth.WARNING)
                components.append(f"{service}-api-warning")

        return HealthStatusReport(overall=overall, components=components, last_updated=now)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def run_checks(self) -> None:
        """Run every check once. Failures are reported, never raised."""
        if self._on_tick is not None:
            try:
                self._on_tick()
            except Exception:
                logger.exception("Health monitor tick hook failed")

        try:
            logger.debug("Performing operational health checks")
            await self._check_oauth_tokens()
            await self._check_system_resources()
            logger.debug("Operational health checks completed")
        except Exception as exc:
            logger.exception("Error performing operational health checks")
            await self._alert(SystemHealth(
                component="health-monitor",
                status=HealthStatus.ERROR,
                severity=HealthSeverity.HIGH,
                message="Health monitoring system error",
                action_required="Check health monitor logs and configuration",
                details={"error": str(exc)},
            ))

    async def _check_oauth_tokens(self) -> None:
        now = self._clock()
        for service, token in list(self._tokens.items()):
            days_left = (token.expires_at - now) / SECONDS_PER_DAY
            details: dict[str, Any] = {
                "service": service,
                "expires_at": token.expires_at,
                "has_refresh_token": bool(token.refresh_token),
            }
            if days_left <= 0:
                await self._alert(SystemHealth(
                    component=f"{service}-oauth",
                    status=HealthStatus.CRITICAL,
                    severity=HealthSeverity.CRITICAL,
                    message=f"{service} OAuth token has expired",
                    action_required="Immediate token renewal required",
                    details=details,
                ))
            elif days_left <= self.thresholds.token_expiration_warning_days:
                details["days_until_expiry"] = round(days_left)
                await self._alert(SystemHealth(
                    component=f"{service}-oauth",
                    status=HealthStatus.WARNING,
                    severity=HealthSeverity.MEDIUM,
                    message=f"{service} OAuth token expires in {round(days_left)} days",
                    action_required="Token renewal recommended",
                    details=details,
                ))

    async def _check_system_resources(self) -> None:
        memory = self._memory_probe()
        if memory > self.thresholds.memory_usage_warning_percentage:
            critical = memory > MEMORY_CRITICAL_PERCENTAGE
            await self._alert(SystemHealth(
                component="system-memory",
                status=HealthStatus.CRITICAL if critical else HealthStatus.WARNING,
                severity=HealthSeverity.CRITICAL if critical else HealthSeverity.HIGH,
                message=f"High memory usage: {round(memory)}%",
                action_required="Immediate attention required" if critical else "Monitor memory usage",
                details={"memory_percent": round(memory)},
            ))

        disk = self._disk_probe()
        if disk > self.thresholds.disk_usage_warning_percentage:
            await self._alert(SystemHealth(
                component="system-disk",
                status=HealthStatus.WARNING,
                severity=HealthSeverity.HIGH,
                message=f"High disk usage: {round(disk)}%",
                action_required="Free disk space",
                details={"disk_percent": round(disk)},
            ))

    async def _alert(self, health: SystemHealth) -> None:
        if not self.notifications_enabled:
            return
        await self.dispatcher.send_system_health_alert(health)
