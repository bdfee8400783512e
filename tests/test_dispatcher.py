"""Tests for the notification dispatcher pipeline."""

from unittest.mock import AsyncMock, patch

import pytest

from planning_agent.notifications.config import NotificationConfig
from planning_agent.notifications.dispatcher import NotificationDispatcher
from planning_agent.notifications.events import (
    AgentUpdate,
    BudgetAlert,
    SyncResult,
    SystemHealth,
    WorkflowEvent,
)
from planning_agent.notifications.throttle import ThrottleGate

from conftest import RecordingChannel


def _health(severity: str = "high", component: str = "linear-oauth") -> SystemHealth:
    return SystemHealth(
        component=component,
        status="warning" if severity != "critical" else "critical",
        severity=severity,
        message=f"{component} needs attention",
    )


def _budget() -> BudgetAlert:
    return BudgetAlert(
        resource_type="api-usage",
        current_usage=90,
        limit=100,
        usage_percentage=90,
        timeframe="Resets at 12:00:00",
    )


def _sync() -> SyncResult:
    return SyncResult(sync_type="bidirectional", linear_updates=1, next_sync_minutes=15)


def _workflow() -> WorkflowEvent:
    return WorkflowEvent(event_type="build", title="Nightly", description="Build ran", status="success")


def _agent() -> AgentUpdate:
    return AgentUpdate(
        agent_id="agent-1",
        agent_type="remote",
        status="completed",
        task_title="Split epic",
        message="Done",
    )


@pytest.fixture
def dispatcher(sink, clock):
    return NotificationDispatcher(sink, throttle=ThrottleGate(clock=clock))


class TestPlanningEndToEnd:
    @pytest.mark.asyncio
    async def test_planning_statistics_delivered(self, dispatcher, sink, planning_stats):
        assert await dispatcher.send_planning_statistics(planning_stats) is True

        assert sink.channels == ["#planning-ops"]
        message = sink.messages[0]
        for fragment in ("Q1 Planning", "1 Epic", "3 Features", "8 Stories"):
            assert fragment in message
        assert "Enabler" not in message

    @pytest.mark.asyncio
    async def test_sink_failure_returns_false(self, planning_stats):
        dispatcher = NotificationDispatcher(RecordingChannel(result=False))
        assert await dispatcher.send_planning_statistics(planning_stats) is False


class TestCategoryDisablement:
    @pytest.mark.asyncio
    async def test_disabled_category_skips_formatter_and_sink(self, planning_stats):
        sink = AsyncMock()
        config = NotificationConfig().merged({"enabled": {"planning": False}})
        dispatcher = NotificationDispatcher(sink, config)

        with patch("planning_agent.notifications.dispatcher.format_message") as formatter:
            assert await dispatcher.send_planning_statistics(planning_stats) is False

        formatter.assert_not_called()
        sink.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_category_does_not_consume_throttle(self, sink, clock):
        throttle = ThrottleGate(clock=clock)
        config = NotificationConfig().merged({"enabled": {"sync": False}})
        dispatcher = NotificationDispatcher(sink, config, throttle=throttle)

        await dispatcher.send_sync_status_update(_sync())
        assert len(throttle) == 0


class TestThrottling:
    @pytest.mark.asyncio
    async def test_repeated_key_throttled(self, dispatcher, sink, planning_stats):
        results = [await dispatcher.send_planning_statistics(planning_stats) for _ in range(6)]

        assert results == [True] * 5 + [False]
        assert len(sink.sent) == 5

    @pytest.mark.asyncio
    async def test_window_resets(self, dispatcher, sink, clock, planning_stats):
        for _ in range(6):
            await dispatcher.send_planning_statistics(planning_stats)
        clock.advance(60)

        assert await dispatcher.send_planning_statistics(planning_stats) is True

    @pytest.mark.asyncio
    async def test_distinct_keys_are_independent(self, dispatcher, planning_stats):
        for _ in range(5):
            await dispatcher.send_planning_statistics(planning_stats)
        other = planning_stats.model_copy(update={"planning_title": "Q2 Planning"})

        assert await dispatcher.send_planning_statistics(other) is True

    @pytest.mark.asyncio
    async def test_clear_throttle_cache(self, dispatcher, planning_stats):
        for _ in range(6):
            await dispatcher.send_planning_statistics(planning_stats)
        dispatcher.clear_throttle_cache()

        assert await dispatcher.send_planning_statistics(planning_stats) is True


class TestCriticalBypass:
    @pytest.mark.asyncio
    async def test_critical_health_alert_bypasses_exhausted_window(self, dispatcher, sink):
        for _ in range(5):
            assert await dispatcher.send_system_health_alert(_health("high")) is True
        assert await dispatcher.send_system_health_alert(_health("high")) is False

        assert await dispatcher.send_system_health_alert(_health("critical")) is True
        assert await dispatcher.send_system_health_alert(_health("critical")) is True
        assert sink.channels[-1] == "#system-alerts"

    @pytest.mark.asyncio
    async def test_bypass_can_be_switched_off(self, sink, clock):
        config = NotificationConfig().merged({"throttling": {"critical_bypass_throttle": False}})
        dispatcher = NotificationDispatcher(sink, config, throttle=ThrottleGate(clock=clock))

        results = [await dispatcher.send_system_health_alert(_health("critical")) for _ in range(6)]
        assert results[-1] is False

    @pytest.mark.asyncio
    async def test_budget_alerts_never_bypass(self, dispatcher):
        results = [await dispatcher.send_budget_alert(_budget()) for _ in range(6)]
        assert results == [True] * 5 + [False]


class TestRouting:
    @pytest.mark.asyncio
    async def test_budget_alert_routes_to_health_channel(self, sink):
        config = NotificationConfig().merged({"channels": {"budget": "#budget"}})
        dispatcher = NotificationDispatcher(sink, config)

        assert await dispatcher.send_budget_alert(_budget()) is True
        assert sink.channels == ["#system-alerts"]

    @pytest.mark.asyncio
    async def test_each_category_reaches_its_channel(self, dispatcher, sink):
        await dispatcher.send_sync_status_update(_sync())
        await dispatcher.send_workflow_notification(_workflow())
        await dispatcher.send_remote_agent_update(_agent())
        await dispatcher.send_error_notification("Linear API unreachable", "sync-manager")

        assert sink.channels == ["#sync-status", "#dev-workflow", "#agent-updates", "#critical-alerts"]
        assert "Linear API unreachable" in sink.messages[-1]
        assert "sync-manager" in sink.messages[-1]


class TestNeverRaises:
    @pytest.mark.asyncio
    async def test_every_send_method_swallows_sink_errors(self, planning_stats):
        dispatcher = NotificationDispatcher(RecordingChannel(error=RuntimeError("slack down")))

        assert await dispatcher.send_planning_statistics(planning_stats) is False
        assert await dispatcher.send_sync_status_update(_sync()) is False
        assert await dispatcher.send_system_health_alert(_health("critical")) is False
        assert await dispatcher.send_budget_alert(_budget()) is False
        assert await dispatcher.send_workflow_notification(_workflow()) is False
        assert await dispatcher.send_remote_agent_update(_agent()) is False
        assert await dispatcher.send_error_notification("boom", "test") is False

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_false(self, dispatcher, sink):
        assert await dispatcher.send_planning_statistics(object()) is False
        assert sink.sent == []


class TestConfigUpdates:
    def test_partial_update_keeps_other_keys(self, dispatcher):
        dispatcher.update_config({"thresholds": {"api_usage_warning_percentage": 70}})
        dispatcher.update_config({"channels": {"planning": "#pi-planning"}})

        config = dispatcher.get_config()
        assert config.thresholds.api_usage_warning_percentage == 70
        assert config.thresholds.memory_usage_warning_percentage == 85
        assert config.channels.planning == "#pi-planning"
        assert config.channels.health == "#system-alerts"

    def test_update_reconfigures_throttle(self, dispatcher):
        dispatcher.update_config({"throttling": {"interval_seconds": 10, "max_notifications_per_interval": 2}})

        assert dispatcher.throttle.window_seconds == 10
        assert dispatcher.throttle.max_per_window == 2

    def test_get_config_returns_copy(self, dispatcher):
        dispatcher.get_config().channels.planning = "#mutated"
        assert dispatcher.get_config().channels.planning == "#planning-ops"

    def test_caller_config_is_not_shared(self, sink):
        config = NotificationConfig()
        dispatcher = NotificationDispatcher(sink, config)
        config.channels.planning = "#mutated"

        assert dispatcher.get_config().channels.planning == "#planning-ops"

    @pytest.mark.asyncio
    async def test_update_routes_to_new_channel(self, dispatcher, sink, planning_stats):
        dispatcher.update_config({"channels": {"planning": "#pi-planning"}})
        await dispatcher.send_planning_statistics(planning_stats)

        assert sink.channels == ["#pi-planning"]
