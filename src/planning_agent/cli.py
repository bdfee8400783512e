"""
CLI — operator commands for the planning agent's notification layer.

Commands:
    planning-agent notify list        — Show channel routing, enablement, throttling
    planning-agent notify test        — Send a sample notification per category
    planning-agent notify planning    — Announce a completed planning run
    planning-agent notify error       — Report an operational error
    planning-agent health             — Show health status and coordinator stats
    planning-agent config show        — Print the effective configuration
    planning-agent config set-webhook — Store the Slack webhook URL
    planning-agent config set-env     — Store the deployment environment
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from planning_agent import __version__

console = Console()


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=False)],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Planning agent — SAFe planning with Linear, Confluence and Slack."""
    setup_logging("DEBUG" if verbose else "INFO")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@main.group()
def notify() -> None:
    """Send and inspect operational notifications."""
    pass


@notify.command(name="list")
def notify_list():
    """Show channel routing, enablement and throttling for this environment."""
    from planning_agent.core import load_config
    from planning_agent.notifications.coordinator import build_notification_config
    from planning_agent.notifications.router import ChannelRouter
    from planning_agent.notifications.events import NotificationCategory

    config = load_config()
    notification_config = build_notification_config(config.coordinator_config())
    router = ChannelRouter(notification_config)

    sink = "slack webhook" if config.slack.webhook_url else "console (no webhook)"
    console.print(f"\n[bold]Notifications[/bold] — environment: {config.environment.value}, sink: {sink}\n")

    table = Table("category", "channel", "enabled")
    for category in NotificationCategory:
        enabled = "[green]yes[/green]" if router.is_enabled(category) else "[red]no[/red]"
        table.add_row(category.value, router.resolve_channel(category) or "(default)", enabled)
    console.print(table)

    throttling = notification_config.throttling
    console.print(
        f"\n  Throttling: {throttling.max_notifications_per_interval} per "
        f"{throttling.interval_seconds:g}s per key, critical bypass: "
        f"{'on' if throttling.critical_bypass_throttle else 'off'}"
    )


_TEST_CATEGORIES = ["planning", "sync", "health", "budget", "workflow", "agent", "errors"]


@notify.command(name="test")
@click.option(
    "--category", "categories", multiple=True,
    type=click.Choice(_TEST_CATEGORIES), help="Only test these categories (repeatable)",
)
def notify_test(categories):
    """Send one sample notification for each category."""
    from planning_agent.core import create_coordinator
    from planning_agent.notifications.events import (
        BudgetAlert,
        HealthSeverity,
        HealthStatus,
        ResourceType,
        SystemHealth,
    )

    selected = list(categories) or _TEST_CATEGORIES

    async def _test() -> dict[str, bool]:
        coordinator = create_coordinator()
        dispatcher = coordinator.dispatcher
        samples = {
            "planning": lambda: coordinator.notify_planning_completion(
                "Test planning run", 1, 3, 8, 0, 1.5, "Test PI document",
            ),
            "sync": lambda: coordinator.notify_sync_status({
                "sync_type": "bidirectional",
                "linear_updates": 2,
                "confluence_updates": 1,
                "conflicts_detected": 0,
                "conflicts_resolved": 0,
                "conflicts_pending": 0,
                "next_sync_minutes": 15,
            }),
            "health": lambda: dispatcher.send_system_health_alert(SystemHealth(
                component="notification-test",
                status=HealthStatus.HEALTHY,
                severity=HealthSeverity.LOW,
                message="Test health notification",
            )),
            "budget": lambda: dispatcher.send_budget_alert(BudgetAlert(
                resource_type=ResourceType.API_USAGE,
                current_usage=85,
                limit=100,
                usage_percentage=85,
                timeframe="test window",
            )),
            "workflow": lambda: coordinator.notify_workflow_update(
                "build", "Notification test", "Checking the workflow channel", "success",
            ),
            "agent": lambda: coordinator.notify_agent_update(
                "test-agent", "cli", "completed", "Notification test", "Agent channel reachable",
            ),
            "errors": lambda: coordinator.notify_error("Test error notification", "notify-test"),
        }

        results: dict[str, bool] = {}
        await dispatcher.sink.connect()
        try:
            for category in selected:
                results[category] = await samples[category]()
        finally:
            await dispatcher.sink.disconnect()
        return results

    results = asyncio.run(_test())
    for category, ok in results.items():
        mark = "[green]>[/green]" if ok else "[red]x[/red]"
        console.print(f"  {mark} {category}")
    if not all(results.values()):
        sys.exit(1)


@notify.command(name="planning")
@click.argument("title")
@click.option("--epics", default=0, type=click.IntRange(min=0))
@click.option("--features", default=0, type=click.IntRange(min=0))
@click.option("--stories", default=0, type=click.IntRange(min=0))
@click.option("--enablers", default=0, type=click.IntRange(min=0))
@click.option("--duration", default=0.0, type=click.FloatRange(min=0), help="Duration in minutes")
@click.option("--source", required=True, help="Source document title")
@click.option("--url", default=None, help="Source document URL")
def notify_planning(title, epics, features, stories, enablers, duration, source, url):
    """Announce a completed planning run."""
    from planning_agent.core import create_coordinator

    async def _send() -> bool:
        coordinator = create_coordinator()
        await coordinator.dispatcher.sink.connect()
        try:
            return await coordinator.notify_planning_completion(
                title, epics, features, stories, enablers, duration, source, url,
            )
        finally:
            await coordinator.dispatcher.sink.disconnect()

    if asyncio.run(_send()):
        console.print(f"[green]>[/green] Planning notification sent for {title!r}")
    else:
        console.print("[red]Planning notification was not delivered (see log).[/red]")
        sys.exit(1)


@notify.command(name="error")
@click.argument("message")
@click.option("--context", default="cli", help="Where the error happened")
def notify_error(message, context):
    """Report an operational error to the critical alerts channel."""
    from planning_agent.core import create_coordinator

    async def _send() -> bool:
        coordinator = create_coordinator()
        await coordinator.dispatcher.sink.connect()
        try:
            return await coordinator.notify_error(message, context)
        finally:
            await coordinator.dispatcher.sink.disconnect()

    if not asyncio.run(_send()):
        console.print("[red]Error notification was not delivered (see log).[/red]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Run the health checks once and show the result."""
    from planning_agent.core import create_coordinator

    async def _check():
        coordinator = create_coordinator()
        await coordinator.dispatcher.sink.connect()
        try:
            await coordinator.health_monitor.run_checks()
        finally:
            await coordinator.dispatcher.sink.disconnect()
        return coordinator.get_health_status(), coordinator.get_coordinator_stats()

    status, stats = asyncio.run(_check())
    colour = {"healthy": "green", "warning": "yellow", "critical": "red"}[status.overall.value]
    console.print(f"\n[bold]Health:[/bold] [{colour}]{status.overall.value}[/{colour}]")
    for component in status.components:
        console.print(f"  - {component}")

    table = Table("setting", "value")
    table.add_row("environment", stats["environment"])
    table.add_row("health monitoring", str(stats["health_monitoring_enabled"]))
    table.add_row("throttle entries", str(stats["throttle_entries"]))
    throttling = stats["notification_config"].throttling
    table.add_row("throttle window", f"{throttling.interval_seconds:g}s")
    table.add_row("max per window", str(throttling.max_notifications_per_interval))
    console.print(table)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@main.group(name="config")
def config_group() -> None:
    """View and edit ~/.planning-agent/config.yaml."""
    pass


@config_group.command(name="show")
def config_show():
    """Print the effective configuration."""
    import yaml

    from planning_agent.core import load_config, AGENT_CONFIG_FILE

    config = load_config()
    data = config.model_dump(mode="json", exclude_none=True)
    if data["slack"]["webhook_url"]:
        data["slack"]["webhook_url"] = data["slack"]["webhook_url"][:30] + "..."
    console.print(f"[dim]{AGENT_CONFIG_FILE}[/dim]")
    console.print(yaml.dump(data, default_flow_style=False))


@config_group.command(name="set-webhook")
@click.argument("url")
def config_set_webhook(url):
    """Store the Slack incoming webhook URL."""
    from planning_agent.core import load_config, save_config

    config = load_config(apply_env=False)
    config.slack.webhook_url = url
    save_config(config)
    console.print("[green]>[/green] Webhook saved. Run [bold]planning-agent notify test[/bold] to verify.")


@config_group.command(name="set-env")
@click.argument("environment", type=click.Choice(["development", "staging", "production"]))
def config_set_env(environment):
    """Store the deployment environment (drives throttling defaults)."""
    from planning_agent.core import load_config, save_config
    from planning_agent.notifications.coordinator import Environment

    config = load_config(apply_env=False)
    config.environment = Environment(environment)
    save_config(config)
    console.print(f"[green]>[/green] Environment set to {environment}")


if __name__ == "__main__":
    main()
