"""
Message formatting — turns a category payload into a human-readable,
emoji-tagged Slack message.

All functions here are pure. ``format_message`` never raises: payloads that
are missing fields or carry odd values produce a partial message instead.
Payloads may be the pydantic models from ``events`` or plain mappings with
the same field names.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

from planning_agent.notifications.events import NotificationCategory

logger = logging.getLogger(__name__)

_MISSING = object()

_UNKNOWN = "\u2753"         # question mark
_CHART = "\U0001f4ca"       # bar chart
_CLIPBOARD = "\U0001f4cb"   # clipboard
_ROBOT = "\U0001f916"       # robot
_WHITE_CIRCLE = "\u26aa"    # white circle

_HEALTH_STATUS_EMOJI = {
    "healthy": "\u2705",            # check
    "warning": "\u26a0\ufe0f",      # warning
    "critical": "\U0001f6a8",       # rotating light
    "error": "\u274c",              # cross
}

_SEVERITY_EMOJI = {
    "low": "\U0001f535",            # blue circle
    "medium": "\U0001f7e1",         # yellow circle
    "high": "\U0001f7e0",           # orange circle
    "critical": "\U0001f534",       # red circle
}

_RESOURCE_EMOJI = {
    "api-usage": "\U0001f50c",      # plug
    "memory": "\U0001f4be",         # floppy
    "disk": "\U0001f4bf",           # cd
    "tokens": "\U0001f511",         # key
    "rate-limit": "\u23f1\ufe0f",   # stopwatch
}

_WORKFLOW_EVENT_EMOJI = {
    "pr-created": "\U0001f500",     # shuffle
    "pr-merged": "\u2705",          # check
    "pr-failed": "\u274c",          # cross
    "deployment": "\U0001f680",     # rocket
    "build": "\U0001f528",          # hammer
    "test": "\U0001f9ea",           # test tube
}

_WORKFLOW_STATUS_EMOJI = {
    "success": "\u2705",            # check
    "failure": "\u274c",            # cross
    "pending": "\u23f3",            # hourglass
    "in-progress": "\U0001f504",    # arrows
}

_AGENT_STATUS_EMOJI = {
    "assigned": "\U0001f4cb",       # clipboard
    "in-progress": "\U0001f504",    # arrows
    "completed": "\u2705",          # check
    "failed": "\u274c",             # cross
    "blocked": "\U0001f6ab",        # no entry
}

_AGENT_TYPE_EMOJI = {
    "remote": "\U0001f310",         # globe
    "local": "\U0001f4bb",          # laptop
    "cli": "\u2328\ufe0f",          # keyboard
}


# ---------------------------------------------------------------------------
# Field access helpers
# ---------------------------------------------------------------------------


def _get(payload: Any, name: str, default: Any = None) -> Any:
    if isinstance(payload, dict):
        value = payload.get(name, _MISSING)
    else:
        value = getattr(payload, name, _MISSING)
    return default if value is _MISSING or value is None else value


def _text(payload: Any, name: str, default: str = "") -> str:
    value = _get(payload, name, default)
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def _count(payload: Any, name: str) -> int:
    try:
        return max(int(_get(payload, name, 0)), 0)
    except (TypeError, ValueError):
        return 0


def _number(payload: Any, name: str) -> float:
    try:
        return float(_get(payload, name, 0))
    except (TypeError, ValueError):
        return 0.0


def _quantity(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def _join(lines: list[Optional[str]]) -> str:
    return "\n".join(line for line in lines if line)


# ---------------------------------------------------------------------------
# Per-category formatters
# ---------------------------------------------------------------------------


def format_planning_statistics(stats: Any) -> str:
    items = []
    for field, singular, plural in (
        ("epic_count", "Epic", "Epics"),
        ("feature_count", "Feature", "Features"),
        ("story_count", "Story", "Stories"),
        ("enabler_count", "Enabler", "Enablers"),
    ):
        count = _count(stats, field)
        if count > 0:
            items.append(_plural(count, singular, plural))

    items_text = ", ".join(items) if items else "No items"
    source_url = _text(stats, "source_url")

    return _join([
        f"\U0001f4ca Planning Completed: \"{_text(stats, 'planning_title', 'Untitled')}\"",
        f"\u2705 Created: {items_text}",
        f"\u23f1\ufe0f Duration: {_number(stats, 'duration_minutes'):.1f} minutes",
        f"\U0001f4c4 Source: {_text(stats, 'source_document', 'unknown')}",
        f"\U0001f517 Link: {source_url}" if source_url else None,
    ])


def format_sync_status(result: Any) -> str:
    sync_type = _text(result, "sync_type", "sync")
    display = sync_type.replace("-", " \u2194 ", 1).upper()

    detected = _count(result, "conflicts_detected")
    resolved = _count(result, "conflicts_resolved")
    pending = _count(result, "conflicts_pending")
    if detected > 0:
        conflict_line = (
            f"\u26a0\ufe0f Conflicts: {detected} detected, {resolved} auto-resolved"
        )
    else:
        conflict_line = "\u2705 No conflicts detected"

    errors = [str(e) for e in (_get(result, "errors") or [])]

    return _join([
        f"\U0001f504 Sync Completed: {display}",
        f"\U0001f4dd Changes: {_count(result, 'linear_updates')} Linear updates, "
        f"{_count(result, 'confluence_updates')} Confluence updates",
        conflict_line,
        f"\U0001f6a8 Manual resolution needed: {pending} conflicts" if pending > 0 else None,
        f"\u23f1\ufe0f Next sync: in {_count(result, 'next_sync_minutes')} minutes",
        f"\u274c Errors: {', '.join(errors)}" if errors else None,
    ])


def format_system_health(health: Any) -> str:
    status = _text(health, "status")
    severity = _text(health, "severity")
    action = _text(health, "action_required")
    details = _get(health, "details")

    details_line = None
    if details:
        try:
            details_line = f"\U0001f4dd Details: {json.dumps(details, default=str)}"
        except (TypeError, ValueError):
            details_line = f"\U0001f4dd Details: {details!r}"

    return _join([
        f"{_HEALTH_STATUS_EMOJI.get(status, _UNKNOWN)} System Alert: {_text(health, 'message')}",
        f"{_SEVERITY_EMOJI.get(severity, _WHITE_CIRCLE)} Component: {_text(health, 'component', 'unknown')}",
        f"\u26a1 Action needed: {action}" if action else None,
        details_line,
    ])


def format_budget_alert(budget: Any) -> str:
    resource = _text(budget, "resource_type", "resource")
    action = _text(budget, "action_required")
    usage = _quantity(_get(budget, "current_usage", 0))
    limit = _quantity(_get(budget, "limit", 0))

    return _join([
        f"{_RESOURCE_EMOJI.get(resource, _CHART)} Resource Alert: {resource.upper()}",
        f"\U0001f4c8 Usage: {usage}/{limit} ({round(_number(budget, 'usage_percentage'))}%)",
        f"\u23f0 Timeframe: {_text(budget, 'timeframe', 'n/a')}",
        f"\u26a1 Action needed: {action}" if action else None,
    ])


def format_workflow_event(event: Any) -> str:
    event_type = _text(event, "event_type", "workflow")
    status = _text(event, "status")
    assignee = _text(event, "assignee")
    url = _text(event, "url")

    return _join([
        f"{_WORKFLOW_EVENT_EMOJI.get(event_type, _CLIPBOARD)} {event_type.upper()}: {_text(event, 'title')}",
        f"{_WORKFLOW_STATUS_EMOJI.get(status, _UNKNOWN)} Status: {status}",
        f"\U0001f4dd {_text(event, 'description')}",
        f"\U0001f464 Assignee: {assignee}" if assignee else None,
        f"\U0001f517 Link: {url}" if url else None,
    ])


def format_agent_update(update: Any) -> str:
    status = _text(update, "status")
    agent_type = _text(update, "agent_type")
    assignee = _text(update, "assignee")
    task_url = _text(update, "task_url")

    return _join([
        f"{_AGENT_STATUS_EMOJI.get(status, _UNKNOWN)} Agent Update: {_text(update, 'agent_id')}",
        f"{_AGENT_TYPE_EMOJI.get(agent_type, _ROBOT)} Type: {agent_type}",
        f"\U0001f4cb Task: {_text(update, 'task_title')}",
        f"\U0001f4ac {_text(update, 'message')}",
        f"\U0001f464 Assignee: {assignee}" if assignee else None,
        f"\U0001f517 Link: {task_url}" if task_url else None,
    ])


def format_error_report(report: Any) -> str:
    return _join([
        f"\U0001f6a8 Error in Planning Agent: {_text(report, 'error_message')}",
        f"\U0001f4dd Context: {_text(report, 'context')}",
    ])


_FORMATTERS: dict[NotificationCategory, Callable[[Any], str]] = {
    NotificationCategory.PLANNING: format_planning_statistics,
    NotificationCategory.SYNC: format_sync_status,
    NotificationCategory.HEALTH: format_system_health,
    NotificationCategory.BUDGET: format_budget_alert,
    NotificationCategory.WORKFLOW: format_workflow_event,
    NotificationCategory.AGENT: format_agent_update,
    NotificationCategory.ERRORS: format_error_report,
}


def format_message(category: NotificationCategory | str, payload: Any) -> str:
    """Format ``payload`` for ``category``. Never raises."""
    try:
        formatter = _FORMATTERS[NotificationCategory(category)]
        return formatter(payload)
    except Exception:
        logger.warning("Falling back to plain formatting for %s payload", category, exc_info=True)
        return _fallback(category, payload)


def _fallback(category: Any, payload: Any) -> str:
    label = category.value if isinstance(category, Enum) else str(category)
    lines = [f"\U0001f4e3 {label.upper()} notification"]
    try:
        if isinstance(payload, dict):
            fields = payload
        else:
            fields = payload.model_dump(mode="json")
        for key, value in fields.items():
            if value not in (None, "", [], {}):
                lines.append(f"{key}: {value}")
    except Exception:
        lines.append(repr(payload)[:200])
    return "\n".join(lines)
