"""
Notification events — the typed payloads flowing through the notification layer.

Each notification category (planning, sync, health, budget, workflow, agent)
has its own payload model. Enumerated fields are closed ``str`` enums and
counts are validated as non-negative, so a payload that reaches the
formatter is structurally sound.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationCategory(str, Enum):
    PLANNING = "planning"
    SYNC = "sync"
    HEALTH = "health"
    BUDGET = "budget"
    WORKFLOW = "workflow"
    AGENT = "agent"
    ERRORS = "errors"


class SyncType(str, Enum):
    LINEAR_CONFLUENCE = "linear-confluence"
    CONFLUENCE_LINEAR = "confluence-linear"
    BIDIRECTIONAL = "bidirectional"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    ERROR = "error"


class HealthSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ResourceType(str, Enum):
    API_USAGE = "api-usage"
    MEMORY = "memory"
    DISK = "disk"
    TOKENS = "tokens"
    RATE_LIMIT = "rate-limit"


class WorkflowEventType(str, Enum):
    PR_CREATED = "pr-created"
    PR_MERGED = "pr-merged"
    PR_FAILED = "pr-failed"
    DEPLOYMENT = "deployment"
    BUILD = "build"
    TEST = "test"


class WorkflowStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    IN_PROGRESS = "in-progress"


class AgentType(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    CLI = "cli"


class AgentStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    BLOCKED = "blocked"


class PlanningStatistics(BaseModel):
    """Outcome of a planning run: what was created from which document."""

    planning_title: str
    epic_count: int = Field(default=0, ge=0)
    feature_count: int = Field(default=0, ge=0)
    story_count: int = Field(default=0, ge=0)
    enabler_count: int = Field(default=0, ge=0)
    duration_minutes: float = Field(default=0.0, ge=0)
    source_document: str
    source_url: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class SyncResult(BaseModel):
    """Summary of one Linear/Confluence synchronization pass."""

    sync_type: SyncType
    linear_updates: int = Field(default=0, ge=0)
    confluence_updates: int = Field(default=0, ge=0)
    conflicts_detected: int = Field(default=0, ge=0)
    conflicts_resolved: int = Field(default=0, ge=0)
    conflicts_pending: int = Field(default=0, ge=0)
    next_sync_minutes: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class SystemHealth(BaseModel):
    component: str
    status: HealthStatus
    severity: HealthSeverity
    message: str
    action_required: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class BudgetAlert(BaseModel):
    resource_type: ResourceType
    current_usage: float = Field(ge=0)
    limit: float = Field(ge=0)
    usage_percentage: float = Field(ge=0)
    timeframe: str
    action_required: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class WorkflowEvent(BaseModel):
    event_type: WorkflowEventType
    title: str
    description: str
    status: WorkflowStatus
    url: Optional[str] = None
    assignee: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class AgentUpdate(BaseModel):
    agent_id: str
    agent_type: AgentType
    status: AgentStatus
    task_title: str
    message: str
    task_url: Optional[str] = None
    assignee: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorReport(BaseModel):
    """An operational error raised by the planning agent itself."""

    error_message: str
    context: str
    timestamp: datetime = Field(default_factory=_utcnow)


EventPayload = Union[
    PlanningStatistics,
    SyncResult,
    SystemHealth,
    BudgetAlert,
    WorkflowEvent,
    AgentUpdate,
    ErrorReport,
]
