"""
Core Pydantic data models for Content Agents.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return the current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AgentId(str, Enum):
    """Identifiers of the registered agents."""
    WRITER = "writer"
    SCHEDULER = "scheduler"


class PipelineId(str, Enum):
    """Identifiers of the pre-built pipelines."""
    FULL_CONTENT = "full-content"


class AgentStatus(str, Enum):
    """Lifecycle status shared by steps, agent runs and pipeline runs."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({AgentStatus.COMPLETED, AgentStatus.FAILED, AgentStatus.CANCELLED})


class Platform(str, Enum):
    """Social platforms content can be scheduled for."""
    TIKTOK = "tiktok"
    SHORTS = "shorts"
    REELS = "reels"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    SNAPCHAT = "snapchat"
    YTLONG = "ytlong"


DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

PILLARS = ("teach", "demo", "psych", "proof", "founder", "trending")


# ---------------------------------------------------------------------------
# Content items
# ---------------------------------------------------------------------------

class PerformanceMetrics(BaseModel):
    """Engagement figures recorded against a posted item."""
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)


class DraftItem(BaseModel):
    """A content item that has not yet been approved into the calendar."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    day: str = ""
    time: str = ""
    platform: Platform
    hook: str = ""
    caption: str = ""
    hashtags: List[str] = Field(default_factory=list)
    topic: str = ""
    subject: str = ""
    level: str = "GCSE"
    pillar: str = "teach"
    content_type: Optional[Literal["video", "text"]] = None
    script: Optional[str] = None
    body: Optional[str] = None
    estimated_duration: Optional[str] = None
    subreddit: Optional[str] = None


class ContentItem(DraftItem):
    """An approved content item tracked by the host application."""
    id: str = Field(..., min_length=1)
    filmed: bool = False
    posted: bool = False
    performance: Optional[PerformanceMetrics] = None


class Settings(BaseModel):
    """The subset of host settings agents read."""
    model_config = ConfigDict(use_enum_values=True)

    claude_api_key: str = ""
    youtube_api_key: str = ""
    platforms: List[Platform] = Field(
        default_factory=lambda: [Platform.TIKTOK, Platform.SHORTS, Platform.REELS, Platform.FACEBOOK]
    )
    levels: List[str] = Field(default_factory=lambda: ["GCSE", "A-Level"])
    subjects: List[str] = Field(default_factory=lambda: ["Biology", "Chemistry", "Physics", "Maths"])
    batch_day: str = "Friday"
    batch_size: int = Field(default=40, ge=1)


# ---------------------------------------------------------------------------
# Analyses supplied through the context
# ---------------------------------------------------------------------------

class ContentGap(BaseModel):
    """A coverage gap found by the host's gap analysis."""
    type: Literal["subject", "pillar", "platform", "level"]
    value: str
    current_count: int = 0
    recommended_count: int = 0
    priority: Literal["high", "medium", "low"] = "low"
    suggestion: str = ""


class ContentGapAnalysis(BaseModel):
    """Result of the host's content gap analysis."""
    gaps: List[ContentGap] = Field(default_factory=list)
    coverage: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    balance_score: int = Field(default=100, ge=0, le=100)
    recommendations: List[str] = Field(default_factory=list)


class SchedulingSuggestion(BaseModel):
    """A proposed move of one item to a better slot."""
    item_id: str
    platform: str
    current_time: str
    current_day: str
    suggested_time: str
    suggested_day: Optional[str] = None
    confidence: int = Field(..., ge=0, le=100)
    reasoning: str


class SchedulingAnalysis(BaseModel):
    """Summary of how well the current schedule uses optimal slots."""
    suggestions: List[SchedulingSuggestion] = Field(default_factory=list)
    current_distribution: Dict[str, int] = Field(default_factory=dict)
    optimal_distribution: Dict[str, int] = Field(default_factory=dict)
    overall_score: int = Field(default=100, ge=0, le=100)


# ---------------------------------------------------------------------------
# Agent context and contracts
# ---------------------------------------------------------------------------

class AgentContext(BaseModel):
    """Read-only snapshot of host state taken once at run start."""
    model_config = ConfigDict(frozen=True)

    settings: Settings = Field(default_factory=Settings)
    content_items: List[ContentItem] = Field(default_factory=list)
    performance_items: List[ContentItem] = Field(default_factory=list)
    gap_analysis: Optional[ContentGapAnalysis] = None
    scheduling_analysis: Optional[SchedulingAnalysis] = None

    @classmethod
    def from_state(
        cls,
        settings: Settings,
        content_items: List[ContentItem],
        gap_analysis: Optional[ContentGapAnalysis] = None,
        scheduling_analysis: Optional[SchedulingAnalysis] = None,
    ) -> "AgentContext":
        """Build a context, deriving the items that have recorded performance."""
        items = [item.model_copy(deep=True) for item in content_items]
        performance_items = [
            item for item in items
            if item.performance is not None and item.performance.views > 0
        ]
        return cls(
            settings=settings.model_copy(deep=True),
            content_items=items,
            performance_items=performance_items,
            gap_analysis=gap_analysis,
            scheduling_analysis=scheduling_analysis,
        )


class PreflightResult(BaseModel):
    """Outcome of an agent's pre-flight check."""
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "PreflightResult":
        return cls(ok=True)

    @classmethod
    def deny(cls, reason: str) -> "PreflightResult":
        return cls(ok=False, reason=reason)


# ---------------------------------------------------------------------------
# Run records
# ---------------------------------------------------------------------------

class AgentStep(BaseModel):
    """One named unit of progress inside an agent run."""
    id: str
    label: str
    status: AgentStatus = AgentStatus.RUNNING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    data: Any = None
    error: Optional[str] = None


class AgentRun(BaseModel):
    """One execution of one agent."""
    id: str
    agent_id: str
    status: AgentStatus = AgentStatus.RUNNING
    steps: List[AgentStep] = Field(default_factory=list)
    input: Any = None
    output: Any = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def get_step(self, step_id: str) -> Optional[AgentStep]:
        """Get a step by its id."""
        return next((step for step in self.steps if step.id == step_id), None)


class PipelineRun(BaseModel):
    """One execution of a pipeline (or a single agent wrapped as one)."""
    id: str
    pipeline_id: str
    status: AgentStatus = AgentStatus.RUNNING
    agent_runs: List[AgentRun] = Field(default_factory=list)
    current_step_index: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def last_completed_output(self) -> Any:
        """Output of the most recent completed agent run, if any."""
        for agent_run in reversed(self.agent_runs):
            if agent_run.status == AgentStatus.COMPLETED:
                return agent_run.output
        return None


class AgentResultEntry(BaseModel):
    """Compact, persisted projection of a finished agent run."""
    id: str
    pipeline_run_id: Optional[str] = None
    agent_id: str
    timestamp: datetime
    status: Literal["completed", "failed"]
    output: Any = None
    error: Optional[str] = None
    duration_ms: int = 0
    proactive: Optional[bool] = None
    trigger_reason: Optional[str] = None

    @classmethod
    def from_run(cls, agent_run: AgentRun, pipeline_run_id: Optional[str] = None) -> "AgentResultEntry":
        return cls(
            id=agent_run.id,
            pipeline_run_id=pipeline_run_id,
            agent_id=agent_run.agent_id,
            timestamp=agent_run.completed_at or agent_run.started_at,
            status="completed" if agent_run.status == AgentStatus.COMPLETED else "failed",
            output=agent_run.output,
            error=agent_run.error,
            duration_ms=agent_run.duration_ms or 0,
        )


class ProactiveNotification(BaseModel):
    """User-facing notice that an agent ran on its own."""
    id: str
    agent_id: str
    timestamp: datetime
    trigger_reason: str
    summary: str
    dismissed: bool = False


class PendingClaim(BaseModel):
    """A proactive launch waiting for its history entry."""
    timestamp: datetime
    trigger_reason: str


# ---------------------------------------------------------------------------
# Agent I/O
# ---------------------------------------------------------------------------

class WriterConstraints(BaseModel):
    """Optional narrowing of what the writer should produce."""
    model_config = ConfigDict(use_enum_values=True)

    platforms: Optional[List[Platform]] = None
    subjects: Optional[List[str]] = None
    levels: Optional[List[str]] = None
    pillars: Optional[List[str]] = None


class WriterInput(BaseModel):
    count: Optional[int] = Field(default=None, ge=1)
    constraints: Optional[WriterConstraints] = None
    gap_analysis: Optional[ContentGapAnalysis] = None


class WriterOutput(BaseModel):
    content_items: List[DraftItem] = Field(default_factory=list)
    summary: str = ""


class SchedulerInput(BaseModel):
    content_items: List[DraftItem] = Field(default_factory=list)


class SchedulerOutput(BaseModel):
    scheduled_items: List[DraftItem] = Field(default_factory=list)
    summary: str = ""
