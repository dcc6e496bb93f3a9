"""
Proactive triggers: conditions under which an agent is launched without
the user asking.

Each trigger is a small state machine::

    idle -> pending -> fired -> cooling_down -> idle

``pending`` covers the moment between a positive evaluation and the run
manager accepting the launch; a rejected launch returns to ``idle``, as
does a fired trigger whose claim expires without a history entry.
A trigger reaches ``cooling_down`` when a run it launched completes and
returns to ``idle`` once the cooldown has passed. Every guard is exposed
as its own method.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.core import AgentId, ContentItem, SchedulerInput, ensure_utc


class TriggerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"
    COOLING_DOWN = "cooling_down"


@dataclass
class TriggerSnapshot:
    """What a trigger sees when it is evaluated."""
    content_items: List[ContentItem]
    previous_content_count: int
    last_run_timestamps: Dict[str, datetime]
    now: datetime
    is_running: bool = False

    @property
    def content_count(self) -> int:
        return len(self.content_items)


def is_cooldown_expired(last_run: Optional[datetime], cooldown: timedelta, now: datetime) -> bool:
    """True when there is no last run or more than ``cooldown`` has passed since it."""
    if last_run is None:
        return True
    return ensure_utc(now) - ensure_utc(last_run) > cooldown


class ProactiveTrigger(ABC):
    """Base class for a fixed proactive condition tied to one agent."""

    agent_id: AgentId
    reason: str

    def __init__(self, cooldown: timedelta):
        self.cooldown = cooldown
        self.state = TriggerState.IDLE
        self.fired_this_session = False

    @property
    def key(self) -> str:
        return self.agent_id.value

    def cooldown_expired(self, snapshot: TriggerSnapshot) -> bool:
        return is_cooldown_expired(snapshot.last_run_timestamps.get(self.key), self.cooldown, snapshot.now)

    def session_available(self) -> bool:
        return not self.fired_this_session

    @abstractmethod
    def condition_met(self, snapshot: TriggerSnapshot) -> bool:
        """The trigger-specific condition, independent of cooldown and session guards."""

    @abstractmethod
    def build_input(self, snapshot: TriggerSnapshot) -> Any:
        """Input for the agent run this trigger launches."""

    def refresh(self, snapshot: TriggerSnapshot) -> None:
        if self.state == TriggerState.COOLING_DOWN and self.cooldown_expired(snapshot):
            self.state = TriggerState.IDLE

    def should_fire(self, snapshot: TriggerSnapshot) -> bool:
        return (
            not snapshot.is_running
            and self.condition_met(snapshot)
            and self.cooldown_expired(snapshot)
            and self.session_available()
        )

    def mark_pending(self) -> None:
        self.state = TriggerState.PENDING

    def mark_fired(self) -> None:
        self.state = TriggerState.FIRED
        self.fired_this_session = True

    def mark_rejected(self) -> None:
        self.state = TriggerState.IDLE

    def mark_expired(self) -> None:
        """The launched run left no history entry within the claim window."""
        if self.state == TriggerState.FIRED:
            self.state = TriggerState.IDLE

    def mark_finished(self, succeeded: bool) -> None:
        if self.state != TriggerState.FIRED:
            return
        self.state = TriggerState.COOLING_DOWN if succeeded else TriggerState.IDLE


class SchedulerTrigger(ProactiveTrigger):
    """Auto-schedule when new content has been added to a non-trivial calendar."""

    agent_id = AgentId.SCHEDULER
    reason = "New content items added"

    def __init__(self, cooldown: timedelta = timedelta(hours=1), min_items: int = 5):
        super().__init__(cooldown)
        self.min_items = min_items

    def count_increased(self, snapshot: TriggerSnapshot) -> bool:
        return snapshot.content_count > snapshot.previous_content_count

    def above_minimum(self, snapshot: TriggerSnapshot) -> bool:
        return snapshot.content_count > self.min_items

    def condition_met(self, snapshot: TriggerSnapshot) -> bool:
        return self.count_increased(snapshot) and self.above_minimum(snapshot)

    def build_input(self, snapshot: TriggerSnapshot) -> SchedulerInput:
        return SchedulerInput(content_items=[item.model_copy(deep=True) for item in snapshot.content_items])


def extract_summary(agent_id: str, output: Any) -> str:
    """
    Short, user-facing description of what a proactive run produced.

    Scheduler runs report how many items they optimized; other agents'
    summaries are cut to 100 characters.
    """
    if output is None:
        return "Completed successfully"
    if hasattr(output, "model_dump"):
        output = output.model_dump()
    if not isinstance(output, dict):
        return "Completed successfully"

    scheduled = output.get("scheduled_items")
    if agent_id == AgentId.SCHEDULER.value and isinstance(scheduled, list):
        return f"Optimized {len(scheduled)} items"

    summary = output.get("summary")
    if isinstance(summary, str) and summary:
        return summary[:100]
    return "Completed successfully"
