"""
Pytest configuration and fixtures for Content Agents tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from content_agents.agents.base import AgentCallbacks, AgentDefinition, AgentRegistry
from content_agents.memory.storage import InMemoryStorage
from content_agents.models.core import AgentContext, ContentItem, PerformanceMetrics, PreflightResult, Settings
from content_agents.orchestration.run_manager import RunManager
from content_agents.utils.config import ProactiveConfig, SystemConfig, set_config


def make_item(
    item_id: str = "item-1",
    platform: str = "tiktok",
    day: str = "Monday",
    time: str = "9:00 AM",
    **overrides: Any,
) -> ContentItem:
    """Build a content item with sensible defaults."""
    data = {
        "id": item_id,
        "platform": platform,
        "day": day,
        "time": time,
        "hook": f"Hook for {item_id}",
        "caption": "Caption",
        "hashtags": ["gcse", "revision"],
        "topic": "Photosynthesis",
        "subject": "Biology",
    }
    data.update(overrides)
    return ContentItem(**data)


def make_items(count: int, platform: str = "tiktok", day: str = "Monday", time: str = "9:00 AM") -> List[ContentItem]:
    return [make_item(f"item-{index}", platform=platform, day=day, time=time) for index in range(count)]


class RecordingCallbacks(AgentCallbacks):
    """Callbacks that record every call, for driving agents directly."""

    def __init__(self, cancel_after: Optional[str] = None):
        self.events: List[tuple] = []
        self.cancel_after = cancel_after
        self._cancelled = False

    def on_step_start(self, step_id: str, label: str) -> None:
        self.events.append(("start", step_id))

    def on_step_complete(self, step_id: str, data: Any = None) -> None:
        self.events.append(("complete", step_id, data))
        if step_id == self.cancel_after:
            self._cancelled = True

    def on_step_error(self, step_id: str, message: str) -> None:
        self.events.append(("error", step_id, message))

    def on_progress(self, message: str) -> None:
        self.events.append(("progress", message))

    def should_cancel(self) -> bool:
        return self._cancelled

    def step_ids(self, kind: str) -> List[str]:
        return [event[1] for event in self.events if event[0] == kind]


class EchoAgent(AgentDefinition):
    """Returns its input after one completed step."""

    id = "echo"
    name = "Echo"

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> Dict[str, Any]:
        callbacks.on_step_start("echo", "Echoing input")
        callbacks.on_progress("halfway")
        callbacks.on_step_complete("echo", {"received": input})
        return {"echo": input, "summary": "echoed"}


class FailingAgent(AgentDefinition):
    """Raises partway through its only step."""

    id = "failing"
    name = "Failing"

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> Any:
        callbacks.on_step_start("work", "Working")
        raise RuntimeError("boom")


class RejectingAgent(AgentDefinition):
    """Never passes its pre-flight check."""

    id = "rejecting"
    name = "Rejecting"

    def can_run(self, context: AgentContext) -> PreflightResult:
        return PreflightResult.deny("not today")

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> Any:
        raise AssertionError("execute must not be called after a rejected pre-flight")


class GatedAgent(AgentDefinition):
    """Blocks until released, so tests can act while a run is in flight."""

    id = "gated"
    name = "Gated"

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> Dict[str, Any]:
        self.calls += 1
        callbacks.on_step_start("wait", "Waiting for release")
        self.started.set()
        await self.release.wait()
        callbacks.on_step_complete("wait")
        return {"summary": "released", "saw_cancel": callbacks.should_cancel()}


@pytest.fixture(autouse=True)
def isolated_config():
    """Keep the global configuration independent of the environment."""
    set_config(SystemConfig())
    yield
    set_config(None)


@pytest.fixture
def system_config() -> SystemConfig:
    return SystemConfig(
        history_limit=30,
        proactive=ProactiveConfig(
            debounce_seconds=0.01,
            claim_window_seconds=30,
            scheduler_cooldown_seconds=3600,
            scheduler_min_items=5,
        ),
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def registry() -> AgentRegistry:
    """Registry populated with test agents."""
    registry = AgentRegistry()
    for agent in (EchoAgent(), FailingAgent(), RejectingAgent(), GatedAgent()):
        registry.register(agent)
    return registry


@pytest.fixture
def settings() -> Settings:
    return Settings(claude_api_key="test-key")


@pytest.fixture
def context(settings: Settings) -> AgentContext:
    items = make_items(3)
    items[0].performance = PerformanceMetrics(views=120, likes=4)
    return AgentContext.from_state(settings, items)


@pytest.fixture
def run_manager(registry: AgentRegistry, storage: InMemoryStorage, system_config: SystemConfig) -> RunManager:
    manager = RunManager(registry=registry, storage=storage, config=system_config)
    manager.update_state(settings=Settings(claude_api_key="test-key"))
    return manager
