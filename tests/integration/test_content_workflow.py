"""
End-to-end tests: the full-content pipeline and proactive scheduling
running against file-backed persistence.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import make_items

from content_agents.agents import register_all_agents
from content_agents.agents.base import AgentRegistry
from content_agents.memory.storage import JsonFileStorage
from content_agents.models.core import (
    AgentStatus,
    ContentGap,
    ContentGapAnalysis,
    PipelineId,
    SchedulerOutput,
    Settings,
    WriterInput,
)
from content_agents.orchestration.run_manager import RunManager
from content_agents.proactive.engine import ProactiveEngine

GENERATED = {
    "contentItems": [
        {"day": "Monday", "time": "7am", "platform": "tiktok", "hook": "Cells explained",
         "caption": "Cells", "hashtags": ["gcse"], "subject": "Biology", "contentType": "video"},
        {"day": "Monday", "time": "8am", "platform": "tiktok", "hook": "Acids and bases",
         "caption": "Acids", "hashtags": ["gcse"], "subject": "Chemistry"},
        {"day": "Tuesday", "time": "6pm", "platform": "reels", "hook": "Forces in 30s",
         "caption": "Forces", "hashtags": ["physics"], "subject": "Physics"},
    ]
}


async def settle(engine: ProactiveEngine, manager: RunManager) -> None:
    for _ in range(50):
        await asyncio.sleep(0.03)
        await manager.wait()
        if not engine.evaluation_scheduled and not manager.is_running:
            break
    await engine.flush()


@pytest.fixture
def generator():
    return AsyncMock(return_value=GENERATED)


@pytest.fixture
def registry(generator):
    return register_all_agents(AgentRegistry(), content_generator=generator)


class TestFullContentPipeline:
    """The writer feeds the scheduler and both runs land in history."""

    @pytest.mark.asyncio
    async def test_generate_schedule_and_approve(self, registry, generator, system_config, tmp_path):
        manager = RunManager(registry=registry, storage=JsonFileStorage(str(tmp_path)), config=system_config)
        await manager.initialize()
        manager.update_state(
            settings=Settings(claude_api_key="test-key"),
            gap_analysis=ContentGapAnalysis(gaps=[
                ContentGap(type="subject", value="Physics", current_count=0, recommended_count=2, priority="high"),
            ]),
        )
        snapshots = []
        manager.add_run_listener(snapshots.append)

        await manager.start_pipeline(PipelineId.FULL_CONTENT, WriterInput(count=3))

        run = manager.current_run
        assert run.status == AgentStatus.COMPLETED
        assert [agent_run.agent_id for agent_run in run.agent_runs] == ["writer", "scheduler"]
        assert 'MUST include at least 2 posts for subject: "Physics"' in generator.await_args.args[1]

        output = manager.last_output
        assert isinstance(output, SchedulerOutput)
        assert [(item.day, item.time, item.platform) for item in output.scheduled_items] == [
            ("Monday", "7:00 PM", "tiktok"),
            ("Monday", "7:00 AM", "tiktok"),
            ("Tuesday", "3:00 PM", "reels"),
        ]

        assert [entry.agent_id for entry in manager.history] == ["writer", "scheduler"]
        assert {entry.pipeline_run_id for entry in manager.history} == {run.id}
        assert any(len(snapshot.agent_runs) == 1 for snapshot in snapshots)

        approved = manager.approve_content(output.scheduled_items)
        assert len({item.id for item in approved}) == 3
        assert not any(item.filmed or item.posted for item in approved)

        restarted = RunManager(registry=registry, storage=JsonFileStorage(str(tmp_path)), config=system_config)
        await restarted.initialize()
        assert [entry.id for entry in restarted.history] == [entry.id for entry in manager.history]

    @pytest.mark.asyncio
    async def test_pipeline_without_api_key_fails_at_writer(self, registry, generator, system_config, tmp_path):
        manager = RunManager(registry=registry, storage=JsonFileStorage(str(tmp_path)), config=system_config)

        await manager.start_pipeline(PipelineId.FULL_CONTENT)

        run = manager.current_run
        assert run.status == AgentStatus.FAILED
        assert run.agent_runs[0].error == "Claude API key is required. Add it in Settings."
        assert len(run.agent_runs) == 1
        generator.assert_not_awaited()


class TestProactiveScheduling:
    """New content triggers the scheduler once, and the cooldown survives a restart."""

    @pytest.mark.asyncio
    async def test_trigger_attribution_and_persisted_cooldown(self, registry, system_config, tmp_path):
        manager = RunManager(registry=registry, storage=JsonFileStorage(str(tmp_path)), config=system_config)
        await manager.initialize()
        engine = ProactiveEngine(manager, config=system_config)
        await engine.initialize()

        engine.update_content_items(make_items(6))
        await settle(engine, manager)
        await engine.shutdown()

        assert manager.history[0].agent_id == "scheduler"
        assert manager.history[0].proactive is True
        assert engine.notifications[0].summary == "Optimized 6 items"

        manager_again = RunManager(registry=registry, storage=JsonFileStorage(str(tmp_path)), config=system_config)
        await manager_again.initialize()
        engine_again = ProactiveEngine(manager_again, config=system_config)
        await engine_again.initialize()

        assert engine_again.last_run_timestamps["scheduler"] == engine.last_run_timestamps["scheduler"]
        assert manager_again.history[0].proactive is True

        engine_again.update_content_items(make_items(8))
        await settle(engine_again, manager_again)
        await engine_again.shutdown()

        assert len(manager_again.history) == 1
        assert engine_again.notifications == []
