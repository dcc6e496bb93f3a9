"""
Unit tests for the agent registry and built-in registration.
"""

from conftest import EchoAgent

from content_agents.agents import SchedulerAgent, WriterAgent, register_all_agents
from content_agents.agents.base import AgentRegistry, agent_key
from content_agents.models.core import AgentId


class TestAgentRegistry:
    """Test cases for AgentRegistry."""

    def test_register_and_get(self):
        registry = AgentRegistry()
        agent = EchoAgent()

        registry.register(agent)

        assert registry.get("echo") is agent
        assert "echo" in registry
        assert len(registry) == 1

    def test_get_unknown_returns_none(self):
        registry = AgentRegistry()

        assert registry.get("nonexistent") is None
        assert registry.get(AgentId.WRITER) is None
        assert 42 not in registry

    def test_register_overwrites_same_id(self):
        registry = AgentRegistry()
        first, second = EchoAgent(), EchoAgent()

        registry.register(first)
        registry.register(second)

        assert registry.get("echo") is second
        assert len(registry) == 1

    def test_get_all_is_a_snapshot(self):
        registry = AgentRegistry()
        registry.register(EchoAgent())

        agents = registry.get_all()
        agents.clear()

        assert len(registry.get_all()) == 1

    def test_enum_and_string_ids_are_interchangeable(self):
        registry = AgentRegistry()
        registry.register(SchedulerAgent())

        assert registry.get("scheduler") is registry.get(AgentId.SCHEDULER)
        assert agent_key(AgentId.SCHEDULER) == "scheduler"


class TestRegisterAllAgents:
    """Test cases for built-in agent registration."""

    def test_registers_writer_and_scheduler(self):
        registry = register_all_agents(AgentRegistry())

        assert sorted(registry.list_agents()) == ["scheduler", "writer"]
        assert isinstance(registry.get(AgentId.WRITER), WriterAgent)
        assert isinstance(registry.get(AgentId.SCHEDULER), SchedulerAgent)

    def test_repeated_registration_is_idempotent(self):
        registry = AgentRegistry()

        register_all_agents(registry)
        register_all_agents(registry)

        assert len(registry) == 2

    def test_content_generator_is_passed_to_writer(self):
        async def generator(system_prompt, user_prompt):
            return {"contentItems": []}

        registry = register_all_agents(AgentRegistry(), content_generator=generator)

        assert registry.get(AgentId.WRITER).content_generator is generator

    def test_describe_exposes_display_metadata(self):
        description = SchedulerAgent().describe()

        assert description["id"] == "scheduler"
        assert description["name"] == "Bernard"
        assert description["icon"] == "calendar"
