"""
Agent definitions and registration for Content Agents.
"""

from typing import Optional

from ..tools.claude_client import ContentGenerator
from .base import AgentCallbacks, AgentDefinition, AgentRegistry, agent_key, agent_registry
from .scheduler_agent import SchedulerAgent
from .writer_agent import WriterAgent


def register_all_agents(
    registry: Optional[AgentRegistry] = None,
    content_generator: Optional[ContentGenerator] = None,
) -> AgentRegistry:
    """
    Register every built-in agent definition.

    Safe to call repeatedly; each call overwrites the previous definitions.

    Args:
        registry: Registry to populate, defaults to the global one
        content_generator: Generator the writer calls instead of the Claude API

    Returns:
        AgentRegistry: The populated registry
    """
    registry = registry if registry is not None else agent_registry
    registry.register(WriterAgent(content_generator=content_generator))
    registry.register(SchedulerAgent())
    return registry


__all__ = [
    'AgentCallbacks',
    'AgentDefinition',
    'AgentRegistry',
    'SchedulerAgent',
    'WriterAgent',
    'agent_key',
    'agent_registry',
    'register_all_agents',
]
