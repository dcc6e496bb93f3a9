"""
Agent definition contract and registry for Content Agents.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..models.core import AgentContext, AgentId, PreflightResult
from ..utils.logging import get_logger


class AgentCallbacks(ABC):
    """
    Progress hooks the engine hands to an executing agent.

    Agents report each step's start before doing its work, report the
    step's completion or error afterwards, and poll ``should_cancel`` at
    safe points.
    """

    @abstractmethod
    def on_step_start(self, step_id: str, label: str) -> None:
        pass

    @abstractmethod
    def on_step_complete(self, step_id: str, data: Any = None) -> None:
        pass

    @abstractmethod
    def on_step_error(self, step_id: str, message: str) -> None:
        pass

    @abstractmethod
    def on_progress(self, message: str) -> None:
        pass

    @abstractmethod
    def should_cancel(self) -> bool:
        pass


class AgentDefinition(ABC):
    """
    Abstract base class for all registered agents.

    A definition is identified by ``id`` and carries display metadata,
    a pure pre-flight check and the asynchronous ``execute`` operation.
    Definitions hold no per-run state; the same instance serves every run.
    """

    id: AgentId
    name: str = ""
    description: str = ""
    icon: str = ""
    color: str = ""

    def __init__(self):
        self.logger = get_logger(f"content_agents.agents.{agent_key(self.id)}")

    def can_run(self, context: AgentContext) -> PreflightResult:
        """
        Decide whether the agent may run against ``context``.

        Args:
            context: Read-only snapshot of host state

        Returns:
            PreflightResult: ``ok`` plus a reason when denied
        """
        return PreflightResult.allow()

    @abstractmethod
    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> Any:
        """
        Execute the agent's primary function.

        Args:
            input: Agent-specific input payload
            context: Read-only snapshot of host state
            callbacks: Progress hooks and the cancellation poll

        Returns:
            The agent's output; raising marks the run as failed
        """

    def describe(self) -> Dict[str, str]:
        return {
            "id": agent_key(self.id),
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
        }


def agent_key(agent_id: Union[AgentId, str]) -> str:
    """Normalise an agent id (enum member or raw string) to its string value."""
    if isinstance(agent_id, Enum):
        return agent_id.value
    return str(agent_id)


class AgentRegistry:
    """
    Lookup table of agent definitions keyed by agent id.

    Registration overwrites any previous definition with the same id, so
    repeated initialisation has the same net effect as a single one.
    """

    def __init__(self):
        self._agents: Dict[str, AgentDefinition] = {}
        self.logger = get_logger("content_agents.registry")

    def register(self, definition: AgentDefinition) -> None:
        """
        Register an agent definition.

        Args:
            definition: Definition to register
        """
        key = agent_key(definition.id)
        replaced = key in self._agents
        self._agents[key] = definition
        self.logger.debug("Registered agent", agent_id=key, replaced=replaced)

    def get(self, agent_id: Union[AgentId, str]) -> Optional[AgentDefinition]:
        """
        Retrieve an agent definition by id.

        Returns:
            AgentDefinition: The definition or None if not registered
        """
        return self._agents.get(agent_key(agent_id))

    def get_all(self) -> List[AgentDefinition]:
        """Snapshot of every registered definition."""
        return list(self._agents.values())

    def list_agents(self) -> List[str]:
        return list(self._agents.keys())

    def __contains__(self, agent_id: object) -> bool:
        return isinstance(agent_id, (str, AgentId)) and agent_key(agent_id) in self._agents

    def __len__(self) -> int:
        return len(self._agents)


# Global agent registry instance
agent_registry = AgentRegistry()
