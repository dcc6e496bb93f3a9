"""
Bounded run history and last-run timestamps, persisted through a Storage.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..models.core import AgentResultEntry, AgentStatus, PipelineRun
from ..utils.logging import get_logger
from .storage import HISTORY_KEY, LAST_RUNS_KEY, Storage

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 30

_TIMESTAMPS = TypeAdapter(Dict[str, datetime])


def project_entries(pipeline_run: PipelineRun) -> List[AgentResultEntry]:
    """
    Project the completed and failed agent runs of ``pipeline_run`` into
    history entries, in run order. Cancelled runs are not recorded.
    """
    return [
        AgentResultEntry.from_run(agent_run, pipeline_run.id)
        for agent_run in pipeline_run.agent_runs
        if agent_run.status in (AgentStatus.COMPLETED, AgentStatus.FAILED)
    ]


def prepend_entries(
    history: List[AgentResultEntry],
    new_entries: List[AgentResultEntry],
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> List[AgentResultEntry]:
    """Newest first: ``new_entries`` ahead of ``history``, truncated to ``limit``."""
    return (list(new_entries) + list(history))[:limit]


class HistoryStore:
    """
    Reads and writes the agent result log and per-agent last-run times.

    Missing or corrupt data loads as empty. Individual history entries
    that no longer validate are dropped.
    """

    def __init__(self, storage: Storage, limit: int = DEFAULT_HISTORY_LIMIT):
        self.storage = storage
        self.limit = limit

    async def load(self) -> List[AgentResultEntry]:
        raw = await self.storage.get(HISTORY_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring corrupt run history", key=HISTORY_KEY)
            return []

        entries = []
        for item in raw:
            try:
                entries.append(AgentResultEntry.model_validate(item))
            except ValidationError as e:
                logger.warning("Dropping unreadable history entry", error_count=e.error_count())
        return entries[:self.limit]

    async def save(self, entries: List[AgentResultEntry]) -> bool:
        payload = [entry.model_dump(mode="json") for entry in entries[:self.limit]]
        return await self.storage.set(HISTORY_KEY, payload)

    async def clear(self) -> bool:
        return await self.storage.remove(HISTORY_KEY)

    async def load_last_runs(self) -> Dict[str, datetime]:
        raw = await self.storage.get(LAST_RUNS_KEY)
        if raw is None:
            return {}
        try:
            return _TIMESTAMPS.validate_python(raw)
        except ValidationError:
            logger.warning("Ignoring corrupt last-run timestamps", key=LAST_RUNS_KEY)
            return {}

    async def save_last_runs(self, timestamps: Dict[str, datetime]) -> bool:
        return await self.storage.set(LAST_RUNS_KEY, _TIMESTAMPS.dump_python(timestamps, mode="json"))

    async def last_run(self, agent_id: str) -> Optional[datetime]:
        return (await self.load_last_runs()).get(agent_id)
