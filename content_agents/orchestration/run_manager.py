"""
Run manager: the single current-run slot for Content Agents.

Hosts start pipelines or single agents through the manager, which
enforces that at most one run is in flight, hands each run a fresh
cancellation token and folds finished runs into the persisted history.
"""

import asyncio
from typing import Any, Callable, Iterable, List, Optional, Union

from ..agents.base import AgentRegistry, agent_key, agent_registry
from ..memory.history import HistoryStore, prepend_entries, project_entries
from ..memory.storage import InMemoryStorage, Storage
from ..models.core import (
    AgentContext,
    AgentId,
    AgentResultEntry,
    AgentRun,
    AgentStatus,
    ContentGapAnalysis,
    ContentItem,
    DraftItem,
    PipelineId,
    PipelineRun,
    SchedulingAnalysis,
    Settings,
    utc_now,
)
from ..models.errors import PreflightRejectedError, UnknownAgentError, UnknownPipelineError
from ..utils.config import SystemConfig, get_config
from ..utils.ids import generate_id
from ..utils.logging import LoggerMixin
from .executor import AgentExecutor, CancellationToken
from .orchestrator import PipelineOrchestrator
from .pipelines import get_pipeline

RunListener = Callable[[PipelineRun], None]
HistoryListener = Callable[[List[AgentResultEntry]], None]
RunningListener = Callable[[bool], None]


class RunManager(LoggerMixin):
    """
    Owns the current run, its cancellation token and the run history.

    Start methods return immediately with the scheduled asyncio task, or
    None when nothing was started. Listeners are called synchronously on
    the event loop.
    """

    def __init__(
        self,
        registry: Optional[AgentRegistry] = None,
        storage: Optional[Storage] = None,
        config: Optional[SystemConfig] = None,
        executor: Optional[AgentExecutor] = None,
    ):
        self.config = config or get_config()
        self.registry = registry if registry is not None else agent_registry
        self.executor = executor or AgentExecutor()
        self.orchestrator = PipelineOrchestrator(self.registry, self.executor)
        self.history_store = HistoryStore(
            storage if storage is not None else InMemoryStorage(),
            limit=self.config.history_limit,
        )

        self._settings = Settings()
        self._content_items: List[ContentItem] = []
        self._gap_analysis: Optional[ContentGapAnalysis] = None
        self._scheduling_analysis: Optional[SchedulingAnalysis] = None

        self._current_run: Optional[PipelineRun] = None
        self._is_running = False
        self._history: List[AgentResultEntry] = []
        self._last_output: Any = None
        self._token: Optional[CancellationToken] = None
        self._task: Optional[asyncio.Task] = None

        self._run_listeners: List[RunListener] = []
        self._history_listeners: List[HistoryListener] = []
        self._running_listeners: List[RunningListener] = []

    async def initialize(self) -> None:
        """Load persisted history."""
        self._history = await self.history_store.load()
        self.logger.info("Run manager initialized", history_entries=len(self._history))

    # ------------------------------------------------------------------
    # Host state
    # ------------------------------------------------------------------

    def update_state(
        self,
        settings: Optional[Settings] = None,
        content_items: Optional[Iterable[ContentItem]] = None,
        gap_analysis: Optional[ContentGapAnalysis] = None,
        scheduling_analysis: Optional[SchedulingAnalysis] = None,
    ) -> None:
        """Replace the parts of host state that are given; the rest is kept."""
        if settings is not None:
            self._settings = settings
        if content_items is not None:
            self._content_items = list(content_items)
        if gap_analysis is not None:
            self._gap_analysis = gap_analysis
        if scheduling_analysis is not None:
            self._scheduling_analysis = scheduling_analysis

    def build_context(self) -> AgentContext:
        return AgentContext.from_state(
            self._settings,
            self._content_items,
            self._gap_analysis,
            self._scheduling_analysis,
        )

    # ------------------------------------------------------------------
    # Observables
    # ------------------------------------------------------------------

    @property
    def current_run(self) -> Optional[PipelineRun]:
        return self._current_run

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def history(self) -> List[AgentResultEntry]:
        return list(self._history)

    @property
    def last_output(self) -> Any:
        return self._last_output

    def add_run_listener(self, listener: RunListener) -> None:
        self._run_listeners.append(listener)

    def add_history_listener(self, listener: HistoryListener) -> None:
        self._history_listeners.append(listener)

    def add_running_listener(self, listener: RunningListener) -> None:
        self._running_listeners.append(listener)

    def remove_history_listener(self, listener: HistoryListener) -> None:
        if listener in self._history_listeners:
            self._history_listeners.remove(listener)

    def remove_running_listener(self, listener: RunningListener) -> None:
        if listener in self._running_listeners:
            self._running_listeners.remove(listener)

    def _notify(self, listeners: List[Callable], payload: Any) -> None:
        for listener in list(listeners):
            try:
                listener(payload)
            except Exception as e:
                self.logger.error("Run manager listener failed", listener=repr(listener), error=str(e))

    def _publish_run(self, run: PipelineRun) -> None:
        self._current_run = run
        self._notify(self._run_listeners, run)

    def _set_running(self, running: bool) -> None:
        if self._is_running == running:
            return
        self._is_running = running
        self._notify(self._running_listeners, running)

    # ------------------------------------------------------------------
    # Starting and stopping runs
    # ------------------------------------------------------------------

    def start_pipeline(
        self,
        pipeline_id: Union[PipelineId, str],
        initial_input: Any = None,
    ) -> Optional[asyncio.Task]:
        """
        Start a pipeline in the background.

        Args:
            pipeline_id: Id of a registered pipeline
            initial_input: Input for the first step; defaults to an empty payload

        Returns:
            asyncio.Task: The scheduled run, or None if a run is already
            active or the pipeline is unknown
        """
        if self._is_running:
            self.logger.info("Run already active; ignoring start request", pipeline_id=str(pipeline_id))
            return None

        pipeline = get_pipeline(pipeline_id)
        if pipeline is None:
            error = UnknownPipelineError(agent_key(pipeline_id))
            self.logger.error(error.message, pipeline_id=agent_key(pipeline_id))
            return None

        loop = asyncio.get_running_loop()
        token = self._begin_run()
        context = self.build_context()
        payload = initial_input if initial_input is not None else {}
        return self._spawn(loop, self._run_pipeline(pipeline, payload, context, token))

    def start_agent(self, agent_id: Union[AgentId, str], input: Any = None) -> Optional[asyncio.Task]:
        """
        Run a single agent in the background, wrapped in a one-step PipelineRun.

        Returns:
            asyncio.Task: The scheduled run, or None if a run is already
            active or the agent is not registered
        """
        if self._is_running:
            self.logger.info("Run already active; ignoring start request", agent_id=agent_key(agent_id))
            return None

        definition = self.registry.get(agent_id)
        if definition is None:
            error = UnknownAgentError(agent_key(agent_id))
            self.logger.error(error.message, agent_id=agent_key(agent_id))
            return None

        loop = asyncio.get_running_loop()
        token = self._begin_run()
        context = self.build_context()
        key = agent_key(agent_id)
        synthetic = PipelineRun(id=generate_id(f"single-{key}"), pipeline_id=key)
        self._publish_run(synthetic.model_copy(deep=True))
        return self._spawn(loop, self._run_agent(definition, input, context, token, synthetic))

    def cancel(self) -> None:
        """Request cooperative cancellation of the current run, if any."""
        if self._token is None or not self._is_running:
            return
        if not self._token.cancelled:
            self.logger.info("Cancellation requested",
                             run_id=self._current_run.id if self._current_run else None)
        self._token.cancel()

    async def wait(self) -> None:
        """Wait for the in-flight run, if any, to finish."""
        if self._task is not None:
            await self._task

    def _begin_run(self) -> CancellationToken:
        self._token = CancellationToken()
        self._set_running(True)
        return self._token

    def _spawn(self, loop: asyncio.AbstractEventLoop, coro) -> asyncio.Task:
        self._task = loop.create_task(coro)
        return self._task

    def _end_run(self) -> None:
        self._token = None
        self._task = None
        self._set_running(False)

    async def _run_pipeline(self, pipeline, initial_input: Any, context: AgentContext,
                            token: CancellationToken) -> None:
        try:
            final_run = await self.orchestrator.run_pipeline(
                pipeline, initial_input, context, self._publish_run, token
            )
            self._publish_run(final_run.model_copy(deep=True))
            last_output = final_run.last_completed_output()
            if last_output is not None:
                self._last_output = last_output
            await self._add_to_history(final_run)
        except Exception as e:
            self.log_run_error("pipeline_execution_error", e, pipeline_id=agent_key(pipeline.id))
        finally:
            self._end_run()

    async def _run_agent(self, definition, input: Any, context: AgentContext,
                         token: CancellationToken, synthetic: PipelineRun) -> None:
        def on_agent_update(agent_run: AgentRun) -> None:
            synthetic.agent_runs = [agent_run]
            self._publish_run(synthetic.model_copy(deep=True))

        try:
            agent_run = await self.executor.execute(definition, input, context, on_agent_update, token)
            synthetic.agent_runs = [agent_run]
            if agent_run.status == AgentStatus.CANCELLED:
                synthetic.status = AgentStatus.CANCELLED
            elif agent_run.status == AgentStatus.COMPLETED:
                synthetic.status = AgentStatus.COMPLETED
                if agent_run.output is not None:
                    self._last_output = agent_run.output
            else:
                synthetic.status = AgentStatus.FAILED
        except PreflightRejectedError as e:
            synthetic.status = AgentStatus.FAILED
            self.logger.warning("Agent rejected run", agent_id=agent_key(definition.id), reason=e.message)
        except Exception as e:
            synthetic.status = AgentStatus.FAILED
            self.log_run_error("agent_execution_error", e, agent_id=agent_key(definition.id))

        try:
            synthetic.completed_at = utc_now()
            self._publish_run(synthetic.model_copy(deep=True))
            await self._add_to_history(synthetic)
        finally:
            self._end_run()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def _add_to_history(self, pipeline_run: PipelineRun) -> None:
        new_entries = project_entries(pipeline_run)
        if not new_entries:
            return

        self._history = prepend_entries(self._history, new_entries, self.config.history_limit)
        if not await self.history_store.save(self._history):
            self.logger.warning("Run history could not be persisted", pipeline_run_id=pipeline_run.id)
        self._notify(self._history_listeners, new_entries)

    async def mark_proactive(self, entry_id: str, trigger_reason: str) -> Optional[AgentResultEntry]:
        """
        Flag a history entry as started by the proactive engine.

        Returns:
            AgentResultEntry: The updated entry, or None if it is no longer in history
        """
        for index, entry in enumerate(self._history):
            if entry.id == entry_id:
                updated = entry.model_copy(update={"proactive": True, "trigger_reason": trigger_reason})
                self._history[index] = updated
                await self.history_store.save(self._history)
                return updated
        return None

    async def clear_history(self) -> None:
        self._history = []
        await self.history_store.clear()
        self.logger.info("Run history cleared")

    # ------------------------------------------------------------------
    # Content approval
    # ------------------------------------------------------------------

    def approve_content(self, drafts: Iterable[Union[DraftItem, dict]]) -> List[ContentItem]:
        """
        Stamp generated drafts into calendar items.

        Text content skips filming, so it is approved as already filmed.
        """
        approved = []
        for draft in drafts:
            data = draft.model_dump() if isinstance(draft, DraftItem) else dict(draft)
            for key in ("id", "filmed", "posted"):
                data.pop(key, None)
            approved.append(ContentItem(
                **data,
                id=generate_id("content"),
                filmed=data.get("content_type") == "text",
                posted=False,
            ))
        return approved
