"""
Agent executor: runs one agent definition against one input.

The executor owns the AgentRun it builds. Every state change is pushed
to the caller as a deep-copied snapshot, so observers never see a record
change underneath them.
"""

from typing import Any, Callable, Optional

from ..agents.base import AgentCallbacks, AgentDefinition, agent_key
from ..models.core import AgentContext, AgentRun, AgentStatus, AgentStep, utc_now
from ..models.errors import PreflightRejectedError
from ..utils.ids import generate_id
from ..utils.logging import LoggerMixin

RunUpdateCallback = Callable[[AgentRun], None]

DEFAULT_PREFLIGHT_REASON = "Agent cannot run in the current context"
CANCELLED_ERROR = "Agent execution was cancelled"


class CancellationToken:
    """
    Cooperative, one-way cancellation flag shared by everything in one run.

    Setting it more than once has no further effect.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def _finalize(run: AgentRun) -> None:
    run.completed_at = utc_now()
    run.duration_ms = int((run.completed_at - run.started_at).total_seconds() * 1000)


def new_run_id(agent_id: Any) -> str:
    return generate_id(f"run-{agent_key(agent_id)}")


def synthetic_failed_run(agent_id: Any, error: str, input: Any = None) -> AgentRun:
    """A failed run that never executed, for steps that could not start."""
    now = utc_now()
    return AgentRun(
        id=new_run_id(agent_id),
        agent_id=agent_key(agent_id),
        status=AgentStatus.FAILED,
        input=input,
        error=error,
        started_at=now,
        completed_at=now,
        duration_ms=0,
    )


class _RunCallbacks(AgentCallbacks):
    """Callbacks that record steps on one run and emit a snapshot per change."""

    def __init__(self, run: AgentRun, emit: Callable[[], None], token: CancellationToken):
        self._run = run
        self._emit = emit
        self._token = token

    def on_step_start(self, step_id: str, label: str) -> None:
        self._run.steps.append(AgentStep(
            id=step_id,
            label=label,
            status=AgentStatus.RUNNING,
            started_at=utc_now(),
        ))
        self._emit()

    def on_step_complete(self, step_id: str, data: Any = None) -> None:
        step = self._run.get_step(step_id)
        if step:
            step.status = AgentStatus.COMPLETED
            step.completed_at = utc_now()
            step.data = data
        self._emit()

    def on_step_error(self, step_id: str, message: str) -> None:
        step = self._run.get_step(step_id)
        if step:
            step.status = AgentStatus.FAILED
            step.completed_at = utc_now()
            step.error = message
        self._emit()

    def on_progress(self, message: str) -> None:
        self._emit()

    def should_cancel(self) -> bool:
        return self._token.cancelled


class AgentExecutor(LoggerMixin):
    """Executes agent definitions and produces fully timed AgentRun records."""

    async def execute(
        self,
        definition: AgentDefinition,
        input: Any,
        context: AgentContext,
        on_update: Optional[RunUpdateCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> AgentRun:
        """
        Run ``definition`` once.

        Args:
            definition: Agent to execute
            input: Agent-specific input payload
            context: Read-only snapshot of host state
            on_update: Receives a snapshot after every change to the run
            token: Cancellation token polled by the agent and checked afterwards

        Returns:
            AgentRun: The run, in ``completed``, ``failed`` or ``cancelled`` state

        Raises:
            PreflightRejectedError: If ``can_run`` denies; the failed run has
                already been emitted when this is raised
        """
        if token is None:
            token = CancellationToken()
        agent_id = agent_key(definition.id)
        run = AgentRun(id=new_run_id(agent_id), agent_id=agent_id, input=input)

        def emit() -> None:
            if on_update is not None:
                on_update(run.model_copy(deep=True))

        emit()
        self.log_run_event("agent_run_started", run_id=run.id, agent_id=agent_id)

        preflight = definition.can_run(context)
        if not preflight.ok:
            run.status = AgentStatus.FAILED
            run.error = preflight.reason or DEFAULT_PREFLIGHT_REASON
            _finalize(run)
            emit()
            self.log_run_event("agent_run_rejected", run_id=run.id, agent_id=agent_id, reason=run.error)
            raise PreflightRejectedError(run.error, agent_id=agent_id, run_id=run.id)

        callbacks = _RunCallbacks(run, emit, token)

        try:
            output = await definition.execute(input, context, callbacks)
            if token.cancelled:
                run.status = AgentStatus.CANCELLED
                run.error = CANCELLED_ERROR
            else:
                run.status = AgentStatus.COMPLETED
                run.output = output
        except Exception as e:
            run.status = AgentStatus.FAILED
            run.error = str(e) or type(e).__name__
            self.log_run_error("agent_run_error", e, run_id=run.id, agent_id=agent_id)

        _finalize(run)
        emit()
        self.log_run_event(
            "agent_run_finished",
            run_id=run.id,
            agent_id=agent_id,
            status=run.status.value,
            duration_ms=run.duration_ms,
        )
        return run
