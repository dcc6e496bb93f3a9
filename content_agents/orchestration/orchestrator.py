"""
Pipeline orchestrator for Content Agents.

Runs the steps of a pipeline definition in order, threading each step's
output into the next one and recording every agent run on a single
PipelineRun that observers receive as snapshots.
"""

from typing import Any, Callable, Optional

from ..agents.base import AgentRegistry, agent_key, agent_registry
from ..models.core import AgentContext, AgentRun, AgentStatus, PipelineRun, utc_now
from ..models.errors import InputMappingError, PreflightRejectedError, UnknownAgentError
from ..utils.ids import generate_id
from ..utils.logging import get_logger
from .executor import AgentExecutor, CancellationToken, synthetic_failed_run
from .pipelines import PipelineDefinition

PipelineUpdateCallback = Callable[[PipelineRun], None]


class PipelineOrchestrator:
    """
    Sequential pipeline runner.

    A non-optional step that fails ends the pipeline as ``failed``; an
    optional one is recorded and skipped, and the next step is fed the
    last successful output. A cancelled agent run, or a cancellation seen
    between steps, ends the pipeline as ``cancelled``.
    """

    def __init__(self, registry: Optional[AgentRegistry] = None, executor: Optional[AgentExecutor] = None):
        self.registry = registry if registry is not None else agent_registry
        self.executor = executor or AgentExecutor()
        self.logger = get_logger(f"{__name__}.PipelineOrchestrator")

    async def run_pipeline(
        self,
        pipeline: PipelineDefinition,
        initial_input: Any,
        context: AgentContext,
        on_update: Optional[PipelineUpdateCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> PipelineRun:
        """
        Execute every step of ``pipeline``.

        Args:
            pipeline: Pipeline to run
            initial_input: Input for the first step
            context: Read-only snapshot of host state shared by all steps
            on_update: Receives a snapshot after every change
            token: Cancellation token shared with each agent run

        Returns:
            PipelineRun: The finished pipeline run
        """
        if token is None:
            token = CancellationToken()
        pipeline_id = agent_key(pipeline.id)
        pipeline_run = PipelineRun(id=generate_id(f"pipeline-{pipeline_id}"), pipeline_id=pipeline_id)

        def emit() -> None:
            if on_update is not None:
                on_update(pipeline_run.model_copy(deep=True))

        def finish(status: AgentStatus) -> PipelineRun:
            pipeline_run.status = status
            pipeline_run.completed_at = utc_now()
            emit()
            self.logger.info(
                "Pipeline finished",
                pipeline_run_id=pipeline_run.id,
                pipeline_id=pipeline_id,
                status=status.value,
                agent_runs=len(pipeline_run.agent_runs),
            )
            return pipeline_run

        def record(agent_run: AgentRun) -> None:
            for index, existing in enumerate(pipeline_run.agent_runs):
                if existing.id == agent_run.id:
                    pipeline_run.agent_runs[index] = agent_run
                    break
            else:
                pipeline_run.agent_runs.append(agent_run)
            emit()

        emit()
        self.logger.info("Pipeline started", pipeline_run_id=pipeline_run.id, pipeline_id=pipeline_id)

        previous_output = initial_input

        for index, step in enumerate(pipeline.steps):
            if token.cancelled:
                return finish(AgentStatus.CANCELLED)

            pipeline_run.current_step_index = index
            emit()

            definition = self.registry.get(step.agent_id)
            if definition is None:
                error = UnknownAgentError(agent_key(step.agent_id))
                record(synthetic_failed_run(step.agent_id, error.message))
                self.logger.error("Pipeline step has no agent", pipeline_id=pipeline_id,
                                  agent_id=agent_key(step.agent_id), optional=step.optional)
                if step.optional:
                    continue
                return finish(AgentStatus.FAILED)

            if index == 0:
                step_input = initial_input
            elif step.input_mapper is not None:
                try:
                    step_input = step.input_mapper(previous_output, context)
                except Exception as e:
                    error = InputMappingError(str(e), agent_id=agent_key(step.agent_id))
                    record(synthetic_failed_run(step.agent_id, error.message))
                    self.logger.error("Pipeline input mapping failed", pipeline_id=pipeline_id,
                                      agent_id=agent_key(step.agent_id), error=str(e))
                    if step.optional:
                        continue
                    return finish(AgentStatus.FAILED)
            else:
                step_input = previous_output

            try:
                agent_run = await self.executor.execute(definition, step_input, context, record, token)
            except PreflightRejectedError:
                # The rejected run was already recorded through the update callback
                if step.optional:
                    continue
                return finish(AgentStatus.FAILED)

            if agent_run.status == AgentStatus.COMPLETED:
                previous_output = agent_run.output
            elif agent_run.status == AgentStatus.CANCELLED:
                return finish(AgentStatus.CANCELLED)
            elif not step.optional:
                return finish(AgentStatus.FAILED)

        return finish(AgentStatus.COMPLETED)
