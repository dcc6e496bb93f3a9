"""
Pipeline definitions: ordered agent steps with optional input mappers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..models.core import AgentContext, AgentId, PipelineId, SchedulerInput, WriterOutput

InputMapper = Callable[[Any, AgentContext], Any]


@dataclass(frozen=True)
class PipelineStep:
    """One agent invocation inside a pipeline."""
    agent_id: Union[AgentId, str]
    input_mapper: Optional[InputMapper] = None
    optional: bool = False


@dataclass(frozen=True)
class PipelineDefinition:
    """A named, ordered sequence of agent steps."""
    id: Union[PipelineId, str]
    name: str
    description: str
    icon: str = ""
    steps: List[PipelineStep] = field(default_factory=list)


def writer_to_scheduler(previous_output: Any, context: AgentContext) -> SchedulerInput:
    """Feed the writer's drafts straight into the scheduler."""
    writer_output = (
        previous_output if isinstance(previous_output, WriterOutput)
        else WriterOutput.model_validate(previous_output)
    )
    return SchedulerInput(content_items=writer_output.content_items)


PIPELINES: Dict[str, PipelineDefinition] = {
    PipelineId.FULL_CONTENT.value: PipelineDefinition(
        id=PipelineId.FULL_CONTENT,
        name="Generate Content",
        description="Generate content and schedule optimal posting times.",
        icon="sparkles",
        steps=[
            PipelineStep(agent_id=AgentId.WRITER),
            PipelineStep(agent_id=AgentId.SCHEDULER, input_mapper=writer_to_scheduler),
        ],
    ),
}


def get_pipeline(pipeline_id: Union[PipelineId, str]) -> Optional[PipelineDefinition]:
    key = pipeline_id.value if isinstance(pipeline_id, PipelineId) else str(pipeline_id)
    return PIPELINES.get(key)
