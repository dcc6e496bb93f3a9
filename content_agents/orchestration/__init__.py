"""
Run orchestration for Content Agents.

This package provides:
- The agent executor and cancellation token
- Pipeline definitions and the sequential orchestrator
- The run manager owning the current run and history
"""

from .executor import AgentExecutor, CancellationToken
from .orchestrator import PipelineOrchestrator
from .pipelines import PIPELINES, PipelineDefinition, PipelineStep, get_pipeline
from .run_manager import RunManager

__all__ = [
    'AgentExecutor',
    'CancellationToken',
    'PipelineOrchestrator',
    'PIPELINES',
    'PipelineDefinition',
    'PipelineStep',
    'get_pipeline',
    'RunManager',
]
