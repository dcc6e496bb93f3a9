"""
Error taxonomy for the agent engine.
"""

from enum import Enum


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Categories of errors."""
    PREFLIGHT = "preflight"
    EXECUTION = "execution"
    ORCHESTRATION = "orchestration"
    EXTERNAL_API = "external_api"


class ContentAgentsError(Exception):
    """Base exception for Content Agents."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.EXECUTION,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM, **kwargs):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = kwargs


class PreflightRejectedError(ContentAgentsError):
    """An agent declined to run in the current context."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.PREFLIGHT, ErrorSeverity.HIGH, **kwargs)


class UnknownAgentError(ContentAgentsError):
    """An agent id is not present in the registry."""

    def __init__(self, agent_id: str, **kwargs):
        super().__init__(
            f'Agent "{agent_id}" not found in registry',
            ErrorCategory.ORCHESTRATION, ErrorSeverity.MEDIUM, agent_id=agent_id, **kwargs
        )


class UnknownPipelineError(ContentAgentsError):
    """A pipeline id has no definition."""

    def __init__(self, pipeline_id: str, **kwargs):
        super().__init__(
            f'Pipeline "{pipeline_id}" not found',
            ErrorCategory.ORCHESTRATION, ErrorSeverity.MEDIUM, pipeline_id=pipeline_id, **kwargs
        )


class InputMappingError(ContentAgentsError):
    """A pipeline step's input mapper raised."""

    def __init__(self, message: str, **kwargs):
        super().__init__(f"Input mapping failed: {message}", ErrorCategory.ORCHESTRATION,
                         ErrorSeverity.MEDIUM, **kwargs)


class ContentGenerationError(ContentAgentsError):
    """The content generation API returned an error or unusable output."""

    def __init__(self, message: str, error_type: str = "api_error", status: int = None, **kwargs):
        super().__init__(message, ErrorCategory.EXTERNAL_API, ErrorSeverity.MEDIUM,
                         error_type=error_type, status=status, **kwargs)
        self.error_type = error_type
        self.status = status
