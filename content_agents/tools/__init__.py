"""
External service clients.
"""

from .claude_client import ClaudeClient, ContentGenerator

__all__ = [
    'ClaudeClient',
    'ContentGenerator',
]
