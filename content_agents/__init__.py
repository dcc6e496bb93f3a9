"""
Content Agents: an in-process agent orchestration engine for a content
production dashboard.
"""

__version__ = "0.1.0"
