"""
Proactive triggers and the engine that fires them.
"""

from .engine import ProactiveEngine
from .triggers import ProactiveTrigger, SchedulerTrigger, TriggerState

__all__ = [
    'ProactiveEngine',
    'ProactiveTrigger',
    'SchedulerTrigger',
    'TriggerState',
]
