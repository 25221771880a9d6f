"""
Execution module - session state, step loop and runner
"""

from .session import ExecutionSession, RunState
from .controller import ExecutionController
from .runner import RunSummary, TaskRunner

__all__ = [
    'ExecutionSession',
    'RunState',
    'ExecutionController',
    'RunSummary',
    'TaskRunner',
]
