"""
tabrunner_core - sequential browser task runner

Compiles a plan (ordered free-text step descriptions) into typed steps and
executes them against a browser session, collecting search results and
handing them to an output stage.
"""

from .config import Config, config
from .exceptions import (
    TabrunnerError,
    CompilationError,
    EmptyPlanError,
    SessionActiveError,
    NoDataError,
)
from .planning import OutputFormat, PlanCompiler, Record, Step, StepKind, StepResult
from .execution import ExecutionController, ExecutionSession, RunState, RunSummary, TaskRunner

__all__ = [
    'Config',
    'config',
    'TabrunnerError',
    'CompilationError',
    'EmptyPlanError',
    'SessionActiveError',
    'NoDataError',
    'OutputFormat',
    'PlanCompiler',
    'Record',
    'Step',
    'StepKind',
    'StepResult',
    'ExecutionController',
    'ExecutionSession',
    'RunState',
    'RunSummary',
    'TaskRunner',
]

__version__ = '0.1.0'
