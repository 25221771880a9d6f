"""
Planning module - Step model and plan compilation

Classes for turning a plan (ordered free-text step descriptions) into
typed, executable steps.
"""

from tabrunner_core.planning.steps import (
    StepKind,
    OutputFormat,
    Step,
    StepResult,
    Record,
)
from tabrunner_core.planning.classifier import (
    ClassificationRule,
    CLASSIFICATION_RULES,
    Marker,
    classify,
)
from tabrunner_core.planning.query import derive_search_query, is_discovery_intent
from tabrunner_core.planning.compiler import CompiledPlan, IndexMap, PlanCompiler

__all__ = [
    'StepKind',
    'OutputFormat',
    'Step',
    'StepResult',
    'Record',
    'ClassificationRule',
    'CLASSIFICATION_RULES',
    'Marker',
    'classify',
    'derive_search_query',
    'is_discovery_intent',
    'CompiledPlan',
    'IndexMap',
    'PlanCompiler',
]
