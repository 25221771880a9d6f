"""
Execution session - state owned by one plan run
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..planning.compiler import CompiledPlan, IndexMap
from ..planning.steps import Record, Step, StepResult


class RunState(Enum):
    """Run lifecycle: idle -> running -> completed | failed | stopped"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED, RunState.STOPPED)


class ExecutionSession:
    """
    One in-flight execution of a compiled plan.

    Created fresh per run and discarded once the caller has the results.
    Records collected by Extract steps accumulate here across the whole run.
    """

    def __init__(self, steps: Sequence[Step], index_map: Optional[IndexMap] = None):
        self.steps: List[Step] = list(steps)
        self.index_map = index_map or IndexMap(list(range(len(self.steps))))
        if len(self.index_map) != len(self.steps):
            raise ValueError("index map does not match compiled steps")
        self.state = RunState.IDLE
        self.step_pointer = 0
        self.cancel_requested = False
        self.error: Optional[str] = None
        self._records: List[Record] = []
        self._results: Dict[int, StepResult] = {}
        self.attempted: List[StepResult] = []

    @classmethod
    def from_plan(cls, plan: CompiledPlan) -> "ExecutionSession":
        return cls(plan.steps, plan.index_map)

    # --- Records ----------------------------------------------------------

    def add_records(self, records: Sequence[Record]) -> None:
        self._records.extend(records)

    @property
    def records(self) -> Tuple[Record, ...]:
        """Read-only view of the collected records"""
        return tuple(self._records)

    # --- Results ----------------------------------------------------------

    def record_result(self, result: StepResult) -> List[StepResult]:
        """
        Store a compiled-step result under every plan index it satisfies.

        Later results for a plan index replace earlier ones. Returns the
        visible results that changed, primary plan index first.
        """
        self.attempted.append(result)
        changed = [result]
        for plan_index in self.index_map.absorbed_by(result.compiled_index):
            changed.append(StepResult(
                compiled_index=result.compiled_index,
                plan_index=plan_index,
                success=result.success,
                status_message=result.status_message,
                error=result.error,
                duration_ms=result.duration_ms,
            ))
        for visible in changed:
            self._results[visible.plan_index] = visible
        return changed

    @property
    def results(self) -> List[StepResult]:
        """Visible results ordered by plan index, one per plan index"""
        return [self._results[i] for i in sorted(self._results)]

    def request_stop(self) -> None:
        self.cancel_requested = True
