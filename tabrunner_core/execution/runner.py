"""
Task runner - owning context for plan runs

Compiles a plan, refuses to start a second run while one is active, and
drives the ExecutionController for the active one.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..browser.adapter import BrowserSessionAdapter
from ..config import Config, config as default_config
from ..exceptions import SessionActiveError
from ..extraction.extractor import SearchResultExtractor
from ..output.builder import OutputBuilder
from ..planning.compiler import CompiledPlan, PlanCompiler
from ..planning.steps import OutputFormat, Record, StepResult
from .controller import DoneCallback, ExecutionController, StepResultCallback
from .session import ExecutionSession, RunState

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Final outcome of one plan run"""
    state: RunState
    results: List[StepResult] = field(default_factory=list)
    records: List[Record] = field(default_factory=list)
    duration_ms: int = 0
    log_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED and all(r.success for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "results": [r.to_dict() for r in self.results],
            "records": [r.to_row() for r in self.records],
            "duration_ms": self.duration_ms,
            "log_path": self.log_path,
        }


class TaskRunner:
    """
    Run plans one at a time against a browser session.

    Usage:
        async with PlaywrightSessionAdapter.launch(config) as adapter:
            runner = TaskRunner(adapter, output_builder=OutputBuilder(LocalDownloadService()))
            summary = await runner.start(
                ["Search for cheap noise-cancelling headphones", "Extract results", "Create a CSV"],
                output_format="csv",
            )
    """

    def __init__(
        self,
        adapter: BrowserSessionAdapter,
        extractor: Optional[SearchResultExtractor] = None,
        output_builder: Optional[OutputBuilder] = None,
        compiler: Optional[PlanCompiler] = None,
        config: Optional[Config] = None,
    ):
        self.adapter = adapter
        self.config = config or default_config
        self.extractor = extractor or SearchResultExtractor(self.config)
        self.output_builder = output_builder
        self.compiler = compiler or PlanCompiler(self.config.implied_wait_ms)
        self._controller: Optional[ExecutionController] = None

    @property
    def is_running(self) -> bool:
        return self._controller is not None

    def stop(self) -> None:
        if self._controller is not None:
            self._controller.stop()

    def compile(
        self,
        plan_steps: Sequence[str],
        output_format: Union[str, OutputFormat, None] = None,
        intent: Optional[str] = None,
    ) -> CompiledPlan:
        return self.compiler.compile(plan_steps, output_format=output_format, intent=intent)

    async def start(
        self,
        plan_steps: Sequence[str],
        output_format: Union[str, OutputFormat, None] = None,
        intent: Optional[str] = None,
        on_step_result: Optional[StepResultCallback] = None,
        on_done: Optional[DoneCallback] = None,
        run_logger=None,
    ) -> RunSummary:
        """
        Compile and execute a plan.

        Raises:
            SessionActiveError: another run is in progress
            EmptyPlanError: the plan compiled to no steps (nothing was started)
        """
        if self.is_running:
            raise SessionActiveError("A plan is already running")

        plan = self.compile(plan_steps, output_format, intent)
        if run_logger:
            run_logger.log_plan(
                list(plan_steps),
                [f"{s.kind.value}: {s.description} -> plan step {plan.index_map.plan_index_for(i) + 1}"
                 for i, s in enumerate(plan.steps)],
            )

        session = ExecutionSession.from_plan(plan)
        controller = ExecutionController(
            self.adapter,
            extractor=self.extractor,
            output_builder=self.output_builder,
            config=self.config,
            run_logger=run_logger,
        )
        self._controller = controller
        start = time.time()
        try:
            results = await controller.run(session, on_step_result=on_step_result, on_done=on_done)
        finally:
            self._controller = None

        summary = RunSummary(
            state=session.state,
            results=results,
            records=list(session.records),
            duration_ms=int((time.time() - start) * 1000),
            log_path=run_logger.log_path if run_logger else None,
        )
        if run_logger:
            run_logger.log_records([r.to_row() for r in summary.records])
            run_logger.finalize(summary.state.value, summary.duration_ms, session.error)
        return summary
