"""
Execution Controller - sequential, cancellable step loop

Runs compiled steps strictly in order against one browser session:

    Idle -> Running -> Completed | Failed | Stopped

A failing step becomes a failed StepResult and the loop moves on; nothing
raised inside a step reaches the caller. Cancellation is only looked at
between steps.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..browser.adapter import BrowserSessionAdapter, NavigationOutcome
from ..config import Config, config as default_config
from ..error_handler import format_error_for_logging, format_step_error
from ..exceptions import OutputError, SessionActiveError
from ..extraction.extractor import SearchResultExtractor
from ..output.builder import OutputBuilder
from ..planning.steps import Record, Step, StepKind, StepResult
from .session import ExecutionSession, RunState

logger = logging.getLogger(__name__)

StepResultCallback = Callable[[StepResult], Any]
DoneCallback = Callable[[List[StepResult], Sequence[Record]], Any]

STOPPED_STATUS = "Stopped by user"
STOPPED_ERROR = "Execution stopped"


class ExecutionController:
    """
    Execute a session's compiled steps.

    Usage:
        controller = ExecutionController(adapter, SearchResultExtractor(), builder)
        session = ExecutionSession.from_plan(plan)
        results = await controller.run(session, on_step_result=print)
    """

    def __init__(
        self,
        adapter: BrowserSessionAdapter,
        extractor: Optional[SearchResultExtractor] = None,
        output_builder: Optional[OutputBuilder] = None,
        config: Optional[Config] = None,
        run_logger=None,
    ):
        self.adapter = adapter
        self.config = config or default_config
        self.extractor = extractor or SearchResultExtractor(self.config)
        self.output_builder = output_builder
        self.run_logger = run_logger
        self.session: Optional[ExecutionSession] = None

    def stop(self) -> None:
        """Request cancellation; takes effect before the next step starts"""
        if self.session is not None and self.session.state is RunState.RUNNING:
            logger.info("Stop requested")
            self.session.request_stop()

    async def run(
        self,
        session: ExecutionSession,
        on_step_result: Optional[StepResultCallback] = None,
        on_done: Optional[DoneCallback] = None,
    ) -> List[StepResult]:
        """
        Run every compiled step of session.

        Returns:
            Visible results, one per plan index
        """
        if session.state is not RunState.IDLE:
            raise SessionActiveError(f"Session is {session.state.value}, expected idle")
        self.session = session

        if not session.steps:
            session.state = RunState.FAILED
            session.error = "No executable steps"
            logger.error("Nothing to execute: plan compiled to no steps")
            await self._notify(on_done, [], [])
            return []

        session.state = RunState.RUNNING
        total = len(session.steps)
        logger.info(f"Executing {total} step(s)")

        try:
            for i, step in enumerate(session.steps):
                session.step_pointer = i
                if session.cancel_requested:
                    stopped = StepResult(
                        compiled_index=i,
                        plan_index=session.index_map.plan_index_for(i),
                        success=False,
                        status_message=STOPPED_STATUS,
                        error=STOPPED_ERROR,
                    )
                    await self._emit(session, stopped, on_step_result)
                    session.state = RunState.STOPPED
                    logger.info(f"Stopped before step {i + 1}/{total}")
                    break

                result = await self._execute(session, i, step)
                await self._emit(session, result, on_step_result)

                if i < total - 1 and self.config.step_delay_ms > 0:
                    await asyncio.sleep(self.config.step_delay_ms / 1000)
            else:
                session.state = RunState.COMPLETED
        finally:
            if not session.state.is_terminal:
                session.state = RunState.FAILED
            logger.info(f"Run finished: {session.state.value}")
            await self._notify(on_done, session.results, session.records)

        return session.results

    # --- Step dispatch ----------------------------------------------------

    async def _execute(self, session: ExecutionSession, index: int, step: Step) -> StepResult:
        executors = {
            StepKind.NAVIGATE: self._execute_navigate,
            StepKind.SEARCH: self._execute_search,
            StepKind.EXTRACT: self._execute_extract,
            StepKind.CLICK: self._execute_click,
            StepKind.TYPE: self._execute_type,
            StepKind.SCROLL: self._execute_scroll,
            StepKind.WAIT: self._execute_wait,
            StepKind.PRODUCE_OUTPUT: self._execute_output,
        }
        plan_index = session.index_map.plan_index_for(index)
        logger.info(f"Step {index + 1}/{len(session.steps)}: {step.kind.value} - {step.description}")
        start = time.time()
        try:
            status, payload = await executors[step.kind](session, step)
            result = StepResult(
                compiled_index=index,
                plan_index=plan_index,
                success=True,
                status_message=status,
                payload=payload,
            )
        except Exception as e:
            logger.warning(format_error_for_logging(e, step.description))
            result = StepResult(
                compiled_index=index,
                plan_index=plan_index,
                success=False,
                status_message=format_step_error(e, step.description),
                error=str(e) or e.__class__.__name__,
            )
        result.duration_ms = int((time.time() - start) * 1000)

        if self.run_logger:
            self.run_logger.log_step_result(
                index, step.kind.value, result.success, result.duration_ms,
                result.status_message if result.success else f"{result.status_message}: {result.error}",
            )
        return result

    @staticmethod
    def _navigation_status(prefix: str, outcome: NavigationOutcome) -> Tuple[str, Dict[str, Any]]:
        status = prefix
        if outcome.warning:
            status = f"{prefix} ({outcome.warning})"
        payload: Dict[str, Any] = {"url": outcome.final_url, "timed_out": outcome.timed_out}
        if outcome.query_verified is not None:
            payload["query_verified"] = outcome.query_verified
        return status, payload

    async def _execute_navigate(self, session: ExecutionSession, step: Step):
        outcome = await self.adapter.navigate(step.params.url)
        return self._navigation_status(f"Navigated to {outcome.final_url}", outcome)

    async def _execute_search(self, session: ExecutionSession, step: Step):
        query = step.params.query
        outcome = await self.adapter.search(query)
        status, payload = self._navigation_status(f"Searched for '{query}'", outcome)
        payload["query"] = query
        return status, payload

    async def _execute_extract(self, session: ExecutionSession, step: Step):
        records = await self.extractor.extract(self.adapter, step.params.selector_hint)
        session.add_records(records)
        logger.info(f"Collected {len(session.records)} record(s) so far")
        return f"Extracted {len(records)} items", [r.to_row() for r in records]

    async def _execute_click(self, session: ExecutionSession, step: Step):
        await self.adapter.click(step.params.selector)
        return f"Clicked {step.params.selector}", {"selector": step.params.selector}

    async def _execute_type(self, session: ExecutionSession, step: Step):
        await self.adapter.type_text(step.params.selector, step.params.text)
        return f"Typed into {step.params.selector}", {"selector": step.params.selector, "text": step.params.text}

    async def _execute_scroll(self, session: ExecutionSession, step: Step):
        await self.adapter.scroll()
        return "Scrolled down", None

    async def _execute_wait(self, session: ExecutionSession, step: Step):
        await self.adapter.wait(step.params.duration_ms)
        return f"Waited {step.params.duration_ms}ms", None

    async def _execute_output(self, session: ExecutionSession, step: Step):
        if self.output_builder is None:
            raise OutputError("No output stage configured")
        artifact = await self.output_builder.build(step.params.output_format, session.records)
        status = artifact.status_message
        if artifact.warning:
            status = f"{status} ({artifact.warning})"
        return status, artifact.to_dict()

    # --- Callbacks --------------------------------------------------------

    async def _emit(self, session: ExecutionSession, result: StepResult, callback: Optional[StepResultCallback]):
        for visible in session.record_result(result):
            await self._notify(callback, visible)

    @staticmethod
    async def _notify(callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.exception(f"Progress callback failed: {e}")
