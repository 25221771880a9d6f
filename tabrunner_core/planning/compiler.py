"""
Plan Compiler - turn plan-step descriptions into executable Steps

Takes the ordered free-text steps produced by the planning collaborator
and generates the typed step list the ExecutionController runs, together
with an IndexMap that points every compiled step back at the plan step it
satisfies (one plan step may compile to zero, one or several steps).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from ..config import config as default_config
from ..exceptions import EmptyPlanError
from .classifier import (
    Marker,
    classify,
    extract_click_target,
    extract_duration_ms,
    extract_search_query,
    extract_selector_hint,
    extract_type_params,
    find_url,
)
from .query import derive_search_query, is_discovery_intent
from .steps import OutputFormat, Step, StepKind

logger = logging.getLogger(__name__)


FORMAT_KEYWORDS = [
    (OutputFormat.CSV, ("csv",)),
    (OutputFormat.SHEET, ("google sheet", "spreadsheet", "sheet", "excel")),
    (OutputFormat.TABLE, ("table",)),
    (OutputFormat.TEXT, ("text", "report", "document")),
]

# Step kinds that open a tab of their own
TAB_OPENING_KINDS = (StepKind.NAVIGATE, StepKind.SEARCH)


@dataclass
class _Entry:
    """Compiled step plus its back-references, before the final ordering"""
    step: Step
    plan_index: int
    absorbed: List[int] = field(default_factory=list)


class IndexMap:
    """
    Mapping from compiled-step index to plan-step index.

    Besides the primary plan index each compiled step may absorb other plan
    indices (dropped "open a new tab" steps, no-op steps). Those are reported
    with the absorbing step's outcome.
    """

    def __init__(self, plan_indices: Sequence[int], absorbed: Optional[Sequence[Sequence[int]]] = None):
        self._plan_indices = list(plan_indices)
        absorbed = absorbed or [[] for _ in self._plan_indices]
        if len(absorbed) != len(self._plan_indices):
            raise ValueError("absorbed list must match compiled steps")
        self._absorbed = [list(a) for a in absorbed]

    def __len__(self) -> int:
        return len(self._plan_indices)

    def plan_index_for(self, compiled_index: int) -> int:
        return self._plan_indices[compiled_index]

    def absorbed_by(self, compiled_index: int) -> List[int]:
        return list(self._absorbed[compiled_index])

    def plan_indices_for(self, compiled_index: int) -> List[int]:
        """Primary plan index first, then absorbed ones"""
        return [self._plan_indices[compiled_index]] + self.absorbed_by(compiled_index)

    def entries(self) -> Dict[int, int]:
        return dict(enumerate(self._plan_indices))

    def covered_plan_indices(self) -> List[int]:
        covered = set(self._plan_indices)
        for extra in self._absorbed:
            covered.update(extra)
        return sorted(covered)


@dataclass
class CompiledPlan:
    """Executable steps plus their mapping back to the plan"""
    steps: List[Step]
    index_map: IndexMap
    plan_steps: List[str] = field(default_factory=list)
    intent: Optional[str] = None

    def __len__(self) -> int:
        return len(self.steps)


class PlanCompiler:
    """
    Compile plan-step descriptions into typed steps.

    Usage:
        compiler = PlanCompiler()
        plan = compiler.compile(
            ["Search for cheap noise-cancelling headphones", "Extract results", "Create a CSV"],
            output_format="csv",
        )

        for step in plan.steps:
            print(f"{step.kind.value}: {step.description}")
    """

    def __init__(self, implied_wait_ms: Optional[int] = None):
        if implied_wait_ms is None:
            implied_wait_ms = default_config.implied_wait_ms
        self.implied_wait_ms = implied_wait_ms

    def compile(
        self,
        plan_steps: Sequence[str],
        output_format: Union[str, OutputFormat, None] = None,
        intent: Optional[str] = None,
    ) -> CompiledPlan:
        """
        Compile plan steps.

        Args:
            plan_steps: Ordered free-text step descriptions
            output_format: Requested output format (sheet|csv|table|text)
            intent: Original one-line user request, used for discovery queries

        Returns:
            CompiledPlan with steps and index map

        Raises:
            EmptyPlanError: nothing executable was produced
        """
        requested_format = OutputFormat.parse(output_format) if output_format else None
        entries = self._classify_steps(plan_steps, requested_format)

        if intent and is_discovery_intent(intent) and not any(
            e.step.kind is StepKind.SEARCH for e in entries
        ):
            entries = self._add_discovery_search(entries, intent)

        entries = self._enforce_ordering(entries)

        if not entries:
            raise EmptyPlanError(f"Plan with {len(plan_steps)} step(s) compiled to no executable steps")

        index_map = IndexMap(
            [e.plan_index for e in entries],
            [e.absorbed for e in entries],
        )
        steps = [e.step for e in entries]

        logger.info(f"Compiled {len(plan_steps)} plan step(s) into {len(steps)} step(s)")
        for i, step in enumerate(steps):
            logger.debug(f"  {i + 1}. {step.kind.value}: {step.description} -> plan {index_map.plan_indices_for(i)}")

        return CompiledPlan(steps=steps, index_map=index_map, plan_steps=list(plan_steps), intent=intent)

    # --- Classification --------------------------------------------------

    def _classify_steps(self, plan_steps: Sequence[str], requested_format: Optional[OutputFormat]) -> List[_Entry]:
        entries: List[_Entry] = []
        pending_new_tabs: List[int] = []
        leading_noops: List[int] = []

        for i, text in enumerate(plan_steps):
            text = (text or "").strip()
            rule = classify(text)

            if rule.action is Marker.NEW_TAB:
                pending_new_tabs.append(i)
                continue
            if rule.action in (Marker.NOOP, Marker.DROP):
                if rule.action is Marker.DROP:
                    logger.info(f"Dropping navigation without URL: {text!r}")
                if entries:
                    entries[-1].absorbed.append(i)
                else:
                    leading_noops.append(i)
                continue

            entry = _Entry(step=self._build_step(rule.action, text, requested_format), plan_index=i)
            if pending_new_tabs and entry.step.kind in TAB_OPENING_KINDS:
                entry.absorbed.extend(pending_new_tabs)
                pending_new_tabs = []
            entries.append(entry)

        # New-tab markers with no tab-opening step after them ride on the
        # next compiled step, else on the last one.
        for idx in pending_new_tabs:
            owner = next((e for e in entries if e.plan_index > idx), entries[-1] if entries else None)
            if owner is not None:
                owner.absorbed.append(idx)
        if leading_noops and entries:
            entries[0].absorbed.extend(leading_noops)

        for e in entries:
            e.absorbed.sort()
        return entries

    def _build_step(self, kind: StepKind, text: str, requested_format: Optional[OutputFormat]) -> Step:
        if kind is StepKind.NAVIGATE:
            return Step.navigate(find_url(text), description=text)
        if kind is StepKind.SEARCH:
            return Step.search(extract_search_query(text), description=text)
        if kind is StepKind.EXTRACT:
            return Step.extract(extract_selector_hint(text), description=text)
        if kind is StepKind.CLICK:
            return Step.click(extract_click_target(text), description=text)
        if kind is StepKind.TYPE:
            selector, value = extract_type_params(text)
            return Step.type_text(selector, value, description=text)
        if kind is StepKind.SCROLL:
            return Step.scroll(description=text)
        if kind is StepKind.WAIT:
            return Step.wait(extract_duration_ms(text), description=text)
        if kind is StepKind.PRODUCE_OUTPUT:
            return Step.produce_output(self._output_format_for(text, requested_format), description=text)
        raise ValueError(f"Unhandled step kind: {kind}")

    @staticmethod
    def _output_format_for(text: str, requested_format: Optional[OutputFormat]) -> OutputFormat:
        lower = text.lower()
        for fmt, keywords in FORMAT_KEYWORDS:
            if any(k in lower for k in keywords):
                return fmt
        return requested_format or OutputFormat.TABLE

    # --- Discovery shortcut ----------------------------------------------

    def _add_discovery_search(self, entries: List[_Entry], intent: str) -> List[_Entry]:
        query = derive_search_query(intent)
        first_extract = next((e for e in entries if e.step.kind is StepKind.EXTRACT), None)
        if first_extract is not None:
            owner = first_extract.plan_index
        elif entries:
            owner = entries[0].plan_index
        else:
            owner = 0
        logger.info(f"Discovery request without search step; searching for {query!r}")
        search = _Entry(step=Step.search(query, description=f"Search for {query}"), plan_index=owner)
        return [search] + entries

    # --- Ordering invariants ---------------------------------------------

    def _enforce_ordering(self, entries: List[_Entry]) -> List[_Entry]:
        entries = self._pull_search_before_extract(entries)
        entries = self._outputs_last(entries)
        return self._insert_implied_waits(entries)

    @staticmethod
    def _pull_search_before_extract(entries: List[_Entry]) -> List[_Entry]:
        """An Extract with nothing opened before it borrows the next later Search."""
        result = list(entries)
        i = 0
        while i < len(result):
            entry = result[i]
            if entry.step.kind is StepKind.EXTRACT:
                opened = any(e.step.kind in TAB_OPENING_KINDS for e in result[:i])
                if not opened:
                    later = next(
                        (j for j in range(i + 1, len(result)) if result[j].step.kind is StepKind.SEARCH),
                        None,
                    )
                    if later is not None:
                        search = result.pop(later)
                        result.insert(i, search)
                        i += 1
            i += 1
        return result

    @staticmethod
    def _outputs_last(entries: List[_Entry]) -> List[_Entry]:
        outputs = [e for e in entries if e.step.kind is StepKind.PRODUCE_OUTPUT]
        if not outputs:
            return entries
        others = [e for e in entries if e.step.kind is not StepKind.PRODUCE_OUTPUT]
        return others + outputs

    def _insert_implied_waits(self, entries: List[_Entry]) -> List[_Entry]:
        """Search directly followed by Extract gets a bounded Wait in between."""
        result: List[_Entry] = []
        for i, entry in enumerate(entries):
            result.append(entry)
            nxt = entries[i + 1] if i + 1 < len(entries) else None
            if entry.step.kind is StepKind.SEARCH and nxt is not None and nxt.step.kind is StepKind.EXTRACT:
                wait = Step.wait(self.implied_wait_ms, description="Wait for search results to load")
                result.append(_Entry(step=wait, plan_index=nxt.plan_index))
        return result
