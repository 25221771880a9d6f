"""
Run Logger - Markdown log of one plan run

One file per run, laid out as:
- header: intent, requested output format, command line
- the plan as received next to the compiled steps
- one entry per step result, in execution order
- table of collected records
- summary with the terminal state
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence


def _cell(value: Any) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


class RunLogger:
    """
    Markdown run log for one plan run.

    Usage:
        run_log = RunLogger(
            intent="find the top 7 budget laptops under $500",
            output_format="csv",
            command_line="tabrunner-run run plan.yaml --format csv",
        )

        run_log.log_plan(plan_steps, compiled_lines)
        run_log.log_step_result(0, "search", True, 2100, "Searched for 'budget laptops'")
        run_log.log_records(rows)
        run_log.finalize("completed", duration_ms=8400)
    """

    def __init__(
        self,
        intent: Optional[str] = None,
        output_format: Optional[str] = None,
        command_line: Optional[str] = None,
        log_dir: str = "./logs",
        session_id: Optional[str] = None
    ):
        self.session_id = session_id or datetime.now().strftime('%Y%m%d-%H%M%S-%f')
        self.dir = Path(log_dir)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.path = self.dir / f'run-{self.session_id}.md'
        self.failed_steps = 0

        lines = [f"# tabrunner run {self.session_id}", ""]
        if command_line:
            lines += ["```bash", command_line, "```", ""]
        if intent:
            lines.append(f"- **Intent**: {intent}")
        lines.append(f"- **Output format**: {output_format or 'from plan'}")
        lines.append(f"- **Started**: {datetime.now().isoformat(timespec='seconds')}")
        self.path.write_text("\n".join(lines) + "\n", encoding='utf-8')

    def _append(self, text: str):
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(text)

    def _section(self, title: str):
        self._append(f"\n## {title}\n\n")

    def log_plan(self, plan_steps: Sequence[str], compiled: Sequence[str]):
        """Plan as received, then the compiled steps it turned into"""
        self._section("Plan")
        self._append("".join(f"{i}. {text}\n" for i, text in enumerate(plan_steps, 1)))
        self._append("\n### Compiled steps\n\n")
        self._append("".join(f"{i}. {line}\n" for i, line in enumerate(compiled, 1)))
        self._section("Execution")

    def log_step_result(
        self,
        step_index: int,
        step_type: str,
        success: bool,
        duration_ms: int,
        details: Optional[str] = None
    ):
        """
        Args:
            step_index: Compiled step number (0-based)
            step_type: Step kind value, e.g. "search"
            success: Whether the step succeeded
            duration_ms: Time spent in the step
            details: Status message, or status plus error for failures
        """
        if not success:
            self.failed_steps += 1
        mark = "✅" if success else "❌"
        entry = f"**Step {step_index + 1}** {mark} `{step_type}` ({duration_ms}ms)"
        if details:
            entry += f": {details}"
        self._append(entry + "\n\n")

    def log_records(self, rows: Sequence[Dict[str, Any]], title: str = "Collected records"):
        """Records as a Markdown table, or a note when nothing was collected"""
        self._section(title)
        if not rows:
            self._append("_none_\n")
            return
        headers = list(rows[0].keys())
        self._append("| " + " | ".join(headers) + " |\n")
        self._append("|" + "|".join("---" for _ in headers) + "|\n")
        for row in rows:
            self._append("| " + " | ".join(_cell(row.get(h, "")) for h in headers) + " |\n")

    def finalize(self, state: str, duration_ms: int = 0, error: Optional[str] = None):
        """Summary with terminal state (completed, failed, stopped)"""
        self._section("Summary")
        self._append(f"**State:** {state.upper()}\n")
        self._append(f"**Duration:** {duration_ms}ms\n")
        if self.failed_steps:
            self._append(f"**Failed steps:** {self.failed_steps}\n")
        if error:
            self._append(f"\n**Error:** {error}\n")

    @property
    def log_path(self) -> str:
        return str(self.path)
