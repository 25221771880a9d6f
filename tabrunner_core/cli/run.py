#!/usr/bin/env python3
"""
tabrunner CLI - run plan files in a real browser

Usage:
    tabrunner-run run <plan.yaml> [--format csv] [--intent "..."] [--headed] [--output result.json]
    tabrunner-run compile <plan.yaml> [--format csv] [--intent "..."]

Plan file (YAML or JSON):

    intent: find the top 7 budget laptops under $500
    output_format: csv
    steps:
      - Search for budget laptops under $500
      - Extract results
      - Create a CSV
"""

import argparse
import asyncio
import json
import logging
import shlex
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from ..browser import PlaywrightSessionAdapter
from ..config import config
from ..diagnostics import get_logger, set_level
from ..exceptions import CompilationError, SpreadsheetError
from ..execution import TaskRunner
from ..output import GoogleSheetsService, LocalDownloadService, OutputBuilder
from ..planning import PlanCompiler

logger = get_logger(__name__)

PLAN_ARG_HELP = "Path to YAML/JSON plan file"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_plan(path: str) -> Dict[str, Any]:
    """Read a plan file; a bare list is taken as the steps"""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if isinstance(data, list):
        data = {"steps": data}
    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise ValueError(f"{path}: expected a list of steps or a mapping with 'steps'")
    data["steps"] = [str(s) for s in data["steps"]]
    return data


def _plan_args(args) -> Dict[str, Any]:
    plan = load_plan(args.plan)
    return {
        "plan_steps": plan["steps"],
        "output_format": args.format or plan.get("output_format"),
        "intent": args.intent or plan.get("intent"),
    }


def _configure_diagnostics(args):
    level = "INFO"
    if getattr(args, "verbose", False) or config.enable_debug:
        level = "DEBUG"
    elif getattr(args, "quiet", False):
        level = "ERROR"
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    set_level(level)


def _print_progress(result):
    mark = "✓" if result.success else "✗"
    line = f"  {mark} [{result.plan_index + 1}] {result.status_message}"
    if result.error and not result.success:
        line += f" - {result.error}"
    print(line)


def _spreadsheet_service(cfg):
    if not cfg.sheets_access_token:
        return None
    try:
        return GoogleSheetsService(config=cfg)
    except SpreadsheetError as e:
        logger.warning(f"Spreadsheet export disabled: {e}")
        return None


async def _run(args) -> int:
    plan = _plan_args(args)
    overrides: Dict[str, Any] = {}
    if args.headed:
        overrides["headless"] = False
    if args.downloads_dir:
        overrides["downloads_dir"] = Path(args.downloads_dir)
    cfg = config.from_overrides(**overrides)

    run_logger = None
    if cfg.run_log_enabled or args.run_log:
        from tabrunner_logs import RunLogger
        run_logger = RunLogger(
            intent=plan["intent"],
            output_format=plan["output_format"],
            command_line=" ".join(shlex.quote(a) for a in sys.argv),
            log_dir=str(cfg.log_dir),
        )

    builder = OutputBuilder(LocalDownloadService(config=cfg), _spreadsheet_service(cfg), config=cfg)

    async with PlaywrightSessionAdapter.launch(cfg) as adapter:
        runner = TaskRunner(adapter, output_builder=builder, config=cfg)
        summary = await runner.start(
            plan["plan_steps"],
            output_format=plan["output_format"],
            intent=plan["intent"],
            on_step_result=_print_progress,
            run_logger=run_logger,
        )

    logger.info(f"Run {summary.state.value}: {len(summary.records)} record(s) in {summary.duration_ms}ms")
    if summary.log_path:
        logger.info(f"Run log: {summary.log_path}")

    result = summary.to_dict()
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info(f"Result written to: {args.output}")
    else:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if summary.succeeded else 1


def cmd_run(args):
    """Compile and execute a plan"""
    _configure_diagnostics(args)
    try:
        return asyncio.run(_run(args))
    except (CompilationError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error(f"Run failed: {e}")
        return 1


def cmd_compile(args):
    """Show what a plan compiles into without opening a browser"""
    _configure_diagnostics(args)
    try:
        plan = _plan_args(args)
        compiled = PlanCompiler(config.implied_wait_ms).compile(
            plan["plan_steps"], output_format=plan["output_format"], intent=plan["intent"]
        )
    except (CompilationError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error(f"Compilation failed: {e}")
        return 1

    print(f"\nCompiled plan: {args.plan}")
    print("=" * 60)
    for i, step in enumerate(compiled.steps):
        plan_steps = ", ".join(str(p + 1) for p in compiled.index_map.plan_indices_for(i))
        print(f"  {i + 1}. {step.kind.value:<15} {step.description}  [plan {plan_steps}]")
    print("=" * 60)
    return 0


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="tabrunner - run browser task plans",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    run_parser = subparsers.add_parser('run', help='Run a plan in the browser')
    run_parser.add_argument('plan', help=PLAN_ARG_HELP)
    run_parser.add_argument('--format', choices=['sheet', 'csv', 'table', 'text'], help='Requested output format')
    run_parser.add_argument('--intent', help='Original one-line request')
    run_parser.add_argument('--headed', action='store_true', help='Show the browser window')
    run_parser.add_argument('--downloads-dir', help='Where CSV files are written')
    run_parser.add_argument('--output', '-o', help='Write the run summary JSON here')
    run_parser.add_argument('--run-log', action='store_true', help='Write a Markdown run log')
    run_parser.add_argument('--verbose', action='store_true', help='Verbose output')
    run_parser.add_argument('--quiet', '-q', action='store_true', help='Quiet mode')
    run_parser.set_defaults(func=cmd_run)

    compile_parser = subparsers.add_parser('compile', help='Show compiled steps for a plan')
    compile_parser.add_argument('plan', help=PLAN_ARG_HELP)
    compile_parser.add_argument('--format', choices=['sheet', 'csv', 'table', 'text'], help='Requested output format')
    compile_parser.add_argument('--intent', help='Original one-line request')
    compile_parser.add_argument('--verbose', action='store_true', help='Verbose output')
    compile_parser.set_defaults(func=cmd_compile)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
