"""
tabrunner_logs - Markdown run logs for tabrunner

Usage:
    from tabrunner_logs import RunLogger

    run_log = RunLogger(intent="find the best budget laptops", log_dir="logs")
    run_log.log_step_result(0, "search", True, 1800, "Searched for 'budget laptops'")
    run_log.finalize("completed", duration_ms=5400)
"""

from .run_logger import RunLogger

__all__ = [
    'RunLogger',
]

__version__ = '0.1.0'
