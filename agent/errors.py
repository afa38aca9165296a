"""
agent/errors.py

Terminal pipeline error and failure-code routing shared by the graph,
its nodes and the run service.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.failure_codes import CRITICAL_FAILURES, OPTIONAL_FAILURES

logger = logging.getLogger(__name__)


class PipelineError(RuntimeError):
    """Terminal failure of one pipeline stage."""

    def __init__(self, stage: str, message: str, *, failure_code: str = "stage_failed") -> None:
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message
        self.failure_code = failure_code


def handle_pipeline_failure(
    *,
    failure_code: str,
    message: str,
    stage_name: str,
    week_start: str,
    cause: BaseException | None = None,
) -> None:
    """
    Log a failure and decide whether it stops the run.

    Critical codes raise PipelineError chained to ``cause``; optional
    codes are logged as warnings and the caller carries on.
    """
    payload = {
        "stage_name": stage_name,
        "week_start": week_start,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if failure_code in CRITICAL_FAILURES:
        logger.error(
            "Pipeline critical failure code=%s message=%s",
            failure_code,
            message,
            extra=payload,
        )
        raise PipelineError(stage_name, message, failure_code=failure_code) from cause
    if failure_code in OPTIONAL_FAILURES:
        logger.warning(
            "Pipeline optional failure code=%s message=%s",
            failure_code,
            message,
            extra=payload,
        )
        return
    raise ValueError(f"Unknown pipeline failure code '{failure_code}': {message}")
