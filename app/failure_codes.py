"""Shared failure code constants for pipeline error handling."""

CRITICAL_FAILURES = [
    "sheet_read_failed",
    "llm_retry_exhausted",
    "stage_failed",
    "write_back_failed",
    "pipeline_timeout",
]

OPTIONAL_FAILURES = [
    "feed_unavailable",
]
