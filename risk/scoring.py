"""
risk/scoring.py

Deterministic severity accounting for audited nomination risks.

The auditor's verdict is advisory: a HIGH finding can never leave the
run at OK, while an auditor FAIL is always kept.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from app.domain.pipeline_models import OverallStatus, RiskFinding, Severity

# Ordered from least to most severe.
_STATUS_RANK: dict[OverallStatus, int] = {
    OverallStatus.OK: 0,
    OverallStatus.WARNING: 1,
    OverallStatus.FAIL: 2,
}


@dataclass(frozen=True)
class SeverityCounts:
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


def summarize_findings(findings: Iterable[RiskFinding]) -> SeverityCounts:
    """Count findings per severity band."""
    counts = Counter(finding.severity for finding in findings)
    return SeverityCounts(
        high=counts.get(Severity.HIGH, 0),
        medium=counts.get(Severity.MEDIUM, 0),
        low=counts.get(Severity.LOW, 0),
    )


def minimum_status(findings: Iterable[RiskFinding]) -> OverallStatus:
    """Lowest status the findings allow: any HIGH finding means WARNING."""
    if any(finding.severity is Severity.HIGH for finding in findings):
        return OverallStatus.WARNING
    return OverallStatus.OK


def resolve_overall_status(
    findings: Iterable[RiskFinding],
    reported: OverallStatus,
) -> OverallStatus:
    """Combine the auditor's verdict with the severity floor.

    Args:
        findings: Validated risk findings for the run.
        reported: Overall status the auditor returned.

    Returns:
        The more severe of ``reported`` and the floor derived from
        ``findings``.
    """
    floor = minimum_status(list(findings))
    if _STATUS_RANK[floor] > _STATUS_RANK[reported]:
        return floor
    return reported
