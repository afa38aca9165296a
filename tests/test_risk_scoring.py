"""
tests/test_risk_scoring.py

Overall status resolution over audited risk findings.
"""

from __future__ import annotations

import pytest

from app.domain.pipeline_models import OverallStatus, RiskFinding, RiskKind, Severity
from risk.scoring import resolve_overall_status, summarize_findings


def _finding(severity: Severity, kind: RiskKind = RiskKind.UNKNOWN_STOCK) -> RiskFinding:
    return RiskFinding(sku="A1", campaign_id="c1", kind=kind, severity=severity, message="check")


class TestResolveOverallStatus:
    def test_high_finding_lifts_ok_to_warning(self) -> None:
        findings = [_finding(Severity.LOW), _finding(Severity.HIGH)]
        assert resolve_overall_status(findings, OverallStatus.OK) is OverallStatus.WARNING

    def test_fail_is_kept(self) -> None:
        assert resolve_overall_status([_finding(Severity.HIGH)], OverallStatus.FAIL) is OverallStatus.FAIL
        assert resolve_overall_status([], OverallStatus.FAIL) is OverallStatus.FAIL

    @pytest.mark.parametrize("reported", [OverallStatus.OK, OverallStatus.WARNING])
    def test_without_high_findings_reported_status_stands(self, reported: OverallStatus) -> None:
        findings = [_finding(Severity.MEDIUM), _finding(Severity.LOW)]
        assert resolve_overall_status(findings, reported) is reported

    def test_accepts_generators(self) -> None:
        findings = (finding for finding in [_finding(Severity.HIGH)])
        assert resolve_overall_status(findings, OverallStatus.OK) is OverallStatus.WARNING


def test_summarize_findings_counts_per_band() -> None:
    counts = summarize_findings(
        [_finding(Severity.HIGH), _finding(Severity.HIGH), _finding(Severity.MEDIUM), _finding(Severity.LOW)]
    )
    assert (counts.high, counts.medium, counts.low, counts.total) == (2, 1, 1, 4)


def test_summarize_findings_empty() -> None:
    assert summarize_findings([]).total == 0
