"""
auditkit.summary
================

Compliance tally shared by the in-session summary and the exported report.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .models import STATUS_LABELS, ComplianceStatus, Control, coerce_status


def round_half_up(value: float) -> int:
    """Round .5 away from zero (``round()`` would use banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ComplianceSummary:
    """Per-status counts for a collection of controls."""
    compliant: int = 0
    not_compliant: int = 0
    partial: int = 0
    not_applicable: int = 0

    @property
    def total(self) -> int:
        return self.compliant + self.not_compliant + self.partial + self.not_applicable

    @property
    def total_applicable(self) -> int:
        return self.total - self.not_applicable

    @property
    def compliance_percentage(self) -> int:
        """Share of applicable controls that are compliant, 0 when none apply."""
        if self.total_applicable == 0:
            return 0
        return round_half_up(self.compliant / self.total_applicable * 100)

    def count(self, status: ComplianceStatus) -> int:
        return {
            ComplianceStatus.COMPLIANT: self.compliant,
            ComplianceStatus.NOT_COMPLIANT: self.not_compliant,
            ComplianceStatus.PARTIAL: self.partial,
            ComplianceStatus.NOT_APPLICABLE: self.not_applicable,
        }[coerce_status(status)]

    def as_rows(self) -> List[Tuple[str, str]]:
        """Rows of the report's "Status / Count" table."""
        rows = [(STATUS_LABELS[s], str(self.count(s))) for s in ComplianceStatus]
        rows.append(("Overall Compliance", f"{self.compliance_percentage}%"))
        return rows


def summarize(controls: Iterable[Control]) -> ComplianceSummary:
    """
    Count every control into exactly one status bucket.

    Raises :class:`~auditkit.errors.InvalidStatus` on a status outside the
    enumeration instead of dropping the control.
    """
    counts = Counter(coerce_status(c.status) for c in controls)
    return ComplianceSummary(
        compliant=counts[ComplianceStatus.COMPLIANT],
        not_compliant=counts[ComplianceStatus.NOT_COMPLIANT],
        partial=counts[ComplianceStatus.PARTIAL],
        not_applicable=counts[ComplianceStatus.NOT_APPLICABLE],
    )
