"""
auditkit.models
===============

Dataclasses and enums describing a client, the security controls being
assessed, and the audit that binds them together.  Like the rest of the
domain layer these objects carry **no** external-library dependencies;
serialization lives in :pymod:`auditkit.gateway`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from .errors import InvalidStatus, ValidationError


class ComplianceStatus(str, Enum):
    """Four-way compliance verdict used for editing a control."""
    COMPLIANT = "compliant"
    NOT_COMPLIANT = "notCompliant"
    PARTIAL = "partial"
    NOT_APPLICABLE = "notApplicable"

    def __str__(self) -> str:
        return self.value


class ImplementationStatus(str, Enum):
    """Display-only relabelling of :class:`ComplianceStatus` for table views."""
    FULLY_IMPLEMENTED = "fullyImplemented"
    PARTIALLY_IMPLEMENTED = "partiallyImplemented"
    NOT_IMPLEMENTED = "notImplemented"
    NOT_APPLICABLE = "notApplicable"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------
# Status vocabularies: compliance ↔ implementation
# ---------------------------------------------------------------------
_TO_IMPLEMENTATION = {
    ComplianceStatus.COMPLIANT:      ImplementationStatus.FULLY_IMPLEMENTED,
    ComplianceStatus.NOT_COMPLIANT:  ImplementationStatus.NOT_IMPLEMENTED,
    ComplianceStatus.PARTIAL:        ImplementationStatus.PARTIALLY_IMPLEMENTED,
    ComplianceStatus.NOT_APPLICABLE: ImplementationStatus.NOT_APPLICABLE,
}
_TO_COMPLIANCE = {v: k for k, v in _TO_IMPLEMENTATION.items()}

STATUS_LABELS = {
    ComplianceStatus.COMPLIANT:      "Compliant",
    ComplianceStatus.NOT_COMPLIANT:  "Not Compliant",
    ComplianceStatus.PARTIAL:        "Partial Compliant",
    ComplianceStatus.NOT_APPLICABLE: "Not Applicable",
}


def coerce_status(status: Union[ComplianceStatus, str]) -> ComplianceStatus:
    """Return *status* as a :class:`ComplianceStatus` or raise InvalidStatus."""
    try:
        return ComplianceStatus(status)
    except ValueError:
        raise InvalidStatus(status) from None


def map_compliance_to_implementation(
    status: Union[ComplianceStatus, str],
) -> ImplementationStatus:
    """
    Translate an edit-time status into its table-display counterpart.

    >>> map_compliance_to_implementation("partial")
    <ImplementationStatus.PARTIALLY_IMPLEMENTED: 'partiallyImplemented'>
    """
    return _TO_IMPLEMENTATION[coerce_status(status)]


def map_implementation_to_compliance(
    status: Union[ImplementationStatus, str],
) -> ComplianceStatus:
    """Inverse of :func:`map_compliance_to_implementation`."""
    try:
        key = ImplementationStatus(status)
    except ValueError:
        raise InvalidStatus(status) from None
    return _TO_COMPLIANCE[key]


def status_label(status: Union[ComplianceStatus, str]) -> str:
    """Human-readable label, e.g. ``"Partial Compliant"``."""
    return STATUS_LABELS[coerce_status(status)]


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def new_id() -> str:
    """Opaque unique identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------
@dataclass
class Client:
    """
    The organisation being audited.

    Parameters
    ----------
    id : str
        Opaque unique identifier.
    name : str
        Display name; must be non-empty before it is stored.
    logo_url : str, default=""
        Empty, or a self-contained ``data:`` URL holding the logo image.
    address, city, state, zip_code, country : str | None
        Optional postal address printed on the report cover.
    """
    id: str
    name: str
    logo_url: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def postal_lines(self) -> List[str]:
        """Address split into printable lines, empty parts dropped."""
        lines = [self.address] if self.address else []
        locality = " ".join(p for p in (self.city, self.state, self.zip_code) if p)
        if locality:
            lines.append(locality)
        if self.country:
            lines.append(self.country)
        return lines


@dataclass
class Control:
    """
    A single security requirement being assessed.

    ``attachment_name`` and ``attachment_url`` are set or cleared together;
    use :meth:`with_attachment` / :meth:`without_attachment` to change them.
    """
    id: str
    category: str
    title: str
    description: str
    status: ComplianceStatus = ComplianceStatus.NOT_COMPLIANT
    comment: Optional[str] = None
    detailed_comment: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_url: Optional[str] = None
    serial_number: Optional[int] = None
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if bool(self.attachment_name) != bool(self.attachment_url):
            raise ValidationError(
                "attachment name and url must be set together", field="attachment"
            )
        if self.serial_number is not None and self.serial_number < 1:
            raise ValidationError("serial number must be positive", field="serial_number")

    @property
    def display_comment(self) -> Optional[str]:
        """``detailed_comment`` wins over ``comment``; ``None`` when both are empty."""
        return self.detailed_comment or self.comment or None

    @property
    def implementation_status(self) -> ImplementationStatus:
        return map_compliance_to_implementation(self.status)

    def with_attachment(self, name: str, url: str) -> "Control":
        return replace(self, attachment_name=name, attachment_url=url, updated_at=utcnow())

    def without_attachment(self) -> "Control":
        return replace(self, attachment_name=None, attachment_url=None, updated_at=utcnow())


@dataclass
class CompanyInfo:
    """Identity block of the auditing company (right-hand side of the cover)."""
    name: str
    address: str
    logo: Optional[str] = None


@dataclass
class Audit:
    """
    A full assessment: one embedded client snapshot, its controls and the
    report metadata shown on the cover page.

    ``submitted`` is a terminal flag: nothing in auditkit ever resets it.
    """
    id: str
    client: Client
    controls: List[Control] = field(default_factory=list)
    title: Optional[str] = None
    financial_year: Optional[str] = None
    audit_date: Optional[date] = None
    company_info: Optional[CompanyInfo] = None
    confidential: bool = True
    disclaimer: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    submitted: bool = False

    def ordered_controls(self) -> List[Control]:
        """
        Controls in display order: ascending serial number, insertion order
        for ties and for controls without one (those go last).
        """
        indexed = list(enumerate(self.controls))
        indexed.sort(key=lambda t: (
            t[1].serial_number is None,
            t[1].serial_number or 0,
            t[0],
        ))
        return [c for _, c in indexed]
