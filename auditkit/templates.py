"""
auditkit.templates
==================

Built-in starter checklist.  Only used the very first time an audit is
synthesized for a client; afterwards the stored audit is the source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .models import ComplianceStatus, Control, new_id, utcnow


@dataclass(frozen=True)
class ControlTemplate:
    category: str
    title: str
    description: str
    status: ComplianceStatus = ComplianceStatus.NOT_COMPLIANT


DEFAULT_TEMPLATE: Sequence[ControlTemplate] = (
    ControlTemplate(
        "Access Control",
        "AC-1: Account Management",
        "The organization manages information system accounts, including establishing, "
        "activating, modifying, reviewing, disabling, and removing accounts.",
        ComplianceStatus.COMPLIANT,
    ),
    ControlTemplate(
        "Access Control",
        "AC-2: Access Enforcement",
        "The information system enforces approved authorizations for logical access to "
        "the system in accordance with applicable policy.",
        ComplianceStatus.NOT_COMPLIANT,
    ),
    ControlTemplate(
        "Risk Assessment",
        "RA-1: Risk Assessment Policy and Procedures",
        "The organization develops, disseminates, and reviews/updates a risk assessment "
        "policy and procedures.",
        ComplianceStatus.PARTIAL,
    ),
    ControlTemplate(
        "Risk Assessment",
        "RA-2: Security Categorization",
        "The organization categorizes information and information systems in accordance "
        "with applicable laws, regulations, standards, and guidance.",
        ComplianceStatus.NOT_APPLICABLE,
    ),
    ControlTemplate(
        "System and Communications Protection",
        "SC-1: System and Communications Protection Policy and Procedures",
        "The organization develops, disseminates, and reviews/updates a system and "
        "communications protection policy and procedures.",
        ComplianceStatus.COMPLIANT,
    ),
    ControlTemplate(
        "Configuration Management",
        "CM-1: Configuration Management Policy and Procedures",
        "The organization develops, disseminates, and reviews/updates configuration "
        "management policy and procedures.",
        ComplianceStatus.PARTIAL,
    ),
    ControlTemplate(
        "Incident Response",
        "IR-1: Incident Response Policy and Procedures",
        "The organization develops, disseminates, and reviews/updates an incident "
        "response policy and procedures.",
        ComplianceStatus.COMPLIANT,
    ),
    ControlTemplate(
        "Incident Response",
        "IR-2: Incident Response Training",
        "The organization trains personnel in their incident response roles and "
        "responsibilities with respect to the information system.",
        ComplianceStatus.NOT_COMPLIANT,
    ),
)


def instantiate(template: Sequence[ControlTemplate]) -> List[Control]:
    """Fresh controls with new ids and serial numbers ``1..N``."""
    now = utcnow()
    return [
        Control(
            id=new_id(),
            category=t.category,
            title=t.title,
            description=t.description,
            status=t.status,
            comment="",
            serial_number=i,
            updated_at=now,
        )
        for i, t in enumerate(template, start=1)
    ]
