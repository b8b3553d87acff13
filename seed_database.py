#!/usr/bin/env python
"""
Seed the database with a demo client and audit.

This script stores a sample client and lets the session synthesize the
starter audit, then fills in a few comments so an exported report has
meaningful content.  Pass a JSON file of control edits to apply your own.
"""

import json
import sys
from dataclasses import replace

from auditkit.gateway import PersistenceGateway
from auditkit.models import ComplianceStatus
from auditkit.session import AuditSession
from auditkit.storage import SQLiteStore

SAMPLE_CLIENT = dict(
    name="Acme Corporation",
    address="1200 Market Street",
    city="Wilmington",
    state="DE",
    zip_code="19801",
    country="USA",
)

# serial number → (status, detailed comment)
SAMPLE_EDITS = {
    1: (ComplianceStatus.COMPLIANT, "Quarterly account reviews documented in the IAM tool."),
    2: (ComplianceStatus.NOT_COMPLIANT, "Shared admin accounts still in use on legacy hosts."),
    3: (ComplianceStatus.PARTIAL, "Policy drafted, awaiting board approval."),
    6: (ComplianceStatus.PARTIAL, "Baseline configs exist for servers only."),
}

# Add control edits from sample_edits.json if available
try:
    with open('sample_edits.json', 'r') as f:
        for rec in json.load(f):
            try:
                status = ComplianceStatus(rec.get('status', 'notCompliant'))
            except ValueError:
                status = ComplianceStatus.NOT_COMPLIANT
            SAMPLE_EDITS[int(rec['serial'])] = (status, rec.get('comment', ''))
except (FileNotFoundError, json.JSONDecodeError):
    # Continue with default sample edits
    pass


def seed_database(store):
    """Store the sample client, create its audit and apply the edits."""
    session = AuditSession(PersistenceGateway(store))
    session.setup_client(**SAMPLE_CLIENT)
    session.start()

    for control in session.controls:
        if control.serial_number in SAMPLE_EDITS:
            status, comment = SAMPLE_EDITS[control.serial_number]
            session.update_control(replace(control, status=status, detailed_comment=comment))
            print(f"Updated: #{control.serial_number} {control.title} ({status.value})")

    session.save_audit()
    s = session.summary
    print(f"\nSeeded {s.total} controls, overall compliance {s.compliance_percentage}%")


if __name__ == "__main__":
    print("Ensuring database tables exist...")
    with SQLiteStore(sys.argv[1] if len(sys.argv) > 1 else None) as store:
        print("Seeding database with a sample client and audit...")
        seed_database(store)

    print("\nDone! You can now export the report with:")
    print("auditkit export --out reports/")
