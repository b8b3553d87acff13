"""
auditkit.cli
============

Command-line front end over :class:`auditkit.session.AuditSession` bound to
the SQLite store.

Examples
--------
$ auditkit setup-client "ACME LLC" --logo logo.png --city Austin
$ auditkit show --filter notCompliant
$ auditkit set-status 2 compliant --comment "MFA enforced"
$ auditkit submit
$ auditkit export --out reports/

Exit codes: 0 success, 1 validation/export failure, 2 no client set up.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .errors import ExportError, ValidationError
from .gateway import PersistenceGateway
from .lifecycle import SessionState
from .models import ComplianceStatus, status_label
from .session import FILTER_ALL, AuditSession
from .storage import SQLiteStore
from .uploads import read_file_as_data_url

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NO_CLIENT = 2

_STATUS_CHOICES = [s.value for s in ComplianceStatus]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="auditkit", description="Security compliance audit tracker")
    parser.add_argument("--db", help="SQLite file (defaults to AUDITKIT_DB_FILE)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at INFO level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("setup-client", help="register the client being audited")
    p.add_argument("name")
    p.add_argument("--logo", help="image file embedded as the client logo")
    for opt in ("address", "city", "state", "zip-code", "country"):
        p.add_argument(f"--{opt}")

    p = sub.add_parser("show", help="list controls and the compliance summary")
    p.add_argument("--filter", default=FILTER_ALL, choices=[FILTER_ALL] + _STATUS_CHOICES)

    p = sub.add_parser("set-status", help="set a control's status and save")
    p.add_argument("serial", type=int)
    p.add_argument("status", choices=_STATUS_CHOICES)
    p.add_argument("--comment")

    sub.add_parser("submit", help="save and mark the audit submitted")

    p = sub.add_parser("export", help="write the PDF report")
    p.add_argument("--out", help="output directory")
    return parser


def _print_controls(session: AuditSession) -> None:
    for c in sorted(session.filtered_controls, key=lambda c: c.serial_number or 0):
        print(f"{c.serial_number:>3}  {status_label(c.status):<18} {c.title}")
    s = session.summary
    print(
        f"\nCompliant {s.compliant} | Not Compliant {s.not_compliant} | "
        f"Partial {s.partial} | N/A {s.not_applicable} | "
        f"Overall {s.compliance_percentage}%"
    )
    if session.is_read_only:
        print("(submitted)")


def _run(args: argparse.Namespace, session: AuditSession) -> int:
    if args.command == "setup-client":
        logo_url = ""
        if args.logo:
            _, logo_url = asyncio.run(read_file_as_data_url(args.logo))
        client = session.setup_client(
            args.name,
            logo_url=logo_url,
            address=args.address,
            city=args.city,
            state=args.state,
            zip_code=args.zip_code,
            country=args.country,
        )
        print(f"✅ client {client.name!r} saved")
        return EXIT_OK

    if session.start() is SessionState.NO_CLIENT:
        print("⛔  No client set up yet; run `auditkit setup-client NAME` first.", file=sys.stderr)
        return EXIT_NO_CLIENT

    if args.command == "show":
        session.set_filter(args.filter)
        _print_controls(session)
    elif args.command == "set-status":
        match = [c for c in session.controls if c.serial_number == args.serial]
        if not match:
            print(f"⛔  No control #{args.serial}", file=sys.stderr)
            return EXIT_FAILED
        changes = {"status": ComplianceStatus(args.status)}
        if args.comment is not None:
            changes["comment"] = args.comment
        session.update_control(replace(match[0], **changes))
        session.save_audit()
        print(f"✅ control #{args.serial} → {status_label(args.status)}")
    elif args.command == "submit":
        session.submit_audit()
        print("✅ audit submitted")
    elif args.command == "export":
        print(f"✅ report saved to {session.export_report(args.out)}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    with SQLiteStore(args.db) as store:
        session = AuditSession(PersistenceGateway(store))
        try:
            return _run(args, session)
        except (ValidationError, ExportError) as e:
            print(f"⛔  {e}", file=sys.stderr)
            return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
