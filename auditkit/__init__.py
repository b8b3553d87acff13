"""
auditkit
========

A lightweight toolkit for tracking a security‑compliance audit: register a
client, work through a checklist of controls, and export a PDF report.

Import structure
----------------
`import auditkit` is intentionally cheap.  The heavy *matplotlib* dependency
is only imported when you access :pymod:`auditkit.report` (directly, or
through :meth:`AuditSession.export_report`).

Sub‑modules
~~~~~~~~~~~
- :pymod:`auditkit.models`     – ``Client`` / ``Control`` / ``Audit`` dataclasses + status enums
- :pymod:`auditkit.summary`    – compliance tally and percentage
- :pymod:`auditkit.storage`    – key‑value backends (in‑memory, SQLite)
- :pymod:`auditkit.gateway`    – ``PersistenceGateway`` for the client and audit records
- :pymod:`auditkit.lifecycle`  – session state‑machine guard (`advance_state`)
- :pymod:`auditkit.session`    – ``AuditSession`` controller
- :pymod:`auditkit.uploads`    – data‑URL helpers and the single‑slot upload reader
- :pymod:`auditkit.report`     – PDF report generation

Quick start
-----------
>>> from auditkit.gateway import PersistenceGateway
>>> from auditkit.session import AuditSession
>>> from auditkit.storage import MemoryStore
>>> s = AuditSession(PersistenceGateway(MemoryStore()))
>>> _ = s.setup_client("ACME LLC"); _ = s.start()
>>> s.summary.compliance_percentage
43

"""

__all__ = [
    "models",
    "summary",
    "storage",
    "gateway",
    "lifecycle",
    "session",
    "uploads",
    "report",
]

__version__ = "0.1.0"
