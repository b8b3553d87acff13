"""
auditkit.session
================

In-memory audit session: the single writer to the persistence gateway.

An :class:`AuditSession` loads the stored client and audit, exposes the
controls being worked on, and applies every mutation coming from the UI
layer.  Status, comment and attachment edits stay in memory until one of the
save operations runs; control-set management writes through immediately.

Quick start
-----------
>>> from auditkit.gateway import PersistenceGateway
>>> from auditkit.storage import MemoryStore
>>> s = AuditSession(PersistenceGateway(MemoryStore()))
>>> s.start()
<SessionState.NO_CLIENT: 3>
>>> _ = s.setup_client("ACME LLC")
>>> s.start()
<SessionState.READY: 4>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import ExportError, ValidationError
from .gateway import PersistenceGateway
from .lifecycle import SessionState, advance_state
from .models import (
    Audit,
    Client,
    CompanyInfo,
    ComplianceStatus,
    Control,
    coerce_status,
    new_id,
    utcnow,
)
from .settings import Settings, settings as default_settings
from .summary import ComplianceSummary, summarize
from .templates import DEFAULT_TEMPLATE, ControlTemplate, instantiate

logger = logging.getLogger(__name__)

FILTER_ALL = "all"
VIEW_MODES = ("cards", "table")

Listener = Callable[["AuditSession"], None]


@dataclass
class CoverDraft:
    """Editable cover-page fields, merged into the audit on save."""
    title: str
    financial_year: str
    audit_date: date


def _required(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required", field=field)
    return text


class AuditSession:
    """
    Session state ``{client, audit, controls, active_filter, view_mode,
    cover_draft}`` plus the operations that mutate it.

    Parameters
    ----------
    gateway : PersistenceGateway
        Where the client and audit records live.
    template : sequence of ControlTemplate
        Starter checklist, used only when no audit is stored yet.
    settings : Settings, optional
        Report defaults; the module-level settings are used when omitted.
    today : callable, optional
        Returns the current date (override in tests).
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        template: Sequence[ControlTemplate] = DEFAULT_TEMPLATE,
        settings: Optional[Settings] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.gateway = gateway
        self.template = template
        self.settings = settings or default_settings
        self._today = today or date.today

        self.state = SessionState.UNINITIALIZED
        self.client: Optional[Client] = None
        self.audit: Optional[Audit] = None
        self.controls: List[Control] = []
        self.categories: List[str] = []
        self.active_filter: str = FILTER_ALL
        self.view_mode: str = VIEW_MODES[0]
        self.cover_draft = self._default_cover()
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener(session)* after every mutation; returns an unsubscriber."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Start-up
    # ------------------------------------------------------------------
    def _default_cover(self) -> CoverDraft:
        return CoverDraft(
            title=self.settings.default_title,
            financial_year=self.settings.default_financial_year,
            audit_date=self._today(),
        )

    def _new_audit(self, client: Client) -> Audit:
        now = utcnow()
        return Audit(
            id=new_id(),
            client=client,
            controls=instantiate(self.template),
            title=self.cover_draft.title,
            financial_year=self.cover_draft.financial_year,
            audit_date=self.cover_draft.audit_date,
            company_info=CompanyInfo(
                name=self.settings.company_name,
                address=self.settings.company_address,
            ),
            confidential=True,
            disclaimer=self.settings.default_disclaimer,
            created_at=now,
            updated_at=now,
            submitted=False,
        )

    def start(self) -> SessionState:
        """
        Load the stored client and audit.

        Returns ``NO_CLIENT`` when there is no usable client record; the
        caller must then send the user to client setup.  Otherwise the
        stored audit is adopted (or a new one synthesized and saved) and the
        session becomes ``READY``.
        """
        self.state = advance_state(self.state, SessionState.LOADING)
        self.client, self.audit, self.controls = None, None, []
        self.cover_draft = self._default_cover()

        client = self.gateway.load_client()
        if client is None:
            logger.info("No client stored; client setup required")
            self.state = advance_state(self.state, SessionState.NO_CLIENT)
            self._notify()
            return self.state
        self.client = client

        audit = self.gateway.load_audit()
        if audit is None:
            audit = self._new_audit(client)
            self.gateway.save_audit(audit)
            logger.info(f"Created audit {audit.id} with {len(audit.controls)} controls")
            controls = list(audit.controls)
        else:
            controls = [
                c if c.serial_number else replace(c, serial_number=i)
                for i, c in enumerate(audit.controls, start=1)
            ]
            if audit.title:
                self.cover_draft.title = audit.title
            if audit.financial_year:
                self.cover_draft.financial_year = audit.financial_year
            if audit.audit_date:
                self.cover_draft.audit_date = audit.audit_date

        self.audit = audit
        self.controls = controls
        self.categories = list(dict.fromkeys(c.category for c in controls if c.category))
        self.state = advance_state(self.state, SessionState.READY)
        self._notify()
        return self.state

    # ------------------------------------------------------------------
    # Client setup
    # ------------------------------------------------------------------
    def setup_client(
        self,
        name: str,
        logo_url: str = "",
        address: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        zip_code: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Client:
        """Create and persist the active client, replacing any previous one."""
        client = Client(
            id=new_id(),
            name=_required(name, "name"),
            logo_url=logo_url or "",
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            country=country,
        )
        self.gateway.save_client(client)
        logger.info(f"Client {client.name!r} saved")
        self._notify()
        return client

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def filtered_controls(self) -> List[Control]:
        if self.active_filter == FILTER_ALL:
            return list(self.controls)
        return [c for c in self.controls if c.status == self.active_filter]

    @property
    def has_unaddressed_controls(self) -> bool:
        """True if any control lacks a status (only possible with malformed data)."""
        return any(not c.status for c in self.controls)

    @property
    def summary(self) -> ComplianceSummary:
        return summarize(self.controls)

    @property
    def is_read_only(self) -> bool:
        """Advisory: submitted audits should be shown without edit affordances."""
        return bool(self.audit and self.audit.submitted)

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------
    def set_filter(self, value: str) -> None:
        if value != FILTER_ALL:
            try:
                value = ComplianceStatus(value).value
            except ValueError:
                raise ValidationError(f"unknown filter {value!r}", field="filter") from None
        self.active_filter = value
        self._notify()

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValidationError(f"unknown view mode {mode!r}", field="view_mode")
        self.view_mode = mode
        self._notify()

    def update_cover_draft(
        self,
        title: Optional[str] = None,
        financial_year: Optional[str] = None,
        audit_date: Optional[date] = None,
    ) -> None:
        if title is not None:
            self.cover_draft.title = title
        if financial_year is not None:
            self.cover_draft.financial_year = financial_year
        if audit_date is not None:
            self.cover_draft.audit_date = audit_date
        self._notify()

    # ------------------------------------------------------------------
    # In-memory control edits
    # ------------------------------------------------------------------
    def _index(self, control_id: str) -> Optional[int]:
        for i, c in enumerate(self.controls):
            if c.id == control_id:
                return i
        return None

    def _replace_control(self, control: Control) -> bool:
        idx = self._index(control.id)
        if idx is None:
            return False
        self.controls[idx] = control
        return True

    def update_control(self, updated: Control) -> None:
        """Replace the control with the same id; unknown ids are ignored."""
        control = replace(updated, status=coerce_status(updated.status), updated_at=utcnow())
        if self._replace_control(control):
            self._notify()

    def attach_file(self, control_id: str, name: str, data_url: str) -> None:
        if not name or not data_url:
            raise ValidationError("attachment name and url must be set together", field="attachment")
        idx = self._index(control_id)
        if idx is not None:
            self._replace_control(self.controls[idx].with_attachment(name, data_url))
            self._notify()

    def remove_attachment(self, control_id: str) -> None:
        idx = self._index(control_id)
        if idx is not None:
            self._replace_control(self.controls[idx].without_attachment())
            self._notify()

    # ------------------------------------------------------------------
    # Persisting operations
    # ------------------------------------------------------------------
    def _merged(self, **changes) -> Optional[Audit]:
        if self.audit is None or self.client is None:
            return None
        return replace(
            self.audit,
            controls=list(self.controls),
            title=self.cover_draft.title,
            financial_year=self.cover_draft.financial_year,
            audit_date=self.cover_draft.audit_date,
            updated_at=utcnow(),
            **changes,
        )

    def _commit(self, audit: Audit) -> None:
        self.audit = audit
        self.gateway.save_audit(audit)
        self._notify()

    def save_audit(self) -> None:
        """Write controls and cover fields to the store (no-op before start)."""
        audit = self._merged()
        if audit is not None:
            self._commit(audit)

    def submit_audit(self) -> None:
        """Save and mark submitted.  Calling it again keeps ``submitted`` true."""
        audit = self._merged(submitted=True)
        if audit is not None:
            self._commit(audit)
            logger.info(f"Audit {audit.id} submitted")

    def save_cover_info(self) -> None:
        """Persist only the cover fields; controls and ``submitted`` are untouched."""
        if self.audit is None:
            return
        self._commit(replace(
            self.audit,
            title=self.cover_draft.title,
            financial_year=self.cover_draft.financial_year,
            audit_date=self.cover_draft.audit_date,
        ))

    def export_report(self, out_dir: str | Path | None = None) -> Path:
        """Render the PDF report for the current audit; raises ExportError."""
        from . import report

        if self.audit is None or self.client is None:
            raise ExportError("no audit loaded; start the session with a client first")
        try:
            path = report.generate(self.audit, self.client, out_dir=out_dir, settings=self.settings)
        except Exception as e:
            logger.error(f"Report export failed: {e}")
            raise ExportError(f"report generation failed: {e}") from e
        logger.info(f"Report exported to {path}")
        return path

    # ------------------------------------------------------------------
    # Control-set management (writes through to the stored audit)
    # ------------------------------------------------------------------
    def _write_controls(self, change: Callable[[List[Control]], None]) -> None:
        """
        Apply *change* to the working controls and to the stored audit.

        Only the managed control is written: unsaved status and comment edits
        on the other controls stay in memory until the next save.
        """
        change(self.controls)
        stored = self.gateway.load_audit() or self.audit
        controls = list(stored.controls)
        change(controls)
        self._commit(replace(stored, controls=controls, updated_at=utcnow()))

    def add_category(self, name: str) -> bool:
        """Add a display-only category label; returns False if empty or known."""
        label = (name or "").strip()
        if not label or label in self.categories:
            return False
        self.categories.append(label)
        self._notify()
        return True

    def add_control(
        self,
        title: str,
        description: str,
        category: str,
        status: ComplianceStatus | str = ComplianceStatus.NOT_COMPLIANT,
    ) -> Optional[Control]:
        """Append a new control; ``None`` before the session is started."""
        fields = dict(
            title=_required(title, "title"),
            description=_required(description, "description"),
            category=_required(category, "category"),
            status=coerce_status(status),
        )
        if self.audit is None:
            return None
        control = Control(id=new_id(), serial_number=len(self.controls) + 1, **fields)
        self.add_category(control.category)
        self._write_controls(lambda controls: controls.append(control))
        return control

    def edit_control(
        self,
        control_id: str,
        title: str,
        description: str,
        category: str,
        status: ComplianceStatus | str,
    ) -> Optional[Control]:
        """Commit edited fields of an existing control; ``None`` if unknown."""
        fields = dict(
            title=_required(title, "title"),
            description=_required(description, "description"),
            category=_required(category, "category"),
            status=coerce_status(status),
            updated_at=utcnow(),
        )
        if self.audit is None or self._index(control_id) is None:
            return None

        def change(controls: List[Control]) -> None:
            for i, c in enumerate(controls):
                if c.id == control_id:
                    controls[i] = replace(c, **fields)

        self._write_controls(change)
        return self.controls[self._index(control_id)]

    def delete_control(self, control_id: str) -> bool:
        """Remove by id without renumbering; unknown ids leave everything as is."""
        if self.audit is None or self._index(control_id) is None:
            return False

        def change(controls: List[Control]) -> None:
            controls[:] = [c for c in controls if c.id != control_id]

        self._write_controls(change)
        return True
