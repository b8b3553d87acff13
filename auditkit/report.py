"""
auditkit.report
===============

PDF export of an audit: a cover page, a compliance summary and the
per-control detail table.  Pages are drawn with *matplotlib* and collected
with ``PdfPages``; this module is imported lazily by the session so that
importing ``auditkit`` alone stays lightweight.

:func:`build_report` is a pure function of its inputs except for one thing:
when the audit carries no ``audit_date`` the cover uses today's date.
"""
from __future__ import annotations

import io
import logging
import os
import re
import textwrap
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.image as mpimg  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402

from .models import Audit, Client, status_label  # noqa: E402
from .settings import REPORT_DIR, Settings, settings as default_settings  # noqa: E402
from .summary import ComplianceSummary, summarize  # noqa: E402
from .uploads import decode_data_url  # noqa: E402

logger = logging.getLogger(__name__)

A4_INCHES = (8.27, 11.69)
BRAND_BLUE = "#00468b"
HEADER_BLUE = "#0369a1"
NO_COMMENTS = "No comments"
ROWS_PER_PAGE = 14

# detail-table column widths (fractions of the table) and wrap widths (chars)
_DETAIL_COLUMNS = ("Category", "Control", "Status", "Comments")
_DETAIL_WIDTHS = (0.21, 0.32, 0.16, 0.31)
_DETAIL_WRAP = (20, 32, 14, 32)


# ---------------------------------------------------------------------
# Document model
# ---------------------------------------------------------------------
@dataclass
class CoverPage:
    title: str
    subtitle: str
    client_name: str
    date_text: str
    client_address: List[str]
    company_name: str
    company_address: List[str]
    show_confidential: bool
    confidential_notice: str
    disclaimer: str
    logo: Optional[Any] = field(default=None, compare=False, repr=False)


@dataclass
class ReportDocument:
    """Everything needed to draw the PDF, already resolved from the audit."""
    cover: CoverPage
    summary: ComplianceSummary
    rows: List[Tuple[str, str, str, str]]
    filename: str
    heading_date: str


# ---------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------
def format_audit_date(d: date) -> str:
    """``05 March 2025`` style date."""
    return d.strftime("%d %B %Y")


def report_filename(client_name: str, settings: Optional[Settings] = None) -> str:
    """``security_audit_<client_name_with_underscores>.pdf``.

    Path separators are treated like whitespace, so the name is always a
    single file inside the output directory.
    """
    cfg = settings or default_settings
    slug = re.sub(r"[\s/\\]+", cfg.filename_separator, client_name)
    return f"{cfg.report_prefix}_{slug}.{cfg.report_extension}"


def decode_logo(logo_url: str) -> Optional[Any]:
    """
    Decode a ``data:`` URL into an image array, or return *None*.

    Failures are logged and swallowed: a broken logo must never stop the
    report.
    """
    if not logo_url:
        return None
    try:
        mime, raw = decode_data_url(logo_url)
        # imread assumes PNG for file objects unless told otherwise
        return mpimg.imread(io.BytesIO(raw), format=mime.rpartition("/")[2] or None)
    except (ValueError, OSError, SyntaxError) as e:
        logger.error(f"Error adding logo to PDF: {e}")
        return None


def build_report(
    audit: Audit,
    client: Client,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> ReportDocument:
    """Resolve defaults, tally the summary and lay out the detail rows."""
    cfg = settings or default_settings
    when = audit.audit_date or today or date.today()
    company = audit.company_info
    company_name = company.name if company else cfg.company_name
    company_address = company.address if company else cfg.company_address

    cover = CoverPage(
        title=audit.title or cfg.default_title,
        subtitle=f"Audit Financial Year {audit.financial_year or cfg.default_financial_year}",
        client_name=client.name,
        date_text=format_audit_date(when),
        client_address=client.postal_lines(),
        company_name=company_name,
        company_address=[ln for ln in company_address.splitlines() if ln.strip()],
        show_confidential=audit.confidential is not False,
        confidential_notice=cfg.confidential_notice,
        disclaimer=audit.disclaimer or cfg.default_disclaimer,
        logo=decode_logo(client.logo_url),
    )
    rows = [
        (c.category, c.title, status_label(c.status), c.display_comment or NO_COMMENTS)
        for c in audit.ordered_controls()
    ]
    return ReportDocument(
        cover=cover,
        summary=summarize(audit.controls),
        rows=rows,
        filename=report_filename(client.name, cfg),
        heading_date=format_audit_date(when),
    )


# ---------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------
def _wrap(text: str, width: int) -> str:
    return "\n".join(textwrap.wrap(text, width)) or text


def _style_header(table, ncols: int) -> None:
    for col in range(ncols):
        cell = table[0, col]
        cell.set_facecolor(HEADER_BLUE)
        cell.get_text().set_color("white")
        cell.get_text().set_weight("bold")


def _draw_cover(pdf: PdfPages, cover: CoverPage) -> None:
    fig = plt.figure(figsize=A4_INCHES)
    fig.text(0.5, 0.86, cover.title, ha="center", fontsize=18, color=BRAND_BLUE, wrap=True)
    fig.text(0.5, 0.82, cover.subtitle, ha="center", fontsize=14, color=BRAND_BLUE)
    fig.text(0.5, 0.76, cover.client_name, ha="center", fontsize=14, color=BRAND_BLUE)

    if cover.logo is not None:
        ax = fig.add_axes((0.35, 0.50, 0.30, 0.22))
        ax.imshow(cover.logo)
        ax.axis("off")

    fig.text(0.08, 0.42, cover.date_text, fontsize=11)

    y = 0.32
    fig.text(0.08, y, cover.client_name, fontsize=10, weight="bold")
    for i, line in enumerate(cover.client_address, start=1):
        fig.text(0.08, y - 0.018 * i, line, fontsize=10)
    fig.text(0.92, y, cover.company_name, fontsize=10, weight="bold", ha="right")
    for i, line in enumerate(cover.company_address, start=1):
        fig.text(0.92, y - 0.018 * i, line, fontsize=10, ha="right")

    y = 0.12
    if cover.show_confidential:
        fig.text(0.08, y, "CONFIDENTIAL DOCUMENT:", fontsize=7, weight="bold")
        fig.text(0.08, y - 0.014, cover.confidential_notice, fontsize=7)
        y -= 0.04
    fig.text(0.08, y, "DISCLAIMER:", fontsize=7, weight="bold")
    fig.text(0.08, y - 0.014, _wrap(cover.disclaimer, 110), fontsize=7, va="top")

    pdf.savefig(fig)
    plt.close(fig)


def _draw_summary(pdf: PdfPages, doc: ReportDocument) -> None:
    fig = plt.figure(figsize=A4_INCHES)
    fig.text(0.08, 0.93, "Security Compliance Audit", fontsize=18)
    fig.text(0.08, 0.90, f"Client: {doc.cover.client_name}", fontsize=11)
    fig.text(0.08, 0.88, f"Date: {doc.heading_date}", fontsize=11)
    fig.text(0.08, 0.84, "Compliance Summary", fontsize=14)

    ax = fig.add_axes((0.08, 0.62, 0.84, 0.20))
    ax.axis("off")
    table = ax.table(
        cellText=[list(r) for r in doc.summary.as_rows()],
        colLabels=["Status", "Count"],
        loc="upper center",
        cellLoc="left",
    )
    table.auto_set_font_size(False)
    table.set_fontsize(10)
    table.scale(1, 1.6)
    _style_header(table, 2)

    pdf.savefig(fig)
    plt.close(fig)


def _chunks(rows: Sequence, size: int):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def _draw_details(pdf: PdfPages, rows: Sequence[Tuple[str, str, str, str]]) -> None:
    for page_no, chunk in enumerate(_chunks(rows, ROWS_PER_PAGE) if rows else [[]]):
        fig = plt.figure(figsize=A4_INCHES)
        heading = "Control Details" if page_no == 0 else "Control Details (continued)"
        fig.text(0.06, 0.95, heading, fontsize=14)

        ax = fig.add_axes((0.06, 0.05, 0.88, 0.88))
        ax.axis("off")
        cells = [
            [_wrap(value, width) for value, width in zip(row, _DETAIL_WRAP)]
            for row in chunk
        ] or [[""] * len(_DETAIL_COLUMNS)]
        table = ax.table(
            cellText=cells,
            colLabels=list(_DETAIL_COLUMNS),
            colWidths=list(_DETAIL_WIDTHS),
            loc="upper center",
            cellLoc="left",
        )
        table.auto_set_font_size(False)
        table.set_fontsize(7)
        for (r, _), cell in table.get_celld().items():
            if r > 0:
                lines = max(cells[r - 1][c].count("\n") + 1 for c in range(len(_DETAIL_COLUMNS)))
                cell.set_height(0.012 * lines + 0.01)
        _style_header(table, len(_DETAIL_COLUMNS))

        pdf.savefig(fig)
        plt.close(fig)


def render_pdf(doc: ReportDocument, out_path: str | os.PathLike) -> Path:
    """
    Write *doc* as a multi-page A4 PDF.

    The file is first written to a ``.part`` sibling and renamed on success,
    so a failure never leaves a half-written report behind.
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = out_path.with_name(out_path.name + ".part")
    try:
        with PdfPages(tmp_path, metadata={"Title": doc.cover.title, "Creator": "auditkit"}) as pdf:
            _draw_cover(pdf, doc.cover)
            _draw_summary(pdf, doc)
            _draw_details(pdf, doc.rows)
        tmp_path.replace(out_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return out_path


def generate(
    audit: Audit,
    client: Client,
    out_dir: str | os.PathLike | None = None,
    settings: Optional[Settings] = None,
) -> Path:
    """Build and render the report for *audit* into *out_dir*; return its path."""
    doc = build_report(audit, client, settings=settings)
    target = Path(out_dir) if out_dir is not None else REPORT_DIR
    return render_pdf(doc, target / doc.filename)


# ---------------------------------------------------------------------
# CLI demo:  python -m auditkit.report  [--out reports/]
# ---------------------------------------------------------------------
if __name__ == "__main__":
    import argparse

    from .gateway import PersistenceGateway
    from .storage import SQLiteStore

    parser = argparse.ArgumentParser(
        description="Export the stored audit as a PDF report.")
    parser.add_argument("--out", default=str(REPORT_DIR), help="Output directory.")
    args = parser.parse_args()

    with SQLiteStore() as store:
        gw = PersistenceGateway(store)
        client, audit = gw.load_client(), gw.load_audit()
    if client is None or audit is None:
        raise SystemExit("⛔  No client/audit stored yet; run `auditkit setup-client` first.")
    print(f"report saved to {generate(audit, client, out_dir=args.out)}")
