"""
auditkit.settings
=================

Configuration settings for auditkit.

Storage and output locations are plain module constants read from the
environment; report wording (default title, company block, disclaimer) lives
in a pydantic settings model so it can also be overridden from a ``.env``
file or passed explicitly in tests.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = Path(os.environ.get("AUDITKIT_DB_FILE", BASE_DIR / "auditkit.db"))
DB_URL = f"sqlite:///{DB_FILE}"
DB_ECHO = os.environ.get("AUDITKIT_DB_ECHO", "False").lower() == "true"

# Report output
# ---------------------------------------------------------------------------
REPORT_DIR = Path(os.environ.get("AUDITKIT_REPORT_DIR", "reports"))

_DEFAULT_COMPANY_ADDRESS = (
    "518, I square Corporate Park,\n"
    "Near CIMS Hospital, Science\n"
    "City Road, Ahmedabad -\n"
    "380060 (Gujarat)"
)


# ---------------------------------------------------------------------------
# Pydantic settings model for report defaults
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Report wording defaults, loaded from ``AUDITKIT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUDITKIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    default_title: str = Field(
        "Information System & Electronic Data Processing",
        description="Cover title used when the audit has none",
    )
    default_financial_year: str = Field("2024-2025", description="Financial year on new audits")
    company_name: str = Field("Shark Cyber System", description="Auditing company name")
    company_address: str = Field(_DEFAULT_COMPANY_ADDRESS, description="Multi-line company address")
    default_disclaimer: str = Field(
        "Only Shark Cyber System's logo is our property, and all other logos "
        "are property of individual owners",
        description="Disclaimer printed on the cover page",
    )
    confidential_notice: str = Field(
        "Not to be circulated or reproduced without appropriate authorization",
        description="Body of the confidentiality notice",
    )

    # Output naming
    report_prefix: str = Field("security_audit", description="Fixed base name of exported reports")
    report_extension: str = Field("pdf", description="Extension of exported reports")
    filename_separator: str = Field("_", description="Replaces whitespace runs in client names")


# Initialize settings
settings = Settings()
