"""
Pytest configuration: make sure `import auditkit` works regardless of
where pytest is invoked, and provide in-memory session fixtures.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from auditkit.gateway import PersistenceGateway  # noqa: E402
from auditkit.session import AuditSession  # noqa: E402
from auditkit.settings import Settings  # noqa: E402
from auditkit.storage import MemoryStore  # noqa: E402

AUDIT_DAY = date(2025, 3, 5)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None)


@pytest.fixture
def session(gateway, test_settings):
    return AuditSession(gateway, settings=test_settings, today=lambda: AUDIT_DAY)


@pytest.fixture
def ready_session(session):
    """Session with a stored client and a freshly synthesized audit."""
    session.setup_client("Acme Corp", address="1 Main St", city="Springfield")
    session.start()
    return session
