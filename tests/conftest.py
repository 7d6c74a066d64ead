"""Shared fixtures: in-memory streams, a fixed clock and a loaded store."""

import pytest

from helpers import fixed_clock, make_profile

from bank_ledger.audit import AuditLogger
from bank_ledger.config import LedgerSettings
from bank_ledger.ledger import LedgerStore
from bank_ledger.storage import InMemoryRecordStreams


@pytest.fixture
def streams():
    return InMemoryRecordStreams()


@pytest.fixture
def ledger_settings():
    return LedgerSettings()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def store(streams, ledger_settings, audit_logger):
    store = LedgerStore(
        streams,
        settings=ledger_settings,
        audit_logger=audit_logger,
        clock=fixed_clock,
    )
    store.load()
    return store


@pytest.fixture
def alice(store):
    """Alice, account 1, opened with 500.00."""
    return store.sign_up("alice", make_profile("Alice"), "500.00")


@pytest.fixture
def bob(store, alice):
    """Bob, account 2, opened with 200.00."""
    return store.sign_up("bob", make_profile("Bob"), "200.00")
