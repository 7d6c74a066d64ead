"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the store must conform to these schemas.
"""

from bank_ledger.models.account import Account
from bank_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from bank_ledger.models.statement import AccountStatement, StatementQuery
from bank_ledger.models.transaction import TransactionKind, TransactionLogEntry
from bank_ledger.models.user import User, UserProfile
from bank_ledger.models.validation import PasswordCheckResult, ValidationIssue

__all__ = [
    # Ledger models
    "Account",
    "TransactionKind",
    "TransactionLogEntry",
    "User",
    "UserProfile",
    # Query models
    "AccountStatement",
    "StatementQuery",
    # Validation models
    "PasswordCheckResult",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
