"""
Audit Models for Bank Ledger

Every significant action on the ledger is logged for audit purposes.
This provides:
1. Traceability of every balance change and credential change
2. Debugging information when a store fails to load or persist
3. A record of rejected operations

DESIGN DECISION: Audit events never carry passwords, only the fact
that a credential changed or a check failed.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_LOADED = "store_loaded"
    STORE_LOAD_FAILED = "store_load_failed"
    STORE_PERSISTED = "store_persisted"
    STORE_PERSIST_FAILED = "store_persist_failed"

    # Identity
    USER_SIGNED_UP = "user_signed_up"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    USERNAME_CHANGED = "username_changed"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_CHANGE_FAILED = "password_change_failed"
    PROFILE_UPDATED = "profile_updated"

    # Money movement
    DEPOSIT_COMPLETED = "deposit_completed"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    TRANSFER_COMPLETED = "transfer_completed"

    # Rejections
    OPERATION_REJECTED = "operation_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    user_name: Optional[str] = Field(
        default=None,
        description="User the event relates to"
    )
    account_id: Optional[int] = Field(
        default=None,
        description="Account the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_name": self.user_name,
            "account_id": self.account_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.deposit_completed(account_id, amount, balance)
        event = AuditEventBuilder.operation_rejected("withdraw", error, account_id=7)
    """

    @staticmethod
    def store_loaded(users: int, accounts: int, transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            description=f"Store loaded: {users} users, {accounts} accounts",
            details={
                "users": users,
                "accounts": accounts,
                "transactions": transactions,
            },
        )

    @staticmethod
    def store_load_failed(error_type: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Store load aborted: {error_type}",
            error_message=error_message,
        )

    @staticmethod
    def store_persisted(users: int, accounts: int, transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_PERSISTED,
            severity=AuditSeverity.DEBUG,
            description="Store rewritten",
            details={
                "users": users,
                "accounts": accounts,
                "transactions": transactions,
            },
        )

    @staticmethod
    def store_persist_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            description="Store rewrite failed, in-memory state restored",
            error_message=error_message,
        )

    @staticmethod
    def user_signed_up(user_name: str, account_id: int, initial_deposit: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            user_name=user_name,
            account_id=account_id,
            description=f"New account {account_id} opened for {user_name}",
            details={"initial_deposit": initial_deposit},
        )

    @staticmethod
    def login_succeeded(user_name: str, account_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            user_name=user_name,
            account_id=account_id,
            description=f"User logged in: {user_name}",
        )

    @staticmethod
    def login_failed(user_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            user_name=user_name,
            description="Login rejected: invalid username or password",
        )

    @staticmethod
    def username_changed(old_user_name: str, new_user_name: str, account_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USERNAME_CHANGED,
            user_name=new_user_name,
            account_id=account_id,
            description=f"Username changed from {old_user_name} to {new_user_name}",
            details={"old_user_name": old_user_name},
        )

    @staticmethod
    def password_changed(user_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_CHANGED,
            user_name=user_name,
            description="Password updated",
        )

    @staticmethod
    def password_change_failed(user_name: str, attempts: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_CHANGE_FAILED,
            severity=AuditSeverity.WARNING,
            user_name=user_name,
            description=f"Password change refused after {attempts} wrong attempts",
            details={"attempts": attempts},
        )

    @staticmethod
    def profile_updated(user_name: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            user_name=user_name,
            description=f"Profile updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def deposit_completed(account_id: int, amount: str, balance: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSIT_COMPLETED,
            account_id=account_id,
            description=f"Deposit of {amount} into account {account_id}",
            details={"amount": amount, "balance": balance},
        )

    @staticmethod
    def withdrawal_completed(account_id: int, amount: str, balance: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_COMPLETED,
            account_id=account_id,
            description=f"Withdrawal of {amount} from account {account_id}",
            details={"amount": amount, "balance": balance},
        )

    @staticmethod
    def transfer_completed(
        sender_id: int,
        receiver_id: int,
        receiver_user_name: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_COMPLETED,
            account_id=sender_id,
            description=f"Transfer of {amount} from account {sender_id} to {receiver_user_name}",
            details={
                "receiver_account_id": receiver_id,
                "receiver_user_name": receiver_user_name,
                "amount": amount,
            },
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error: Exception,
        user_name: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            user_name=user_name,
            account_id=account_id,
            description=f"{operation} rejected: {type(error).__name__}",
            error_message=str(error),
            details={"operation": operation},
        )
