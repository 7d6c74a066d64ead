"""
Record Codec

The only boundary between structured ledger records and the flat,
comma-delimited line format of the record streams.

Line formats (one record per line, fixed field order):
- User:        firstName,lastName,email,userName,password,accountID
- Account:     accountID,balance
- Transaction: accountID,kind,amount,message,resultingBalance,timestamp

DESIGN DECISION: Decoding never asserts or crashes on bad input. Every
failure (wrong field count, unparsable number, value the model rejects)
surfaces as MalformedRecordError.

LIMITATION: embedded commas are not escaped. Instead of writing a line that
could never be read back, encoding refuses text fields that contain the
delimiter or a line break.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from bank_ledger.errors import MalformedRecordError
from bank_ledger.models.account import Account
from bank_ledger.models.transaction import TransactionKind, TransactionLogEntry
from bank_ledger.models.user import User


DELIMITER = ","
_FORBIDDEN = (DELIMITER, "\n", "\r")

RecordT = TypeVar("RecordT", bound=BaseModel)


def check_text_field(value: str, field: str) -> str:
    """Refuse text that would break the line format."""
    if any(ch in value for ch in _FORBIDDEN):
        raise MalformedRecordError(
            f"Field '{field}' must not contain commas or line breaks"
        )
    return value


def format_money(value: Decimal) -> str:
    """Money is always written with two decimal places."""
    return f"{value:.2f}"


def parse_money(text: str, field: str) -> Decimal:
    """
    Parse a money field.

    Accepts anything Decimal accepts ("150", "150.00", "1e+06") as long
    as the result is finite.
    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise MalformedRecordError(f"Field '{field}' is not a number: {text!r}")
    if not value.is_finite():
        raise MalformedRecordError(f"Field '{field}' is not finite: {text!r}")
    return value


def parse_int(text: str, field: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise MalformedRecordError(f"Field '{field}' is not an integer: {text!r}")


class RecordCodec(ABC, Generic[RecordT]):
    """
    Encodes one record kind to a line and decodes it back.

    Subclasses declare the field names in order; the expected field count
    on decode is the length of that list.
    """

    record_name: str = "record"
    fields: tuple[str, ...] = ()

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def encode(self, record: RecordT) -> str:
        """Convert a record to a single line (no trailing newline)."""
        values = self._to_fields(record)
        for name, value in zip(self.fields, values):
            check_text_field(value, name)
        return DELIMITER.join(values)

    def decode(self, line: str) -> RecordT:
        """
        Convert a line back to a record.

        Raises:
            MalformedRecordError: field count mismatch, bad number, or
                values the model rejects
        """
        values = line.rstrip("\r\n").split(DELIMITER)
        if len(values) != self.field_count:
            raise MalformedRecordError(
                f"{self.record_name} record has {len(values)} fields, "
                f"expected {self.field_count}: {line!r}"
            )
        try:
            return self._from_fields(values)
        except ValidationError as e:
            raise MalformedRecordError(
                f"Invalid {self.record_name} record {line!r}: "
                f"{e.error_count()} validation error(s)"
            ) from e

    @abstractmethod
    def _to_fields(self, record: RecordT) -> list[str]:
        pass

    @abstractmethod
    def _from_fields(self, values: list[str]) -> RecordT:
        pass


class UserCodec(RecordCodec[User]):
    """firstName,lastName,email,userName,password,accountID"""

    record_name = "user"
    fields = ("first_name", "last_name", "email", "user_name", "password", "account_id")

    def _to_fields(self, record: User) -> list[str]:
        return [
            record.first_name,
            record.last_name,
            record.email,
            record.user_name,
            record.password,
            str(record.account_id),
        ]

    def _from_fields(self, values: list[str]) -> User:
        return User(
            first_name=values[0],
            last_name=values[1],
            email=values[2],
            user_name=values[3],
            password=values[4],
            account_id=parse_int(values[5], "account_id"),
        )


class AccountCodec(RecordCodec[Account]):
    """
    accountID,balance

    Transactions are not part of the account line; they are attached
    from the history stream when the store loads.
    """

    record_name = "account"
    fields = ("account_id", "balance")

    def _to_fields(self, record: Account) -> list[str]:
        return [str(record.account_id), format_money(record.balance)]

    def _from_fields(self, values: list[str]) -> Account:
        return Account(
            account_id=parse_int(values[0], "account_id"),
            balance=parse_money(values[1], "balance"),
        )


class TransactionCodec(RecordCodec[TransactionLogEntry]):
    """accountID,kind,amount,message,resultingBalance,timestamp"""

    record_name = "transaction"
    fields = ("account_id", "kind", "amount", "message", "resulting_balance", "timestamp")

    def _to_fields(self, record: TransactionLogEntry) -> list[str]:
        return [
            str(record.account_id),
            record.kind.value,
            format_money(record.amount),
            record.message,
            format_money(record.resulting_balance),
            record.timestamp,
        ]

    def _from_fields(self, values: list[str]) -> TransactionLogEntry:
        try:
            kind = TransactionKind(values[1])
        except ValueError:
            raise MalformedRecordError(f"Unknown transaction kind: {values[1]!r}")
        return TransactionLogEntry(
            account_id=parse_int(values[0], "account_id"),
            kind=kind,
            amount=parse_money(values[2], "amount"),
            message=values[3],
            resulting_balance=parse_money(values[4], "resulting_balance"),
            timestamp=values[5],
        )
