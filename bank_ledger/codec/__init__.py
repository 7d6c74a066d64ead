"""Record codec package."""

from bank_ledger.codec.records import (
    DELIMITER,
    AccountCodec,
    RecordCodec,
    TransactionCodec,
    UserCodec,
    check_text_field,
    format_money,
    parse_money,
)

__all__ = [
    "DELIMITER",
    "AccountCodec",
    "RecordCodec",
    "TransactionCodec",
    "UserCodec",
    "check_text_field",
    "format_money",
    "parse_money",
]
