"""Tests for the record codec."""

import pytest
from decimal import Decimal

from bank_ledger.codec import (
    AccountCodec,
    TransactionCodec,
    UserCodec,
    format_money,
    parse_money,
)
from bank_ledger.errors import MalformedRecordError
from bank_ledger.models import Account, TransactionKind, TransactionLogEntry, User


TS = "Mon Jan 01 12:00:00 2024"


class TestUserCodec:
    """Tests for user lines."""

    def setup_method(self):
        self.codec = UserCodec()

    def test_encode(self):
        user = User(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            user_name="ada",
            password="Secret#123",
            account_id=4,
        )
        assert self.codec.encode(user) == "Ada,Lovelace,ada@example.com,ada,Secret#123,4"

    def test_decode(self):
        user = self.codec.decode("Ada,Lovelace,ada@example.com,ada,Secret#123,4\n")
        assert user.user_name == "ada"
        assert user.account_id == 4
        assert user.matches_password("Secret#123")

    def test_wrong_field_count(self):
        with pytest.raises(MalformedRecordError, match="expected 6"):
            self.codec.decode("Ada,Lovelace,ada@example.com,ada,4")

    def test_account_id_not_a_number(self):
        with pytest.raises(MalformedRecordError):
            self.codec.decode("Ada,Lovelace,ada@example.com,ada,pw,four")

    def test_model_constraints_become_malformed_record(self):
        """Test that pydantic errors never escape the codec."""
        with pytest.raises(MalformedRecordError):
            self.codec.decode("Ada,Lovelace,ada@example.com,ada,pw,0")
        with pytest.raises(MalformedRecordError):
            self.codec.decode(",Lovelace,ada@example.com,ada,pw,1")

    def test_comma_in_field_refused_on_encode(self):
        """Test that a line that could not be read back is never written."""
        user = User(
            first_name="Ada",
            last_name="Lovelace, Countess",
            email="ada@example.com",
            user_name="ada",
            password="pw",
            account_id=1,
        )
        with pytest.raises(MalformedRecordError, match="last_name"):
            self.codec.encode(user)


class TestAccountCodec:
    """Tests for account lines."""

    def setup_method(self):
        self.codec = AccountCodec()

    def test_encode_uses_two_decimals(self):
        account = Account(account_id=2, balance=Decimal("350"))
        assert self.codec.encode(account) == "2,350.00"

    def test_decode_reads_exponent_notation(self):
        """Test balances written by older files ("1e+06")."""
        account = self.codec.decode("3,1e+06")
        assert account.balance == Decimal("1000000")
        assert account.transactions == []

    def test_non_finite_balance_rejected(self):
        with pytest.raises(MalformedRecordError):
            self.codec.decode("3,nan")
        with pytest.raises(MalformedRecordError):
            self.codec.decode("3,inf")

    def test_garbage_balance_rejected(self):
        with pytest.raises(MalformedRecordError):
            self.codec.decode("3,lots")


class TestTransactionCodec:
    """Tests for history lines."""

    def setup_method(self):
        self.codec = TransactionCodec()

    def test_encode(self):
        entry = TransactionLogEntry(
            account_id=1,
            kind=TransactionKind.TRANSFER_OUT,
            amount=Decimal("150"),
            message="to (bob)",
            resulting_balance=Decimal("350"),
            timestamp=TS,
        )
        assert self.codec.encode(entry) == f"1,Transfer-Out,150.00,to (bob),350.00,{TS}"

    def test_decode_empty_message(self):
        entry = self.codec.decode(f"1,Deposit,100.00,,600.00,{TS}\r\n")
        assert entry.kind is TransactionKind.DEPOSIT
        assert entry.message == ""
        assert entry.resulting_balance == Decimal("600.00")
        assert entry.timestamp == TS

    def test_decode_legacy_kinds(self):
        sent = self.codec.decode(f"1,Transfer,50,to (bob),450,{TS}")
        received = self.codec.decode(f"2,Receive,50,from (alice),250,{TS}")
        assert sent.kind is TransactionKind.TRANSFER_OUT
        assert received.kind is TransactionKind.TRANSFER_IN

    def test_unknown_kind(self):
        with pytest.raises(MalformedRecordError, match="Unknown transaction kind"):
            self.codec.decode(f"1,Refund,50,,450,{TS}")

    def test_zero_amount_rejected(self):
        with pytest.raises(MalformedRecordError):
            self.codec.decode(f"1,Deposit,0,,450,{TS}")

    def test_comma_in_timestamp_splits_the_line(self):
        with pytest.raises(MalformedRecordError, match="7 fields"):
            self.codec.decode("1,Deposit,50,,450,Mon, Jan 01 2024")


class TestMoneyHelpers:
    """Tests for money formatting and parsing."""

    def test_format_money(self):
        assert format_money(Decimal("1")) == "1.00"
        assert format_money(Decimal("1e+06")) == "1000000.00"
        assert format_money(Decimal("-2.5")) == "-2.50"

    def test_parse_money(self):
        assert parse_money(" 150 ", "amount") == Decimal("150")
        with pytest.raises(MalformedRecordError, match="amount"):
            parse_money("", "amount")
