"""Validation package."""

from bank_ledger.validation.password import PasswordPolicy

__all__ = ["PasswordPolicy"]
