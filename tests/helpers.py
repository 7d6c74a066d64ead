"""Plain helpers shared by the test modules: a fixed clock, profiles and reloads."""

from bank_ledger.ledger import LedgerStore
from bank_ledger.models.user import UserProfile


FIXED_TIME = "Mon Jan 01 12:00:00 2024"


def fixed_clock() -> str:
    return FIXED_TIME


def make_profile(first_name: str, password: str = "Secret#123") -> UserProfile:
    return UserProfile(
        first_name=first_name,
        last_name="Smith",
        email=f"{first_name.lower()}@example.com",
        password=password,
    )


def reload(streams, settings=None) -> LedgerStore:
    """A fresh store loaded from the same streams."""
    fresh = LedgerStore(streams, settings=settings, clock=fixed_clock)
    fresh.load()
    return fresh
