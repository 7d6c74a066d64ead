"""
User Models

A User is the identity/credentials record bound 1:1 to an Account.

SECURITY NOTE: passwords are stored and compared in plaintext. This is a
known gap kept for compatibility with existing ledger files; hashing would
change the on-disk format, so it is not done here.
"""

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Profile fields collected at sign-up."""

    first_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Given name"
    )
    last_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Family name"
    )
    email: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Contact email"
    )
    password: str = Field(
        ...,
        min_length=1,
        repr=False,
        description="Plaintext password"
    )


class User(BaseModel):
    """
    A registered ledger user.

    user_name and account_id are identity keys: they are only changed by the
    ledger store's rename path so the store's index stays consistent.
    """
    model_config = ConfigDict(validate_assignment=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=200)
    user_name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique login name"
    )
    password: str = Field(..., min_length=1, repr=False)
    account_id: int = Field(
        ...,
        ge=1,
        description="The one account owned by this user"
    )

    def matches_password(self, candidate: str) -> bool:
        """Exact string comparison against the stored password."""
        return self.password == candidate

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
