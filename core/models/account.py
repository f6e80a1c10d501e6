"""Account domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class AccountStatus(str, Enum):
    """Account lifecycle status. Declaration order is the roster sort order."""

    UNVERIFIED = "unverified"
    ACTIVE = "active"
    BLOCKED = "blocked"


class Account(BaseModel):
    """A registered account as stored.

    Credential hash and confirmation token are excluded from serialisation;
    they never leave the service in a response body.
    """

    id: UUID
    name: str
    email: str
    password_hash: str = Field(..., exclude=True, repr=False)
    status: AccountStatus
    last_login_at: datetime | None = None
    created_at: datetime
    confirmation_token: str | None = Field(None, exclude=True, repr=False)

    model_config = {"from_attributes": True}

    @property
    def confirmation_pending(self) -> bool:
        """True until the email address has been confirmed."""
        return self.confirmation_token is not None


def normalize_email(email: str) -> str:
    """Canonical stored/lookup form: trimmed and lower-cased."""
    return email.strip().lower()


NAME_MAX_LENGTH = 100


class RegistrationRequest(BaseModel):
    """Data submitted on the registration form."""

    # Length limits apply to the trimmed value
    name: str
    email: EmailStr
    # Any non-empty password is accepted
    password: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        if len(value) > NAME_MAX_LENGTH:
            raise ValueError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
        return value

    @field_validator("email")
    @classmethod
    def limit_email_length(cls, value: str) -> str:
        if len(value) > 255:
            raise ValueError("Email cannot exceed 255 characters")
        return normalize_email(value)


class LoginRequest(BaseModel):
    """Data submitted on the login form."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class StatusChange(BaseModel):
    """One account's status before and after a roster or confirmation transition."""

    account_id: UUID
    previous: AccountStatus
    current: AccountStatus

    @property
    def changed(self) -> bool:
        return self.previous != self.current


class TransitionResult(BaseModel):
    """Outcome of applying a status transition to a set of selected accounts.

    matched counts the selected ids that still exist; changes lists only the
    accounts whose status actually moved.
    """

    matched: int
    changes: list[StatusChange] = Field(default_factory=list)

    @property
    def changed_count(self) -> int:
        return len(self.changes)
