"""Pydantic models for the session domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.account import Account


class Session(BaseModel):
    """A server-side login session bound to exactly one account."""

    token: str = Field(..., description="Session token (opaque string)")
    account_id: UUID
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime


class AuthenticatedAccount(BaseModel):
    """Account and freshly created session returned by a successful login."""

    account: Account
    session: Session
