"""Roster listing and bulk-action result models."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SortField(str, Enum):
    """Columns the roster can be ordered by."""

    NAME = "name"
    EMAIL = "email"
    STATUS = "status"
    LAST_LOGIN_AT = "last_login_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ActionOutcome(str, Enum):
    """CHANGED when at least one account was affected, NOTHING_TO_DO otherwise."""

    CHANGED = "changed"
    NOTHING_TO_DO = "nothing_to_do"


class RosterActionResult(BaseModel):
    """What a bulk roster action did.

    selected: ids the caller submitted (0 for purge-unverified)
    matched: selected accounts that still existed
    affected: accounts whose status changed or that were removed
    """

    action: str
    selected: int
    matched: int
    affected: int
    outcome: ActionOutcome
    message: str
    account_ids: list[UUID] = Field(default_factory=list)
