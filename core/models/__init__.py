"""Core domain models."""

from core.models.account import (
    Account,
    AccountStatus,
    LoginRequest,
    RegistrationRequest,
    StatusChange,
    TransitionResult,
    normalize_email,
)
from core.models.roster import ActionOutcome, RosterActionResult, SortField, SortOrder

__all__ = [
    "Account", "AccountStatus",
    "LoginRequest", "RegistrationRequest",
    "StatusChange", "TransitionResult",
    "normalize_email",
    "ActionOutcome", "RosterActionResult", "SortField", "SortOrder",
]
