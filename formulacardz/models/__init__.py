from formulacardz.models.catalog import CatalogCard, Drop, Parallel, SetOption
from formulacardz.models.failure import (
    AuthError,
    FailureDetail,
    FailureKind,
    KnownError,
    NetworkError,
    NotFoundError,
    StateError,
    ValidationError,
)
from formulacardz.models.filters import FilterSpec, TrackerFilter
from formulacardz.models.ledger import UNSET, OwnershipLedger
from formulacardz.models.ownership import CardDetails, OwnershipKey, OwnershipRecord
from formulacardz.models.session import Session, UserProfile

__all__ = [
    "AuthError",
    "CardDetails",
    "CatalogCard",
    "Drop",
    "FailureDetail",
    "FailureKind",
    "FilterSpec",
    "KnownError",
    "NetworkError",
    "NotFoundError",
    "OwnershipKey",
    "OwnershipLedger",
    "OwnershipRecord",
    "Parallel",
    "Session",
    "SetOption",
    "StateError",
    "TrackerFilter",
    "UNSET",
    "UserProfile",
    "ValidationError",
]
