from formulacardz.services.account import AccountService, build_profile_update
from formulacardz.services.catalog import CatalogService
from formulacardz.services.drops import DropSchedule, categorize_drops, sort_drops
from formulacardz.services.filter_engine import (
    CollectionView,
    apply_filters,
    build_collection_view,
    distinct_values,
    total_value,
)
from formulacardz.services.ownership_store import OwnershipStore
from formulacardz.services.session_store import SessionStore
from formulacardz.services.tracker import TrackerResult, aggregate_one_of_ones

__all__ = [
    "AccountService",
    "CatalogService",
    "CollectionView",
    "DropSchedule",
    "OwnershipStore",
    "SessionStore",
    "TrackerResult",
    "aggregate_one_of_ones",
    "apply_filters",
    "build_collection_view",
    "build_profile_update",
    "categorize_drops",
    "distinct_values",
    "sort_drops",
    "total_value",
]
