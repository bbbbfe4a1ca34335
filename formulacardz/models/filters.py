"""Transient, UI-driven query specs. Never persisted."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """
    Collection query.

    Attributes:
        search_text: Case-insensitive substring matched against driver,
            constructor, card number and set name
        set_name: Exact set name facet
        constructor_name: Exact constructor facet
        driver_name: Exact driver facet
    """

    search_text: str = ""
    set_name: str | None = None
    constructor_name: str | None = None
    driver_name: str | None = None


@dataclass(frozen=True, slots=True)
class TrackerFilter:
    """Visibility toggles for the one-of-one tracker."""

    show_found: bool = True
    show_missing: bool = True
    driver_search: str = ""
    constructor_search: str = ""
    include_printing_plates: bool = False
