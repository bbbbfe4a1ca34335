"""
One-of-one tracker.

Reduces catalog cards to their one-of-one parallels and applies the
tracker's visibility toggles.

Pipeline per card:
1. Keep only parallels with is_one_of_one; drop the card if none remain
2. Unless printing plates are included, drop "printing plate" parallels
   and drop the card if none remain
3. Found/missing gate over the remaining parallels
4. Case-insensitive driver and constructor substring filters

Counters are computed over the cards and parallels that survive.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

from formulacardz.models.catalog import CatalogCard, Parallel
from formulacardz.models.filters import TrackerFilter


@dataclass(frozen=True, slots=True)
class TrackerResult:
    """Cards to display, each carrying only its displayed parallels."""

    cards: tuple[CatalogCard, ...]
    found: int
    total: int

    @property
    def missing(self) -> int:
        return self.total - self.found


def visible_parallels(card: CatalogCard, include_printing_plates: bool) -> tuple[Parallel, ...]:
    parallels = tuple(p for p in card.parallels if p.is_one_of_one)
    if not include_printing_plates:
        parallels = tuple(p for p in parallels if not p.is_printing_plate)
    return parallels


def passes_status_gate(parallels: Iterable[Parallel], show_found: bool, show_missing: bool) -> bool:
    if show_found and show_missing:
        return True
    if show_found:
        return any(p.is_one_of_one_found for p in parallels)
    if show_missing:
        return any(not p.is_one_of_one_found for p in parallels)
    return False


def _contains(value: str, search: str) -> bool:
    # Blank search is off; otherwise the term is matched as typed
    return not search.strip() or search.lower() in value.lower()


def aggregate_one_of_ones(cards: Iterable[CatalogCard], view: TrackerFilter) -> TrackerResult:
    """
    Apply the tracker filter and count found/total one-of-ones.

    Returns an empty result (not an error) when both status toggles are off.
    """
    shown: list[CatalogCard] = []

    for card in cards:
        parallels = visible_parallels(card, view.include_printing_plates)
        if not parallels:
            continue
        if not passes_status_gate(parallels, view.show_found, view.show_missing):
            continue
        if not _contains(card.driver_name, view.driver_search):
            continue
        if not _contains(card.constructor_name, view.constructor_search):
            continue
        shown.append(replace(card, parallels=parallels))

    found = sum(1 for card in shown for p in card.parallels if p.is_one_of_one_found)
    total = sum(len(card.parallels) for card in shown)

    return TrackerResult(cards=tuple(shown), found=found, total=total)
