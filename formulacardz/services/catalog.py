"""
Catalog service.

Read-only access to the remote card catalog, set list, one-of-one tracker
data and upcoming drops. No session is required.
"""

import logging
from datetime import datetime

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.models.catalog import CatalogCard, Drop, SetOption
from formulacardz.models.filters import TrackerFilter
from formulacardz.services.drops import DropSchedule, categorize_drops, sort_drops
from formulacardz.services.tracker import TrackerResult, aggregate_one_of_ones

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, client: FormulaCardzClient) -> None:
        self._client = client

    async def list_sets(self) -> list[SetOption]:
        return [option.to_option() for option in await self._client.get_card_sets()]

    async def cards_by_set(self, set_name: str) -> list[CatalogCard]:
        return [card.to_card() for card in await self._client.get_cards_by_set(set_name)]

    async def one_of_ones(self, set_name: str | None = None) -> list[CatalogCard]:
        return [card.to_card() for card in await self._client.get_one_of_one_cards(set_name)]

    async def tracker(self, set_name: str, view: TrackerFilter | None = None) -> TrackerResult:
        """Fetch a set's one-of-ones and apply the tracker view."""
        cards = await self.one_of_ones(set_name)
        result = aggregate_one_of_ones(cards, view or TrackerFilter())
        logger.info(
            "Tracker for %s: %d/%d found across %d cards",
            set_name,
            result.found,
            result.total,
            len(result.cards),
        )
        return result

    async def upcoming_drops(self) -> list[Drop]:
        return sort_drops(drop.to_drop() for drop in await self._client.get_upcoming_drops())

    async def drop_schedule(self, now: datetime) -> DropSchedule:
        return categorize_drops(await self.upcoming_drops(), now)
