"""
One-of-one tracker report.

Fetches the one-of-one catalog for one or more sets and logs how many
one-of-ones have been found. Can be run as a standalone script or called
from a scheduler.
"""

import argparse
import asyncio
import logging

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.config import settings
from formulacardz.models.failure import NetworkError
from formulacardz.models.filters import TrackerFilter
from formulacardz.services.catalog import CatalogService
from formulacardz.services.tracker import TrackerResult

logger = logging.getLogger(__name__)


async def report_set(catalog: CatalogService, set_name: str, view: TrackerFilter) -> TrackerResult:
    """
    Build the tracker result for a single set.

    Args:
        catalog: Catalog service bound to an open client
        set_name: Set to report on
        view: Visibility toggles

    Returns:
        The tracker result for the set
    """
    logger.info("Fetching one-of-ones for %s...", set_name)
    result = await catalog.tracker(set_name, view)
    logger.info("%s: %d/%d one-of-ones found", set_name, result.found, result.total)
    return result


async def run_tracker_report(
    set_names: list[str] | None = None,
    include_printing_plates: bool = False,
) -> dict[str, TrackerResult]:
    """
    Report on the given sets, or on every set the service lists.

    Returns:
        Dict mapping set name to its tracker result. Sets that fail to load
        are logged and skipped.
    """
    view = TrackerFilter(include_printing_plates=include_printing_plates)
    results: dict[str, TrackerResult] = {}

    async with FormulaCardzClient(settings.api_base_url, timeout=settings.request_timeout) as client:
        catalog = CatalogService(client)

        if set_names is None:
            set_names = [option.value for option in await catalog.list_sets()]

        for set_name in set_names:
            try:
                results[set_name] = await report_set(catalog, set_name, view)
            except NetworkError as e:
                logger.error("Failed to load %s: %s", set_name, e.message)

    found = sum(r.found for r in results.values())
    total = sum(r.total for r in results.values())
    logger.info("Tracker report complete: %d/%d one-of-ones found", found, total)
    return results


def main() -> None:
    """CLI entry point for the tracker report."""
    parser = argparse.ArgumentParser(description="Report found one-of-one cards per set")
    parser.add_argument(
        "--sets",
        nargs="+",
        help="Set names to report on (default: every listed set)",
    )
    parser.add_argument(
        "--include-printing-plates",
        action="store_true",
        help="Count printing plates as one-of-ones",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_tracker_report(args.sets, args.include_printing_plates))


if __name__ == "__main__":
    main()
