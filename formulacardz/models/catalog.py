"""Read-only catalog reference data served by the remote service."""

from dataclasses import dataclass
from datetime import datetime

PRINTING_PLATE = "printing plate"


@dataclass(frozen=True, slots=True)
class Parallel:
    """A named print variant of a card."""

    name: str
    is_one_of_one: bool = False
    is_one_of_one_found: bool = False
    image_url: str | None = None

    @property
    def is_printing_plate(self) -> bool:
        return PRINTING_PLATE in self.name.lower()


@dataclass(frozen=True, slots=True)
class CatalogCard:
    """
    A catalog card with its enabled parallels.

    Parallels are kept in the order the catalog lists them.
    """

    card_id: str
    year: int
    set_name: str
    card_number: str
    driver_name: str
    constructor_name: str
    rookie_card: bool = False
    parallels: tuple[Parallel, ...] = ()
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class SetOption:
    """An entry of the card-set dropdown."""

    value: str
    label: str
    id: str | None = None


@dataclass(frozen=True, slots=True)
class Drop:
    """An upcoming product release."""

    product_name: str
    release_date: datetime
    description: str
    manufacturer: str
    image_url: str | None = None
    preorder_url: str | None = None
