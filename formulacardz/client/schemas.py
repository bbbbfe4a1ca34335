"""
Wire models for the Formula Cardz REST API.

The service speaks camelCase JSON; fields here are snake_case with camelCase
aliases. Each response model knows how to convert itself into the matching
domain model.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from formulacardz.models.catalog import CatalogCard, Drop, Parallel, SetOption
from formulacardz.models.ownership import CardDetails, OwnershipRecord
from formulacardz.models.session import UserProfile


class ApiModel(BaseModel):
    """Base for wire models: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_body(self) -> dict:
        """JSON-ready request body with unset optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- Auth ---


class AuthRequest(ApiModel):
    email: str
    password: str


class NewUserRequest(ApiModel):
    username: str
    email: str
    password: str
    profile_image_url: str | None = None
    favorite_drivers: list[str] = Field(default_factory=list)
    favorite_constructors: list[str] = Field(default_factory=list)


class ForgotPasswordRequest(ApiModel):
    email: str


class AuthResponse(ApiModel):
    """Profile plus bearer token returned by login and register."""

    id: str
    email: str
    username: str
    token: str
    profile_image_url: str | None = None
    favorite_drivers: list[str] = Field(default_factory=list)
    favorite_constructors: list[str] = Field(default_factory=list)
    has_premium: bool | None = False

    def to_profile(self) -> UserProfile:
        return UserProfile(
            username=self.username,
            email=self.email,
            favorite_drivers=frozenset(self.favorite_drivers),
            favorite_constructors=frozenset(self.favorite_constructors),
            has_premium=bool(self.has_premium),
            profile_image_url=self.profile_image_url or None,
        )


# --- User ---


class UpdateUserRequest(ApiModel):
    """Partial profile update. Only fields that changed are sent."""

    username: str | None = None
    favorite_drivers: list[str] | None = None
    favorite_constructors: list[str] | None = None


class ServerUser(ApiModel):
    id: str = Field(alias="_id")
    email: str
    username: str
    profile_image_url: str | None = None
    favorite_drivers: list[str] = Field(default_factory=list)
    favorite_constructors: list[str] = Field(default_factory=list)
    has_premium: bool | None = False

    def to_profile(self) -> UserProfile:
        return UserProfile(
            username=self.username,
            email=self.email,
            favorite_drivers=frozenset(self.favorite_drivers),
            favorite_constructors=frozenset(self.favorite_constructors),
            has_premium=bool(self.has_premium),
            profile_image_url=self.profile_image_url or None,
        )


class UpdatedUserResponse(ApiModel):
    user: ServerUser


# --- Ownership ---


class CardCollectionResponse(ApiModel):
    """An ownership record flattened with its card fields."""

    id: str
    year: int
    set_name: str
    card_number: str
    driver_name: str
    constructor_name: str
    rookie_card: bool = False
    parallel: str | None = None
    image_url: str | None = None
    quantity: int = Field(ge=1)
    condition: str
    purchase_price: Decimal | None = None
    purchase_date: date | None = None

    def to_record(self) -> OwnershipRecord:
        return OwnershipRecord(
            card_id=self.id,
            parallel=self.parallel or None,
            condition=self.condition,
            quantity=self.quantity,
            purchase_price=self.purchase_price,
            purchase_date=self.purchase_date,
            details=CardDetails(
                year=self.year,
                set_name=self.set_name,
                card_number=self.card_number,
                driver_name=self.driver_name,
                constructor_name=self.constructor_name,
                rookie_card=self.rookie_card,
                image_url=self.image_url,
            ),
        )


class AddCardToCollectionRequest(ApiModel):
    user_id: str
    card_id: str
    quantity: int
    parallel: str | None = None
    purchase_price: float | None = None
    purchase_date: date | None = None
    condition: str


class UpdateCardInCollectionRequest(ApiModel):
    user_id: str
    card_id: str
    old_parallel: str | None = None
    old_condition: str | None = None
    quantity: int | None = None
    parallel: str | None = None
    purchase_price: float | None = None
    purchase_date: date | None = None
    condition: str | None = None


class RemoveCardFromCollectionRequest(ApiModel):
    user_id: str
    card_id: str
    quantity_to_subtract: int
    parallel: str | None = None
    condition: str


# --- Catalog ---


class EnabledParallel(ApiModel):
    name: str
    image_url: str | None = None
    is_one_of_one: bool = False
    is_one_of_one_found: bool = False

    def to_parallel(self) -> Parallel:
        return Parallel(
            name=self.name,
            is_one_of_one=self.is_one_of_one,
            is_one_of_one_found=self.is_one_of_one_found,
            image_url=self.image_url,
        )


class CardResponse(ApiModel):
    id: str
    year: int
    set_name: str
    card_number: str
    driver_name: str
    constructor_name: str
    rookie_card: bool = False
    image_url: str | None = None
    parallels: list[EnabledParallel] = Field(default_factory=list)

    def to_card(self) -> CatalogCard:
        return CatalogCard(
            card_id=self.id,
            year=self.year,
            set_name=self.set_name,
            card_number=self.card_number,
            driver_name=self.driver_name,
            constructor_name=self.constructor_name,
            rookie_card=self.rookie_card,
            parallels=tuple(p.to_parallel() for p in self.parallels),
            image_url=self.image_url,
        )


class Dropdown(ApiModel):
    value: str
    label: str
    id: str | None = None

    def to_option(self) -> SetOption:
        return SetOption(value=self.value, label=self.label, id=self.id)


class CardDropResponse(ApiModel):
    product_name: str
    release_date: datetime
    description: str = ""
    manufacturer: str = ""
    image_url: str | None = None
    preorder_url: str | None = None

    def to_drop(self) -> Drop:
        return Drop(
            product_name=self.product_name,
            release_date=self.release_date,
            description=self.description,
            manufacturer=self.manufacturer,
            image_url=self.image_url,
            preorder_url=self.preorder_url,
        )
