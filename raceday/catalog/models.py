"""Catalogue entry schemas.

Catalogue files use camelCase keys; entries are validated into frozen
pydantic models and can also be built with snake_case field names.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from raceday.nutrition.enums import SportType


class CatalogModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ProductInfo(CatalogModel):
    """Product as listed in a brand catalogue file."""

    id: str
    brand: str
    name: str
    product_type: str = Field(description="gel, drink, bar, chew, recovery, ...")
    carbs_g: float = Field(ge=0)
    sodium_mg: float = Field(default=0.0, ge=0)
    calories_kcal: float = Field(default=0.0, ge=0)
    volume_ml: float = Field(default=0.0, ge=0)
    caffeine_mg: float | None = Field(default=None, ge=0)
    texture: str | None = None
    image_url: str | None = None


class ActivityInfo(CatalogModel):
    """Race or activity preset with typical finish times."""

    id: str
    name: str
    sport_type: SportType
    description: str = ""
    min_duration_hours: float = Field(gt=0)
    max_duration_hours: float = Field(gt=0)
    best_time_hours: float = Field(gt=0)


class ProductFilter(CatalogModel):
    """Catalogue filter: optional brand and product types to exclude."""

    brand: str | None = None
    exclude_types: tuple[str, ...] = ()

    def excluding(self, *types: str) -> "ProductFilter":
        """Return a copy that also excludes the given product types."""
        merged = tuple(dict.fromkeys([*self.exclude_types, *types]))
        return self.model_copy(update={"exclude_types": merged})
