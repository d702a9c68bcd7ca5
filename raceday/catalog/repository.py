"""Read-only product and activity catalogues.

Catalogues are plain immutable objects built from JSON files. Nothing here
is global: a CatalogProvider owns one lazily loaded pair of catalogues and
is passed to whoever needs it.
"""

import threading
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from raceday.catalog.models import ActivityInfo, ProductFilter, ProductInfo
from raceday.nutrition.enums import ProductClass, ProductTexture, SportType
from raceday.nutrition.errors import CatalogError
from raceday.nutrition.models import Product

DEFAULT_DATA_DIR = Path(__file__).parent / "data"
PRODUCT_FILE_PATTERN = "*-products.json"
ACTIVITY_FILE = "activities.json"

_PRODUCTS_ADAPTER = TypeAdapter(list[ProductInfo])
_ACTIVITIES_ADAPTER = TypeAdapter(list[ActivityInfo])


class ProductCatalog:
    """Immutable collection of catalogue products."""

    def __init__(self, products: list[ProductInfo] | tuple[ProductInfo, ...]):
        self._products = tuple(products)

    def __len__(self) -> int:
        return len(self._products)

    def all(self) -> tuple[ProductInfo, ...]:
        return self._products

    def by_id(self, product_id: str) -> ProductInfo | None:
        return next((p for p in self._products if p.id == product_id), None)

    def by_type(self, product_type: str) -> list[ProductInfo]:
        wanted = product_type.lower()
        return [p for p in self._products if p.product_type.lower() == wanted]

    def search(self, query: str) -> list[ProductInfo]:
        """Case-insensitive match on name, brand or id."""
        needle = query.lower()
        return [
            p
            for p in self._products
            if needle in p.name.lower() or needle in p.brand.lower() or needle in p.id.lower()
        ]

    def filtered(self, product_filter: ProductFilter | None) -> list[ProductInfo]:
        if product_filter is None:
            return list(self._products)

        products = list(self._products)
        if product_filter.brand and product_filter.brand.strip():
            brand = product_filter.brand.lower()
            products = [p for p in products if p.brand.lower() == brand]
        if product_filter.exclude_types:
            excluded = {t.lower() for t in product_filter.exclude_types}
            products = [p for p in products if p.product_type.lower() not in excluded]
        return products

    def brands(self) -> list[str]:
        return sorted({p.brand for p in self._products})


class ActivityCatalog:
    """Immutable collection of activity presets."""

    def __init__(self, activities: list[ActivityInfo] | tuple[ActivityInfo, ...]):
        self._activities = tuple(activities)

    def __len__(self) -> int:
        return len(self._activities)

    def all(self) -> tuple[ActivityInfo, ...]:
        return self._activities

    def by_id(self, activity_id: str) -> ActivityInfo | None:
        return next((a for a in self._activities if a.id == activity_id), None)

    def by_sport(self, sport: SportType) -> list[ActivityInfo]:
        return [a for a in self._activities if a.sport_type == sport]

    def search(self, query: str) -> list[ActivityInfo]:
        """Case-insensitive match on name or description; an empty query matches nothing."""
        if not query.strip():
            return []
        needle = query.lower()
        return [a for a in self._activities if needle in a.name.lower() or needle in a.description.lower()]


# -----------------------------
# Loading
# -----------------------------
def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise CatalogError(f"Cannot read catalogue file {path}: {e}") from e


def load_product_catalog(data_dir: str | Path = DEFAULT_DATA_DIR) -> ProductCatalog:
    """Load every brand file matching *-products.json, in file name order.

    Raises:
        CatalogError: If the directory is missing or a file is malformed
    """
    directory = Path(data_dir)
    if not directory.is_dir():
        raise CatalogError(f"Catalogue directory not found: {directory}")

    products: list[ProductInfo] = []
    for path in sorted(directory.glob(PRODUCT_FILE_PATTERN)):
        try:
            products.extend(_PRODUCTS_ADAPTER.validate_json(_read(path)))
        except ValidationError as e:
            raise CatalogError(f"Malformed product file {path.name}: {e}") from e

    logger.info("Loaded product catalogue", directory=str(directory), product_count=len(products))
    return ProductCatalog(products)


def load_activity_catalog(data_dir: str | Path = DEFAULT_DATA_DIR) -> ActivityCatalog:
    """Load activities.json; a directory without one yields an empty catalogue.

    Raises:
        CatalogError: If the file is malformed
    """
    path = Path(data_dir) / ACTIVITY_FILE
    if not path.exists():
        logger.warning("No activity catalogue found", path=str(path))
        return ActivityCatalog([])

    try:
        activities = _ACTIVITIES_ADAPTER.validate_json(_read(path))
    except ValidationError as e:
        raise CatalogError(f"Malformed activity file {path.name}: {e}") from e

    logger.info("Loaded activity catalogue", path=str(path), activity_count=len(activities))
    return ActivityCatalog(activities)


class CatalogProvider:
    """Loads both catalogues once, on first use, behind a lock.

    After the first load the catalogues are immutable and shared freely
    between threads.
    """

    def __init__(self, data_dir: str | Path = DEFAULT_DATA_DIR):
        self.data_dir = Path(data_dir)
        self._lock = threading.Lock()
        self._products: ProductCatalog | None = None
        self._activities: ActivityCatalog | None = None

    def products(self) -> ProductCatalog:
        if self._products is None:
            with self._lock:
                if self._products is None:
                    self._products = load_product_catalog(self.data_dir)
        return self._products

    def activities(self) -> ActivityCatalog:
        if self._activities is None:
            with self._lock:
                if self._activities is None:
                    self._activities = load_activity_catalog(self.data_dir)
        return self._activities


# -----------------------------
# Conversion
# -----------------------------
def to_product(info: ProductInfo) -> Product | None:
    """Convert a catalogue entry into a plannable Product.

    Returns None for types the planner does not schedule (e.g. recovery).
    """
    try:
        product_class = ProductClass(info.product_type.lower())
    except ValueError:
        return None

    texture = None
    if info.texture:
        try:
            texture = ProductTexture(info.texture.lower())
        except ValueError:
            logger.warning("Unknown product texture, using class default", product_id=info.id, texture=info.texture)

    return Product(
        name=info.name,
        product_class=product_class,
        carbs_g=info.carbs_g,
        sodium_mg=info.sodium_mg,
        volume_ml=info.volume_ml,
        caffeine_mg=info.caffeine_mg,
        texture=texture,
        brand=info.brand,
    )


def to_products(infos: list[ProductInfo]) -> list[Product]:
    return [product for product in (to_product(info) for info in infos) if product is not None]
