import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Iterable, Mapping, Optional

from src.models import Offer, Product, RateSnapshot
from src.offers import apply_offer
from src.pricing import compute_price, is_price_available

ALL_JEWELLERY = "All Jewellery"

CATEGORIES = ["Gold", "Silver", "Diamond", "Gemstone", "Bridal", "New Arrival"]
KARATS = ["14K", "18K", "22K", "24K"]
SILVER_PURITIES = ["92.5% Sterling Silver", "99.9% Fine Silver"]
TYPES = [
    "Necklace",
    "Bracelet",
    "Ring",
    "Earring",
    "Bangle",
    "Pendant",
    "Chain",
    "Anklet",
    "Brooch",
    "Mangalsutra",
    "Nosepin",
    "Cufflink",
    "Tiara",
    "Other",
]
GENDERS = ["Women", "Men", "Unisex"]
OCCASIONS = ["Wedding", "Festive", "Casual", "Office", "Party"]
CLARITIES = ["FL", "IF", "VVS1", "VVS2", "VS1", "VS2", "SI1", "SI2"]
CUTS = ["Excellent", "Very Good", "Good", "Fair", "Brilliant", "Emerald", "Princess", "Oval", "Pear"]
GEMSTONE_TYPES = ["Ruby", "Emerald", "Sapphire", "Topaz", "Amethyst", "Pearl", "Opal"]


@dataclass(frozen=True)
class PriceRange:
    label: str
    min: float = 0.0
    max: float = math.inf

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


GOLD_PRICE_RANGES = [
    PriceRange("Under ₹25,000", 0, 25_000),
    PriceRange("₹25,000 - ₹50,000", 25_000, 50_000),
    PriceRange("₹50,000 - ₹1,00,000", 50_000, 100_000),
    PriceRange("Above ₹1,00,000", 100_000, math.inf),
]

SILVER_PRICE_RANGES = [
    PriceRange("Under ₹10,000", 0, 10_000),
    PriceRange("₹10,000 - ₹20,000", 10_000, 20_000),
    PriceRange("₹20,000 - ₹40,000", 20_000, 40_000),
    PriceRange("Above ₹40,000", 40_000, math.inf),
]


class SortKey(str, Enum):
    BEST_MATCH = "best"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NEWEST = "new"

    @property
    def label(self) -> str:
        return {
            SortKey.BEST_MATCH: "Best match",
            SortKey.PRICE_LOW: "Price: low to high",
            SortKey.PRICE_HIGH: "Price: high to low",
            SortKey.NEWEST: "Newest first",
        }[self]


@dataclass(frozen=True)
class CatalogFilters:
    category: Optional[str] = None
    type: Optional[str] = None
    karat: Optional[str] = None
    purity: Optional[str] = None
    gender: Optional[str] = None
    occasion: Optional[str] = None
    clarity: Optional[str] = None
    cut: Optional[str] = None
    gemstone_type: Optional[str] = None
    price_range: Optional[PriceRange] = None
    query: Optional[str] = None

    def active_equality_filters(self) -> dict[str, str]:
        active: dict[str, str] = {}
        for field in fields(self):
            if field.name in ("price_range", "query"):
                continue
            value = getattr(self, field.name)
            if value is None or value == "":
                continue
            if field.name == "category" and value == ALL_JEWELLERY:
                continue
            active[field.name] = value
        return active


def matches_query(product: Product, query: Optional[str]) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    haystacks = [product.name, product.description or "", product.category]
    return any(needle in text.lower() for text in haystacks)


def effective_price(
    product: Product,
    rates: RateSnapshot,
    offers: Optional[Mapping[int, Offer]] = None,
) -> float:
    offer = offers.get(product.id) if offers and product.id is not None else None
    return compute_price(product, rates, apply_offer(product, offer))


def _passes(
    product: Product,
    equality: dict[str, str],
    filters: CatalogFilters,
    rates: RateSnapshot,
    offers: Optional[Mapping[int, Offer]],
) -> bool:
    for name, expected in equality.items():
        if getattr(product, name) != expected:
            return False
    if not matches_query(product, filters.query):
        return False
    if filters.price_range is not None:
        price = effective_price(product, rates, offers)
        if not is_price_available(price) or not filters.price_range.contains(price):
            return False
    return True


def derive_view(
    products: Iterable[Product],
    filters: CatalogFilters,
    sort_key: SortKey | str,
    rates: RateSnapshot,
    offers: Optional[Mapping[int, Offer]] = None,
) -> list[Product]:
    """
    Filters and orders products for a collection page.

    Filters are conjunctive. Sorting is stable, so equal keys keep the order the
    products were supplied in; "best" keeps that order as is. Price filtering
    and sorting use the unrounded price, offer-adjusted when offers are given.
    """
    sort_key = SortKey(sort_key)
    equality = filters.active_equality_filters()
    filtered = [product for product in products if _passes(product, equality, filters, rates, offers)]

    if sort_key is SortKey.PRICE_LOW:
        return sorted(filtered, key=lambda product: effective_price(product, rates, offers))
    if sort_key is SortKey.PRICE_HIGH:
        return sorted(filtered, key=lambda product: effective_price(product, rates, offers), reverse=True)
    if sort_key is SortKey.NEWEST:
        return sorted(filtered, key=_created_timestamp, reverse=True)
    return filtered


def _created_timestamp(product: Product) -> float:
    if product.created_at is None:
        return -math.inf
    return product.created_at.timestamp()


def price_ranges_for(category: Optional[str]) -> list[PriceRange]:
    if category == "Silver":
        return SILVER_PRICE_RANGES
    return GOLD_PRICE_RANGES
