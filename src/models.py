from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Metal(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "Metal":
        if isinstance(value, Metal):
            return value
        if value is None:
            return cls.OTHER
        cleaned = str(value).strip().lower()
        for metal in cls:
            if metal.value == cleaned:
                return metal
        return cls.OTHER


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Product:
    id: Optional[int]
    name: str
    category: str
    metal: Metal
    weight_grams: float
    making_charge: float
    stored_rate: Optional[float] = None
    karat: Optional[str] = None
    purity: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    gender: Optional[str] = None
    occasion: Optional[str] = None
    clarity: Optional[str] = None
    cut: Optional[str] = None
    gemstone_type: Optional[str] = None
    carat_weight: Optional[float] = None
    likes: int = 0
    image_name: Optional[str] = None
    image_mime: Optional[str] = None
    image_data: Optional[bytes] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "Product":
        keys = set(row.keys())

        def get(key: str) -> Any:
            return row[key] if key in keys else None

        return cls(
            id=int(row["id"]) if get("id") is not None else None,
            name=str(row["name"]),
            category=str(row["category"]),
            metal=Metal.parse(get("metal")),
            weight_grams=float(get("weight_grams") or 0.0),
            making_charge=float(get("making_charge") or 0.0),
            stored_rate=_optional_float(get("stored_rate")),
            karat=_optional_text(get("karat")),
            purity=_optional_text(get("purity")),
            type=_optional_text(get("type")),
            description=_optional_text(get("description")),
            gender=_optional_text(get("gender")),
            occasion=_optional_text(get("occasion")),
            clarity=_optional_text(get("clarity")),
            cut=_optional_text(get("cut")),
            gemstone_type=_optional_text(get("gemstone_type")),
            carat_weight=_optional_float(get("carat_weight")),
            likes=int(get("likes") or 0),
            image_name=get("image_name"),
            image_mime=get("image_mime"),
            image_data=get("image_data"),
            created_at=parse_timestamp(get("created_at")),
            updated_at=parse_timestamp(get("updated_at")),
        )


@dataclass(frozen=True)
class Offer:
    product_id: int
    discount_percent: int
    discounted_making_charge: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "Offer":
        return cls(
            product_id=int(row["product_id"]),
            discount_percent=int(row["discount_percent"]),
            discounted_making_charge=float(row["discounted_making_charge"]),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


@dataclass(frozen=True)
class RateSnapshot:
    gold: Optional[float] = None
    silver: Optional[float] = None

    def for_metal(self, metal: Metal) -> Optional[float]:
        if metal is Metal.GOLD:
            return self.gold
        if metal is Metal.SILVER:
            return self.silver
        return None


@dataclass(frozen=True)
class PriceOverrides:
    discounted_making_charge: Optional[float] = None


@dataclass
class CartLine:
    id: int
    product: Product
    quantity: int


@dataclass
class FavoriteItem:
    id: int
    product: Product


@dataclass
class Review:
    id: int
    name: str
    location: str
    rating: int
    comment: str
    phone: Optional[str]
    created_at: Optional[datetime]
