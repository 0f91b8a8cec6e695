from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum


# ─────────────── Enums ───────────────

class Sector(str, Enum):
    food_dining = "Food & Dining"
    fashion_clothing = "Fashion & Clothing"
    entertainment = "Entertainment"
    sports_fitness = "Sports & Fitness"
    technology = "Technology"
    travel = "Travel"
    health_beauty = "Health & Beauty"
    home_garden = "Home & Garden"
    education = "Education"
    other = "Other"


class ViewFilter(str, Enum):
    all = "all"
    favorites = "favorites"
    expiring = "expiring"


# ─────────────── Gift Card Request / Response ───────────────

class GiftCardCreate(BaseModel):
    offer_name: str
    brand_name: str
    sector: Sector
    redeem_code: Optional[str] = None
    perks: Optional[str] = None
    description: Optional[str] = None
    value: float = 0.0
    expires_at: Optional[datetime] = None
    brand_logo_url: Optional[str] = None
    lookup_logo: bool = False  # Ask the logo service when no URL is given

    @field_validator("offer_name", "brand_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be empty")
        return v.strip()

    @field_validator("value")
    @classmethod
    def value_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v

    @field_validator("redeem_code", "perks", "description", "brand_logo_url")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class FavoriteUpdate(BaseModel):
    is_favorite: bool


class GiftCardResponse(BaseModel):
    id: str
    owner_id: Optional[str] = None
    offer_name: str
    brand_name: str
    sector: str
    redeem_code: Optional[str] = None
    perks: Optional[str] = None
    description: Optional[str] = None
    value: float
    expires_at: Optional[datetime] = None
    brand_logo_url: Optional[str] = None
    brand_color: str
    is_favorite: bool
    is_used: bool = False
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    # Derived on read
    redeem_code_short: Optional[str] = None
    monogram: str = ""
    expiry_label: Optional[str] = None
    is_sample: bool = False

    model_config = {"from_attributes": True}


class CardListResponse(BaseModel):
    view: ViewFilter
    is_sample: bool
    cards: List[GiftCardResponse]


# ─────────────── Analytics ───────────────

class AnalyticsResponse(BaseModel):
    total_cards: int
    total_value: float
    average_value: float
    expiring_soon: int
    used_count: int
    favorite_count: int
    sector_histogram: Dict[str, int]
    value_by_sector: Dict[str, float]
    top_brand: str
    monthly_histogram: Dict[str, int]


# ─────────────── Brand Logo Search ───────────────

class LogoSearchRequest(BaseModel):
    model_config = {"populate_by_name": True}

    brand_name: Optional[str] = Field(default=None, alias="brandName")


class LogoSearchResponse(BaseModel):
    model_config = {"populate_by_name": True}

    logo_url: Optional[str] = Field(default=None, alias="logoUrl")
