"""
card_engine.py
==============
Core derivation logic for gift cards. Everything here is a pure function of
its arguments: nothing is cached, so results that depend on the clock must
be recomputed on every request.

Implemented:
------------
1. Color resolver:
   - Maps a brand name to a display color by substring match against the
     ordered BRAND_COLORS table, falling back to DEFAULT_BRAND_COLOR.

2. Expiry classifier:
   - Buckets an expiry date into Expired / today / tomorrow / in N days /
     absolute date, using the same 7-day window as the "expiring" view.

3. Card list view model:
   - Hides used cards from the "all" view, applies free-text search and
     substitutes sample cards for an empty collection.

4. Analytics aggregator:
   - Single pass over the whole collection (used cards included).

Not implemented:
----------------
- Currency handling. Values are plain numbers in the user's currency.
- Editing existing cards.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from card_data import BRAND_COLORS, DEFAULT_BRAND_COLOR, SAMPLE_CARDS
from schemas import AnalyticsResponse, GiftCardResponse, ViewFilter

EXPIRING_SOON_DAYS = 7
NO_DATA = "N/A"
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are stored as UTC; attach the zone so they compare."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None:
        return None
    return as_utc(moment).replace(tzinfo=None)


# ─────────────────────────── Color Resolver ───────────────────────────

def resolve_brand_color(brand_name: str) -> str:
    brand = (brand_name or "").strip().lower()
    if not brand:
        return DEFAULT_BRAND_COLOR
    for key, color in BRAND_COLORS:
        if key in brand:
            return color
    return DEFAULT_BRAND_COLOR


# ─────────────────────────── Expiry Classifier ───────────────────────────

def expiring_soon_cutoff(now: Optional[datetime] = None) -> datetime:
    return as_utc(now or utcnow()) + timedelta(days=EXPIRING_SOON_DAYS)


def is_expiring_soon(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True for cards expiring within the window, including already expired ones."""
    if expires_at is None:
        return False
    return as_utc(expires_at) <= expiring_soon_cutoff(now)


def days_until(expires_at: datetime, now: Optional[datetime] = None) -> int:
    delta = as_utc(expires_at) - as_utc(now or utcnow())
    return math.ceil(delta.total_seconds() / 86400)


def classify_expiry(expires_at: datetime, now: Optional[datetime] = None) -> str:
    days = days_until(expires_at, now)
    if days < 0:
        return "Expired"
    if days == 0:
        return "Expires today"
    if days == 1:
        return "Expires tomorrow"
    if days <= EXPIRING_SOON_DAYS:
        return f"Expires in {days} days"
    expiry = as_utc(expires_at)
    return f"Expires {expiry.month}/{expiry.day}/{expiry.year}"


# ─────────────────────────── Presentation helpers ───────────────────────────

def short_redeem_code(redeem_code: Optional[str]) -> Optional[str]:
    if not redeem_code:
        return None
    return redeem_code[-4:]


def brand_monogram(brand_name: str) -> str:
    return brand_name[:1].upper()


def describe_card(card, now: Optional[datetime] = None) -> GiftCardResponse:
    """Build the response for a stored card, filling the fields derived on read."""
    if isinstance(card, GiftCardResponse):
        response = card.model_copy()
    else:
        response = GiftCardResponse.model_validate(card)
    response.redeem_code_short = short_redeem_code(response.redeem_code)
    response.monogram = brand_monogram(response.brand_name)
    if response.expires_at is not None:
        response.expiry_label = classify_expiry(response.expires_at, now)
    return response


def sample_cards() -> List[GiftCardResponse]:
    return [
        GiftCardResponse(
            **card,
            is_favorite=False,
            monogram=brand_monogram(card["brand_name"]),
            is_sample=True,
        )
        for card in SAMPLE_CARDS
    ]


# ─────────────────────────── Card List View Model ───────────────────────────

def matches_search(card, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    return any(needle in (text or "").lower()
               for text in (card.brand_name, card.offer_name, card.sector))


def build_card_list(cards: Iterable, view_filter: ViewFilter = ViewFilter.all,
                    search: str = "") -> Tuple[list, bool]:
    """
    Returns (visible_cards, is_sample).

    Sample cards are returned only when the unfiltered "all" collection is
    empty; a search that matches nothing yields an empty list instead.
    """
    cards = list(cards)
    if view_filter == ViewFilter.all and not cards:
        return sample_cards(), True

    visible = []
    for card in cards:
        if view_filter == ViewFilter.all and card.is_used:
            continue
        if not matches_search(card, search):
            continue
        visible.append(card)
    return visible, False


# ─────────────────────────── Analytics Aggregator ───────────────────────────

def compute_analytics(cards: Iterable, now: Optional[datetime] = None) -> AnalyticsResponse:
    """
    monthly_histogram is keyed by short month label and ordered by the
    earliest created_at seen for each month. Months of different years share
    a label.
    """
    now = now or utcnow()

    total_cards = 0
    total_value = 0.0
    expiring_soon = 0
    used_count = 0
    favorite_count = 0
    sector_histogram: dict[str, int] = {}
    value_by_sector: dict[str, float] = {}
    monthly_histogram: dict[str, int] = {}
    month_first_seen: dict[str, datetime] = {}
    top_brand = NO_DATA
    top_value = None

    for card in cards:
        value = card.value or 0.0
        total_cards += 1
        total_value += value

        if is_expiring_soon(card.expires_at, now):
            expiring_soon += 1
        if card.is_used:
            used_count += 1
        if card.is_favorite:
            favorite_count += 1

        sector_histogram[card.sector] = sector_histogram.get(card.sector, 0) + 1
        value_by_sector[card.sector] = value_by_sector.get(card.sector, 0.0) + value

        # Strict comparison keeps the first card on ties
        if top_value is None or value > top_value:
            top_value = value
            top_brand = card.brand_name

        if card.created_at is not None:
            created = as_utc(card.created_at)
            month = MONTH_LABELS[created.month - 1]
            monthly_histogram[month] = monthly_histogram.get(month, 0) + 1
            if month not in month_first_seen or created < month_first_seen[month]:
                month_first_seen[month] = created

    average_value = round(total_value / total_cards, 2) if total_cards else 0.0

    return AnalyticsResponse(
        total_cards=total_cards,
        total_value=round(total_value, 2),
        average_value=average_value,
        expiring_soon=expiring_soon,
        used_count=used_count,
        favorite_count=favorite_count,
        sector_histogram=sector_histogram,
        value_by_sector={k: round(v, 2) for k, v in value_by_sector.items()},
        top_brand=top_brand,
        monthly_histogram={
            month: monthly_histogram[month]
            for month in sorted(monthly_histogram, key=lambda m: month_first_seen[m])
        },
    )
