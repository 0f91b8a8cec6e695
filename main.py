"""
main.py
=======
FastAPI application entry point.

Endpoints:
  POST   /users/{owner_id}/cards                    - Add a gift card
  GET    /users/{owner_id}/cards                    - List cards (view filter + search)
  GET    /users/{owner_id}/cards/{id}               - Get card by ID
  PUT    /users/{owner_id}/cards/{id}/favorite      - Set favorite flag
  POST   /users/{owner_id}/cards/{id}/use           - Mark card as used
  GET    /users/{owner_id}/analytics                - Analytics summary
  POST   /search-brand-logo                         - Brand logo lookup proxy
"""

import logging

from fastapi import FastAPI, HTTPException, Depends, Query, status
from sqlalchemy.orm import Session

import models
import schemas
import card_engine
from card_store import CardStore
from config import settings
from database import engine, get_db
from errors import (
    CardAlreadyUsedError,
    CardNotFoundError,
    CardValidationError,
    LogoLookupError,
    TransientBackendError,
)
from logo_client import BrandLogoClient, find_brand_logo

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("giftcard-vault")

# Create DB tables on startup
models.Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Gift Card Vault API",
    description="Track gift cards and coupons: brand metadata, value, expiry, redeem codes and usage analytics.",
    version="1.0.0",
)


def get_store(db: Session = Depends(get_db)) -> CardStore:
    return CardStore(db)


def get_logo_client() -> BrandLogoClient:
    return BrandLogoClient()


# ═══════════════════════════════════════════════════
#  GIFT CARDS
# ═══════════════════════════════════════════════════

@app.post(
    "/users/{owner_id}/cards",
    response_model=schemas.GiftCardResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Cards"],
    summary="Add a new gift card",
)
def create_card(
    owner_id: str,
    card: schemas.GiftCardCreate,
    store: CardStore = Depends(get_store),
    logo_client: BrandLogoClient = Depends(get_logo_client),
):
    """
    Add a gift card or coupon. **offer_name**, **brand_name** and **sector** are required.

    The brand color is derived from the brand name once and stored with the card.
    With **lookup_logo** set and no **brand_logo_url**, the logo service is asked
    for one; a failed lookup never blocks creation.
    """
    fields = card.model_dump(exclude={"lookup_logo"})
    if card.lookup_logo and not card.brand_logo_url:
        fields["brand_logo_url"] = find_brand_logo(card.brand_name, logo_client)

    try:
        db_card = store.create_card(owner_id, fields)
    except CardValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return card_engine.describe_card(db_card)


@app.get(
    "/users/{owner_id}/cards",
    response_model=schemas.CardListResponse,
    tags=["Cards"],
    summary="List gift cards for the dashboard",
)
def list_cards(
    owner_id: str,
    view: schemas.ViewFilter = schemas.ViewFilter.all,
    search: str = Query(default="", max_length=200),
    store: CardStore = Depends(get_store),
):
    """
    Newest cards first. Used cards are hidden from the **all** view.
    An empty collection returns the onboarding sample cards with **is_sample** set.
    """
    try:
        cards = store.list_cards(owner_id, view)
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))

    now = card_engine.utcnow()
    visible, is_sample = card_engine.build_card_list(cards, view, search)
    return schemas.CardListResponse(
        view=view,
        is_sample=is_sample,
        cards=[card_engine.describe_card(c, now) for c in visible],
    )


@app.get(
    "/users/{owner_id}/cards/{card_id}",
    response_model=schemas.GiftCardResponse,
    tags=["Cards"],
    summary="Get a gift card by ID",
)
def get_card(owner_id: str, card_id: str, store: CardStore = Depends(get_store)):
    try:
        card = store.get_card(owner_id, card_id)
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return card_engine.describe_card(card)


@app.put(
    "/users/{owner_id}/cards/{card_id}/favorite",
    response_model=schemas.GiftCardResponse,
    tags=["Cards"],
    summary="Set or clear the favorite flag",
)
def set_favorite(
    owner_id: str,
    card_id: str,
    update: schemas.FavoriteUpdate,
    store: CardStore = Depends(get_store),
):
    try:
        card = store.set_favorite(owner_id, card_id, update.is_favorite)
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return card_engine.describe_card(card)


@app.post(
    "/users/{owner_id}/cards/{card_id}/use",
    response_model=schemas.GiftCardResponse,
    tags=["Cards"],
    summary="Mark a gift card as used",
)
def mark_used(owner_id: str, card_id: str, store: CardStore = Depends(get_store)):
    """
    One-way transition: the card keeps its data for analytics but leaves the
    active grid. Marking an already used card fails with 409.
    """
    try:
        card = store.mark_used(owner_id, card_id)
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CardAlreadyUsedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return card_engine.describe_card(card)


# ═══════════════════════════════════════════════════
#  ANALYTICS
# ═══════════════════════════════════════════════════

@app.get(
    "/users/{owner_id}/analytics",
    response_model=schemas.AnalyticsResponse,
    tags=["Analytics"],
    summary="Aggregate metrics over all of a user's cards",
)
def get_analytics(owner_id: str, store: CardStore = Depends(get_store)):
    """Recomputed from the full collection, used cards included, on every call."""
    try:
        cards = store.list_cards(owner_id, schemas.ViewFilter.all)
    except TransientBackendError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return card_engine.compute_analytics(cards)


# ═══════════════════════════════════════════════════
#  BRAND LOGO SEARCH
# ═══════════════════════════════════════════════════

@app.post(
    "/search-brand-logo",
    response_model=schemas.LogoSearchResponse,
    tags=["Brand Logo"],
    summary="Look up a brand's logo URL",
)
def search_brand_logo(
    request: schemas.LogoSearchRequest,
    logo_client: BrandLogoClient = Depends(get_logo_client),
):
    brand_name = (request.brand_name or "").strip()
    if not brand_name:
        raise HTTPException(status_code=400, detail="Brand name is required")
    if not logo_client.configured:
        raise HTTPException(status_code=500, detail="API key not configured")

    try:
        logo_url = logo_client.search_logo(brand_name)
    except LogoLookupError as e:
        logger.error("Error searching brand logo: %s", e)
        raise HTTPException(status_code=500, detail="Failed to search brand logo")
    return schemas.LogoSearchResponse(logo_url=logo_url)


# ═══════════════════════════════════════════════════
#  HEALTH CHECK
# ═══════════════════════════════════════════════════

@app.get("/", tags=["Health"], summary="Health check")
def root():
    return {"status": "ok", "message": "Gift Card Vault API is running"}
