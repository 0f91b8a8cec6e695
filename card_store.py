"""
card_store.py
=============
Thin wrapper around the gift_cards table. Every operation is scoped by the
owning user's id, which callers pass explicitly.

Database failures are rolled back and re-raised as TransientBackendError so
callers can keep their last known-good state and notify the user.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from card_engine import expiring_soon_cutoff, resolve_brand_color, to_naive_utc, utcnow
from errors import (
    CardAlreadyUsedError,
    CardNotFoundError,
    CardValidationError,
    TransientBackendError,
)
from schemas import Sector, ViewFilter

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("offer_name", "brand_name", "sector")
OPTIONAL_FIELDS = ("redeem_code", "perks", "description", "expires_at", "brand_logo_url")


class CardStore:

    def __init__(self, db: Session):
        self.db = db

    # ── reads ──

    def list_cards(self, owner_id: str, view_filter: ViewFilter = ViewFilter.all,
                   now: Optional[datetime] = None) -> List[models.GiftCard]:
        """Cards owned by the user for the given view, newest first."""
        query = self.db.query(models.GiftCard).filter(models.GiftCard.owner_id == owner_id)

        if view_filter == ViewFilter.favorites:
            query = query.filter(models.GiftCard.is_favorite == True)
        elif view_filter == ViewFilter.expiring:
            cutoff = to_naive_utc(expiring_soon_cutoff(now))
            query = query.filter(
                models.GiftCard.expires_at.isnot(None),
                models.GiftCard.expires_at <= cutoff,
            )

        query = query.order_by(models.GiftCard.created_at.desc())
        try:
            return query.all()
        except SQLAlchemyError as e:
            logger.error("Failed to list cards for owner %s: %s", owner_id, e)
            raise TransientBackendError("Could not load gift cards") from e

    def get_card(self, owner_id: str, card_id: str) -> models.GiftCard:
        try:
            card = (
                self.db.query(models.GiftCard)
                .filter(models.GiftCard.id == card_id, models.GiftCard.owner_id == owner_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error("Failed to load card %s: %s", card_id, e)
            raise TransientBackendError("Could not load gift card") from e
        if not card:
            raise CardNotFoundError(f"Gift card with id={card_id} not found")
        return card

    # ── writes ──

    def create_card(self, owner_id: str, fields: dict) -> models.GiftCard:
        missing = [name for name in REQUIRED_FIELDS if not str(fields.get(name) or "").strip()]
        if missing:
            raise CardValidationError(f"Missing required fields: {', '.join(missing)}")

        value = fields.get("value") or 0.0
        if value < 0:
            raise CardValidationError("Value cannot be negative")

        try:
            sector = Sector(fields["sector"])
        except ValueError:
            raise CardValidationError(f"Unknown sector: {fields['sector']}")

        card = models.GiftCard(
            owner_id=owner_id,
            offer_name=fields["offer_name"].strip(),
            brand_name=fields["brand_name"].strip(),
            sector=sector.value,
            value=value,
            brand_color=resolve_brand_color(fields["brand_name"]),
            is_favorite=False,
            is_used=False,
            created_at=to_naive_utc(utcnow()),
        )
        for name in OPTIONAL_FIELDS:
            setattr(card, name, fields.get(name) or None)
        card.expires_at = to_naive_utc(card.expires_at)

        self._commit(card, "create card")
        logger.info("Created card %s (%s) for owner %s", card.id, card.brand_name, owner_id)
        return card

    def set_favorite(self, owner_id: str, card_id: str, is_favorite: bool) -> models.GiftCard:
        card = self.get_card(owner_id, card_id)
        card.is_favorite = is_favorite
        self._commit(card, "update favorite")
        return card

    def mark_used(self, owner_id: str, card_id: str, now: Optional[datetime] = None) -> models.GiftCard:
        """
        One-way transition to used. Re-marking is rejected so the first
        used_at is never overwritten.
        """
        card = self.get_card(owner_id, card_id)
        if card.is_used:
            raise CardAlreadyUsedError(f"Gift card with id={card_id} is already used")

        card.is_used = True
        card.used_at = to_naive_utc(now or utcnow())
        self._commit(card, "mark card used")
        logger.info("Card %s marked as used", card_id)
        return card

    def _commit(self, card: models.GiftCard, action: str) -> None:
        try:
            self.db.add(card)
            self.db.commit()
            self.db.refresh(card)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise TransientBackendError(f"Could not {action}") from e
