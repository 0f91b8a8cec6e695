"""
dashboard.py
============
In-memory state of one user's dashboard session. This is the in-process
client surface over CardStore; the HTTP routes in main.py are the other one.

Data flow: user action -> CardStore mutation -> re-fetch -> derive.
The snapshot only ever holds detached GiftCardResponse copies, so
optimistic edits never touch ORM state. Labels that depend on the clock
(expiry_label) are derived in visible(), never stored in the snapshot.

Favorite toggles are optimistic: the snapshot changes first, then the store
is called. Each toggle is tracked as a PendingMutation that ends either
CONFIRMED or ROLLED_BACK; on failure the full pre-toggle list is restored.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from card_data import SAMPLE_CARD_IDS
from card_engine import build_card_list, compute_analytics, describe_card
from card_store import CardStore
from errors import CardValidationError, CardVaultError, TransientBackendError
from logo_client import find_brand_logo
from schemas import AnalyticsResponse, GiftCardResponse, ViewFilter

logger = logging.getLogger(__name__)


class MutationState(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    rolled_back = "rolled-back"


class PendingMutation:
    def __init__(self, card_id: str, previous: List[GiftCardResponse]):
        self.card_id = card_id
        self.previous = previous
        self.state = MutationState.pending

    def confirm(self) -> None:
        self._finish(MutationState.confirmed)

    def roll_back(self) -> None:
        self._finish(MutationState.rolled_back)

    def _finish(self, state: MutationState) -> None:
        if self.state != MutationState.pending:
            raise RuntimeError(f"Mutation for {self.card_id} already {self.state.value}")
        self.state = state


class Dashboard:

    def __init__(self, store: CardStore, owner_id: str,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.owner_id = owner_id
        self.clock = clock
        self.view_filter = ViewFilter.all
        self.cards: List[GiftCardResponse] = []
        self.notifications: List[str] = []

    def _now(self) -> Optional[datetime]:
        return self.clock() if self.clock else None

    def notify(self, message: str) -> None:
        self.notifications.append(message)

    def dismiss_notifications(self) -> List[str]:
        messages, self.notifications = self.notifications, []
        return messages

    # ── reads ──

    def refresh(self, view_filter: Optional[ViewFilter] = None) -> List[GiftCardResponse]:
        """Re-fetch the current view. On failure the stale snapshot is kept."""
        if view_filter is not None and view_filter != self.view_filter:
            self.view_filter = view_filter
            self.cards = []
        try:
            fetched = self.store.list_cards(self.owner_id, self.view_filter, self._now())
        except TransientBackendError as e:
            logger.warning("Refresh failed, keeping %d cached cards: %s", len(self.cards), e)
            self.notify("Failed to load gift cards")
            return self.cards
        self.cards = [GiftCardResponse.model_validate(card) for card in fetched]
        return self.cards

    def visible(self, search: str = "") -> List[GiftCardResponse]:
        cards, _ = build_card_list(self.cards, self.view_filter, search)
        now = self._now()
        return [describe_card(card, now) for card in cards]

    def analytics(self) -> AnalyticsResponse:
        """Recomputed from a fresh fetch. Failures notify and re-raise."""
        try:
            cards = self.store.list_cards(self.owner_id, ViewFilter.all, self._now())
        except TransientBackendError as e:
            logger.warning("Analytics fetch failed: %s", e)
            self.notify("Failed to load analytics")
            raise
        return compute_analytics(cards, self._now())

    # ── mutations ──

    def add_card(self, fields: dict) -> GiftCardResponse:
        fields = dict(fields)
        if fields.pop("lookup_logo", False) and not fields.get("brand_logo_url"):
            fields["brand_logo_url"] = find_brand_logo(fields.get("brand_name", ""))
        try:
            card = self.store.create_card(self.owner_id, fields)
        except CardVaultError as e:
            self.notify(f"Failed to add gift card: {e}")
            raise
        created = describe_card(card, self._now())
        self.refresh()
        return created

    def toggle_favorite(self, card_id: str) -> PendingMutation:
        if card_id in SAMPLE_CARD_IDS:
            raise CardValidationError("Sample cards cannot be favorited")

        index = next((i for i, c in enumerate(self.cards) if c.id == card_id), None)
        if index is None:
            raise CardValidationError(f"Gift card with id={card_id} is not on the dashboard")

        mutation = PendingMutation(card_id, list(self.cards))
        new_value = not self.cards[index].is_favorite
        optimistic = list(self.cards)
        optimistic[index] = self.cards[index].model_copy(update={"is_favorite": new_value})
        self.cards = optimistic

        try:
            self.store.set_favorite(self.owner_id, card_id, new_value)
        except CardVaultError as e:
            logger.warning("Rolling back favorite toggle on %s: %s", card_id, e)
            self.cards = mutation.previous
            mutation.roll_back()
            self.notify("Failed to update favorite")
            return mutation

        mutation.confirm()
        return mutation

    def mark_used(self, card_id: str) -> GiftCardResponse:
        try:
            card = self.store.mark_used(self.owner_id, card_id, self._now())
        except CardVaultError as e:
            self.notify(f"Failed to mark card as used: {e}")
            raise
        used = describe_card(card, self._now())
        self.refresh()
        return used
