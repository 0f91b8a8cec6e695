import uuid

from sqlalchemy import Column, String, Float, DateTime, Boolean, Text
from sqlalchemy.sql import func
from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class GiftCard(Base):
    """
    Database model for gift cards and coupons.

    sector: one of the fixed sector labels (see schemas.Sector).
    brand_color: computed once from brand_name at creation and stored as-is.
    used_at: set exactly when is_used flips to True, never otherwise.
    """
    __tablename__ = "gift_cards"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    offer_name = Column(String, nullable=False)
    brand_name = Column(String, nullable=False)
    sector = Column(String, nullable=False)
    redeem_code = Column(String, nullable=True)
    perks = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    value = Column(Float, nullable=False, default=0.0)
    expires_at = Column(DateTime, nullable=True)
    brand_logo_url = Column(String, nullable=True)
    brand_color = Column(String, nullable=False)
    is_favorite = Column(Boolean, default=False, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
