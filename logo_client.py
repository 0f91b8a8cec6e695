import logging
from typing import Optional
from urllib.parse import quote

import httpx

from config import settings
from errors import LogoLookupError

logger = logging.getLogger(__name__)


class BrandLogoClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = settings.BRAND_LOGO_API_KEY if api_key is None else api_key
        self.base_url = base_url or settings.BRAND_LOGO_API_URL
        self.timeout = timeout or settings.LOGO_LOOKUP_TIMEOUT
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "accept": "application/json",
            },
        )

    # -------------------------------------------------------------------
    #  SEARCH (GET /search/{brand})
    # -------------------------------------------------------------------

    def search_logo(self, brand_name: str) -> Optional[str]:
        """Icon URL of the best match for the brand, or None when nothing matches."""
        if not self.configured:
            raise LogoLookupError("Brand logo API key not configured")

        try:
            with self._get_client() as client:
                resp = client.get(f"/search/{quote(brand_name, safe='')}")
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LogoLookupError(f"Brand logo search failed: {e}") from e

        # results are a ranked list of brands, the first one wins
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0].get("icon") or None
        return None


def find_brand_logo(brand_name: str, client: Optional[BrandLogoClient] = None) -> Optional[str]:
    """
    Best-effort lookup used while creating cards. Failures only mean the
    card is shown with its monogram and brand color.
    """
    brand_name = (brand_name or "").strip()
    if not brand_name:
        return None

    client = client or BrandLogoClient()
    try:
        return client.search_logo(brand_name)
    except LogoLookupError as e:
        logger.warning("Logo lookup for %r skipped: %s", brand_name, e)
        return None
