# sdk/views.py
"""
Client-side state for the two catalog screens.

``ListingView`` owns the filters, the current page and the last page of
results; every effective state change issues a fresh listing request.
``CreationView`` owns the draft of a new product and the submit/cancel flow.
Neither renders anything: ``cli.py`` draws them.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
import requests

from catalog.models import Category, SortOrder

logger = logging.getLogger(__name__)

LISTING_ROUTE = "listing"

# network and HTTP failures from either transport
CLIENT_ERRORS = (requests.RequestException, httpx.HTTPError)


class ListingView:
    LOAD_ERROR = "Failed to load products. Try again."
    STATE_FIELDS = ("category", "sort", "max_price", "page")

    def __init__(self, client, category: str = Category.MOST_VIEWED.value, sort: str = SortOrder.DESC.value,
                 max_price: Any = "", page: int = 1, limit: Optional[int] = None):
        self.client = client
        self.category = category
        self.sort = sort
        self.max_price = max_price
        self.page = page
        self.limit = limit

        self.products: List[Dict[str, Any]] = []
        self.total_pages = 1
        self.error: Optional[str] = None

        self._latest_token = 0

    # ---------------------------
    # Pagination controls
    # ---------------------------
    @property
    def can_previous(self) -> bool:
        return self.page != 1

    @property
    def can_next(self) -> bool:
        return self.page != self.total_pages

    def next_page(self) -> bool:
        if not self.can_next:
            return False
        return self.update(page=self.page + 1)

    def previous_page(self) -> bool:
        if not self.can_previous:
            return False
        return self.update(page=self.page - 1)

    # ---------------------------
    # State changes
    # ---------------------------
    def _apply_changes(self, changes: Dict[str, Any]) -> bool:
        unknown = set(changes) - set(self.STATE_FIELDS)
        if unknown:
            raise ValueError(f"unknown listing state: {', '.join(sorted(unknown))}")
        changed = False
        # page is left alone when filters change
        for name, value in changes.items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed = True
        return changed

    def update(self, **changes) -> bool:
        """Apply ``changes``; reload when any of them differs from the current state."""
        if not self._apply_changes(changes):
            return False
        self.refresh()
        return True

    async def update_async(self, **changes) -> bool:
        if not self._apply_changes(changes):
            return False
        await self.refresh_async()
        return True

    # ---------------------------
    # Requests
    # ---------------------------
    def _params(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "sort": self.sort,
            "max_price": self.max_price,
            "page": self.page,
            "limit": self.limit,
        }

    def _issue_token(self) -> int:
        self._latest_token += 1
        return self._latest_token

    def _receive(self, token: int, data: Optional[Dict[str, Any]], error: Optional[Exception] = None) -> bool:
        if token < self._latest_token:
            logger.debug("Discarding stale listing response %d (latest %d)", token, self._latest_token)
            return False
        if error is not None:
            logger.error("Error fetching products: %s", error)
            self.error = self.LOAD_ERROR
            return False
        self.products = data.get("products") or []
        self.total_pages = data.get("totalPages", 0)
        self.error = None
        return True

    def refresh(self) -> bool:
        token = self._issue_token()
        try:
            data = self.client.list_products(**self._params())
        except CLIENT_ERRORS as e:
            return self._receive(token, None, e)
        return self._receive(token, data)

    async def refresh_async(self) -> bool:
        token = self._issue_token()
        try:
            data = await self.client.list_products_async(**self._params())
        except CLIENT_ERRORS as e:
            return self._receive(token, None, e)
        return self._receive(token, data)


class CreationView:
    SUBMIT_ERROR = "Failed to add product. Try again."
    DRAFT_FIELDS = ("name", "price", "category")

    def __init__(self, client):
        self.client = client
        self.draft: Dict[str, Any] = {"name": "", "price": "", "category": Category.MOST_VIEWED.value}
        self.loading = False
        self.error: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        return not self.loading

    @property
    def can_cancel(self) -> bool:
        return not self.loading

    def change(self, field: str, value: Any) -> None:
        if field not in self.DRAFT_FIELDS:
            raise ValueError(f"unknown product field: {field}")
        self.draft[field] = value

    def submit(self) -> Optional[str]:
        """Send the draft. Returns the route to navigate to, or None to stay on the form."""
        if not self.can_submit:
            return None
        self.loading = True
        self.error = None
        # an untouched price field is sent as null, not as an empty string
        price = self.draft["price"]
        if isinstance(price, str) and price.strip() == "":
            price = None
        try:
            self.client.create_product(self.draft["name"], price, self.draft["category"])
        except CLIENT_ERRORS as e:
            logger.error("Error adding product: %s", e)
            self.error = self.SUBMIT_ERROR
            return None
        finally:
            self.loading = False
        return LISTING_ROUTE

    def cancel(self) -> Optional[str]:
        if not self.can_cancel:
            return None
        return LISTING_ROUTE
