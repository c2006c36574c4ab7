# sdk/catalog_client.py
import os
from typing import Any, Dict, Optional

import httpx
import requests

from catalog.models import Category

DEFAULT_BASE_URL = os.getenv("CATALOG_API_URL", "http://localhost:8000")


def _listing_params(
    category: Optional[str] = None,
    sort: Optional[str] = None,
    max_price: Any = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if category:
        params["category"] = category
    if sort:
        params["sort"] = sort
    # an empty max price means "no filter", so it is not sent at all
    if max_price is not None and str(max_price).strip() != "":
        params["maxPrice"] = max_price
    if page is not None:
        params["page"] = page
    if limit is not None:
        params["limit"] = limit
    return params


class CatalogClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    # Products
    def create_product(self, name: Optional[str], price: Any, category: Optional[str] = Category.MOST_VIEWED.value):
        r = self.session.post(f"{self.base_url}/products", json={
            "name": name, "price": price, "category": category
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def list_products(self, category: Optional[str] = None, sort: Optional[str] = None,
                      max_price: Any = None, page: Optional[int] = None, limit: Optional[int] = None):
        params = _listing_params(category, sort, max_price, page, limit)
        r = self.session.get(f"{self.base_url}/products", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    async def list_products_async(self, category: Optional[str] = None, sort: Optional[str] = None,
                                  max_price: Any = None, page: Optional[int] = None, limit: Optional[int] = None):
        params = _listing_params(category, sort, max_price, page, limit)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.get(f"{self.base_url}/products", params=params)
            r.raise_for_status()
            return r.json()

    def categorized_products(self):
        r = self.session.get(f"{self.base_url}/products/categorized", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def health(self):
        r = self.session.get(f"{self.base_url}/", timeout=self.timeout)
        r.raise_for_status()
        return r.json()
