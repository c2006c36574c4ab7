# catalog/services.py
import logging
from typing import Any, Dict

from .core import ListingQuery, ProductIn, _make_product_doc, total_pages
from .database import ProductStore

logger = logging.getLogger(__name__)

SUMMARY_SIZE = 2

# Core logic behind the product endpoints. Every function takes the store handle
# explicitly; none of them touch module state.


def create_product_logic(store: ProductStore, payload: ProductIn) -> Dict[str, Any]:
    product = store.insert(_make_product_doc(payload))
    logger.info("Product added: %s", product.get("name"))
    return product


def list_products_logic(store: ProductStore, query: ListingQuery) -> Dict[str, Any]:
    total = store.count(query.filter)
    products = store.find(query)
    logger.info("Fetched %d products for page %d", len(products), query.page)
    return {"products": products, "totalPages": total_pages(total, query.limit)}


def categorized_products_logic(store: ProductStore) -> Dict[str, Any]:
    # mostPopular and mostReviewed both rank by reviews
    summary = {
        "mostViewed": store.top("views", SUMMARY_SIZE),
        "mostPopular": store.top("reviews", SUMMARY_SIZE),
        "mostReviewed": store.top("reviews", SUMMARY_SIZE),
    }
    logger.info("Fetched categorized products (most viewed, popular, reviewed)")
    return summary
