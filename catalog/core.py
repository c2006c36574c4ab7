# catalog/core.py
import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from .errors import InvalidQueryError
from .models import SortOrder

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# page and limit stay in 32 bits so the skip offset always fits a BSON int64
MAX_QUERY_INT = 2**31 - 1

# Request and query schemas, plus the helpers that build store documents.


class ProductIn(BaseModel):
    # no required fields: whatever arrives is stored once its type coerces
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None


class ProductFilter(BaseModel):
    category: Optional[str] = None
    max_price: Optional[float] = None

    def matches(self, doc: Dict[str, Any]) -> bool:
        if self.category is not None and doc.get("category") != self.category:
            return False
        if self.max_price is not None:
            price = doc.get("price")
            if price is None or price > self.max_price:
                return False
        return True


class ListingQuery(BaseModel):
    filter: ProductFilter = ProductFilter()
    sort: SortOrder = SortOrder.ASC
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _is_blank(raw: Optional[str]) -> bool:
    return raw is None or raw.strip() == ""


def parse_positive_int(name: str, raw: Optional[str], default: int) -> int:
    if _is_blank(raw):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidQueryError(f"{name} must be a positive integer, got {raw!r}")
    if value < 1:
        raise InvalidQueryError(f"{name} must be >= 1, got {value}")
    if value > MAX_QUERY_INT:
        raise InvalidQueryError(f"{name} must be <= {MAX_QUERY_INT}, got {value}")
    return value


def parse_max_price(raw: Optional[str]) -> Optional[float]:
    """Empty or missing means no price filter, never a zero bound."""
    if _is_blank(raw):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidQueryError(f"maxPrice must be a number, got {raw!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidQueryError(f"maxPrice must be a finite number, got {raw!r}")
    return value


def parse_listing_query(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    max_price: Optional[str] = None,
    category: Optional[str] = None,
    sort: Optional[str] = None,
) -> ListingQuery:
    return ListingQuery(
        filter=ProductFilter(
            category=None if _is_blank(category) else category,
            max_price=parse_max_price(max_price),
        ),
        sort=SortOrder.DESC if sort == SortOrder.DESC.value else SortOrder.ASC,
        page=parse_positive_int("page", page, DEFAULT_PAGE),
        limit=parse_positive_int("limit", limit, DEFAULT_LIMIT),
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def _make_product_doc(p: ProductIn) -> Dict[str, Any]:
    # counters always start at zero; id and createdAt come from the store
    return {
        "name": p.name,
        "price": p.price,
        "category": p.category,
        "views": 0,
        "reviews": 0,
    }
