# catalog/models.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    MOST_VIEWED = "most_viewed"
    MOST_POPULAR = "most_popular"
    MOST_REVIEWED = "most_reviewed"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    views: int = 0
    reviews: int = 0
    created_at: datetime = Field(alias="createdAt")


class ProductPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    products: List[Product]
    total_pages: int = Field(alias="totalPages")


class CategorizedProducts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    most_viewed: List[Product] = Field(alias="mostViewed")
    most_popular: List[Product] = Field(alias="mostPopular")
    most_reviewed: List[Product] = Field(alias="mostReviewed")
