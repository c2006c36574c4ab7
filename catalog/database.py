# catalog/database.py
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from .core import ListingQuery, ProductFilter
from .errors import StoreError
from .models import SortOrder


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductStore(ABC):
    """Persistence handle shared by the request handlers for one app lifetime.

    Stores assign ``id`` and ``createdAt`` on insert and return plain dicts
    shaped like the public ``Product`` model.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utcnow

    def ping(self) -> None:
        pass

    def ensure_indexes(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def count(self, product_filter: ProductFilter) -> int:
        raise NotImplementedError

    @abstractmethod
    def find(self, query: ListingQuery) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def top(self, field: str, n: int) -> List[Dict[str, Any]]:
        raise NotImplementedError


class InMemoryProductStore(ProductStore):
    # Process-local store for tests and demos; one lock serializes every operation.

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._products: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        pid = uuid.uuid4().hex
        record = dict(doc, id=pid, createdAt=self.clock())
        with self._lock:
            self._products[pid] = record
        return dict(record)

    def _matching(self, product_filter: ProductFilter) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(p) for p in self._products.values() if product_filter.matches(p)]

    def count(self, product_filter: ProductFilter) -> int:
        return len(self._matching(product_filter))

    def find(self, query: ListingQuery) -> List[Dict[str, Any]]:
        out = sorted(
            self._matching(query.filter),
            key=lambda p: p["createdAt"],
            reverse=query.sort == SortOrder.DESC,
        )
        return out[query.skip:query.skip + query.limit]

    def top(self, field: str, n: int) -> List[Dict[str, Any]]:
        out = sorted(self._matching(ProductFilter()), key=lambda p: p.get(field, 0), reverse=True)
        return out[:n]

    def reset(self) -> None:
        with self._lock:
            self._products.clear()


def _to_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in doc.items() if k not in ("_id", "__v")}
    out["id"] = str(doc["_id"])
    return out


def _mongo_query(product_filter: ProductFilter) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if product_filter.max_price is not None:
        query["price"] = {"$lte": product_filter.max_price}
    if product_filter.category is not None:
        query["category"] = product_filter.category
    return query


class MongoProductStore(ProductStore):
    """MongoDB-backed store. Driver errors surface as ``StoreError``."""

    def __init__(
        self,
        uri: str,
        database: str = "catalog",
        collection: str = "products",
        clock: Optional[Clock] = None,
        client: Optional[MongoClient] = None,
    ):
        super().__init__(clock)
        # MongoClient connects lazily, so an unreachable server only fails on first use
        self._client = client or MongoClient(uri, serverSelectionTimeoutMS=3000, tz_aware=True)
        self._collection = self._client.get_default_database(database)[collection]

    def ping(self) -> None:
        try:
            self._client.admin.command("ping")
        except PyMongoError as e:
            raise StoreError(f"MongoDB connection error: {e}") from e

    def ensure_indexes(self) -> None:
        try:
            self._collection.create_index([("createdAt", DESCENDING)])
            self._collection.create_index([("price", ASCENDING)])
            self._collection.create_index([("category", ASCENDING)])
        except PyMongoError as e:
            raise StoreError(f"could not create indexes: {e}") from e

    def close(self) -> None:
        self._client.close()

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(doc, _id=ObjectId(), createdAt=self.clock())
        try:
            self._collection.insert_one(record)
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return _to_product(record)

    def count(self, product_filter: ProductFilter) -> int:
        try:
            return self._collection.count_documents(_mongo_query(product_filter))
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    def find(self, query: ListingQuery) -> List[Dict[str, Any]]:
        direction = DESCENDING if query.sort == SortOrder.DESC else ASCENDING
        try:
            cursor = (
                self._collection.find(_mongo_query(query.filter))
                .sort("createdAt", direction)
                .skip(query.skip)
                .limit(query.limit)
            )
            return [_to_product(doc) for doc in cursor]
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    def top(self, field: str, n: int) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection.find().sort(field, DESCENDING).limit(n)
            return [_to_product(doc) for doc in cursor]
        except PyMongoError as e:
            raise StoreError(str(e)) from e
