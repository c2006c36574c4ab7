# tests/test_products_api.py
import math

from fastapi.testclient import TestClient
from pymongo.errors import ConfigurationError

from catalog.config import Config
from catalog.core import MAX_QUERY_INT
from catalog.database import InMemoryProductStore
from catalog.errors import StoreError
from catalog.main import create_app

from clock import TickingClock

store = InMemoryProductStore(clock=TickingClock())
client = TestClient(create_app(store=store))


def reset():
    store.reset()


def add(name, price, category="most_viewed"):
    r = client.post("/products", json={"name": name, "price": price, "category": category})
    assert r.status_code == 200
    return r.json()


def seed(n, category="most_viewed", price=10):
    return [add(f"item-{i}", price, category) for i in range(n)]


def test_health_check():
    assert client.get("/").json() == {"status": "ok"}


def test_create_assigns_server_fields():
    reset()
    body = add("Widget", 9.99)
    assert body["id"]
    assert body["name"] == "Widget"
    assert body["price"] == 9.99
    assert body["category"] == "most_viewed"
    assert body["views"] == 0
    assert body["reviews"] == 0
    assert body["createdAt"]


def test_create_ignores_counters_in_payload():
    reset()
    r = client.post("/products", json={"name": "Sneaky", "price": 1, "category": "most_viewed",
                                       "views": 99, "reviews": 42, "id": "mine"})
    body = r.json()
    assert body["views"] == 0
    assert body["reviews"] == 0
    assert body["id"] != "mine"


def test_create_accepts_missing_fields():
    reset()
    r = client.post("/products", json={})
    assert r.status_code == 200
    assert r.json()["name"] is None
    assert r.json()["price"] is None


def test_create_coerces_numeric_price_string():
    reset()
    r = client.post("/products", json={"name": "Str", "price": "12.5", "category": "most_popular"})
    assert r.status_code == 200
    assert r.json()["price"] == 12.5


def test_create_type_error_is_an_operation_failure():
    reset()
    r = client.post("/products", json={"name": "Bad", "price": "cheap", "category": "most_viewed"})
    assert r.status_code == 500
    assert "price" in r.json()["error"]


def test_create_casts_numbers_to_text():
    reset()
    r = client.post("/products", json={"name": 123, "price": 1, "category": 7})
    assert r.status_code == 200
    assert r.json()["name"] == "123"
    assert r.json()["category"] == "7"


def test_newest_widget_listed_first():
    reset()
    seed(3)
    widget = add("Widget", 9.99, "most_viewed")
    r = client.get("/products", params={"category": "most_viewed", "sort": "desc", "page": 1, "limit": 10})
    assert r.status_code == 200
    products = r.json()["products"]
    assert products[0]["id"] == widget["id"]
    assert products[0]["name"] == "Widget"


def test_max_price_excludes_more_expensive():
    reset()
    add("Widget", 9.99)
    add("Pencil", 2.5)
    r = client.get("/products", params={"maxPrice": 5})
    names = [p["name"] for p in r.json()["products"]]
    assert names == ["Pencil"]


def test_max_price_is_inclusive():
    reset()
    add("Exact", 5)
    r = client.get("/products", params={"maxPrice": "5"})
    assert [p["name"] for p in r.json()["products"]] == ["Exact"]


def test_empty_max_price_means_no_filter():
    reset()
    add("Free", 0)
    add("Pricey", 500)
    r = client.get("/products?maxPrice=")
    assert r.status_code == 200
    assert len(r.json()["products"]) == 2


def test_filters_are_conjunctive():
    reset()
    add("cheap-viewed", 3, "most_viewed")
    add("pricey-viewed", 30, "most_viewed")
    add("cheap-popular", 3, "most_popular")
    r = client.get("/products", params={"category": "most_viewed", "maxPrice": 10})
    assert [p["name"] for p in r.json()["products"]] == ["cheap-viewed"]
    assert r.json()["totalPages"] == 1


def test_sort_orders_by_created_at():
    reset()
    seed(5)
    desc = client.get("/products", params={"sort": "desc"}).json()["products"]
    asc = client.get("/products", params={"sort": "asc"}).json()["products"]
    desc_times = [p["createdAt"] for p in desc]
    asc_times = [p["createdAt"] for p in asc]
    assert desc_times == sorted(desc_times, reverse=True)
    assert asc_times == sorted(asc_times)


def test_sort_defaults_to_oldest_first():
    reset()
    first = add("first", 1)
    add("second", 1)
    products = client.get("/products").json()["products"]
    assert products[0]["id"] == first["id"]


def test_pagination_sizes_and_total_pages():
    reset()
    seed(25)
    sizes = []
    for page in (1, 2, 3):
        body = client.get("/products", params={"page": page, "limit": 10}).json()
        assert body["totalPages"] == math.ceil(25 / 10)
        sizes.append(len(body["products"]))
    assert sizes == [10, 10, 5]


def test_pages_concatenate_to_every_match_once():
    reset()
    expected = {p["id"] for p in seed(7, price=1)}
    seed(3, price=100)
    first = client.get("/products", params={"maxPrice": 50, "limit": 3, "sort": "desc"}).json()
    seen = []
    for page in range(1, first["totalPages"] + 1):
        body = client.get("/products", params={"maxPrice": 50, "limit": 3, "sort": "desc", "page": page}).json()
        assert len(body["products"]) <= 3
        seen.extend(p["id"] for p in body["products"])
    assert len(seen) == len(expected)
    assert set(seen) == expected


def test_page_beyond_last_is_empty():
    reset()
    seed(4)
    body = client.get("/products", params={"page": 9, "limit": 2}).json()
    assert body["products"] == []
    assert body["totalPages"] == 2


def test_no_matches_gives_zero_pages():
    reset()
    body = client.get("/products", params={"category": "most_reviewed"}).json()
    assert body == {"products": [], "totalPages": 0}


def test_default_limit_is_ten():
    reset()
    seed(12)
    body = client.get("/products").json()
    assert len(body["products"]) == 10
    assert body["totalPages"] == 2


def test_non_numeric_query_parameters_are_rejected():
    reset()
    for params in ({"page": "abc"}, {"limit": "x"}, {"maxPrice": "cheap"},
                   {"maxPrice": "nan"}, {"page": "0"}, {"limit": "-3"}, {"page": "1.5"}):
        r = client.get("/products", params=params)
        assert r.status_code == 400, params
        assert r.json()["error"]


def test_created_product_appears_in_its_category():
    reset()
    created = add("Gadget", 15, "most_popular")
    products = client.get("/products", params={"category": "most_popular"}).json()["products"]
    match = [p for p in products if p["id"] == created["id"]]
    assert len(match) == 1
    assert match[0]["name"] == "Gadget"
    assert match[0]["price"] == 15
    assert match[0]["views"] == 0
    assert match[0]["reviews"] == 0


def test_categorized_top_two_per_metric():
    reset()
    store.insert({"name": "a", "price": 1, "category": "most_viewed", "views": 5, "reviews": 1})
    store.insert({"name": "b", "price": 1, "category": "most_viewed", "views": 50, "reviews": 0})
    store.insert({"name": "c", "price": 1, "category": "most_viewed", "views": 1, "reviews": 30})
    store.insert({"name": "d", "price": 1, "category": "most_viewed", "views": 7, "reviews": 8})

    body = client.get("/products/categorized").json()
    assert [p["name"] for p in body["mostViewed"]] == ["b", "d"]
    assert [p["name"] for p in body["mostReviewed"]] == ["c", "d"]
    assert body["mostPopular"] == body["mostReviewed"]


def test_categorized_with_empty_store():
    reset()
    body = client.get("/products/categorized").json()
    assert body == {"mostViewed": [], "mostPopular": [], "mostReviewed": []}


class UnavailableStore(InMemoryProductStore):
    def count(self, product_filter):
        raise StoreError("connection refused")

    def insert(self, doc):
        raise StoreError("write failed")

    def top(self, field, n):
        raise StoreError("connection refused")


def test_store_failures_surface_as_500():
    broken = TestClient(create_app(store=UnavailableStore()))
    r = broken.get("/products")
    assert r.status_code == 500
    assert r.json() == {"error": "connection refused"}

    r = broken.post("/products", json={"name": "x", "price": 1, "category": "most_viewed"})
    assert r.status_code == 500
    assert r.json() == {"error": "write failed"}

    assert broken.get("/products/categorized").status_code == 500


def test_unconnected_store_fails_each_request():
    # lifespan never runs without the context manager, so no store is opened
    app = create_app(config=Config(mongo_uri="mongodb://localhost:1/catalog"))
    r = TestClient(app).get("/products")
    assert r.status_code == 500
    assert "not connected" in r.json()["error"]


def test_oversized_page_and_limit_are_rejected():
    reset()
    for params in ({"limit": str(2**70)}, {"page": str(MAX_QUERY_INT + 1)}):
        r = client.get("/products", params=params)
        assert r.status_code == 400, params
        assert str(MAX_QUERY_INT) in r.json()["error"]


class OverflowingStore(InMemoryProductStore):
    def find(self, query):
        raise OverflowError("MongoDB can only handle up to 8-byte ints")


def test_unexpected_errors_render_as_json_500():
    # the catch-all handler answers before the server error middleware re-raises
    app = create_app(store=OverflowingStore())
    r = TestClient(app, raise_server_exceptions=False).get("/products")
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"error": "MongoDB can only handle up to 8-byte ints"}


def test_unresolvable_mongo_uri_does_not_stop_startup(monkeypatch):
    def unresolvable(*args, **kwargs):
        raise ConfigurationError("The DNS query name does not exist: _mongodb._tcp.unresolvable.example.")

    monkeypatch.setattr("catalog.main.MongoProductStore", unresolvable)
    app = create_app(config=Config(mongo_uri="mongodb+srv://unresolvable.example/catalog"))
    with TestClient(app) as started:
        r = started.get("/products")
        assert r.status_code == 500
        assert "not connected" in r.json()["error"]
        assert started.get("/").json() == {"status": "ok"}
