# catalog/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .config import Config
from .core import ProductIn, parse_listing_query
from .database import MongoProductStore, ProductStore
from .errors import CatalogError, ConfigError, StoreError
from .logs import configure_logging
from .models import CategorizedProducts, Product, ProductPage
from .services import categorized_products_logic, create_product_logic, list_products_logic

logger = logging.getLogger(__name__)


def get_store(request: Request) -> ProductStore:
    store = request.app.state.store
    if store is None:
        raise StoreError("product store is not connected")
    return store


def _open_store(config: Config) -> Optional[ProductStore]:
    # a failed connection is logged; requests then fail one by one with 500
    try:
        store = MongoProductStore(config.mongo_uri, config.mongo_db)
    except PyMongoError as e:
        # SRV lookups and URI errors surface from the MongoClient constructor
        logger.error("MongoDB Connection Error: %s", e)
        return None
    try:
        store.ping()
        store.ensure_indexes()
        logger.info("Connected to MongoDB")
    except StoreError as e:
        logger.error("MongoDB Connection Error: %s", e.message)
    return store


def _is_body_error(exc: RequestValidationError) -> bool:
    return any(err.get("loc", ("",))[0] == "body" for err in exc.errors())


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "invalid request"


def create_app(config: Optional[Config] = None, store: Optional[ProductStore] = None) -> FastAPI:
    """Build the API. Without an injected ``store`` a MongoDB store is opened on startup."""
    if store is None and config is None:
        config = Config.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.store is None
        if owned:
            app.state.store = _open_store(config)
        yield
        if owned and app.state.store is not None:
            app.state.store.close()
            app.state.store = None

    app = FastAPI(
        title="Product Catalog API",
        description="List, filter, paginate and create catalog products.",
        version="1.0.0",
        docs_url="/api-docs",
        lifespan=lifespan,
    )
    app.state.store = store

    origins = config.cors_allowed_origins if config is not None else []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation(exc)
        # a payload that does not cast is an operation failure, like any store error
        status_code = 500 if _is_body_error(exc) else 400
        logger.error("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

    @app.get("/")
    def health_check():
        return {"status": "ok"}

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.post("/products", response_model=Product)
    def add_product(payload: ProductIn, store: ProductStore = Depends(get_store)):
        return create_product_logic(store, payload)

    @app.get("/products", response_model=ProductPage)
    def list_products(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        max_price: Optional[str] = Query(None, alias="maxPrice"),
        category: Optional[str] = None,
        sort: Optional[str] = None,
        store: ProductStore = Depends(get_store),
    ):
        query = parse_listing_query(page=page, limit=limit, max_price=max_price, category=category, sort=sort)
        return list_products_logic(store, query)

    @app.get("/products/categorized", response_model=CategorizedProducts)
    def categorized_products(store: ProductStore = Depends(get_store)):
        return categorized_products_logic(store)

    return app


def run():
    try:
        config = Config.from_env()
    except ConfigError as e:
        configure_logging(log_file=None)
        logger.error(str(e))
        sys.exit(1)

    configure_logging(config.log_level, config.log_file)
    app = create_app(config)
    logger.info("Server running on port %d", config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
