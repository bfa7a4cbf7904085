"""Key-value front door: item create/read over HTTP.

Routes:
  POST /item         create (overwrite) an item
  GET  /item?id=     read one item
  GET  /healthcheck  probe the backing store
"""
from __future__ import annotations

import logging

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from pydantic import ValidationError

from .api_models import HealthStatus, Item, ItemCreated
from .errors import ConfigError, MalformedInput, MissingParameter, NotFound, StoreError, Unhealthy
from .log import configure_logging
from .settings import Settings
from .store import ItemStore, build_store
from .web import install_error_handlers

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> ItemStore:
    return request.app.state.store


async def parse_item(request: Request) -> Item:
    # Decode the raw body whatever Content-Type the caller declared.
    body = await request.body()
    try:
        return Item.model_validate_json(body)
    except ValidationError as e:
        raise MalformedInput("Invalid request payload") from e


@router.post("/item", status_code=201)
def create_item(item: Item = Depends(parse_item), store: ItemStore = Depends(get_store)) -> ItemCreated:
    store.put(item)
    logger.debug("Stored item %s", item.id)
    return ItemCreated()


@router.get("/item")
def read_item(id: str | None = None, store: ItemStore = Depends(get_store)) -> Item:
    if not id:
        raise MissingParameter("Missing 'id' query parameter")
    item = store.get(id)
    if item is None:
        raise NotFound("Item not found")
    return item


@router.get("/healthcheck")
def healthcheck(store: ItemStore = Depends(get_store)) -> HealthStatus:
    try:
        store.describe()
    except StoreError as e:
        raise Unhealthy(e.message) from e
    return HealthStatus(status="ok")


def create_app(store: ItemStore) -> FastAPI:
    app = FastAPI(title="Item Front Door")
    app.state.store = store
    install_error_handlers(app)
    app.include_router(router)
    return app


def main() -> int:
    settings = Settings()
    configure_logging(settings.log_level)
    try:
        store = build_store(
            settings.validate_store_backend(),
            region=settings.region,
            table_name=settings.table_name,
            db_path=settings.db_path,
        )
    except (ConfigError, StoreError, OSError) as e:
        logger.critical("Startup failed: %s", e)
        return 1

    app = create_app(store)
    logger.info("DynamoDB API Server running on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
