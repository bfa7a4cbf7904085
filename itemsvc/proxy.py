"""Discovery proxy: resolve a service through the registry and relay item lookups.

Routes:
  GET /fetch-item?id=  resolve the configured service, GET {endpoint}/item?id=
  GET /healthcheck     static liveness answer
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from pydantic import ValidationError

from .api_models import HealthStatus, Item
from .errors import (
    ConfigError,
    DiscoveryError,
    InvalidUpstreamPayload,
    MissingParameter,
    ResolutionError,
    UpstreamStatus,
    UpstreamUnreachable,
)
from .log import configure_logging
from .registry import ServiceRegistry, build_registry, resolve_endpoint
from .settings import Settings
from .web import install_error_handlers

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass(frozen=True)
class ProxyContext:
    registry: ServiceRegistry
    http_client: httpx.Client
    service_name: str
    namespace: str


def get_context(request: Request) -> ProxyContext:
    return request.app.state.proxy


def build_http_client(**kwargs) -> httpx.Client:
    """Outbound client for downstream lookups; redirects are followed."""
    return httpx.Client(follow_redirects=True, **kwargs)


@router.get("/fetch-item")
def fetch_item(id: str | None = None, ctx: ProxyContext = Depends(get_context)) -> Item:
    if not id:
        raise MissingParameter("Missing 'id' query parameter")

    try:
        endpoint = resolve_endpoint(ctx.registry, ctx.service_name, ctx.namespace)
    except ResolutionError as e:
        raise DiscoveryError(f"Could not fetch service endpoint: {e.message}") from e

    url = f"{endpoint.base_url}/item"
    try:
        resp = ctx.http_client.get(url, params={"id": id})
    except httpx.RequestError as e:
        raise UpstreamUnreachable(f"Failed to fetch item: {e}") from e

    if resp.status_code != 200:
        logger.warning("%s answered %s for id=%s", endpoint.base_url, resp.status_code, id)
        raise UpstreamStatus(resp.status_code)

    # Re-decode instead of relaying bytes so a malformed downstream body is rejected.
    try:
        return Item.model_validate_json(resp.content)
    except ValidationError as e:
        raise InvalidUpstreamPayload(f"Failed to unmarshal response body: {e}") from e


@router.get("/healthcheck")
def healthcheck() -> HealthStatus:
    return HealthStatus(status="OK")


def create_app(
    registry: ServiceRegistry,
    http_client: httpx.Client,
    service_name: str,
    namespace: str,
) -> FastAPI:
    app = FastAPI(title="Item Discovery Proxy")
    app.state.proxy = ProxyContext(
        registry=registry,
        http_client=http_client,
        service_name=service_name,
        namespace=namespace,
    )
    install_error_handlers(app)
    app.include_router(router)
    return app


def main() -> int:
    settings = Settings()
    configure_logging(settings.log_level)
    try:
        service_name = settings.require_service_name()
        registry = build_registry(
            settings.validate_registry_backend(),
            region=settings.region,
            static_endpoint=settings.static_endpoint,
        )
    except ConfigError as e:
        logger.critical("Startup failed: %s", e)
        return 1

    with build_http_client() as http_client:
        app = create_app(registry, http_client, service_name, settings.namespace)
        logger.info("Cloud Map Client running on port %s", settings.port)
        uvicorn.run(app, host="0.0.0.0", port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
