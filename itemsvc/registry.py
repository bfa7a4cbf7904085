from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import AttributeMissing, ConfigError, ResolutionError

logger = logging.getLogger(__name__)

IPV4_ATTRIBUTE = "AWS_INSTANCE_IPV4"
PORT_ATTRIBUTE = "AWS_INSTANCE_PORT"


@dataclass(frozen=True)
class ResolvedEndpoint:
    host: str
    port: str

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


class ServiceRegistry:
    """Interface of the external service registry."""

    def discover_instances(self, service_name: str, namespace: str, limit: int) -> list[dict[str, str]]:
        """Return attribute maps of up to ``limit`` healthy instances."""
        raise NotImplementedError


class CloudMapRegistry(ServiceRegistry):
    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    def from_region(cls, region: str | None) -> "CloudMapRegistry":
        try:
            client = boto3.client("servicediscovery", region_name=region)
        except BotoCoreError as e:
            raise ConfigError(f"Cannot create Cloud Map client: {e}") from e
        return cls(client)

    def discover_instances(self, service_name: str, namespace: str, limit: int) -> list[dict[str, str]]:
        try:
            resp = self.client.discover_instances(
                NamespaceName=namespace,
                ServiceName=service_name,
                MaxResults=limit,
                HealthStatus="HEALTHY",
            )
        except (BotoCoreError, ClientError) as e:
            raise ResolutionError(f"failed to discover service instances: {e}") from e
        return [inst.get("Attributes", {}) for inst in resp.get("Instances", [])]


class StaticRegistry(ServiceRegistry):
    """Always answers with one fixed ``host:port``; for local runs."""

    def __init__(self, endpoint: str) -> None:
        host, sep, port = endpoint.rpartition(":")
        if not sep or not host or not port:
            raise ConfigError(f"Static endpoint must be host:port, got '{endpoint}'")
        self.host = host
        self.port = port

    def discover_instances(self, service_name: str, namespace: str, limit: int) -> list[dict[str, str]]:
        if limit <= 0:
            return []
        return [{IPV4_ATTRIBUTE: self.host, PORT_ATTRIBUTE: self.port}]


def resolve_endpoint(registry: ServiceRegistry, service_name: str, namespace: str) -> ResolvedEndpoint:
    """Resolve a logical service to the address of one healthy instance.

    Only one instance is requested, so there is nothing to choose between.
    Raises ResolutionError when the lookup fails or comes back empty, and
    AttributeMissing when the instance carries no usable address.
    """
    instances = registry.discover_instances(service_name, namespace, 1)
    if not instances:
        raise ResolutionError(
            f"failed to discover service instances: no healthy instance of '{service_name}' in namespace '{namespace}'"
        )

    attrs = instances[0]
    missing = [key for key in (IPV4_ATTRIBUTE, PORT_ATTRIBUTE) if not attrs.get(key)]
    if missing:
        raise AttributeMissing(f"instance of '{service_name}' is missing attribute(s): {', '.join(missing)}")

    endpoint = ResolvedEndpoint(host=attrs[IPV4_ATTRIBUTE], port=str(attrs[PORT_ATTRIBUTE]))
    logger.debug("Resolved %s/%s to %s", namespace, service_name, endpoint.base_url)
    return endpoint


def build_registry(backend: str, *, region: str | None, static_endpoint: str | None) -> ServiceRegistry:
    if backend == "static":
        logger.info("Using static registry endpoint %s", static_endpoint)
        return StaticRegistry(static_endpoint or "")
    return CloudMapRegistry.from_region(region)
