from __future__ import annotations


class ConfigError(Exception):
    """Startup configuration is missing or invalid."""


class ItemServiceError(Exception):
    """Request-terminal failure mapped to an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def body(self) -> dict[str, str]:
        return {"detail": self.message}


class MalformedInput(ItemServiceError):
    status_code = 400


class MissingParameter(ItemServiceError):
    status_code = 400


class NotFound(ItemServiceError):
    status_code = 404


class StoreError(ItemServiceError):
    pass


class Unhealthy(ItemServiceError):
    def body(self) -> dict[str, str]:
        return {"status": "unhealthy", "error": self.message}


class ResolutionError(ItemServiceError):
    """Registry lookup failed or returned no instances."""


class AttributeMissing(ResolutionError):
    """Instance returned by the registry lacks an address attribute."""


class DiscoveryError(ItemServiceError):
    pass


class UpstreamUnreachable(ItemServiceError):
    pass


class UpstreamStatus(ItemServiceError):
    """Downstream answered with a non-200 status; relayed as-is."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Service returned status: {status_code}", status_code=status_code)


class InvalidUpstreamPayload(ItemServiceError):
    pass
