"""Shared plumbing for outbound HTTP integrations."""

import httpx

DEFAULT_TIMEOUT = 30.0


class IntegrationError(Exception):
    """Raised when a third-party API call fails or is not configured."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


def build_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create an AsyncClient with the default timeout.

    Tests pass an httpx.MockTransport here.
    """
    return httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=transport)


def parse_json(service: str, response: httpx.Response) -> dict:
    """Return the JSON body, or raise IntegrationError for non-2xx replies."""
    if response.is_error:
        raise IntegrationError(
            service,
            f"HTTP {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )
    try:
        body = response.json()
    except ValueError as e:
        raise IntegrationError(service, "Response was not JSON") from e
    return body if isinstance(body, dict) else {"data": body}
