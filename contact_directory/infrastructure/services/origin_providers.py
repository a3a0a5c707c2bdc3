"""
Name: Network origin providers

Responsibilities:
  - Concrete `async () -> str | None` providers for the origin lookup chain
  - request mode: trusted X-Forwarded-For first hop, then the socket peer
  - external mode: public IP echo services over HTTPS (httpx), fixed order

Collaborators:
  - identity/origin_lookup.py (chain + first-success combinator)
  - container.py (picks the mode per request)

Constraints:
  - Providers return None (or raise) when they have no answer; validation of
    the answer is the chain's job
  - Each HTTP provider has its own timeout
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
from starlette.requests import Request

# Fixed fallback order for the external lookup.
EXTERNAL_ENDPOINTS: tuple[tuple[str, str, str], ...] = (
    ("ipify", "https://api.ipify.org?format=json", "json"),
    ("ipapi", "https://ipapi.co/json/", "json"),
    ("jsonip", "https://jsonip.com", "json"),
    ("aws_checkip", "https://checkip.amazonaws.com", "text"),
)


# Echo services disagree on the field name.
_JSON_IP_KEYS = ("ip", "query", "IPv4")


def _json_ip(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in _JSON_IP_KEYS:
        value = payload.get(key)
        if value:
            return str(value)
    return None


class HttpOriginProvider:
    """GET an IP echo endpoint and extract the address (JSON `ip`/`query`/`IPv4`, or plain text)."""

    def __init__(
        self,
        name: str,
        url: str,
        shape: str,
        *,
        timeout_seconds: float,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self.provider_name = name
        self._url = url
        self._shape = shape
        self._timeout = timeout_seconds
        self._client_factory = client_factory

    async def __call__(self) -> str | None:
        async with self._client_factory(timeout=self._timeout) as client:
            response = await client.get(self._url)
            response.raise_for_status()
            if self._shape == "json":
                return _json_ip(response.json())
            return response.text.strip() or None


class ForwardedForProvider:
    """First hop of X-Forwarded-For. Only wired in behind a trusted proxy."""

    provider_name = "forwarded_for"

    def __init__(self, request: Request):
        self._request = request

    async def __call__(self) -> str | None:
        header = self._request.headers.get("x-forwarded-for") or ""
        first = header.split(",")[0].strip()
        return first or None


class PeerAddressProvider:
    """Socket peer address of the current request."""

    provider_name = "peer_address"

    def __init__(self, request: Request):
        self._request = request

    async def __call__(self) -> str | None:
        client = self._request.client
        return client.host if client else None


def request_providers(request: Request, *, trust_forwarded: bool) -> list:
    providers: list = []
    if trust_forwarded:
        providers.append(ForwardedForProvider(request))
    providers.append(PeerAddressProvider(request))
    return providers


def external_providers(
    *,
    timeout_seconds: float,
    client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
) -> list[HttpOriginProvider]:
    return [
        HttpOriginProvider(
            name, url, shape, timeout_seconds=timeout_seconds, client_factory=client_factory
        )
        for name, url, shape in EXTERNAL_ENDPOINTS
    ]
