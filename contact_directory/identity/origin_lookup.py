"""
Name: Network Origin Lookup

Responsibilities:
  - Try an ordered list of origin providers and keep the first parseable IPv4
  - Turn exhaustion into an explicit LookupFailure (never a placeholder address)

Collaborators:
  - identity/access_resolver.py (consumer)
  - infrastructure/services/origin_providers.py (real providers)
  - crosscutting/metrics.py (per-provider outcomes)

Constraints:
  - Providers are `async () -> str | None`, tried strictly in order
  - A provider that raises or answers garbage is skipped, never fatal
"""

from __future__ import annotations

import time
from typing import Sequence

from ..crosscutting.exceptions import LookupFailure
from ..crosscutting.logger import logger
from ..crosscutting.metrics import observe_origin_lookup_latency, record_origin_lookup
from ..domain.services import OriginProvider
from .ip_classifier import is_valid_ipv4


def _provider_name(provider: OriginProvider) -> str:
    return getattr(provider, "provider_name", None) or getattr(
        provider, "__name__", type(provider).__name__
    )


async def first_success(providers: Sequence[OriginProvider]) -> str:
    """
    First valid IPv4 answered by `providers`, in order.

    Raises:
        LookupFailure: every provider raised, returned None or returned text
            that is not a dotted-quad address.
    """
    for provider in providers:
        name = _provider_name(provider)
        try:
            answer = await provider()
        except Exception as exc:
            record_origin_lookup(name, "error")
            logger.warning(
                "origin provider failed",
                extra={"provider": name, "error": str(exc)},
            )
            continue

        candidate = (answer or "").strip()
        if is_valid_ipv4(candidate):
            record_origin_lookup(name, "ok")
            return candidate

        record_origin_lookup(name, "invalid")
        logger.info(
            "origin provider returned no usable address",
            extra={"provider": name},
        )

    raise LookupFailure("Network origin could not be determined")


class OriginLookup:
    """Bound, ordered provider chain."""

    def __init__(self, providers: Sequence[OriginProvider]):
        self._providers = tuple(providers)

    @property
    def providers(self) -> tuple[OriginProvider, ...]:
        return self._providers

    async def lookup(self) -> str:
        start = time.perf_counter()
        try:
            return await first_success(self._providers)
        finally:
            observe_origin_lookup_latency(time.perf_counter() - start)
