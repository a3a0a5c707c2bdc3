"""
Name: Origin Lookup Tests

Responsibilities:
  - First-success ordering across providers
  - Skipping providers that raise, return None or return garbage
  - Explicit LookupFailure on exhaustion
"""

import pytest

from contact_directory.crosscutting.exceptions import LookupFailure
from contact_directory.identity.origin_lookup import OriginLookup, first_success

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_first_provider_wins(fixed_origin):
    providers = [fixed_origin("10.0.0.1"), fixed_origin("10.0.0.2")]
    assert await first_success(providers) == "10.0.0.1"


@pytest.mark.asyncio
async def test_failing_and_garbage_providers_are_skipped(fixed_origin, failing_origin):
    providers = [
        failing_origin(),
        fixed_origin(None),
        fixed_origin("<html>rate limited</html>"),
        fixed_origin(" 203.0.113.9\n"),
    ]
    assert await first_success(providers) == "203.0.113.9"


@pytest.mark.asyncio
async def test_later_providers_not_called_after_success(fixed_origin):
    calls = []

    async def tracked():
        calls.append("tracked")
        return "1.1.1.1"

    await first_success([fixed_origin("8.8.8.8"), tracked])
    assert calls == []


@pytest.mark.asyncio
async def test_exhaustion_raises_lookup_failure(fixed_origin, failing_origin):
    with pytest.raises(LookupFailure):
        await first_success([failing_origin(), fixed_origin("unknown")])


@pytest.mark.asyncio
async def test_empty_chain_raises_lookup_failure():
    with pytest.raises(LookupFailure):
        await OriginLookup([]).lookup()


@pytest.mark.asyncio
async def test_origin_lookup_keeps_provider_order(fixed_origin):
    a, b = fixed_origin("1.2.3.4"), fixed_origin("5.6.7.8")
    lookup = OriginLookup([a, b])
    assert lookup.providers == (a, b)
    assert await lookup.lookup() == "1.2.3.4"
