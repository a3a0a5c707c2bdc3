"""
Name: IP Classifier

Responsibilities:
  - Validate dotted-quad IPv4 addresses and range specs (bare IPv4 or CIDR)
  - Decide whether an address falls inside a range / an allow-list
  - Parse the admin's newline-separated range text

Collaborators:
  - identity/access_resolver.py
  - application/restriction_settings.py
  - api/admin_routes.py

Constraints:
  - Pure functions, no I/O
  - Allow-list checks fail closed (empty address or empty list => not allowed)
  - Malformed input never matches anything
"""

from __future__ import annotations

import re
from typing import Iterable

from ..crosscutting.exceptions import FormatError

# ASCII digits only; applied with fullmatch.
_OCTET = r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
_IPV4_RE = re.compile(rf"{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}")
_PREFIX_RE = re.compile(r"[0-9]{1,2}")

_FULL_MASK = 0xFFFFFFFF


def parse_ipv4(text: str) -> int:
    """Dotted quad -> 32-bit integer. Raises FormatError when malformed."""
    if not isinstance(text, str) or not _IPV4_RE.fullmatch(text):
        raise FormatError(f"Invalid IPv4 address: {text!r}")
    value = 0
    for octet in text.split("."):
        value = (value << 8) | int(octet)
    return value


def is_valid_ipv4(text: str) -> bool:
    return isinstance(text, str) and bool(_IPV4_RE.fullmatch(text))


def _split_cidr(range_spec: str) -> tuple[str, int]:
    network, _, prefix_text = range_spec.partition("/")
    if not _PREFIX_RE.fullmatch(prefix_text):
        raise FormatError(f"Invalid CIDR prefix: {range_spec!r}")
    prefix = int(prefix_text)
    if prefix > 32:
        raise FormatError(f"CIDR prefix out of range: {range_spec!r}")
    return network, prefix


def is_valid_range_spec(text: str) -> bool:
    """Bare IPv4, or `<ipv4>/<prefix>` with prefix in [0, 32]."""
    if not isinstance(text, str):
        return False
    if "/" not in text:
        return is_valid_ipv4(text)
    try:
        network, _ = _split_cidr(text)
    except FormatError:
        return False
    return is_valid_ipv4(network)


def matches(ip: str, range_spec: str) -> bool:
    """True iff `ip` falls inside `range_spec`."""
    if "/" not in range_spec:
        return ip == range_spec

    try:
        network, prefix = _split_cidr(range_spec)
        if prefix == 0:
            return True
        ip_value = parse_ipv4(ip)
        network_value = parse_ipv4(network)
    except FormatError:
        return False

    if prefix == 32:
        return ip_value == network_value

    mask = (_FULL_MASK << (32 - prefix)) & _FULL_MASK
    return (ip_value & mask) == (network_value & mask)


def is_allowed(ip: str, allowed_ranges: Iterable[str]) -> bool:
    """Fail-closed allow-list check."""
    if not ip:
        return False
    ranges = [r.strip() for r in (allowed_ranges or ()) if r and r.strip()]
    if not ranges:
        return False
    return any(matches(ip, r) for r in ranges)


def split_range_list(text: str) -> tuple[list[str], list[str]]:
    """
    Split admin text into (accepted, rejected) range specs.

    Blank lines and `#` comments are neither accepted nor rejected.
    Order of appearance is kept in both lists.
    """
    accepted: list[str] = []
    rejected: list[str] = []
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if is_valid_range_spec(line):
            accepted.append(line)
        else:
            rejected.append(line)
    return accepted, rejected


def parse_range_list(text: str) -> list[str]:
    """Valid range specs from newline-separated text (invalid lines dropped)."""
    accepted, _ = split_range_list(text)
    return accepted


def format_range_list(ranges: Iterable[str]) -> str:
    return "\n".join(ranges)
