"""
Name: IP Classifier Tests

Responsibilities:
  - Dotted-quad validation and range spec validation
  - CIDR membership (prefix 0 / 32 edges, masked comparison)
  - Fail-closed allow-list checks and admin text parsing
"""

import pytest

from contact_directory.crosscutting.exceptions import FormatError
from contact_directory.identity.ip_classifier import (
    format_range_list,
    is_allowed,
    is_valid_ipv4,
    is_valid_range_spec,
    matches,
    parse_ipv4,
    parse_range_list,
    split_range_list,
)

pytestmark = pytest.mark.unit


class TestParseIpv4:
    def test_parses_to_integer(self):
        assert parse_ipv4("0.0.0.0") == 0
        assert parse_ipv4("255.255.255.255") == 0xFFFFFFFF
        assert parse_ipv4("192.168.1.10") == (192 << 24) | (168 << 16) | (1 << 8) | 10

    @pytest.mark.parametrize(
        "text", ["", "1.2.3", "1.2.3.4.5", "256.1.1.1", "a.b.c.d", " 1.2.3.4", "1.2.3.4/8"]
    )
    def test_rejects_malformed(self, text):
        with pytest.raises(FormatError):
            parse_ipv4(text)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_ipv4("nope")


class TestValidation:
    @pytest.mark.parametrize("text", ["127.0.0.1", "10.0.0.0", "8.8.8.8"])
    def test_valid_addresses(self, text):
        assert is_valid_ipv4(text)

    @pytest.mark.parametrize("text", ["", "999.1.1.1", "localhost", "::1"])
    def test_invalid_addresses(self, text):
        assert not is_valid_ipv4(text)

    @pytest.mark.parametrize(
        "spec", ["127.0.0.1", "10.0.0.0/8", "0.0.0.0/0", "192.168.1.1/32"]
    )
    def test_valid_range_specs(self, spec):
        assert is_valid_range_spec(spec)

    @pytest.mark.parametrize(
        "spec", ["10.0.0.0/33", "10.0.0.0/", "10.0.0/8", "10.0.0.0/-1", "abc", "10.0.0.0/8/8"]
    )
    def test_invalid_range_specs(self, spec):
        assert not is_valid_range_spec(spec)

    @pytest.mark.parametrize(
        "text",
        ["\u0661\u0660.0.0.1", "1.2.3.4\n", "\uff11.2.3.4", "10.0.0.0/\u0668"],
    )
    def test_only_ascii_digits_without_trailing_text(self, text):
        assert not is_valid_range_spec(text)
        assert not is_valid_ipv4(text)

    def test_non_ascii_range_is_dropped_and_never_matches(self):
        assert parse_range_list("\u0661\u0660.0.0.0/8") == []
        assert not is_allowed("10.1.2.3", ["\u0661\u0660.0.0.0/8"])
        with pytest.raises(FormatError):
            parse_ipv4("1.2.3.4\n")


class TestMatches:
    def test_bare_address_is_equality(self):
        assert matches("127.0.0.1", "127.0.0.1")
        assert not matches("127.0.0.2", "127.0.0.1")

    def test_prefix_32_is_equality(self):
        assert matches("192.168.1.1", "192.168.1.1/32")
        assert not matches("192.168.1.2", "192.168.1.1/32")

    def test_prefix_0_matches_everything(self):
        assert matches("8.8.8.8", "0.0.0.0/0")
        assert matches("255.255.255.255", "0.0.0.0/0")

    def test_masked_comparison(self):
        assert matches("192.168.44.7", "192.168.0.0/16")
        assert not matches("192.169.0.1", "192.168.0.0/16")
        assert matches("10.255.255.255", "10.0.0.0/8")
        assert not matches("11.0.0.0", "10.0.0.0/8")

    def test_network_bits_outside_mask_are_ignored(self):
        assert matches("172.16.5.4", "172.16.9.9/16")

    def test_malformed_input_never_matches(self):
        assert not matches("not-an-ip", "10.0.0.0/8")
        assert not matches("10.0.0.1", "10.0.0.0/99")
        assert not matches("10.0.0.1", "garbage/8")


class TestIsAllowed:
    def test_empty_list_fails_closed(self):
        assert not is_allowed("127.0.0.1", [])

    def test_empty_address_fails_closed(self):
        assert not is_allowed("", ["0.0.0.0/0"])

    def test_any_matching_range_allows(self):
        ranges = ["127.0.0.1", "192.168.0.0/16", "10.0.0.0/8"]
        assert is_allowed("10.1.2.3", ranges)
        assert is_allowed("127.0.0.1", ranges)
        assert not is_allowed("8.8.8.8", ranges)

    def test_blank_entries_are_ignored(self):
        assert not is_allowed("8.8.8.8", ["", "   "])
        assert is_allowed("8.8.8.8", ["  ", " 8.8.8.8 "])


class TestRangeListText:
    def test_split_keeps_order_and_reports_rejects(self):
        text = "10.0.0.0/8\n\n# office\nbogus\n127.0.0.1\n1.2.3.4/40\n"
        accepted, rejected = split_range_list(text)
        assert accepted == ["10.0.0.0/8", "127.0.0.1"]
        assert rejected == ["bogus", "1.2.3.4/40"]

    def test_parse_drops_invalid_lines(self):
        assert parse_range_list("  192.168.0.0/16  \nnope") == ["192.168.0.0/16"]

    def test_format_then_parse_is_identity_for_valid_lists(self):
        ranges = ["127.0.0.1", "192.168.0.0/16", "0.0.0.0/0"]
        assert parse_range_list(format_range_list(ranges)) == ranges

    def test_empty_text(self):
        assert split_range_list("") == ([], [])


def test_prefix_above_32_is_not_a_valid_range():
    assert is_valid_range_spec("192.168.1.0/33") is False
