"""Tests for the trusted proxy whitelist."""

from __future__ import annotations

import pytest

from reverseproxy_auth.errors import ConfigError
from reverseproxy_auth.whitelist import Whitelist


class TestParse:
    def test_cidr(self):
        assert str(Whitelist.parse("10.0.0.0/8")) == "10.0.0.0/8"

    def test_host_bits_allowed(self):
        assert str(Whitelist.parse("10.1.2.3/8")) == "10.0.0.0/8"

    def test_bare_address_is_single_host(self):
        assert str(Whitelist.parse("127.0.0.1")) == "127.0.0.1/32"

    def test_netmask_notation(self):
        assert str(Whitelist.parse("192.168.0.0/255.255.0.0")) == "192.168.0.0/16"

    def test_zero_prefix_pins_to_address(self):
        assert str(Whitelist.parse("127.0.0.1/0")) == "127.0.0.1/32"

    def test_ipv6(self):
        assert str(Whitelist.parse("fd00::/8")) == "fd00::/8"

    def test_spec_is_kept(self):
        assert Whitelist.parse(" 127.0.0.1/0 ").spec == "127.0.0.1/0"

    @pytest.mark.parametrize("spec", ["not-an-address", "10.0.0.0/33", "300.1.1.1", "10.0.0.0/abc", "   "])
    def test_invalid(self, spec):
        with pytest.raises(ConfigError):
            Whitelist.parse(spec)

    def test_non_string(self):
        with pytest.raises(ConfigError, match="string"):
            Whitelist.parse(167772160)  # type: ignore[arg-type]


class TestContains:
    def test_localhost_only(self):
        whitelist = Whitelist.parse("127.0.0.1/0")
        assert whitelist.contains("127.0.0.1")
        assert not whitelist.contains("10.8.4.1")

    def test_range(self):
        whitelist = Whitelist.parse("10.0.0.0/8")
        assert whitelist.contains("10.8.4.1")
        assert not whitelist.contains("11.0.0.1")

    def test_missing_address(self):
        whitelist = Whitelist.parse("127.0.0.1")
        assert not whitelist.contains(None)
        assert not whitelist.contains("")

    def test_unparseable_address(self):
        assert not Whitelist.parse("127.0.0.1").contains("testclient")

    def test_ipv4_mapped_ipv6_peer(self):
        assert Whitelist.parse("127.0.0.1").contains("::ffff:127.0.0.1")

    def test_ipv6_range(self):
        whitelist = Whitelist.parse("fd00::/8")
        assert whitelist.contains("fd00::1")
        assert not whitelist.contains("fe80::1")

    def test_version_mismatch(self):
        assert not Whitelist.parse("10.0.0.0/8").contains("fd00::1")

    def test_in_operator(self):
        whitelist = Whitelist.parse("10.0.0.0/8")
        assert "10.1.1.1" in whitelist
        assert "192.168.1.1" not in whitelist
        assert None not in whitelist
