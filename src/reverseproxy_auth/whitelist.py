"""Trusted reverse proxy address range."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass

from reverseproxy_auth.errors import ConfigError

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


@dataclass(frozen=True)
class Whitelist:
    """A compiled network range the immediate connection peer must fall in.

    This is a cursory check that the client did not bypass the reverse proxy
    and talk to the application directly. Deployments should rely on it as
    one layer alongside firewall rules, VLANs or similar network controls.

    Attributes:
        network: The allowed range.
        spec: The specification the range was compiled from.
    """

    network: IPNetwork
    spec: str

    @classmethod
    def parse(cls, spec: str) -> Whitelist:
        """Compile ``spec`` into a ``Whitelist``.

        Accepts a bare address, ``address/prefixlen`` or ``address/netmask``
        for IPv4 and IPv6. Host bits may be set. A zero-length prefix
        (``127.0.0.1/0``) admits only the given address.

        Raises:
            ConfigError: If ``spec`` is not a valid network range.
        """
        if not isinstance(spec, str):
            raise ConfigError(f"whitelist must be a string, got {type(spec).__name__}")
        text = spec.strip()
        if not text:
            raise ConfigError("whitelist must not be empty")
        try:
            network = ipaddress.ip_network(text, strict=False)
            if network.prefixlen == 0:
                network = ipaddress.ip_network(text.split("/", 1)[0].strip())
        except ValueError as exc:
            raise ConfigError(f"invalid whitelist {spec!r}: {exc}") from exc
        return cls(network=network, spec=text)

    def contains(self, address: str | None) -> bool:
        """Return True if ``address`` lies inside the range.

        Missing or unparseable addresses are never contained. IPv4-mapped
        IPv6 peers (``::ffff:127.0.0.1``) are matched as their IPv4 form.
        """
        if not address:
            return False
        try:
            ip: IPAddress = ipaddress.ip_address(address.strip())
        except ValueError:
            logger.debug("Unparseable peer address %r", address)
            return False
        if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
            ip = ip.ipv4_mapped
        return ip in self.network

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.contains(address)

    def __str__(self) -> str:
        return str(self.network)
