"""Data structures representing the service configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType

from dnslib import QTYPE

PERMITTED_RECORD_TYPES: tuple[str, ...] = ("A", "AAAA", "CNAME")
RECORD_TYPE_MAP = MappingProxyType({
    "CNAME": QTYPE.CNAME,
    "AAAA": QTYPE.AAAA,
    "A": QTYPE.A,
})


@dataclass(slots=True)
class LocalDNSRecord:
    """Single locally-answered DNS record.

    Attributes:
        name (str): Fully qualified domain name (must end with a dot).
        type (str): Record type (A, AAAA, CNAME).
        ttl (int): Time to live, in seconds.
        target (str): IP literal for A/AAAA, FQDN for CNAME.
    """

    name: str = ""
    type: str = ""
    ttl: int = 0
    target: str = ""

    @property
    def qtype(self) -> int | None:
        """Wire code of the record type, or None if the type is unsupported."""
        return RECORD_TYPE_MAP.get(self.type)


@dataclass(slots=True)
class Nameserver:
    """Upstream resolver endpoint.

    Attributes:
        ipv4 (str): IP literal, empty when absent.
        ipv6 (str): IP literal, empty when absent.
        port (int): UDP port, 0 until defaulted.
    """

    ipv4: str = ""
    ipv6: str = ""
    port: int = 0

    @property
    def addresses(self) -> list[str]:
        return [a for a in (self.ipv4, self.ipv6) if a]


@dataclass(slots=True)
class UpstreamNameservers:
    primary: Nameserver = field(default_factory=Nameserver)
    secondary: Nameserver = field(default_factory=Nameserver)
    timeout_ms: int = 0


@dataclass(slots=True)
class Configuration:
    """Validated configuration handed to the rest of the service.

    Callers treat the instance as read-only once `load_config` returns it.
    """

    local_records: list[LocalDNSRecord] = field(default_factory=list)
    upstream_nameservers: UpstreamNameservers = field(default_factory=UpstreamNameservers)
