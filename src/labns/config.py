"""Configuration loading, validation and normalization."""
from __future__ import annotations

import functools
import ipaddress
import json
import logging
import re
from typing import Any

import yaml

from .errors import LoadError, ValidationError
from .records import (
    PERMITTED_RECORD_TYPES,
    RECORD_TYPE_MAP,
    Configuration,
    LocalDNSRecord,
    Nameserver,
    UpstreamNameservers,
)

__all__ = [
    "DEFAULT_NAMESERVER_PORT",
    "DEFAULT_TIMEOUT_MS",
    "PERMITTED_RECORD_TYPES",
    "RECORD_TYPE_MAP",
    "VALID_FQDN_REGEX",
    "dump_config",
    "is_valid_record_name",
    "is_valid_target",
    "is_valid_type",
    "load_config",
    "validate_nameserver",
]

logger = logging.getLogger(__name__)

DEFAULT_NAMESERVER_PORT = 53
DEFAULT_TIMEOUT_MS = 5000

_UINT16_MAX = 0xFFFF
_UINT32_MAX = 0xFFFFFFFF

# sub.domain.name. : two or more labels, each terminated by a dot.
_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
VALID_FQDN_REGEX = rf"\A(?:{_LABEL}\.)+{_LABEL}\.\Z"


def load_config(path: str) -> Configuration:
    """Load, validate and normalize the configuration document.

    The document is decoded, every local record is checked in order, then the
    primary and secondary nameservers. The first violation aborts the load.
    On success the upstream timeout and nameserver ports carry their
    defaults when they were omitted.

    Args:
        path: Path to the JSON configuration document (YAML when the
            path ends in .yaml or .yml).

    Returns:
        The validated configuration.

    Raises:
        LoadError: If the document cannot be read or decoded.
        ValidationError: On the first record or nameserver rule violation.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(path, exc) from exc

    if not text.strip():
        raise LoadError(path, "document is empty")

    try:
        data = _parse_document(path, text)
    except (ValueError, yaml.YAMLError) as exc:
        raise LoadError(path, exc) from exc

    try:
        config = _decode(data)
    except ValueError as exc:
        raise LoadError(path, exc) from exc

    for i, rec in enumerate(config.local_records):
        _validate_record(i, rec)

    upstream = config.upstream_nameservers
    validate_nameserver(upstream.primary, role="Primary")
    validate_nameserver(upstream.secondary, role="Secondary")
    if upstream.timeout_ms == 0:
        upstream.timeout_ms = DEFAULT_TIMEOUT_MS

    logger.info(
        "configuration loaded: %d local records, upstream timeout %d ms",
        len(config.local_records),
        upstream.timeout_ms,
    )
    return config


def validate_nameserver(ns: Nameserver, role: str | None = None) -> None:
    """Validate an upstream endpoint and default its port.

    At least one of `ipv4` and `ipv6` must be set, and each one that is set
    must be an IP literal of either family. On success a zero port becomes 53;
    calling again on a normalized endpoint changes nothing.

    Args:
        ns: Endpoint to check; its `port` may be updated in place.
        role: Optional label ("Primary", "Secondary") used in errors.

    Raises:
        ValidationError: If the endpoint has no usable address.
    """
    if not ns.ipv4 and not ns.ipv6:
        raise ValidationError("Address", "must provide one of IPv4 or IPv6", nameserver=role)
    if ns.ipv4 and _parse_ip(ns.ipv4) is None:
        raise ValidationError("IPv4", "is not a valid IP address", nameserver=role, value=ns.ipv4)
    if ns.ipv6 and _parse_ip(ns.ipv6) is None:
        raise ValidationError("IPv6", "is not a valid IP address", nameserver=role, value=ns.ipv6)
    if ns.port == 0:
        ns.port = DEFAULT_NAMESERVER_PORT
        logger.debug("nameserver %s: port defaulted to %d", role or "-", ns.port)


def is_valid_record_name(name: str) -> bool:
    return _matches_fqdn(name)


def is_valid_type(record_type: str) -> bool:
    return record_type in PERMITTED_RECORD_TYPES


def is_valid_target(record_type: str, target: str) -> bool:
    """Check a record target against its type.

    A needs an address that fits in 4 bytes (IPv4, or IPv4-mapped IPv6),
    AAAA needs an IPv6 literal. CNAME needs an FQDN with no two identical
    adjacent characters, which is only a rough approximation of a valid
    alias target. Every other type is rejected.
    """
    if record_type == "A":
        ip = _parse_ip(target)
        # Intentional: an IPv4-mapped literal (::ffff:a.b.c.d) holds a 4-byte
        # address, so it is accepted as an A target.
        if isinstance(ip, ipaddress.IPv6Address):
            return ip.ipv4_mapped is not None
        return ip is not None
    if record_type == "AAAA":
        return isinstance(_parse_ip(target), ipaddress.IPv6Address)
    if record_type == "CNAME":
        matched = _matches_fqdn(target)
        if any(a == b for a, b in zip(target, target[1:])):
            return False
        return matched
    return False


def dump_config(config: Configuration, fmt: str = "yaml") -> str:
    """Render a configuration back into the document shape.

    Args:
        config: Configuration to render.
        fmt: "yaml" or "json".

    Returns:
        The serialized document.
    """
    up = config.upstream_nameservers
    doc = {
        "LocalRecords": [
            {"Name": r.name, "Type": r.type, "TTL": r.ttl, "Target": r.target}
            for r in config.local_records
        ],
        "UpstreamNameservers": {
            "Primary": _nameserver_doc(up.primary),
            "Secondary": _nameserver_doc(up.secondary),
            "TimeoutMs": up.timeout_ms,
        },
    }
    if fmt == "json":
        return json.dumps(doc, indent=2) + "\n"
    if fmt != "yaml":
        raise ValueError(f"unsupported format: {fmt!r}")
    return yaml.safe_dump(doc, sort_keys=False)


def _validate_record(index: int, rec: LocalDNSRecord) -> None:
    if not is_valid_record_name(rec.name):
        raise ValidationError(
            "Name", "is invalid, should follow pattern domain.name.", index=index, value=rec.name
        )
    if not is_valid_type(rec.type):
        raise ValidationError(
            "Type",
            f"is invalid, must be one of {', '.join(PERMITTED_RECORD_TYPES)}",
            index=index,
            value=rec.type,
        )
    if rec.ttl == 0:
        raise ValidationError("TTL", "is invalid, must be greater than zero", index=index, value=rec.ttl)
    if not is_valid_target(rec.type, rec.target):
        raise ValidationError(
            "Target", "is invalid (check type and target format)", index=index, value=rec.target
        )
    logger.debug("record #%d ok: %s %s (qtype %d)", index, rec.name, rec.type, rec.qtype)


def _parse_document(path: str, text: str) -> Any:
    if path.lower().endswith((".yaml", ".yml")):
        return yaml.safe_load(text)
    return json.loads(text)


@functools.lru_cache(maxsize=None)
def _fqdn_pattern() -> re.Pattern[str] | None:
    try:
        return re.compile(VALID_FQDN_REGEX)
    except re.error as exc:
        logger.critical("domain name pattern failed to compile: %s", exc)
        return None


def _matches_fqdn(value: str) -> bool:
    pattern = _fqdn_pattern()
    if pattern is None:
        return False
    return pattern.match(value) is not None


def _parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    # Scoped literals ("fe80::1%eth0") are not plain addresses.
    if "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _nameserver_doc(ns: Nameserver) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    if ns.ipv4:
        doc["IPv4"] = ns.ipv4
    if ns.ipv6:
        doc["IPv6"] = ns.ipv6
    doc["Port"] = ns.port
    return doc


# Decoding. Keys match exactly first, then case-insensitively; unknown keys
# are ignored and missing or null values keep their zero value.


def _decode(data: Any) -> Configuration:
    root = _as_mapping(data, "document")
    raw_records = _lookup(root, "LocalRecords")
    if raw_records is None:
        raw_records = []
    if not isinstance(raw_records, list):
        raise ValueError(f"LocalRecords: expected array, got {type(raw_records).__name__}")

    records: list[LocalDNSRecord] = []
    for i, item in enumerate(raw_records):
        where = f"LocalRecords[{i}]"
        item = _as_mapping(item, where)
        records.append(
            LocalDNSRecord(
                name=_as_str(_lookup(item, "Name"), f"{where}.Name"),
                type=_as_str(_lookup(item, "Type"), f"{where}.Type"),
                ttl=_as_uint(_lookup(item, "TTL"), f"{where}.TTL", _UINT32_MAX),
                target=_as_str(_lookup(item, "Target"), f"{where}.Target"),
            )
        )

    up = _as_mapping(_lookup(root, "UpstreamNameservers"), "UpstreamNameservers")
    upstream = UpstreamNameservers(
        primary=_decode_nameserver(_lookup(up, "Primary"), "UpstreamNameservers.Primary"),
        secondary=_decode_nameserver(_lookup(up, "Secondary"), "UpstreamNameservers.Secondary"),
        timeout_ms=_as_uint(_lookup(up, "TimeoutMs"), "UpstreamNameservers.TimeoutMs", _UINT16_MAX),
    )
    return Configuration(local_records=records, upstream_nameservers=upstream)


def _decode_nameserver(data: Any, where: str) -> Nameserver:
    raw = _as_mapping(data, where)
    return Nameserver(
        ipv4=_as_str(_lookup(raw, "IPv4"), f"{where}.IPv4"),
        ipv6=_as_str(_lookup(raw, "IPv6"), f"{where}.IPv6"),
        port=_as_uint(_lookup(raw, "Port"), f"{where}.Port", _UINT16_MAX),
    )


def _lookup(data: dict[Any, Any], key: str) -> Any:
    if key in data:
        return data[key]
    folded = key.casefold()
    for k, v in data.items():
        if isinstance(k, str) and k.casefold() == folded:
            return v
    return None


def _as_mapping(value: Any, where: str) -> dict[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where}: expected object, got {type(value).__name__}")
    return value


def _as_str(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{where}: expected string, got {type(value).__name__}")
    return value


def _as_uint(value: Any, where: str, maximum: int) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{where}: expected unsigned integer, got {type(value).__name__}")
    if not 0 <= value <= maximum:
        raise ValueError(f"{where}: {value} out of range 0..{maximum}")
    return value
