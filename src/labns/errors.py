"""Errors raised while loading the configuration."""
from __future__ import annotations


class ConfigError(Exception):
    """Base class for configuration failures."""


class LoadError(ConfigError):
    """The document could not be read or decoded.

    Attributes:
        path: Path of the configuration document.
        cause: Underlying exception or decode message.
    """

    def __init__(self, path: str, cause: BaseException | str) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"failed to load configuration {path}: {cause}")


class ValidationError(ConfigError):
    """A record or nameserver field violates its rule.

    Exactly one of `index` (local record position) and `nameserver`
    (upstream role) is set when raised from `load_config`; both stay None
    when a nameserver is validated standalone.

    Attributes:
        field: Offending field (Name, Type, TTL, Target, Address, IPv4, IPv6).
        reason: Human-readable description of the violated rule.
        index: Position of the local record, if any.
        nameserver: Upstream role ("Primary" or "Secondary"), if any.
        value: Offending value, if any.
    """

    def __init__(
        self,
        field: str,
        reason: str,
        *,
        index: int | None = None,
        nameserver: str | None = None,
        value: object = None,
    ) -> None:
        self.field = field
        self.reason = reason
        self.index = index
        self.nameserver = nameserver
        self.value = value
        super().__init__(self._render())

    @property
    def location(self) -> str:
        if self.index is not None:
            return f"LocalRecords[{self.index}].{self.field}"
        if self.nameserver is not None:
            return f"UpstreamNameservers.{self.nameserver}.{self.field}"
        return f"Nameserver.{self.field}"

    def _render(self) -> str:
        msg = f"{self.location} {self.reason}"
        if self.value is not None:
            msg += f": {self.value!r}"
        return msg
