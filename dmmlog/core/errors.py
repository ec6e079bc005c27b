"""Domain-specific errors for dmmlog."""

from __future__ import annotations

from dmmlog.core.model import DeviceError


class DmmlogError(Exception):
    """Base error for dmmlog."""


class SettingsError(DmmlogError):
    """Raised when resolved run settings are invalid or contradictory."""


class ConfigLoadError(SettingsError):
    """Raised when reading a configuration file fails."""


class ConfigValidationError(SettingsError):
    """Raised when a configuration file does not conform to schema."""


class TransportError(DmmlogError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on TCP connect or socket setup failures."""


class TransportIOError(TransportError):
    """Raised when sending or receiving a line fails."""


class TransportTimeoutError(TransportIOError):
    """Raised when a send or receive exceeds the transport timeout."""


class TransportDecodeError(TransportError):
    """Raised when a received line is not valid UTF-8."""


class ResponseParseError(DmmlogError):
    """Raised when a measurement response is not a number."""


class ProtocolError(DmmlogError):
    """Raised when an instrument response does not have the expected shape."""


class ConfigurationError(DmmlogError):
    """Raised when the instrument itself reports an error code.

    The wire worked, but the instrument rejected a command. The instrument's
    own code and text are kept verbatim.
    """

    def __init__(self, message: str, device_error: DeviceError) -> None:
        super().__init__(
            f"{message}, instrument returned error code {device_error.code}: {device_error.text}"
        )
        self.device_error = device_error

    @property
    def code(self) -> int:
        return self.device_error.code

    @property
    def text(self) -> str:
        return self.device_error.text
