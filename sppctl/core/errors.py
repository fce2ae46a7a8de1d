"""Domain-specific errors for sppctl."""


class SppctlError(Exception):
    """Base error for sppctl."""


class ConfigError(SppctlError):
    """Raised when reading the configuration file fails."""


class ConfigValidationError(SppctlError):
    """Raised when the configuration file does not conform to schema or semantics."""


class InvalidAddressError(SppctlError):
    """Raised when a hardware address is not in six-group colon-hex form."""


class DeviceDiscoveryError(SppctlError):
    """Raised when Bluetooth device listing command(s) fail."""


class RadioError(SppctlError):
    """Base radio/platform error."""


class AdapterUnavailableError(RadioError):
    """Raised when the host exposes no Bluetooth controller."""


class ChannelOpenError(RadioError):
    """Raised on RFCOMM channel lookup or connect failures."""


class ChannelTimeoutError(ChannelOpenError):
    """Raised when an RFCOMM connect exceeds the configured timeout."""
