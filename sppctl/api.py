"""Stable public API for building tooling on top of sppctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

import logging

from sppctl.core.adapter import AdapterStateTracker
from sppctl.core.config import load_settings
from sppctl.core.connection import ConnectionManager
from sppctl.core.errors import (
    AdapterUnavailableError,
    ChannelOpenError,
    ChannelTimeoutError,
    ConfigError,
    ConfigValidationError,
    DeviceDiscoveryError,
    InvalidAddressError,
    RadioError,
    SppctlError,
)
from sppctl.core.events import EventDispatcher
from sppctl.core.model import (
    SPP_UUID,
    AdapterDisabled,
    AdapterDisabling,
    AdapterEnabled,
    AdapterEnabling,
    ConnectedTo,
    ConnectionState,
    Endpoint,
    Event,
    EventSink,
    RadioState,
    RemoteDevice,
    Settings,
)
from sppctl.radios.base import Radio
from sppctl.radios.bluez import BluezRadio, runtime_warnings

__all__ = [
    "SppctlError",
    "AdapterUnavailableError",
    "ChannelOpenError",
    "ChannelTimeoutError",
    "ConfigError",
    "ConfigValidationError",
    "DeviceDiscoveryError",
    "InvalidAddressError",
    "RadioError",
    "SPP_UUID",
    "AdapterDisabled",
    "AdapterDisabling",
    "AdapterEnabled",
    "AdapterEnabling",
    "ConnectedTo",
    "ConnectionState",
    "Endpoint",
    "Event",
    "EventSink",
    "RadioState",
    "RemoteDevice",
    "Settings",
    "AdapterStateTracker",
    "ConnectionManager",
    "EventDispatcher",
    "BluezRadio",
    "Session",
]

LOGGER = logging.getLogger(__name__)


def _log_event(event: Event) -> None:
    LOGGER.info("Event: %r", event)


class Session:
    """Owns the adapter tracker, connection manager and event channel.

    One `Session` corresponds to one registered event sink. Build it once at
    the top of the application and hand ``session.adapter`` and
    ``session.connection`` to whatever needs them.
    """

    def __init__(
        self,
        sink: EventSink | None = None,
        *,
        radio: Radio | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.radio = radio or BluezRadio(
            fallback_channel=self.settings.channel,
            poll_interval_s=self.settings.poll_interval_s,
        )
        self.runtime_warnings = runtime_warnings()
        self.dispatcher = EventDispatcher(sink or _log_event)
        self.adapter = AdapterStateTracker(self.radio, self.dispatcher)
        self.connection = ConnectionManager(
            self.radio,
            self.dispatcher,
            service_uuid=self.settings.service_uuid,
            connect_timeout_s=self.settings.connect_timeout_s,
        )

    def initialize(self) -> bool:
        """Return False when the host has no Bluetooth controller."""
        return self.adapter.is_available()

    def known_devices(self) -> list[RemoteDevice]:
        known = getattr(self.radio, "known_devices", None)
        if known is None:
            return []
        return known()

    def close(self) -> None:
        self.connection.disconnect()
        self.adapter.unsubscribe()
        self.dispatcher.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
