"""Core data models shared by the adapter tracker, connection manager and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from sppctl.core.address import normalize_address

SPP_UUID = "00001101-0000-1000-8000-00805F9B34FB"
UNNAMED_DEVICE = "unnamed"


class RadioState(Enum):
    UNKNOWN = "unknown"
    OFF = "off"
    TURNING_ON = "turning-on"
    ON = "on"
    TURNING_OFF = "turning-off"


class ConnectionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


@dataclass(frozen=True)
class Endpoint:
    address: str
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))


@dataclass(frozen=True)
class RemoteDevice:
    address: str
    name: str | None = None


@dataclass(frozen=True)
class AdapterEnabling:
    pass


@dataclass(frozen=True)
class AdapterEnabled:
    pass


@dataclass(frozen=True)
class AdapterDisabling:
    pass


@dataclass(frozen=True)
class AdapterDisabled:
    pass


@dataclass(frozen=True)
class ConnectedTo:
    name: str
    address: str


Event = Union[AdapterEnabling, AdapterEnabled, AdapterDisabling, AdapterDisabled, ConnectedTo]
EventSink = Callable[[Event], None]


@dataclass(frozen=True)
class Settings:
    target: str | None = None
    service_uuid: str = SPP_UUID
    channel: int | None = None
    connect_timeout_s: float | None = None
    poll_interval_s: float = 1.0
