"""Radio backend interfaces."""

from __future__ import annotations

from typing import BinaryIO, Callable, Protocol

from sppctl.core.model import RemoteDevice

PowerListener = Callable[[str, str | None], None]


class Channel(Protocol):
    def makefile(self, mode: str) -> BinaryIO:
        """Return a buffered binary stream over the channel ("rb" or "wb")."""

    def close(self) -> None:
        ...


class Radio(Protocol):
    def is_present(self) -> bool:
        """Return True when the host exposes a Bluetooth controller."""

    def is_powered(self) -> bool:
        ...

    def request_power_on(self) -> None:
        """Ask the controller to power on without waiting for the result."""

    def is_discovering(self) -> bool:
        ...

    def cancel_discovery(self) -> None:
        ...

    def local_name(self) -> str:
        ...

    def local_address(self) -> str:
        ...

    def get_remote_device(self, address: str) -> RemoteDevice:
        ...

    def open_channel(
        self,
        address: str,
        service_uuid: str,
        *,
        timeout_s: float | None = None,
    ) -> Channel:
        """Open a connected RFCOMM channel to ``service_uuid`` on ``address``."""

    def add_power_listener(self, listener: PowerListener) -> None:
        """Report ``(current, previous)`` power-state codes to ``listener``."""

    def remove_power_listener(self, listener: PowerListener) -> None:
        ...
