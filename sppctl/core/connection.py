"""Lifecycle of the single outbound SPP connection."""

from __future__ import annotations

import logging
import threading
from typing import BinaryIO

from sppctl.core.errors import RadioError
from sppctl.core.events import EventDispatcher
from sppctl.core.model import SPP_UUID, UNNAMED_DEVICE, ConnectedTo, ConnectionState, Endpoint
from sppctl.radios.base import Channel, Radio

LOGGER = logging.getLogger(__name__)

LINE_TERMINATOR = b"\r\n"


class ConnectionManager:
    """Owns at most one RFCOMM connection and relays CR LF framed lines over it.

    No public method raises. Setup failures leave the manager idle, send
    failures leave it untouched; both are only visible through the log and
    :meth:`is_connected`.
    """

    def __init__(
        self,
        radio: Radio,
        dispatcher: EventDispatcher,
        *,
        service_uuid: str = SPP_UUID,
        connect_timeout_s: float | None = None,
    ) -> None:
        self._radio = radio
        self._dispatcher = dispatcher
        self.service_uuid = service_uuid
        self.connect_timeout_s = connect_timeout_s
        self._lock = threading.RLock()
        self._state = ConnectionState.IDLE
        self._endpoint: Endpoint | None = None
        self._channel: Channel | None = None
        self._reader: BinaryIO | None = None
        self._writer: BinaryIO | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def endpoint(self) -> Endpoint | None:
        return self._endpoint

    def is_connected(self) -> bool:
        with self._lock:
            return self._channel is not None and self._writer is not None

    def connect(self, endpoint: Endpoint) -> None:
        with self._lock:
            self.disconnect()
            self._state = ConnectionState.CONNECTING

            try:
                device = self._radio.get_remote_device(endpoint.address)
            except (RadioError, OSError) as exc:
                LOGGER.error("Could not resolve %s: %s", endpoint.address, exc)
                self._abort()
                return

            display_name = device.name or endpoint.name or UNNAMED_DEVICE
            LOGGER.info("Bluetooth device selected: %s; %s", display_name, device.address)
            self._endpoint = endpoint
            self._dispatcher.post(ConnectedTo(name=display_name, address=device.address))

            try:
                if self._radio.is_discovering():
                    self._radio.cancel_discovery()
            except RadioError as exc:
                LOGGER.error("Could not cancel device discovery: %s", exc)
                self._abort()
                return

            LOGGER.info("Connecting socket to %s", display_name)
            try:
                self._channel = self._radio.open_channel(
                    device.address,
                    self.service_uuid,
                    timeout_s=self.connect_timeout_s,
                )
            except (RadioError, OSError) as exc:
                LOGGER.error("Could not open connection to %s: %s", device.address, exc)
                self._abort()
                return

            try:
                self._reader = self._channel.makefile("rb")
            except (OSError, ValueError) as exc:
                LOGGER.error("Could not create input stream: %s", exc)
                self._abort()
                return

            try:
                self._writer = self._channel.makefile("wb")
            except (OSError, ValueError) as exc:
                LOGGER.error("Could not create output stream: %s", exc)
                self._abort()
                return

            self._state = ConnectionState.CONNECTED
            self._send_sync(self._writer)

    def disconnect(self) -> None:
        with self._lock:
            if self._state is ConnectionState.IDLE and self._channel is None:
                return
            self._state = ConnectionState.DISCONNECTING
            self._release()
            self._state = ConnectionState.IDLE

    def send(self, message: str) -> None:
        with self._lock:
            writer = self._writer
            if writer is None:
                return
            try:
                writer.write(message.encode("utf-8") + LINE_TERMINATOR)
                writer.flush()
            except (OSError, ValueError) as exc:
                LOGGER.warning("Failed to send message: %s", exc)

    def _send_sync(self, writer: BinaryIO) -> None:
        try:
            sync_message = f"SYNC from {self._radio.local_name()} {self._radio.local_address()}"
            writer.write(sync_message.encode("utf-8") + LINE_TERMINATOR)
            writer.flush()
        except (RadioError, OSError, ValueError) as exc:
            LOGGER.warning("Error sending sync message: %s", exc)

    def _abort(self) -> None:
        self._release()
        self._state = ConnectionState.IDLE

    def _release(self) -> None:
        if self._writer is not None:
            try:
                self._writer.flush()
            except (OSError, ValueError) as exc:
                LOGGER.warning("Flushing output stream failed: %s", exc)
            try:
                self._writer.close()
            except (OSError, ValueError) as exc:
                LOGGER.warning("Closing output stream failed: %s", exc)
        self._writer = None

        if self._reader is not None:
            try:
                self._reader.close()
            except (OSError, ValueError) as exc:
                LOGGER.warning("Closing input stream failed: %s", exc)
        self._reader = None

        if self._channel is not None:
            try:
                self._channel.close()
            except OSError as exc:
                LOGGER.warning("Closing channel failed: %s", exc)
        self._channel = None

        self._endpoint = None
