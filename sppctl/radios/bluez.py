"""BlueZ radio backend built on ``bluetoothctl``/``sdptool`` and RFCOMM sockets."""

from __future__ import annotations

import logging
import re
import socket
import subprocess
import threading
from collections.abc import Sequence

from sppctl.core.errors import (
    AdapterUnavailableError,
    ChannelOpenError,
    ChannelTimeoutError,
    DeviceDiscoveryError,
    RadioError,
)
from sppctl.core.model import RemoteDevice
from sppctl.radios.base import PowerListener

LOGGER = logging.getLogger(__name__)

_CONTROLLER_LINE_RE = re.compile(r"^Controller\s+([0-9A-F:]{17})\b", re.IGNORECASE)
_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})\s+(.+)$", re.IGNORECASE)
_PROPERTY_RE = re.compile(r"^\s*([A-Za-z]+):\s*(.*)$")
_SDP_CHANNEL_RE = re.compile(r"^\s*Channel:\s*(\d+)\s*$", re.MULTILINE)
_BASE_UUID_RE = re.compile(r"^0000([0-9a-f]{4})-0000-1000-8000-00805f9b34fb$", re.IGNORECASE)


class BluezRadio:
    def __init__(
        self,
        *,
        fallback_channel: int | None = None,
        poll_interval_s: float = 1.0,
    ) -> None:
        self.fallback_channel = fallback_channel
        self.poll_interval_s = poll_interval_s
        self._listeners: list[PowerListener] = []
        self._listeners_lock = threading.Lock()
        self._watch_stop: threading.Event | None = None
        self._watch_thread: threading.Thread | None = None

    def is_present(self) -> bool:
        try:
            self._show()
        except RadioError:
            return False
        return True

    def is_powered(self) -> bool:
        return _power_state(self._show()) == "on"

    def request_power_on(self) -> None:
        worker = threading.Thread(
            target=self._power_on,
            name="sppctl-power-on",
            daemon=True,
        )
        worker.start()

    def is_discovering(self) -> bool:
        return self._show().get("Discovering", "no") == "yes"

    def cancel_discovery(self) -> None:
        result = _run_command(["bluetoothctl", "scan", "off"])
        if result is None:
            raise RadioError("bluetoothctl is not installed")
        if result.returncode != 0:
            raise RadioError(f"bluetoothctl scan off failed: {(result.stderr or '').strip()}")

    def local_name(self) -> str:
        props = self._show()
        return props.get("Alias") or props.get("Name") or socket.gethostname()

    def local_address(self) -> str:
        return self._show()["Controller"]

    def get_remote_device(self, address: str) -> RemoteDevice:
        address = address.upper()
        result = _run_command(["bluetoothctl", "info", address])
        if result is None or result.returncode != 0:
            # BlueZ only knows paired or recently seen devices; an unknown
            # address is still a valid connect target.
            return RemoteDevice(address=address, name=None)
        props = _parse_properties(result.stdout)
        return RemoteDevice(address=address, name=props.get("Name") or props.get("Alias"))

    def known_devices(self) -> list[RemoteDevice]:
        result = _run_command(["bluetoothctl", "devices"])
        if result is None:
            raise DeviceDiscoveryError("bluetoothctl is not installed")
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise DeviceDiscoveryError(
                f"Bluetooth device listing failed. Ensure a working D-Bus/BlueZ session. Details: {stderr}"
            )

        seen: set[str] = set()
        devices: list[RemoteDevice] = []
        for line in result.stdout.splitlines():
            match = _DEVICE_LINE_RE.match(line.strip())
            if not match:
                continue
            mac, name = match.group(1).upper(), match.group(2).strip()
            if mac in seen:
                continue
            seen.add(mac)
            devices.append(RemoteDevice(address=mac, name=name))
        return devices

    def resolve_channel(self, address: str, service_uuid: str) -> int:
        """Look up the RFCOMM channel advertising ``service_uuid`` via SDP."""
        match = _BASE_UUID_RE.match(service_uuid)
        service = f"0x{match.group(1)}" if match else service_uuid
        result = _run_command(["sdptool", "search", "--bdaddr", address, service])
        if result is not None and result.returncode == 0:
            found = _SDP_CHANNEL_RE.search(result.stdout)
            if found:
                return int(found.group(1))
        if self.fallback_channel is not None:
            LOGGER.debug(
                "SDP lookup for %s on %s failed, using channel %d",
                service_uuid,
                address,
                self.fallback_channel,
            )
            return self.fallback_channel
        raise ChannelOpenError(
            f"No RFCOMM channel found for service {service_uuid} on {address}"
        )

    def open_channel(
        self,
        address: str,
        service_uuid: str,
        *,
        timeout_s: float | None = None,
    ) -> socket.socket:
        try:
            af_bluetooth = socket.AF_BLUETOOTH
            btproto_rfcomm = socket.BTPROTO_RFCOMM
        except AttributeError as exc:
            raise ChannelOpenError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            ) from exc

        channel = self.resolve_channel(address, service_uuid)
        try:
            bt_socket = socket.socket(af_bluetooth, socket.SOCK_STREAM, btproto_rfcomm)
        except OSError as exc:
            raise ChannelOpenError(f"Could not create RFCOMM socket: {exc}") from exc
        bt_socket.settimeout(timeout_s)
        try:
            bt_socket.connect((address, channel))
        except TimeoutError as exc:
            bt_socket.close()
            raise ChannelTimeoutError(
                f"RFCOMM connect timed out for {address} on channel {channel}"
            ) from exc
        except OSError as exc:
            bt_socket.close()
            raise ChannelOpenError(
                f"RFCOMM connect failed for {address} on channel {channel}: {exc}"
            ) from exc
        return bt_socket

    def add_power_listener(self, listener: PowerListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                return
            self._listeners.append(listener)
            if self._watch_thread is None:
                self._watch_stop = threading.Event()
                self._watch_thread = threading.Thread(
                    target=self._watch_power_state,
                    args=(self._watch_stop,),
                    name="sppctl-power-watch",
                    daemon=True,
                )
                self._watch_thread.start()

    def remove_power_listener(self, listener: PowerListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
            if self._listeners or self._watch_stop is None:
                return
            self._watch_stop.set()
            self._watch_stop = None
            self._watch_thread = None

    def _watch_power_state(self, stop: threading.Event) -> None:
        # The first successful poll only seeds the baseline; listeners hear
        # about transitions, not the state found at subscription time.
        previous: str | None = None
        while not stop.is_set():
            try:
                current = _power_state(self._show())
            except RadioError as exc:
                LOGGER.debug("Power state poll failed: %s", exc)
                current = None
            if current is not None and previous is not None and current != previous:
                self._notify(stop, current, previous)
            if current is not None:
                previous = current
            stop.wait(self.poll_interval_s)

    def _notify(self, stop: threading.Event, current: str, previous: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            with self._listeners_lock:
                if stop.is_set() or listener not in self._listeners:
                    continue
            listener(current, previous)

    def _power_on(self) -> None:
        result = _run_command(["bluetoothctl", "power", "on"])
        if result is None:
            LOGGER.error("Cannot power on adapter: bluetoothctl is not installed")
        elif result.returncode != 0:
            LOGGER.error("bluetoothctl power on failed: %s", (result.stderr or "").strip())

    def _show(self) -> dict[str, str]:
        result = _run_command(["bluetoothctl", "show"])
        if result is None:
            raise AdapterUnavailableError("bluetoothctl is not installed")
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise AdapterUnavailableError(f"No default Bluetooth controller available: {stderr}")
        props = _parse_properties(result.stdout)
        if "Controller" not in props:
            raise AdapterUnavailableError("No default Bluetooth controller available")
        return props


def _parse_properties(output: str) -> dict[str, str]:
    props: dict[str, str] = {}
    for line in output.splitlines():
        controller = _CONTROLLER_LINE_RE.match(line.strip())
        if controller:
            props["Controller"] = controller.group(1).upper()
            continue
        match = _PROPERTY_RE.match(line)
        if match and match.group(1) not in props:
            props[match.group(1)] = match.group(2).strip()
    return props


def _power_state(props: dict[str, str]) -> str:
    # PowerState exists since BlueZ 5.64; older daemons only report Powered.
    state = props.get("PowerState")
    if state:
        return state
    return "on" if props.get("Powered") == "yes" else "off"


def _run_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None


def runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        warnings.append(
            "Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM; connections will fail."
        )
    return tuple(warnings)
