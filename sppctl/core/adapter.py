"""Local adapter availability and power-state tracking."""

from __future__ import annotations

import logging
import threading

from sppctl.core.errors import RadioError
from sppctl.core.events import EventDispatcher
from sppctl.core.model import (
    AdapterDisabled,
    AdapterDisabling,
    AdapterEnabled,
    AdapterEnabling,
    Event,
    RadioState,
)
from sppctl.radios.base import Radio

LOGGER = logging.getLogger(__name__)

# BlueZ org.bluez.Adapter1.PowerState values.
_STATE_CODES: dict[str, RadioState] = {
    "off": RadioState.OFF,
    "off-enabling": RadioState.TURNING_ON,
    "on": RadioState.ON,
    "on-disabling": RadioState.TURNING_OFF,
}

_STATE_EVENTS: dict[RadioState, Event] = {
    RadioState.TURNING_ON: AdapterEnabling(),
    RadioState.ON: AdapterEnabled(),
    RadioState.TURNING_OFF: AdapterDisabling(),
    RadioState.OFF: AdapterDisabled(),
}


class AdapterStateTracker:
    def __init__(self, radio: Radio, dispatcher: EventDispatcher) -> None:
        self._radio = radio
        self._dispatcher = dispatcher
        self._lock = threading.RLock()
        self._subscribed = False
        self._state = RadioState.UNKNOWN
        self._available = radio.is_present()
        if not self._available:
            LOGGER.warning("No Bluetooth controller found on this host")

    @property
    def state(self) -> RadioState:
        return self._state

    def is_available(self) -> bool:
        return self._available

    def is_enabled(self) -> bool:
        with self._lock:
            if not self._available:
                return False
            try:
                return self._radio.is_powered()
            except RadioError as exc:
                LOGGER.warning("Could not read adapter power state: %s", exc)
                return False

    def request_enable(self) -> bool:
        """Ask the radio to power on.

        Returns False when the adapter is already enabled (or absent). The
        resulting state change is reported later through the event sink.
        """
        with self._lock:
            if not self._available:
                LOGGER.warning("Cannot enable Bluetooth: no controller present")
                return False
            if self.is_enabled():
                return False
            LOGGER.info("Requesting Bluetooth adapter power on")
            try:
                self._radio.request_power_on()
            except RadioError as exc:
                LOGGER.error("Adapter power-on request failed: %s", exc)
            return True

    def subscribe(self) -> None:
        with self._lock:
            if self._subscribed:
                return
            self._radio.add_power_listener(self.handle_broadcast)
            self._subscribed = True

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._subscribed:
                return
            self._radio.remove_power_listener(self.handle_broadcast)
            self._subscribed = False

    def handle_broadcast(self, code: str, previous: str | None = None) -> None:
        with self._lock:
            LOGGER.debug("Bluetooth state change received: %s --> %s", previous, code)
            state = _STATE_CODES.get(code)
            if state is None:
                return
            self._state = state
            self._dispatcher.post(_STATE_EVENTS[state])
