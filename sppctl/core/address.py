"""Hardware address helpers."""

from __future__ import annotations

import re

from sppctl.core.errors import InvalidAddressError

_ADDRESS_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){5}$", re.IGNORECASE)


def is_valid_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address.strip()))


def normalize_address(address: str) -> str:
    """Return ``address`` upper-cased, raising if it is not colon-hex."""
    stripped = address.strip()
    if not _ADDRESS_RE.match(stripped):
        raise InvalidAddressError(
            f"'{address}' is not a Bluetooth address (expected XX:XX:XX:XX:XX:XX)"
        )
    return stripped.upper()
