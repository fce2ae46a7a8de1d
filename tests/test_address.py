import pytest

from sppctl.core.address import is_valid_address, normalize_address
from sppctl.core.errors import InvalidAddressError
from sppctl.core.model import Endpoint


def test_normalize_uppercases() -> None:
    assert normalize_address(" 00:16:38:3a:3b:a8 ") == "00:16:38:3A:3B:A8"


@pytest.mark.parametrize("address", ["", "00:16:38:3A:3B", "00-16-38-3A-3B-A8", "00:16:38:3A:3B:G8"])
def test_invalid_addresses(address: str) -> None:
    assert not is_valid_address(address)
    with pytest.raises(InvalidAddressError):
        normalize_address(address)


def test_endpoint_normalizes_and_validates() -> None:
    endpoint = Endpoint("00:16:38:3a:3b:a8", name="Dev B")
    assert endpoint.address == "00:16:38:3A:3B:A8"
    assert endpoint.name == "Dev B"
    assert endpoint == Endpoint("00:16:38:3A:3B:A8", name="Dev B")

    with pytest.raises(InvalidAddressError):
        Endpoint("not-a-mac")
