from __future__ import annotations

from typer.testing import CliRunner

from sppctl import cli
from sppctl.core.model import AdapterEnabled, ConnectedTo, RemoteDevice, Settings


class FakeAdapter:
    def __init__(self, sink, *, enabled: bool = True) -> None:
        self._sink = sink
        self.enabled = enabled
        self.subscribed = False

    def is_enabled(self) -> bool:
        return self.enabled

    def request_enable(self) -> bool:
        if self.enabled:
            return False
        self.enabled = True
        if self.subscribed:
            self._sink(AdapterEnabled())
        return True

    def subscribe(self) -> None:
        self.subscribed = True


class FakeConnection:
    def __init__(self, sink, *, reachable: bool = True) -> None:
        self._sink = sink
        self.reachable = reachable
        self.connected = False
        self.endpoint = None
        self.sent: list[str] = []

    def connect(self, endpoint) -> None:
        self.endpoint = endpoint
        self._sink(ConnectedTo(name="Dev B", address=endpoint.address))
        self.connected = self.reachable

    def is_connected(self) -> bool:
        return self.connected

    def send(self, message: str) -> None:
        self.sent.append(message)


class FakeDispatcher:
    def wait_idle(self) -> None:
        pass


class FakeSession:
    instances: list[FakeSession] = []
    available = True
    enabled = True
    reachable = True

    def __init__(self, sink=None) -> None:
        self.settings = Settings(target="00:16:38:3A:3B:A8")
        self.runtime_warnings = ()
        self.adapter = FakeAdapter(sink, enabled=self.enabled)
        self.connection = FakeConnection(sink, reachable=self.reachable)
        self.dispatcher = FakeDispatcher()
        self.closed = False
        type(self).instances.append(self)

    def initialize(self) -> bool:
        return self.available

    def known_devices(self):
        return [
            RemoteDevice(address="00:16:38:3A:3B:A8", name="Dev B"),
            RemoteDevice(address="11:22:33:44:55:66", name=None),
        ]

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


runner = CliRunner()


def _session_cls(**overrides):
    return type("ConfiguredSession", (FakeSession,), {"instances": [], **overrides})


def test_status_command(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls())
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 0
    assert "Bluetooth: enabled" in result.stdout


def test_status_unavailable(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls(available=False))
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 1
    assert "Bluetooth: unavailable" in result.stdout


def test_enable_when_already_enabled(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls())
    result = runner.invoke(cli.app, ["enable"])
    assert result.exit_code == 0
    assert "Bluetooth already enabled" in result.stdout


def test_enable_wait_reports_event(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls(enabled=False))
    result = runner.invoke(cli.app, ["enable", "--wait", "--timeout", "1"])
    assert result.exit_code == 0
    assert "Requested Bluetooth power on" in result.stdout
    assert "Bluetooth enabled" in result.stdout


def test_devices_command(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls())
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "00:16:38:3A:3B:A8 Dev B" in result.stdout
    assert "11:22:33:44:55:66 <unknown-device>" in result.stdout


def test_send_command_uses_configured_target(monkeypatch):
    session_cls = _session_cls()
    monkeypatch.setattr(cli, "Session", session_cls)
    result = runner.invoke(cli.app, ["send", "A;B;C", "1;2;3"])
    assert result.exit_code == 0
    assert "Connected to Dev B (00:16:38:3A:3B:A8)" in result.stdout
    assert "Sent 2 line(s)" in result.stdout

    session = session_cls.instances[0]
    assert session.connection.sent == ["A;B;C", "1;2;3"]
    assert session.closed


def test_send_command_device_option(monkeypatch):
    session_cls = _session_cls()
    monkeypatch.setattr(cli, "Session", session_cls)
    result = runner.invoke(cli.app, ["send", "hello", "--device", "11:22:33:44:55:66"])
    assert result.exit_code == 0
    assert session_cls.instances[0].connection.endpoint.address == "11:22:33:44:55:66"


def test_send_command_invalid_address_is_clean(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls())
    result = runner.invoke(cli.app, ["send", "hello", "--device", "nope"])
    assert result.exit_code == 1
    assert "Error: 'nope' is not a Bluetooth address" in result.stderr
    assert "Traceback" not in result.stderr


def test_send_command_unreachable(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls(reachable=False))
    result = runner.invoke(cli.app, ["send", "hello"])
    assert result.exit_code == 1
    assert "Error: could not connect to 00:16:38:3A:3B:A8" in result.stderr


def test_send_command_adapter_disabled(monkeypatch):
    monkeypatch.setattr(cli, "Session", _session_cls(enabled=False))
    result = runner.invoke(cli.app, ["send", "hello"])
    assert result.exit_code == 1
    assert "Bluetooth is disabled" in result.stderr


def test_stream_command_relays_stdin(monkeypatch):
    session_cls = _session_cls()
    monkeypatch.setattr(cli, "Session", session_cls)
    result = runner.invoke(cli.app, ["stream"], input="0.1;9.8;0.0\r\n0.2;9.7;0.1\n")
    assert result.exit_code == 0
    assert session_cls.instances[0].connection.sent == ["0.1;9.8;0.0", "0.2;9.7;0.1"]
    assert "Sent 2 line(s)" in result.stderr


def test_runtime_warning_is_printed(monkeypatch):
    class WarnSession(FakeSession):
        def __init__(self, sink=None) -> None:
            super().__init__(sink)
            self.runtime_warnings = ("Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM",)

    monkeypatch.setattr(cli, "Session", WarnSession)
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 0
    assert "Warning: Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM" in result.stderr
