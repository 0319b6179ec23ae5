import pytest

from shelly_bridge import main as bridge_main
from shelly_bridge.errors import TransportFailure
from shelly_bridge.mqtt import MqttBridgeClient


@pytest.fixture
def serve(monkeypatch):
    """Replaces uvicorn.run; records the app it would have served."""
    served = []
    monkeypatch.setattr(bridge_main.uvicorn, "run", lambda app, **kwargs: served.append((app, kwargs)))
    return served


@pytest.fixture
def no_routes(tmp_path):
    return str(tmp_path / "missing.json")


def connect_ok(monkeypatch):
    calls = []
    monkeypatch.setattr(MqttBridgeClient, "start", lambda self: calls.append("start"))
    monkeypatch.setattr(MqttBridgeClient, "stop", lambda self: calls.append("stop"))
    return calls


def run_main(argv):
    with pytest.raises(SystemExit) as exc:
        bridge_main.main(argv)
    return exc.value.code


def test_failed_first_connect_exits(monkeypatch, serve, no_routes):
    def refuse(self):
        raise TransportFailure("MQTT connection to dr.lan:1883 refused: Not authorized")

    monkeypatch.setattr(MqttBridgeClient, "start", refuse)
    assert run_main(["--routes", no_routes]) == 1
    assert serve == []


def test_broken_routes_file_exits(monkeypatch, serve, tmp_path):
    calls = connect_ok(monkeypatch)
    path = tmp_path / "routes.json"
    path.write_text("{not json")
    assert run_main(["--routes", str(path)]) == 1
    assert calls == []
    assert serve == []


def test_invalid_listen_address_exits(monkeypatch, serve, no_routes):
    connect_ok(monkeypatch)
    assert run_main(["--listen", "8773", "--routes", no_routes]) == 1
    assert serve == []


@pytest.mark.parametrize("name,value", [
    ("KEEPALIVE", "sixty"),
    ("HTTP_TIMEOUT", "soon"),
    ("LOG_LEVEL", "LOUD"),
])
def test_invalid_environment_exits(monkeypatch, serve, no_routes, name, value):
    calls = connect_ok(monkeypatch)
    monkeypatch.setattr(bridge_main, name, value)
    assert run_main(["--routes", no_routes]) == 1
    assert calls == []
    assert serve == []


def test_serves_after_connect(monkeypatch, serve, no_routes):
    calls = connect_ok(monkeypatch)
    bridge_main.main(["--listen", "127.0.0.1:9000", "--routes", no_routes])
    assert calls == ["start", "stop"]
    assert len(serve) == 1
    assert serve[0][1]["host"] == "127.0.0.1"
    assert serve[0][1]["port"] == 9000
