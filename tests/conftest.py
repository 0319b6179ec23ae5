import pytest

from shelly_bridge.config import BridgeConfig
from shelly_bridge.errors import TransportFailure

PREFIX = "test/shelly2mqtt/"


class FakePublisher:
    def __init__(self, ok=True, fail=False):
        self.ok = ok
        self.fail = fail
        self.published = []

    def publish(self, topic, payload, qos=0, retain=True):
        if self.fail:
            raise TransportFailure("broker unreachable")
        self.published.append((topic, payload, qos, retain))
        return self.ok


class FakeResponse:
    def __init__(self, status_code=200, reason="OK"):
        self.status_code = status_code
        self.reason = reason


class FakeSession:
    def __init__(self, status_code=200, exc=None):
        self.status_code = status_code
        self.exc = exc
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status_code, "OK" if self.status_code == 200 else "Error")

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return BridgeConfig(topic_prefix=PREFIX, http_timeout=2.0)


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def session():
    return FakeSession()
