"""Error types for the bridge.

Everything raised while translating a single request or message derives from
``BridgeError`` so the handlers can log-and-drop in one place.
"""


class BridgeError(Exception):
    pass


class MalformedAddress(BridgeError):
    """Path or topic does not have the ``<room>/<command>`` shape."""

    def __init__(self, raw: str, parts=None):
        self.raw = raw
        self.parts = parts or []
        super().__init__(f"malformed address {raw!r} (parts = {self.parts!r})")


class UnroutableRoom(BridgeError):
    def __init__(self, room: str):
        self.room = room
        super().__init__(f"unknown room: {room!r}")


class SerializationFailure(BridgeError):
    pass


class TransportFailure(BridgeError):
    """MQTT connect/publish or outbound HTTP failed."""
