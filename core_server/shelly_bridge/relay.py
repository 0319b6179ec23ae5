import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

import requests

from .address import parse_command_topic
from .config import BridgeConfig
from .errors import MalformedAddress
from .routing import RoomRouter

logger = logging.getLogger(__name__)

# handle() outcomes
SENT = "sent"
MALFORMED = "malformed"
IGNORED = "ignored"
HTTP_ERROR = "http_error"
TRANSPORT_ERROR = "transport_error"


class RelayCommandHandler:
    """MQTT ``<prefix>cmd/relay/<room>/<command>`` -> HTTP GET on the relay device.

    At-most-once: nothing is retried, a failed GET only produces a log line.
    Messages are handled one at a time on a worker thread so a slow device
    never blocks paho's network loop.
    """

    def __init__(self, config: BridgeConfig, router: RoomRouter, session: Optional[requests.Session] = None):
        self.config = config
        self.router = router
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="relay")

    def handle(self, topic: str, payload: bytes = b"") -> str:
        logger.info(f"[mqtt] {topic}: {payload!r}")
        try:
            address = parse_command_topic(self.config.topic_prefix, topic)
        except MalformedAddress as e:
            logger.warning(f"[relay] dropping message: {e}")
            return MALFORMED

        entry = self.router.route(address.room)
        if entry.ignored:
            if address.room in self.router.table:
                logger.info(f"[relay] room {address.room!r} has no device, dropping command {address.command!r}")
            else:
                logger.warning(f"[relay] unknown room: {address.room!r}, dropping command {address.command!r}")
            return IGNORED

        url = self.router.device_url(entry, address.command)
        try:
            resp = self.session.get(url, timeout=self.config.http_timeout)
        except requests.RequestException as e:
            logger.error(f"[relay] GET {url} failed: {e}")
            return TRANSPORT_ERROR

        if not 200 <= resp.status_code < 300:
            logger.warning(f"[relay] unexpected HTTP status from {url}: {resp.status_code} {resp.reason}")
            return HTTP_ERROR
        logger.info(f"[relay] {address.room} -> {address.command} ({resp.status_code})")
        return SENT

    def on_message(self, client: Any, userdata: Any, msg: Any) -> Future:
        """paho-mqtt message callback; queues the message for the worker."""
        return self._executor.submit(self.handle, msg.topic, msg.payload)

    def close(self):
        self._executor.shutdown(wait=True)
        self.session.close()
