import enum
import logging
import threading
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from .address import command_subscription
from .config import BridgeConfig
from .errors import TransportFailure

logger = logging.getLogger(__name__)

QOS_AT_MOST_ONCE = 0

MessageCallback = Callable[[mqtt.Client, object, mqtt.MQTTMessage], None]


class State(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"


class MqttBridgeClient:
    """Single paho client shared by the HTTP handlers (publish) and the command subscription.

    paho's own locking makes ``publish`` safe to call from any thread; the
    network loop thread reconnects on its own and ``_on_connect`` subscribes
    again after every (re)connect.
    """

    def __init__(self, config: BridgeConfig, on_command: Optional[MessageCallback] = None,
                 client: Optional[mqtt.Client] = None, connect_timeout: Optional[float] = None):
        self.config = config
        self.on_command = on_command
        self.subscription = command_subscription(config.topic_prefix)
        self.connect_timeout = connect_timeout if connect_timeout is not None else config.keepalive
        self._state = State.DISCONNECTED
        self._lock = threading.Lock()
        self._stopping = False

        # first CONNACK, waited on by start()
        self._connected = threading.Event()
        self._connack = None

        self._client = client or mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=mqtt.MQTTv5
        )
        self._client.enable_logger(logger)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        if on_command is not None:
            self._client.on_message = on_command

    @property
    def state(self) -> State:
        with self._lock:
            return self._state

    def _set_state(self, state: State):
        with self._lock:
            self._state = state

    def start(self):
        """Connect and start the network loop.

        Blocks until the broker answered the first CONNECT. A socket error, a
        refused CONNACK or no answer within ``connect_timeout`` raises
        ``TransportFailure``; later disconnects are retried by paho.
        """
        broker = f"{self.config.mqtt_host}:{self.config.mqtt_port}"
        self._stopping = False
        self._connected.clear()
        self._connack = None
        self._set_state(State.CONNECTING)
        try:
            self._client.connect(self.config.mqtt_host, self.config.mqtt_port, keepalive=self.config.keepalive)
        except (OSError, ValueError) as e:
            self._set_state(State.DISCONNECTED)
            raise TransportFailure(f"MQTT connection to {broker} failed: {e}") from e
        self._client.loop_start()

        if not self._connected.wait(self.connect_timeout):
            self.stop()
            raise TransportFailure(f"MQTT connection to {broker} failed: no CONNACK within {self.connect_timeout}s")
        if self._connack.is_failure:
            self.stop()
            raise TransportFailure(f"MQTT connection to {broker} refused: {self._connack}")

    def stop(self):
        self._stopping = True
        self._client.disconnect()
        self._client.loop_stop()
        self._set_state(State.DISCONNECTED)

    def publish(self, topic: str, payload: bytes, qos: int = QOS_AT_MOST_ONCE, retain: bool = True) -> bool:
        try:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
        except ValueError as e:
            raise TransportFailure(f"cannot publish to {topic!r}: {e}") from e
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"[mqtt] publish to {topic} failed: {mqtt.error_string(info.rc)}")
            return False
        return True

    # -------------------- paho callbacks --------------------

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if not self._connected.is_set():
            self._connack = reason_code
            # a refused first connect ends in start(), no reconnect loop
            self._stopping = reason_code.is_failure
            self._connected.set()
        if reason_code.is_failure:
            logger.error(f"[mqtt] connect refused: {reason_code}")
            return
        logger.info(f"[mqtt] connected rc={reason_code} host={self.config.mqtt_host}:{self.config.mqtt_port}")
        logger.info(f"[mqtt] subscribing to {self.subscription}")
        result, _mid = client.subscribe(self.subscription, qos=QOS_AT_MOST_ONCE)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"[mqtt] subscription failed: {mqtt.error_string(result)}")

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        failed = [rc for rc in reason_code_list if rc.is_failure]
        if failed:
            logger.error(f"[mqtt] subscription to {self.subscription} rejected: {failed[0]}")
            return
        self._set_state(State.SUBSCRIBED)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        if self._stopping:
            logger.info(f"[mqtt] disconnected rc={reason_code}")
            self._set_state(State.DISCONNECTED)
            return
        logger.warning(f"[mqtt] disconnected rc={reason_code}, reconnecting")
        self._set_state(State.CONNECTING)
