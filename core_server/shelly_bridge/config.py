import os
import socket
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from urllib.parse import urlsplit

# ========= Env (flag defaults) =========
LISTEN_ADDRESS = os.getenv("LISTEN_ADDRESS", ":8773")        # HTTP API for Shelly buttons/sensors
MQTT_BROKER    = os.getenv("MQTT_BROKER", "tcp://dr.lan:1883")
MQTT_TOPIC     = os.getenv("MQTT_TOPIC", "github.com/stapelberg/shelly2mqtt/")
# numeric values are converted in BridgeConfig.from_values
KEEPALIVE      = os.getenv("KEEPALIVE", "60")
HTTP_TIMEOUT   = os.getenv("HTTP_TIMEOUT", "10")
ROUTING_CONFIG_PATH = os.getenv("ROUTING_CONFIG_PATH", "./routing_config.json")
LOG_LEVEL      = os.getenv("LOG_LEVEL", "INFO")

CLIENT_ID_BASE = "https://github.com/stapelberg/shelly2mqtt"

# MQTT topic layout, relative to the prefix
TOPIC_CMD_RELAY = "cmd/relay/"


def parse_broker(url: str) -> Tuple[str, int]:
    """Split ``tcp://host:port`` (scheme optional) into host and port."""
    if "://" not in url:
        url = "tcp://" + url
    parts = urlsplit(url)
    if parts.scheme not in ("tcp", "mqtt"):
        raise ValueError(f"unsupported broker scheme: {parts.scheme!r}")
    if not parts.hostname:
        raise ValueError(f"broker address without host: {url!r}")
    return parts.hostname, parts.port or 1883


def parse_listen(addr: str) -> Tuple[str, int]:
    """``:8773`` listens on all interfaces, ``127.0.0.1:8773`` on one."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    return host or "0.0.0.0", int(port)


def default_client_id() -> str:
    try:
        return f"{CLIENT_ID_BASE}@{socket.gethostname()}"
    except OSError:
        return CLIENT_ID_BASE


@dataclass(frozen=True)
class BridgeConfig:
    listen_host: str = "0.0.0.0"
    listen_port: int = 8773
    mqtt_host: str = "dr.lan"
    mqtt_port: int = 1883
    topic_prefix: str = "github.com/stapelberg/shelly2mqtt/"
    keepalive: int = 60
    http_timeout: float = 10.0
    routing_config_path: Optional[str] = None
    client_id: str = CLIENT_ID_BASE

    @property
    def command_topic_prefix(self) -> str:
        return self.topic_prefix + TOPIC_CMD_RELAY

    @classmethod
    def from_values(cls,
                    listen: str = LISTEN_ADDRESS,
                    broker: str = MQTT_BROKER,
                    topic_prefix: str = MQTT_TOPIC,
                    routing_config_path: Optional[str] = ROUTING_CONFIG_PATH,
                    keepalive: Union[int, str] = KEEPALIVE,
                    http_timeout: Union[float, str] = HTTP_TIMEOUT) -> "BridgeConfig":
        listen_host, listen_port = parse_listen(listen)
        mqtt_host, mqtt_port = parse_broker(broker)
        return cls(
            listen_host=listen_host,
            listen_port=listen_port,
            mqtt_host=mqtt_host,
            mqtt_port=mqtt_port,
            topic_prefix=topic_prefix,
            keepalive=int(keepalive),
            http_timeout=float(http_timeout),
            routing_config_path=routing_config_path,
            client_id=default_client_id(),
        )
