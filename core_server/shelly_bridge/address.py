from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .config import TOPIC_CMD_RELAY
from .errors import MalformedAddress


class Category(str, Enum):
    DOOR = "door"
    MOTION = "motion"
    RELAY_COMMAND = "relay-command"


SENSOR_CATEGORIES = (Category.DOOR, Category.MOTION)


@dataclass(frozen=True)
class TopicAddress:
    prefix: str
    category: Category
    room: str
    command: str

    @property
    def topic(self) -> str:
        if self.category is Category.RELAY_COMMAND:
            return f"{self.prefix}{TOPIC_CMD_RELAY}{self.room}/{self.command}"
        return sensor_topic(self.prefix, self.category, self.room)


def split_address(raw: str, prefix: str) -> Tuple[str, str]:
    """Strip ``prefix`` and split the rest into ``(room, command)``.

    Exactly two non-empty segments are accepted; anything else raises
    ``MalformedAddress``. Segments are returned as-is (no case folding).
    """
    rest = raw[len(prefix):] if raw.startswith(prefix) else raw
    parts = rest.split("/")
    if len(parts) != 2 or not all(parts):
        raise MalformedAddress(raw, parts)
    return parts[0], parts[1]


def parse_sensor_path(category: Category, path: str, prefix: str = "") -> TopicAddress:
    """Parse an HTTP path like ``/door/bathroom/off``."""
    room, command = split_address(path, f"/{category.value}/")
    return TopicAddress(prefix, category, room, command)


def parse_command_topic(prefix: str, topic: str) -> TopicAddress:
    """Parse ``<prefix>cmd/relay/<room>/<command>``."""
    room, command = split_address(topic, prefix + TOPIC_CMD_RELAY)
    return TopicAddress(prefix, Category.RELAY_COMMAND, room, command)


def sensor_topic(prefix: str, category: Category, room: str) -> str:
    return f"{prefix}{category.value}/{room}"


def command_subscription(prefix: str) -> str:
    return f"{prefix}{TOPIC_CMD_RELAY}#"
