import logging
from typing import Protocol

from pydantic import BaseModel

from .address import Category, sensor_topic
from .config import BridgeConfig
from .errors import SerializationFailure, TransportFailure
from .routing import sensor_room

logger = logging.getLogger(__name__)

QOS_AT_MOST_ONCE = 0


class DoorPayload(BaseModel):
    onoff: bool

    @classmethod
    def from_command(cls, command: str) -> "DoorPayload":
        # command == "off" means door opened, "on" means door closed.
        # TODO: flip to onoff = command == "on" once door topic consumers are migrated
        return cls(onoff=command == "off")


class MotionPayload(BaseModel):
    command: str

    @classmethod
    def from_command(cls, command: str) -> "MotionPayload":
        return cls(command=command)


PAYLOADS = {
    Category.DOOR: DoorPayload,
    Category.MOTION: MotionPayload,
}


def build_payload(category: Category, command: str) -> bytes:
    model = PAYLOADS.get(category)
    if model is None:
        raise SerializationFailure(f"no payload for category {category.value!r}")
    try:
        return model.from_command(command).model_dump_json().encode("utf-8")
    except ValueError as e:
        raise SerializationFailure(f"{category.value} payload for {command!r}: {e}") from e


class Publisher(Protocol):
    def publish(self, topic: str, payload: bytes, qos: int = 0, retain: bool = True) -> bool: ...


class SensorTranslator:
    """HTTP sensor notification -> retained MQTT state message."""

    def __init__(self, config: BridgeConfig, publisher: Publisher):
        self.config = config
        self.publisher = publisher

    def handle(self, category: Category, room: str, command: str) -> bool:
        logger.info(f"[http] {category.value} in room {room!r}, command {command!r}")

        payload = build_payload(category, command)
        topic = sensor_topic(self.config.topic_prefix, category, sensor_room(room))

        # fire-and-forget: the HTTP caller is never told about broker trouble
        try:
            ok = self.publisher.publish(topic, payload, qos=QOS_AT_MOST_ONCE, retain=True)
        except TransportFailure as e:
            logger.error(f"[mqtt] publish to {topic} failed: {e}")
            return False
        if not ok:
            logger.warning(f"[mqtt] publish to {topic} not accepted by client")
            return False
        logger.info(f"[mqtt] published to {topic}: {payload.decode('utf-8')}")
        return True
