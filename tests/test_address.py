import pytest

from shelly_bridge.address import (
    Category,
    TopicAddress,
    command_subscription,
    parse_command_topic,
    parse_sensor_path,
    sensor_topic,
    split_address,
)
from shelly_bridge.errors import MalformedAddress


@pytest.mark.parametrize("room,command", [
    ("bathroom", "off"),
    ("Living-Room", "ON"),
    ("küche", "toggle=1&x"),
    ("a b", "%41"),
])
def test_split_address_preserves_segments(room, command):
    assert split_address(f"/door/{room}/{command}", "/door/") == (room, command)


@pytest.mark.parametrize("path", [
    "/door/",
    "/door/bathroom",
    "/door/bathroom/",
    "/door//off",
    "/door/bathroom/off/",
    "/door/a/b/c",
])
def test_split_address_rejects_wrong_shape(path):
    with pytest.raises(MalformedAddress) as exc:
        split_address(path, "/door/")
    assert exc.value.raw == path


def test_parse_sensor_path():
    addr = parse_sensor_path(Category.MOTION, "/motion/kitchen/on", prefix="p/")
    assert addr == TopicAddress("p/", Category.MOTION, "kitchen", "on")
    assert addr.topic == "p/motion/kitchen"


def test_parse_command_topic():
    addr = parse_command_topic("p/", "p/cmd/relay/bathroom/on")
    assert (addr.room, addr.command) == ("bathroom", "on")
    assert addr.category is Category.RELAY_COMMAND
    assert addr.topic == "p/cmd/relay/bathroom/on"


def test_parse_command_topic_too_deep():
    with pytest.raises(MalformedAddress):
        parse_command_topic("p/", "p/cmd/relay/bathroom/on/now")


def test_topic_helpers():
    assert sensor_topic("p/", Category.DOOR, "hall") == "p/door/hall"
    assert command_subscription("p/") == "p/cmd/relay/#"
