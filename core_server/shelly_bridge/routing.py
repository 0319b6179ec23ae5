"""
Room routing - room name -> relay device endpoint.

The endpoint is the device URL up to and including the query key; the command
is appended verbatim (URL-quoted), e.g. ``http://10.0.0.68/relay/0?turn=`` + ``on``.
A room mapped to ``None`` is known but has no device, and is ignored like an
unknown room.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional
from urllib.parse import quote

from .errors import UnroutableRoom

logger = logging.getLogger(__name__)

DEFAULT_ROUTES: Dict[str, Optional[str]] = {
    "bathroom": "http://10.0.0.68/relay/0?turn=",
    "kitchen": None,
}


@dataclass(frozen=True)
class RoutingEntry:
    room: str
    endpoint: Optional[str] = None

    @property
    def ignored(self) -> bool:
        return not self.endpoint


class RoomRouter:
    def __init__(self, table: Mapping[str, Optional[str]] = DEFAULT_ROUTES):
        self._table = MappingProxyType(dict(table))

    @property
    def table(self) -> Mapping[str, Optional[str]]:
        return self._table

    def route(self, room: str) -> RoutingEntry:
        return RoutingEntry(room, self._table.get(room))

    def resolve(self, room: str) -> str:
        entry = self.route(room)
        if entry.ignored:
            raise UnroutableRoom(room)
        return entry.endpoint

    @staticmethod
    def device_url(entry: RoutingEntry, command: str) -> str:
        if entry.ignored:
            raise UnroutableRoom(entry.room)
        return entry.endpoint + quote(command, safe="")


def sensor_room(room: str) -> str:
    """Sensor topics use the room name unchanged."""
    return room


def load_routes(path: Optional[str], defaults: Mapping[str, Optional[str]] = DEFAULT_ROUTES) -> Dict[str, Optional[str]]:
    """Merge ``{"routes": {...}}`` from ``path`` over ``defaults``.

    A missing file is not an error; a broken one is, since it is only read at
    startup.
    """
    routes = dict(defaults)
    if not path or not Path(path).exists():
        logger.info(f"[routing] no routing config at {path}, using {len(routes)} built-in routes")
        return routes

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    extra = data.get("routes") if isinstance(data, dict) else None
    if not isinstance(extra, dict):
        raise ValueError(f"{path}: expected an object with a 'routes' mapping")
    for room, endpoint in extra.items():
        if endpoint is not None and not isinstance(endpoint, str):
            raise ValueError(f"{path}: endpoint for room {room!r} must be a string or null")
        routes[room] = endpoint

    logger.info(f"[routing] loaded {len(extra)} routes from {path}")
    return routes
