import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from logging_config import get_logger
from protocol import build_message

logger = get_logger(__name__)

# Receives an outbound ``{"event", "data"}`` message; must not block.
Sink = Callable[[Dict[str, Any]], None]


@dataclass
class Connection:
    """State owned by one live transport connection."""
    id: str
    sink: Sink = field(repr=False)
    room_id: Optional[str] = None
    user_name: Optional[str] = None
    pending_code: Optional[str] = field(default=None, repr=False)
    timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    @property
    def in_room(self) -> bool:
        return self.room_id is not None

    def enter(self, room_id: str, user_name: str) -> None:
        self.room_id = room_id
        self.user_name = user_name

    def exit(self) -> None:
        self.room_id = None
        self.user_name = None

    def send(self, event: str, data: Any = None) -> None:
        self.sink(build_message(event, data))


class ConnectionRegistry:
    """Live connections keyed by transport-assigned id."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def register(self, connection_id: str, sink: Sink) -> Connection:
        if connection_id in self._connections:
            raise ValueError(f"Connection {connection_id} already registered")
        connection = Connection(id=connection_id, sink=sink)
        self._connections[connection_id] = connection
        logger.debug(f"Registered connection {connection_id} (live: {len(self._connections)})")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def remove(self, connection_id: str) -> Optional[Connection]:
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.debug(f"Removed connection {connection_id} (live: {len(self._connections)})")
        return connection

    def in_room(self, room_id: str) -> List[Connection]:
        return [c for c in self._connections.values() if c.room_id == room_id]
