from typing import Any, Optional

from connections import ConnectionRegistry
from logging_config import get_logger

logger = get_logger(__name__)


class BroadcastRouter:
    """Fan-out of one event to the members of a room."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def broadcast_to_room(self, room_id: str, event: str, data: Any) -> int:
        return self._fan_out(room_id, event, data, exclude=None)

    def broadcast_to_room_except(self, room_id: str, event: str, data: Any, sender_id: str) -> int:
        return self._fan_out(room_id, event, data, exclude=sender_id)

    def _fan_out(self, room_id: str, event: str, data: Any, exclude: Optional[str]) -> int:
        delivered = 0
        for connection in self.registry.in_room(room_id):
            if connection.id == exclude:
                continue
            try:
                connection.send(event, data)
                delivered += 1
            except Exception as e:
                # one broken recipient must not starve the rest of the room
                logger.warning(f"Error sending {event} to connection {connection.id} in room {room_id}: {e}")
        logger.debug(f"Broadcast {event} to {delivered} connections in room {room_id}")
        return delivered
