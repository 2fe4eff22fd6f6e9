from typing import Dict, List, Optional, Set

from logging_config import get_logger

logger = get_logger(__name__)


class RoomDirectory:
    """Process-wide map of room id -> participant display names.

    A room exists here only while it has at least one participant: it is
    created by the first ``add_user_to_room`` and deleted by the
    ``remove_user_from_room`` that empties it.
    """

    def __init__(self):
        self._rooms: Dict[str, Set[str]] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def add_user_to_room(self, room_id: str, user_name: str) -> List[str]:
        """Add a name to a room, creating the room if needed. Returns the roster."""
        users = self._rooms.get(room_id)
        if users is None:
            users = self._rooms[room_id] = set()
            logger.info(f"Room {room_id} created")
        if user_name in users:
            logger.debug(f"User {user_name} already present in room {room_id}")
        users.add(user_name)
        return list(users)

    def remove_user_from_room(self, room_id: str, user_name: str) -> Optional[List[str]]:
        """Remove a name from a room.

        Returns the remaining roster, or None when the room no longer exists
        (either it was unknown or this removal emptied and deleted it).
        """
        users = self._rooms.get(room_id)
        if users is None:
            logger.debug(f"Remove from unknown room {room_id} ignored")
            return None
        users.discard(user_name)
        if not users:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} is empty, deleted")
            return None
        return list(users)

    def get_users_in_room(self, room_id: str) -> List[str]:
        return list(self._rooms.get(room_id, ()))

    def room_ids(self) -> List[str]:
        return list(self._rooms)
