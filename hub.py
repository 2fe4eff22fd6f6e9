"""Room synchronization engine.

``CollabHub`` owns the room directory and the connection registry for one
server process. All of its handlers are synchronous and run to completion
inside a single event-loop turn, so state is never observed half-updated.
The only deferred work is the per-connection edit debounce timer.
"""

import asyncio
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

import event_names
from broadcast import BroadcastRouter
from coalescer import EditCoalescer
from connections import Connection, ConnectionRegistry, Sink
from constants import CODE_DEBOUNCE_SECONDS
from errors import InvalidRequest
from logging_config import get_logger
from protocol import ProtocolError, decode_message
from room_directory import RoomDirectory
from schemas.events import CodeChangePayload, ErrorPayload, JoinPayload, LanguageChangePayload, TypingPayload

logger = get_logger(__name__)


def _parse(model: type, data: Any) -> Optional[BaseModel]:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Dropping malformed {model.__name__}: {e.errors()}")
        return None


class CollabHub:

    def __init__(self, debounce_seconds: float = CODE_DEBOUNCE_SECONDS, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.directory = RoomDirectory()
        self.registry = ConnectionRegistry()
        self.router = BroadcastRouter(self.registry)
        self.coalescer = EditCoalescer(debounce_seconds, self._flush_code, loop=loop)
        self._handlers: Dict[str, Callable[[Connection, Any], None]] = {
            event_names.JOIN: self._on_join,
            event_names.LEAVE_ROOM: self._on_leave,
            event_names.CODE_CHANGE: self._on_code_change,
            event_names.TYPING: self._on_typing,
            event_names.LANGUAGE_CHANGE: self._on_language_change,
        }

    # ---------- connection lifecycle ----------

    def connect(self, connection_id: str, sink: Sink) -> Connection:
        connection = self.registry.register(connection_id, sink)
        logger.info(f"Connection {connection_id} opened")
        return connection

    def disconnect(self, connection_id: str) -> None:
        """Tear down a connection: leave its room and drop any unflushed edit."""
        connection = self.registry.get(connection_id)
        if connection is None:
            return
        try:
            self.leave(connection)
        except Exception as e:
            logger.error(f"Error leaving room on disconnect of {connection_id}: {e}", exc_info=True)
        finally:
            self.coalescer.cancel(connection)
            self.registry.remove(connection_id)
            logger.info(f"Connection {connection_id} closed")

    # ---------- membership ----------

    def join(self, connection: Connection, room_id: str, user_name: str) -> None:
        if connection.in_room:
            self.leave(connection)

        roster = self.directory.add_user_to_room(room_id, user_name)
        connection.enter(room_id, user_name)
        self.router.broadcast_to_room(room_id, event_names.USER_JOINED, roster)
        logger.info(f"Connection {connection.id} ({user_name}) joined room {room_id}: {len(roster)} participants")

    def leave(self, connection: Connection) -> None:
        if not connection.in_room:
            return
        room_id, user_name = connection.room_id, connection.user_name

        self.coalescer.cancel(connection)
        connection.exit()
        roster = self.directory.remove_user_from_room(room_id, user_name)
        logger.info(f"Connection {connection.id} ({user_name}) left room {room_id}")
        if roster is not None:
            self.router.broadcast_to_room(room_id, event_names.USER_JOINED, roster)

    # ---------- relays ----------

    def _flush_code(self, room_id: str, content: str, sender_id: str) -> None:
        self.router.broadcast_to_room_except(room_id, event_names.CODE_UPDATE, content, sender_id)

    # ---------- event handlers ----------

    def _on_join(self, connection: Connection, data: Any) -> None:
        try:
            payload = JoinPayload.model_validate(data)
        except ValidationError as e:
            errors = e.errors()
            loc = errors[0]["loc"] if errors else ()
            field = loc[0] if loc else "roomId"
            raise InvalidRequest(f"Invalid or missing {field} in join") from e
        self.join(connection, payload.room_id, payload.user_name)

    def _on_leave(self, connection: Connection, data: Any) -> None:
        self.leave(connection)

    def _on_code_change(self, connection: Connection, data: Any) -> None:
        payload = _parse(CodeChangePayload, data)
        if payload is None:
            return
        if connection.room_id != payload.room_id:
            logger.debug(f"Connection {connection.id} sent code for room {payload.room_id} it is not in")
            return
        self.coalescer.submit(connection, payload.room_id, payload.code)

    def _on_typing(self, connection: Connection, data: Any) -> None:
        payload = _parse(TypingPayload, data)
        if payload is None or not self._can_relay(connection, event_names.TYPING):
            return
        self.router.broadcast_to_room_except(payload.room_id, event_names.USER_TYPING, payload.user_name, connection.id)

    def _on_language_change(self, connection: Connection, data: Any) -> None:
        payload = _parse(LanguageChangePayload, data)
        if payload is None or not self._can_relay(connection, event_names.LANGUAGE_CHANGE):
            return
        self.router.broadcast_to_room(payload.room_id, event_names.LANGUAGE_UPDATE, payload.language)

    def _can_relay(self, connection: Connection, event: str) -> bool:
        # a connection that never joined is neither a broadcast source nor target
        if not connection.in_room:
            logger.debug(f"Dropping {event} from connection {connection.id}: not in a room")
            return False
        return True

    # ---------- dispatch ----------

    def handle_event(self, connection_id: str, event: str, data: Any = None) -> None:
        """Run one client event. Never raises; failures stay with this connection."""
        connection = self.registry.get(connection_id)
        if connection is None:
            logger.warning(f"Event {event} for unknown connection {connection_id}")
            return
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Unknown event {event!r} from connection {connection_id}")
            return
        try:
            handler(connection, data)
        except InvalidRequest as e:
            logger.warning(f"Rejected {event} from connection {connection_id}: {e.message}")
            try:
                connection.send(event_names.ERROR, ErrorPayload(message=e.message).model_dump())
            except Exception as send_error:
                logger.warning(f"Could not report error to connection {connection_id}: {send_error}")
        except Exception as e:
            logger.error(f"{event} handler error for connection {connection_id}: {e}", exc_info=True)

    def dispatch(self, connection_id: str, raw: str) -> None:
        """Decode a text frame and run it."""
        try:
            event, data = decode_message(raw)
        except ProtocolError as e:
            logger.warning(f"Dropping frame from connection {connection_id}: {e}")
            return
        self.handle_event(connection_id, event, data)
