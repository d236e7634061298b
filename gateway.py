from typing import Union

from connections import Connection
from errors import MessageParseError, NotFoundError
from logging_config import get_logger
from rooms import RoomManager
from schemas.messages import (
    CreateRoom,
    ErrorMessage,
    JoinRoom,
    LeaveRoom,
    RoomCreated,
    RoomJoined,
    RoomLeft,
    UpdateState,
    parse_client_message,
)

logger = get_logger(__name__)


class RelayGateway:
    """Turns inbound relay frames into RoomManager calls and replies to the sender.

    ``handle_frame`` is synchronous on purpose: a frame's state change and its
    fan-out complete before the event loop picks up the next frame.
    """

    def __init__(self, rooms: RoomManager):
        self.rooms = rooms

    def handle_frame(self, connection: Connection, raw: Union[str, bytes]) -> None:
        try:
            message = parse_client_message(raw)
        except MessageParseError as e:
            # Bad frames are dropped; the connection stays open
            logger.warning(f"Dropping malformed frame from connection {connection.connection_id}: {e.message}")
            return

        try:
            self.dispatch(connection, message)
        except NotFoundError as e:
            connection.send(ErrorMessage(message=e.message).model_dump())

    def dispatch(self, connection: Connection, message) -> None:
        if isinstance(message, CreateRoom):
            code = self.rooms.create_room(connection, message.playerId)
            connection.send(RoomCreated(roomCode=code).model_dump())
        elif isinstance(message, JoinRoom):
            state = self.rooms.join_room(connection, message.roomCode, message.playerId)
            connection.send(RoomJoined(roomCode=connection.room_code, state=state).model_dump())
        elif isinstance(message, UpdateState):
            self.rooms.update_state(connection, message)
        elif isinstance(message, LeaveRoom):
            code = self.rooms.leave_room(connection)
            if code is None:
                connection.send(ErrorMessage(message="Not in a room").model_dump())
            else:
                connection.send(RoomLeft(roomCode=code).model_dump())
        else:
            raise TypeError(f"Unhandled relay message {type(message).__name__}")
