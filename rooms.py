import copy
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional

from broadcaster import Broadcaster
from connections import Connection
from constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from errors import RoomNotFoundError
from logging_config import get_logger
from schemas.messages import PlayerJoined, PlayerLeft, UpdateState

logger = get_logger(__name__)


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def generate_player_id(connection: Connection) -> str:
    return f"player_{connection.connection_id[:8]}"


class Room:
    def __init__(self, code: str):
        self.code = code
        self.members: Dict[str, Connection] = {}
        self.state = {"players": [], "buildings": [], "resources": []}
        self.created_at = datetime.now().isoformat()

    def __contains__(self, connection: Connection) -> bool:
        return connection.connection_id in self.members

    def snapshot(self) -> dict:
        return copy.deepcopy(self.state)

    def upsert_player(self, player_id: str, position: dict) -> None:
        for player in self.state["players"]:
            if player["id"] == player_id:
                player["position"] = position
                return
        self.state["players"].append({"id": player_id, "position": position})

    def remove_player(self, player_id: str) -> None:
        self.state["players"] = [p for p in self.state["players"] if p["id"] != player_id]

    def identities(self) -> set:
        return {c.identity for c in self.members.values()}


class RoomManager:
    """Owns the table of active rooms for one relay process.

    A room exists exactly while it has members: it is created with its first
    member and removed the moment the last one leaves. Nothing in here awaits,
    so each call is atomic with respect to other connections' frames.
    """

    def __init__(self, code_generator: Callable[[], str] = generate_room_code):
        self._rooms: Dict[str, Room] = {}
        self._generate_code = code_generator
        self.broadcaster = Broadcaster(self._rooms)

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_code: str) -> bool:
        return room_code in self._rooms

    @property
    def codes(self) -> List[str]:
        return list(self._rooms)

    def get(self, room_code: str) -> Optional[Room]:
        return self._rooms.get(room_code)

    def _fresh_code(self) -> str:
        while True:
            code = self._generate_code()
            if code not in self._rooms:
                return code
            logger.debug(f"Room code {code} already active, regenerating")

    def _assign_identity(self, connection: Connection, requested_id: Optional[str]) -> None:
        if requested_id:
            connection.identity = requested_id
        elif not connection.identity:
            connection.identity = generate_player_id(connection)

    def create_room(self, connection: Connection, requested_id: Optional[str] = None) -> str:
        if connection.room_code:
            self.leave_room(connection)

        code = self._fresh_code()
        room = Room(code)
        self._rooms[code] = room
        self._assign_identity(connection, requested_id)
        room.members[connection.connection_id] = connection
        connection.room_code = code
        logger.info(f"Room {code} created by {connection.identity} ({len(self._rooms)} active rooms)")
        return code

    def join_room(self, connection: Connection, room_code: str, requested_id: Optional[str] = None) -> dict:
        """Add ``connection`` to a room and return a snapshot of the room state."""
        code = (room_code or "").strip().upper()
        room = self._rooms.get(code)
        if room is None:
            logger.warning(f"Join failed: room {code!r} not found")
            raise RoomNotFoundError(code)

        if connection in room:
            self._assign_identity(connection, requested_id)
            logger.debug(f"{connection.identity} re-joined room {code} it is already in")
            return room.snapshot()

        if connection.room_code:
            self.leave_room(connection)

        self._assign_identity(connection, requested_id)
        room.members[connection.connection_id] = connection
        connection.room_code = code
        self.broadcaster.broadcast(code, PlayerJoined(playerId=connection.identity).model_dump(), excluding=connection)
        logger.info(f"{connection.identity} joined room {code} ({len(room.members)} members)")
        return room.snapshot()

    def leave_room(self, connection: Connection) -> Optional[str]:
        code = connection.room_code
        connection.room_code = None
        room = self._rooms.get(code) if code else None
        if room is None or connection not in room:
            return None
        self._remove_member(room, connection)
        return code

    def leave_all(self, connection: Connection) -> List[str]:
        """Remove ``connection`` from every room that still lists it."""
        left = [room for room in list(self._rooms.values()) if connection in room]
        for room in left:
            self._remove_member(room, connection)
        connection.room_code = None
        return [room.code for room in left]

    def _remove_member(self, room: Room, connection: Connection) -> None:
        del room.members[connection.connection_id]
        if connection.identity not in room.identities():
            room.remove_player(connection.identity)

        if not room.members:
            del self._rooms[room.code]
            logger.info(f"Room {room.code} is empty, deleted ({len(self._rooms)} active rooms)")
            return

        self.broadcaster.broadcast(room.code, PlayerLeft(playerId=connection.identity).model_dump(), excluding=connection)
        logger.info(f"{connection.identity} left room {room.code} ({len(room.members)} members)")

    def update_state(self, connection: Connection, update: UpdateState) -> bool:
        """Merge the sender's position, then relay the frame verbatim to its peers."""
        room = self._rooms.get(connection.room_code) if connection.room_code else None
        if room is None:
            logger.debug(f"Ignoring updateState from {connection.connection_id}: not in a room")
            return False

        if update.playerPosition is not None:
            room.upsert_player(connection.identity, dict(update.payload["playerPosition"]))
        self.broadcaster.broadcast(room.code, update.payload, excluding=connection)
        return True
