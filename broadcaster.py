import json
from typing import TYPE_CHECKING, Dict

from logging_config import get_logger

if TYPE_CHECKING:
    from rooms import Room

logger = get_logger(__name__)


class Broadcaster:
    """Fans a message out to the members of a room.

    Delivery is best-effort: closed connections are skipped, nothing is
    retried and nothing is acknowledged. ``broadcast`` only enqueues, so a
    caller that mutates room state and broadcasts without awaiting in
    between gives every recipient the same per-room ordering.
    """

    def __init__(self, rooms: Dict[str, "Room"]):
        self._rooms = rooms

    def broadcast(self, room_code: str, message: dict, excluding=None) -> int:
        room = self._rooms.get(room_code)
        if room is None:
            logger.debug(f"Broadcast to unknown room {room_code} dropped")
            return 0

        text = json.dumps(message)
        delivered = 0
        for connection in list(room.members.values()):
            if connection is excluding or not connection.is_open:
                continue
            if connection.send(text):
                delivered += 1
        logger.debug(f"Broadcast {message.get('type', 'unknown')} to {delivered} connections in room {room_code}")
        return delivered
