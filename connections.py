import asyncio
import json
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Union

from logging_config import get_logger

logger = get_logger(__name__)


class Connection:
    """One live relay WebSocket plus its room membership and identity.

    Outbound frames go through a FIFO outbox drained by a single writer task,
    so ``send`` never suspends and frames reach the socket in enqueue order.
    """

    def __init__(self, websocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.identity: Optional[str] = None
        self.room_code: Optional[str] = None
        self.connected_at = datetime.now().isoformat()
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"<Connection {self.connection_id} identity={self.identity!r} room={self.room_code!r}>"

    @property
    def is_open(self) -> bool:
        return not self._closed

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain_outbox())

    def send(self, message: Union[dict, str]) -> bool:
        """Queue a frame for delivery. Returns False if the connection is closed."""
        if self._closed:
            return False
        text = message if isinstance(message, str) else json.dumps(message)
        self._outbox.put_nowait(text)
        return True

    async def _drain_outbox(self) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await self.websocket.send_text(text)
            except Exception as e:
                # Socket went away underneath us; the receive loop does the cleanup
                logger.warning(f"Error sending to connection {self.connection_id}: {e}")
                self._closed = True
                return

    def close(self) -> None:
        self._closed = True
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
        self._writer = None


class ConnectionManager:
    """Tracks every open relay connection for one relay app."""

    def __init__(self, rooms):
        self.rooms = rooms
        self.connections: Dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self.connections)

    def register(self, websocket) -> Connection:
        connection = Connection(websocket)
        self.connections[connection.connection_id] = connection
        connection.start()
        logger.info(f"Connection {connection.connection_id} registered ({len(self.connections)} open)")
        return connection

    def unregister(self, connection: Connection) -> List[str]:
        """Drop a closed transport and clean up every room it was a member of."""
        self.connections.pop(connection.connection_id, None)
        left = self.rooms.leave_all(connection)
        connection.close()
        logger.info(
            f"Connection {connection.connection_id} unregistered, left rooms {left} ({len(self.connections)} open)"
        )
        return left
