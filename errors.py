class RelayError(Exception):
    """Base class for errors surfaced to relay or registry clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    status_code = 400


class NotFoundError(RelayError):
    status_code = 404


class WorldNotFoundError(NotFoundError):
    def __init__(self, world_name: str):
        super().__init__("World not found")
        self.world_name = world_name


class RoomNotFoundError(NotFoundError):
    def __init__(self, room_code: str):
        super().__init__("Room not found")
        self.room_code = room_code


class PersistenceError(RelayError):
    status_code = 500


class MessageParseError(RelayError):
    """An inbound relay frame could not be decoded into a known command."""

    status_code = 400
