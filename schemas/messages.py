import json
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from errors import MessageParseError


class Position(BaseModel):
    x: float
    y: float
    z: float


# Client -> server

class CreateRoom(BaseModel):
    type: Literal["createRoom"]
    playerId: Optional[str] = None


class JoinRoom(BaseModel):
    type: Literal["joinRoom"]
    roomCode: str
    playerId: Optional[str] = None


class LeaveRoom(BaseModel):
    type: Literal["leaveRoom"]


class UpdateState(BaseModel):
    """Position is merged into room state; every other field is relayed untouched."""

    model_config = ConfigDict(extra="allow")

    type: Literal["updateState"]
    playerPosition: Optional[Position] = None

    _payload: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def payload(self) -> Dict[str, Any]:
        """The frame exactly as the client sent it."""
        return self._payload or self.model_dump(exclude_unset=True)


ClientMessage = Annotated[
    Union[CreateRoom, JoinRoom, UpdateState, LeaveRoom],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: Union[str, bytes]) -> ClientMessage:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError, UnicodeDecodeError and oversized integer literals
        raise MessageParseError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MessageParseError("Frame must be a JSON object")

    try:
        message = _client_message_adapter.validate_python(data)
    except PydanticValidationError as e:
        errors = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise MessageParseError(f"Unrecognised {data.get('type')!r} frame: {errors}") from e

    if isinstance(message, UpdateState):
        message._payload = data
    return message


# Server -> client

class RoomCreated(BaseModel):
    type: Literal["roomCreated"] = "roomCreated"
    roomCode: str


class RoomJoined(BaseModel):
    type: Literal["roomJoined"] = "roomJoined"
    roomCode: str
    state: Dict[str, Any]


class RoomLeft(BaseModel):
    type: Literal["roomLeft"] = "roomLeft"
    roomCode: str


class PlayerJoined(BaseModel):
    type: Literal["playerJoined"] = "playerJoined"
    playerId: str


class PlayerLeft(BaseModel):
    type: Literal["playerLeft"] = "playerLeft"
    playerId: str


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str
