import pytest

from errors import MessageParseError
from schemas.messages import (
    CreateRoom,
    JoinRoom,
    LeaveRoom,
    PlayerJoined,
    RoomJoined,
    UpdateState,
    parse_client_message,
)


def test_parse_create_room():
    message = parse_client_message('{"type": "createRoom", "playerId": "alice"}')
    assert isinstance(message, CreateRoom)
    assert message.playerId == "alice"

    message = parse_client_message('{"type": "createRoom"}')
    assert message.playerId is None


def test_parse_join_room():
    message = parse_client_message('{"type": "joinRoom", "roomCode": "ABC123"}')
    assert isinstance(message, JoinRoom)
    assert message.roomCode == "ABC123"
    assert message.playerId is None


def test_parse_leave_room_from_bytes():
    assert isinstance(parse_client_message(b'{"type": "leaveRoom"}'), LeaveRoom)


def test_update_state_keeps_payload_verbatim():
    raw = '{"type": "updateState", "playerPosition": {"x": 1, "y": 2, "z": 3}, "buildings": [{"id": 7}], "tick": 12}'
    message = parse_client_message(raw)
    assert isinstance(message, UpdateState)
    assert message.playerPosition.x == 1.0
    assert message.payload == {
        "type": "updateState",
        "playerPosition": {"x": 1, "y": 2, "z": 3},
        "buildings": [{"id": 7}],
        "tick": 12,
    }


def test_update_state_without_position():
    message = parse_client_message('{"type": "updateState", "chat": "hi"}')
    assert message.playerPosition is None
    assert message.payload == {"type": "updateState", "chat": "hi"}


@pytest.mark.parametrize("raw", [
    "not json",
    "",
    "[1, 2]",
    "42",
    '{"roomCode": "ABC123"}',
    '{"type": "teleport"}',
    '{"type": "joinRoom"}',
    '{"type": "joinRoom", "roomCode": 5}',
    '{"type": "createRoom", "playerId": 5}',
    '{"type": "updateState", "playerPosition": "north"}',
    '{"type": "updateState", "playerPosition": {"x": 1, "y": 2}}',
    '{"type": "updateState", "n": ' + '1' * 5000 + '}',
    '[' * 100000 + ']' * 100000,
])
def test_bad_frames_raise_parse_error(raw):
    with pytest.raises(MessageParseError):
        parse_client_message(raw)


def test_outbound_frames_carry_type():
    assert PlayerJoined(playerId="bob").model_dump() == {"type": "playerJoined", "playerId": "bob"}
    state = {"players": [], "buildings": [], "resources": []}
    assert RoomJoined(roomCode="ABC123", state=state).model_dump() == {
        "type": "roomJoined",
        "roomCode": "ABC123",
        "state": state,
    }
