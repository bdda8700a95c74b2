"""Integration tests for the /api/join WebSocket endpoint.

These drive the real Starlette app through the test client, covering the
transport layer (join validation, MessagePack framing, close codes) on top
of the room and session logic tested in isolation elsewhere.
"""

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from triples.server.app import create_app
from triples.server.settings import GameServerSettings
from triples.server.websocket import CLOSE_INVALID_REQUEST, validate_join_params
from triples.session.client import CLOSE_INVALID_MESSAGE
from triples.tests.helpers import join_url, recv_ws, send_ws
from triples.tests.mocks import RecordingScoreReporter


@pytest.fixture
def client():
    app = create_app(settings=GameServerSettings(), score_reporter=RecordingScoreReporter())
    with TestClient(app) as client:
        yield client


def _joined(ws) -> dict:
    """Read the join snapshot and presence event; return the snapshot."""
    full = recv_ws(ws)
    assert full["type"] == "full"
    assert recv_ws(ws)["type"] == "eventOnline"
    return full


class TestJoin:
    def test_join_receives_snapshot_then_presence(self, client):
        with client.websocket_connect(join_url(name="ann")) as ws:
            full = recv_ws(ws)
            online = recv_ws(ws)

        assert full["type"] == "full"
        assert full["active"] is False
        assert full["cards"] == []
        assert [(p["name"], p["present"]) for p in full["players"]] == [("ann", True)]
        assert online == {"type": "eventOnline", "name": "ann", "present": True}

    def test_start_deals_to_every_player(self, client):
        with (
            client.websocket_connect(join_url(name="ann")) as ann,
            client.websocket_connect(join_url(name="bob")) as bob,
        ):
            _joined(ann)
            assert recv_ws(ann) == {"type": "eventOnline", "name": "bob", "present": True}
            _joined(bob)

            send_ws(ann, {"type": "start"})

            for ws in (ann, bob):
                full = recv_ws(ws)
                deal = recv_ws(ws)
                assert full["type"] == "full"
                assert full["active"] is True
                assert full["deck_remaining"] == 81
                assert deal["type"] == "changeDeal"
                assert len(deal["cards"]) == 12

    def test_rooms_are_separate_per_game(self, client):
        with (
            client.websocket_connect(join_url(game="triples", room="r1", name="ann")) as ann,
            client.websocket_connect(join_url(game="quadruples", room="r1", name="bob")) as bob,
        ):
            _joined(ann)
            full = _joined(bob)

            assert [p["name"] for p in full["players"]] == ["bob"]

    def test_status_lists_connected_players(self, client):
        with client.websocket_connect(join_url(room="lobby", name="ann")) as ws:
            _joined(ws)

            response = client.get("/status")

        assert response.status_code == 200
        data = response.json()
        assert data["room_count"] == 1
        (room,) = data["rooms"]
        assert room["game"] == "triples"
        assert room["room_id"] == "lobby"
        assert room["players"] == ["ann"]
        assert room["active"] is False


class TestRejection:
    @pytest.mark.parametrize(
        ("game", "room", "name", "reason"),
        [
            ("chess", "r1", "ann", "unknown_game"),
            ("triples", "bad room!", "ann", "invalid_room"),
            ("triples", "r" * 129, "ann", "invalid_room"),
            ("triples", "r1", "   ", "invalid_name"),
            ("triples", "r1", "a" * 65, "invalid_name"),
        ],
    )
    def test_bad_join_params_are_rejected_before_accept(self, client, game, room, name, reason):
        with pytest.raises(WebSocketDisconnect) as exc_info, client.websocket_connect(join_url(game, room, name)):
            pass

        assert exc_info.value.code == CLOSE_INVALID_REQUEST
        assert validate_join_params(game, room, name) == reason

    def test_valid_params(self):
        assert validate_join_params("quadruplesmulti", "Room_1-a", "Ann") is None

    def test_undecodable_frame_closes_with_protocol_error(self, client):
        with client.websocket_connect(join_url()) as ws:
            _joined(ws)

            ws.send_bytes(b"\xc1")

            with pytest.raises(WebSocketDisconnect) as exc_info:
                recv_ws(ws)

        assert exc_info.value.code == CLOSE_INVALID_MESSAGE

    def test_text_frame_closes_with_protocol_error(self, client):
        with client.websocket_connect(join_url()) as ws:
            _joined(ws)

            ws.send_text("hello")

            with pytest.raises(WebSocketDisconnect) as exc_info:
                recv_ws(ws)

        assert exc_info.value.code == CLOSE_INVALID_MESSAGE

    def test_unknown_message_keeps_connection(self, client):
        with client.websocket_connect(join_url()) as ws:
            _joined(ws)

            send_ws(ws, {"type": "chat", "text": "hi"})
            send_ws(ws, {"type": "start"})

            assert recv_ws(ws)["type"] == "full"
            assert recv_ws(ws)["type"] == "changeDeal"
