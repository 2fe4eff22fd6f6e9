import time

import pytest
from fastapi.testclient import TestClient

from app import create_app


def join_msg(room_id, user_name):
    return {"event": "join", "data": {"roomId": room_id, "userName": user_name}}


def wait_for_status(client, url, status, attempts=100):
    response = client.get(url)
    for _ in range(attempts):
        if response.status_code == status:
            break
        time.sleep(0.01)
        response = client.get(url)
    return response


@pytest.fixture
def client(tmp_path):
    app = create_app(debounce_seconds=0.1, frontend_dist=str(tmp_path / "no-dist"))
    # one shared event loop for every socket opened by the test
    with TestClient(app) as test_client:
        yield test_client


class TestCollaborationSocket:

    def test_room_session_end_to_end(self, client):
        with client.websocket_connect("/ws") as x:
            x.send_json(join_msg("ABC123", "Alice"))
            assert x.receive_json() == {"event": "userJoined", "data": ["Alice"]}

            with client.websocket_connect("/ws") as y:
                y.send_json(join_msg("ABC123", "Bob"))
                for ws in (x, y):
                    message = ws.receive_json()
                    assert message["event"] == "userJoined"
                    assert set(message["data"]) == {"Alice", "Bob"}

                for code in ("a", "ab", "abc"):
                    x.send_json({"event": "codeChange", "data": {"roomId": "ABC123", "code": code}})
                assert y.receive_json() == {"event": "codeUpdate", "data": "abc"}

                x.send_json({"event": "languageChange", "data": {"roomId": "ABC123", "language": "python"}})
                # x got no codeUpdate of its own: the next thing it sees is the language
                assert x.receive_json() == {"event": "languageUpdate", "data": "python"}
                assert y.receive_json() == {"event": "languageUpdate", "data": "python"}

                y.send_json({"event": "typing", "data": {"roomId": "ABC123", "userName": "Bob"}})
                assert x.receive_json() == {"event": "userTyping", "data": "Bob"}

            assert x.receive_json() == {"event": "userJoined", "data": ["Alice"]}
            assert client.get("/rooms/ABC123").json()["participants"] == ["Alice"]

        assert wait_for_status(client, "/rooms/ABC123", 404).status_code == 404

        with client.websocket_connect("/ws") as z:
            z.send_json(join_msg("ABC123", "Carol"))
            assert z.receive_json() == {"event": "userJoined", "data": ["Carol"]}

    def test_invalid_join_gets_error(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json(join_msg("", "Bob"))
            assert ws.receive_json() == {
                "event": "error",
                "data": {"message": "Invalid or missing roomId in join"},
            }
            assert client.get("/rooms").json() == []

            ws.send_json(join_msg("ABC123", "Bob"))
            assert ws.receive_json() == {"event": "userJoined", "data": ["Bob"]}

    def test_garbage_frames_do_not_close_socket(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("definitely not json")
            ws.send_json(["join"])
            ws.send_json({"event": "nope"})
            ws.send_text('{"event": "join", "data": ' + "[" * 200000 + "]" * 200000 + "}")
            ws.send_bytes(b'{"event": "leaveRoom"}')
            ws.send_json(join_msg("r", "Alice"))
            assert ws.receive_json() == {"event": "userJoined", "data": ["Alice"]}

    def test_leave_room_event(self, client):
        with client.websocket_connect("/ws") as x, client.websocket_connect("/ws") as y:
            x.send_json(join_msg("r", "Alice"))
            x.receive_json()
            y.send_json(join_msg("r", "Bob"))
            x.receive_json()
            y.receive_json()

            y.send_json({"event": "leaveRoom"})
            assert x.receive_json() == {"event": "userJoined", "data": ["Alice"]}


class TestRoomsApi:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "rooms": 0, "connections": 0}

    def test_unknown_room_is_404(self, client):
        response = client.get("/rooms/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Room not found"

    def test_room_listing(self, client):
        with client.websocket_connect("/ws") as x, client.websocket_connect("/ws") as y:
            x.send_json(join_msg("one", "Alice"))
            x.receive_json()
            y.send_json(join_msg("two", "Bob"))
            y.receive_json()

            rooms = {room["room_id"]: room["participant_count"] for room in client.get("/rooms").json()}
            assert rooms == {"one": 1, "two": 1}

            health = client.get("/health").json()
            assert health["rooms"] == 2
            assert health["connections"] == 2

            details = client.get("/rooms/two").json()
            assert details == {"room_id": "two", "participants": ["Bob"], "participant_count": 1}


class TestFrontend:

    @pytest.fixture
    def dist(self, tmp_path):
        dist = tmp_path / "dist"
        (dist / "assets").mkdir(parents=True)
        (dist / "index.html").write_text("<html>editor</html>")
        (dist / "assets" / "app.js").write_text("console.log('hi')")
        return dist

    @pytest.fixture
    def spa_client(self, dist):
        with TestClient(create_app(frontend_dist=str(dist))) as test_client:
            yield test_client

    def test_serves_assets(self, spa_client):
        response = spa_client.get("/assets/app.js")
        assert response.status_code == 200
        assert "console.log" in response.text

    def test_client_routes_fall_back_to_index(self, spa_client):
        for path in ("/", "/room/ABC123"):
            response = spa_client.get(path)
            assert response.status_code == 200
            assert response.text == "<html>editor</html>"

    def test_missing_file_with_extension_is_404(self, spa_client):
        assert spa_client.get("/missing.css").status_code == 404

    def test_api_paths_are_not_shadowed(self, spa_client):
        assert spa_client.get("/rooms/nope").status_code == 404
        assert spa_client.get("/rooms").json() == []
        assert spa_client.get("/health").json()["status"] == "ok"
