"""Tests for the consultation WebSocket."""


def join(ws, consultation_id):
    ws.send_json({"event": "join-consultation", "data": consultation_id})
    assert ws.receive_json() == {"event": "joined-consultation", "data": str(consultation_id)}


class TestConsultationSocket:

    def test_message_reaches_room_members_only(self, client):
        with client.websocket_connect("/ws") as a, \
                client.websocket_connect("/ws") as b, \
                client.websocket_connect("/ws") as c, \
                client.websocket_connect("/ws") as d:
            join(a, "consult-1")
            join(b, "consult-1")
            join(c, "consult-2")
            join(d, "consult-2")

            a.send_json({"event": "send-message", "data": {"consultationId": "consult-1", "message": {"text": "hello"}}})
            assert b.receive_json() == {"event": "receive-message", "data": {"text": "hello"}}

            # The first thing consult-2 sees is its own traffic.
            d.send_json({"event": "send-message", "data": {"consultationId": "consult-2", "message": "ping"}})
            assert c.receive_json() == {"event": "receive-message", "data": "ping"}

            # Nothing was echoed back to the sender; its next frame is the error reply.
            a.send_json({"event": "bogus"})
            assert a.receive_json()["event"] == "error"

    def test_leave_stops_delivery(self, client):
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            join(a, 7)
            join(b, 7)
            b.send_json({"event": "leave-consultation", "data": 7})
            assert b.receive_json() == {"event": "left-consultation", "data": "7"}

            a.send_json({"event": "send-message", "data": {"consultationId": 7, "message": "anyone?"}})
            a.send_json({"event": "bogus"})
            assert a.receive_json()["event"] == "error"
            b.send_json({"event": "bogus"})
            assert b.receive_json()["event"] == "error"

    def test_numeric_and_string_ids_share_a_room(self, client):
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            a.send_json({"event": "join-consultation", "data": 12})
            assert a.receive_json() == {"event": "joined-consultation", "data": "12"}
            join(b, "12")
            a.send_json({"event": "send-message", "data": {"consultationId": 12, "message": "hi"}})
            assert b.receive_json() == {"event": "receive-message", "data": "hi"}

    def test_malformed_frames_keep_connection_open(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            assert ws.receive_json()["event"] == "error"

            ws.send_json(["no", "event"])
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"event": "join-consultation"})
            assert ws.receive_json() == {"event": "error", "data": {"message": "consultationId is required"}}

            ws.send_json({"event": "send-message", "data": "just text"})
            assert ws.receive_json()["event"] == "error"

            ws.send_bytes(b"\x00\x01")
            assert ws.receive_json() == {"event": "error", "data": {"message": "Frames must be JSON text"}}

            join(ws, "still-alive")

    def test_disconnect_cleans_up_membership(self, client, app):
        with client.websocket_connect("/ws") as ws:
            join(ws, "short-lived")
            assert app.state.broker.members("consultation-short-lived")
        with client.websocket_connect("/ws") as probe:
            join(probe, "other")
        assert app.state.broker.members("consultation-short-lived") == frozenset()
