"""WebSocket transport for consultation chat rooms.

Frames are JSON objects ``{"event": <name>, "data": <payload>}``:

- ``join-consultation`` / ``leave-consultation`` with the consultation id,
  acknowledged to the caller as ``joined-consultation`` / ``left-consultation``
- ``send-message`` with ``{"consultationId", "message"}``, delivered to the
  other room members as ``receive-message``

Any client may join any consultation room; there is no membership check.
"""
import json
import logging
import uuid
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.room_broker import RoomBroker, consultation_room

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


class FrameError(ValueError):
    pass


def _consultation_id(data: Any) -> str:
    if isinstance(data, dict):
        data = data.get("consultationId")
    if data is None or isinstance(data, (dict, list)) or str(data) == "":
        raise FrameError("consultationId is required")
    return str(data)


async def _handle_frame(broker: RoomBroker, connection_id: str, websocket: WebSocket, frame: Any) -> None:
    if not isinstance(frame, dict) or "event" not in frame:
        raise FrameError("Frames must be objects with an 'event' field")

    event, data = frame["event"], frame.get("data")

    if event == "join-consultation":
        consultation_id = _consultation_id(data)
        await broker.join(connection_id, consultation_room(consultation_id))
        await websocket.send_json({"event": "joined-consultation", "data": consultation_id})
    elif event == "leave-consultation":
        consultation_id = _consultation_id(data)
        await broker.leave(connection_id, consultation_room(consultation_id))
        await websocket.send_json({"event": "left-consultation", "data": consultation_id})
    elif event == "send-message":
        if not isinstance(data, dict):
            raise FrameError("send-message requires {consultationId, message}")
        room_id = consultation_room(_consultation_id(data))
        logger.info(f"Message in {room_id} from {connection_id}")
        await broker.relay(room_id, connection_id, "receive-message", data.get("message"))
    else:
        raise FrameError(f"Unknown event: {event}")


@router.websocket("/ws")
async def consultation_socket(websocket: WebSocket):
    broker: RoomBroker = websocket.app.state.broker
    connection_id = uuid.uuid4().hex

    async def send(event: str, payload: Any) -> None:
        await websocket.send_json({"event": event, "data": payload})

    await websocket.accept()
    await broker.connect(connection_id, send)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            try:
                if raw is None:
                    raise FrameError("Frames must be JSON text")
                await _handle_frame(broker, connection_id, websocket, json.loads(raw))
            except (json.JSONDecodeError, FrameError) as e:
                await send("error", {"message": str(e)})
    except WebSocketDisconnect:
        pass
    finally:
        await broker.disconnect(connection_id)
