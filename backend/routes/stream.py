"""Streaming simulation over WebSocket."""

import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.simulation.messages import error_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/simulation")
async def simulation_socket(websocket: WebSocket):
    """One observer per connection; the session is torn down when it closes."""
    await websocket.accept()
    registry = websocket.app.state.registry
    client_id = str(uuid.uuid4())
    registry.attach(client_id, websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                try:
                    raw = (message.get("bytes") or b"").decode("utf-8")
                except UnicodeDecodeError:
                    logger.warning("Client %s sent an undecodable binary frame", client_id)
                    await websocket.send_json(error_event("Invalid JSON"))
                    continue
            await registry.handle_message(client_id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await registry.detach(client_id)
