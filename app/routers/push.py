from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def push_channel(websocket: WebSocket):
    """
    Live stream of host transitions.

    Clients receive one JSON message per event and may send "ping" to
    check the connection. Binary frames are ignored.
    """
    hub = websocket.app.state.push_hub
    await websocket.accept()
    await hub.register(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text == "ping":
                await websocket.send_text("pong")
            elif text is None:
                logger.debug("Ignoring binary push client frame")
            else:
                logger.debug(f"Ignoring push client message: {text!r}")
    except WebSocketDisconnect:
        pass
    finally:
        await hub.unregister(websocket)
