import logging
from typing import Any, Dict

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

EVENTS = {
    "category:created",
    "category:updated",
    "category:deleted",
    "product:created",
    "product:updated",
    "product:deleted",
    "order:created",
    "order:updated",
    "settings:updated",
}


class ChangeNotifier:
    """
    Fan-out of ``{"event", "data"}`` messages to every connected live-update
    subscriber. Delivery is best effort: a subscriber whose channel is closed
    or fails on send is dropped, never retried.
    """

    def __init__(self):
        self.subscribers: Dict[int, WebSocket] = {}

    def add(self, websocket: WebSocket) -> int:
        handle = id(websocket)
        self.subscribers[handle] = websocket
        logger.debug("Subscriber %s connected (%d live)", handle, len(self.subscribers))
        return handle

    def remove(self, handle: int) -> None:
        if self.subscribers.pop(handle, None) is not None:
            logger.debug("Subscriber %s removed (%d live)", handle, len(self.subscribers))

    async def broadcast(self, event: str, data: Any) -> int:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        message = {"event": event, "data": jsonable_encoder(data)}

        delivered = 0
        for handle, ws in list(self.subscribers.items()):
            if ws.client_state != WebSocketState.CONNECTED:
                self.remove(handle)
                continue
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping subscriber %s after failed send: %s", handle, e)
                self.remove(handle)
        return delivered

    async def serve(self, websocket: WebSocket) -> None:
        """Accept a channel and keep it registered until the client goes away."""
        await websocket.accept()
        handle = self.add(websocket)
        try:
            while True:
                # Inbound frames of any kind are ignored; receiving only detects the close.
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.debug("Subscriber %s closed with code %s", handle, message.get("code"))
                    break
        finally:
            self.remove(handle)
