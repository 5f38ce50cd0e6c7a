import logging
from datetime import datetime, timezone
from typing import Any, List

from fastapi import WebSocket
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"WebSocket connected ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(f"WebSocket disconnected ({len(self.active_connections)} active)")

    async def broadcast(self, message_type: str, data: Any) -> int:
        """
        Send {"type", "data", "timestamp"} to every client.
        Clients that fail to receive are dropped. Returns the delivery count.
        """
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")
        message = {
            "type": message_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        sent = 0
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Dropping WebSocket client after send failure: {e}")
                self.disconnect(connection)
        logger.debug(f"Broadcast {message_type} to {sent} clients")
        return sent


manager = ConnectionManager()
