import json
import logging
from typing import Any, Dict, List, Optional
from fastapi import WebSocket

from linux_sim.schemas.commands import CommandExecuted

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages terminal display WebSocket connections and broadcasts.

    A display either watches one session id or, when it gives none, every
    session. Session-scoped messages only reach the displays watching them.
    """

    def __init__(self):
        # Socket -> watched session id, None meaning all sessions
        self.active_connections: Dict[WebSocket, Optional[str]] = {}

    async def connect(self, websocket: WebSocket, session_id: Optional[str] = None):
        """Accept and store a new WebSocket connection"""
        await websocket.accept()
        self.active_connections[websocket] = session_id
        logger.debug(
            f"WebSocket connected watching {session_id or 'all sessions'} "
            f"({len(self.active_connections)} active)"
        )

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection"""
        self.active_connections.pop(websocket, None)

    def watchers(self, session_id: Optional[str]) -> List[WebSocket]:
        """Connections that should see messages about `session_id`"""
        if session_id is None:
            return list(self.active_connections)
        return [
            connection for connection, watched in self.active_connections.items()
            if watched is None or watched == session_id
        ]

    async def broadcast(self, message_type: str, data: Dict[str, Any], session_id: Optional[str] = None):
        """Send a typed message to every display watching `session_id`"""
        message = {"type": message_type, "data": data}
        message_json = json.dumps(message, default=str)

        disconnected = []
        for connection in self.watchers(session_id):
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.debug(f"Dropping WebSocket after failed send: {e}")
                disconnected.append(connection)

        for connection in disconnected:
            self.disconnect(connection)

    async def broadcast_command(self, event: CommandExecuted):
        """Tell the session's displays a command ran so they can refresh"""
        await self.broadcast("command_executed", event.model_dump(), session_id=event.session_id)


# Global connection manager instance
manager = ConnectionManager()
