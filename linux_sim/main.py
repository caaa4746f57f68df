import logging
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from linux_sim.config import settings
from linux_sim.routers import terminal
from linux_sim.websocket import manager

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="linux-sim",
    description="In-memory Linux filesystem simulator with a small shell",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(terminal.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, session_id: Optional[str] = None):
    """
    Push command_executed events to terminal displays.

    Pass ?session_id=... to follow a single session.
    """
    await manager.connect(websocket, session_id)
    try:
        while True:
            # Displays only listen; inbound text is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
        logger.debug("WebSocket disconnected")
