from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from datetime import datetime, timezone
import logging

from eyewitness.core.config import settings
from eyewitness.api.api import api_router
from eyewitness.services.broadcast import manager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Space situational awareness decision support: conjunction and space weather risk classification, suggested maneuvers and safe-mode windows, and a decision ledger.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.get("/")
def read_root():
    return {"message": "Welcome to Eyewitness API", "status": "active", "version": "0.1.0"}


@app.get("/health")
def health_check():
    return {"status": "ok", "websocket_clients": len(manager.active_connections)}


app.include_router(api_router, prefix=settings.API_V1_STR)


# ── WebSocket: alert / decision push ─────────────────────
@app.websocket("/ws/alerts")
async def websocket_alerts(websocket: WebSocket):
    """
    Pushes {"type", "data", "timestamp"} messages for new alerts, recorded
    decisions and executions. Messages sent by the client are ignored.
    """
    try:
        await manager.connect(websocket)
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected immediately")
        return

    try:
        await websocket.send_json({
            "type": "connection",
            "data": {"message": f"Connected to {settings.PROJECT_NAME}"},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        while True:
            message = await websocket.receive_text()
            logger.debug(f"Ignoring WebSocket client message: {message[:200]}")
    except WebSocketDisconnect:
        manager.disconnect(websocket)
