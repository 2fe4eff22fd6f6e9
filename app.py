import asyncio
import os
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from constants import CODE_DEBOUNCE_SECONDS, CORS_ORIGINS, FRONTEND_DIST, LOG_FILE, LOG_LEVEL, OUTBOX_MAX_MESSAGES
from hub import CollabHub
from logging_config import get_logger, setup_logging
from protocol import ProtocolError, encode_message
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

# Paths the single-page-app fallback must never shadow
RESERVED_PREFIXES = ("rooms", "ws", "health")


async def pump_outbox(websocket: WebSocket, outbox: "asyncio.Queue[Dict[str, Any]]", connection_id: str):
    """Drain a connection's queued events onto its websocket, in order."""
    while True:
        message = await outbox.get()
        try:
            await websocket.send_text(encode_message(message))
        except ProtocolError as e:
            logger.error(f"Could not encode {message.get('event')} for connection {connection_id}: {e}")
        except Exception as e:
            # socket is gone; the receive loop sees the disconnect and tears down
            logger.debug(f"Stopped writing to connection {connection_id}: {e}")
            return


def mount_frontend(app: FastAPI, dist: str) -> None:
    dist = os.path.abspath(dist)
    if not os.path.isdir(dist):
        logger.warning(f"Frontend dist folder not found at: {dist}")
        return
    index_html = os.path.join(dist, "index.html")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str):
        if full_path.split("/", 1)[0] in RESERVED_PREFIXES:
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = os.path.abspath(os.path.join(dist, full_path))
        if full_path and candidate.startswith(dist + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)
        if not os.path.splitext(full_path)[1] and os.path.isfile(index_html):
            return FileResponse(index_html)
        raise HTTPException(status_code=404, detail="Not Found")

    logger.info(f"Serving frontend from {dist}")


def create_app(debounce_seconds: Optional[float] = None, frontend_dist: Optional[str] = None) -> FastAPI:
    app = FastAPI(title="syncroom")
    # One hub per app; it lives as long as the server process
    app.state.hub = CollabHub(debounce_seconds=CODE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        hub: CollabHub = app.state.hub
        return HealthResponse(status="ok", rooms=len(hub.directory), connections=len(hub.registry))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Collaboration socket. Frames are ``{"event": ..., "data": ...}`` JSON objects."""
        hub: CollabHub = app.state.hub
        await websocket.accept()

        connection_id = str(uuid.uuid4())
        outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=OUTBOX_MAX_MESSAGES)
        hub.connect(connection_id, outbox.put_nowait)
        writer = asyncio.create_task(pump_outbox(websocket, outbox, connection_id))
        logger.info(f"WebSocket connection accepted: {connection_id}")

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
                text = message.get("text")
                if text is None:
                    logger.warning(f"Dropping non-text frame from connection {connection_id}")
                    continue
                hub.dispatch(connection_id, text)
        except WebSocketDisconnect as e:
            logger.info(f"WebSocket disconnected for connection {connection_id}, code: {e.code}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            hub.disconnect(connection_id)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    mount_frontend(app, FRONTEND_DIST if frontend_dist is None else frontend_dist)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
