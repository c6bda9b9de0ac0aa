"""
Real-time router.
A WebSocket channel per session, with a server-sent events fallback.
"""

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import StreamingResponse

from app.domain.models.base import ValidationError
from app.infrastructure.auth.dependencies import authenticate_connection
from app.infrastructure.realtime.broadcaster import PONG
from app.infrastructure.realtime.hub import RealtimeHub
from app.infrastructure.realtime.registry import RealtimeSession


logger = logging.getLogger(__name__)

router = APIRouter()


async def _pump(websocket: WebSocket, session: RealtimeSession) -> None:
    """Drain the session's queue into the socket."""
    try:
        while True:
            message = await session.next_message()
            await websocket.send_json(message)
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug(f"Writer for session {session.id} stopped: {e}")


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    """
    Persistent channel joined to the tenant room and the user's private room.

    The bearer token is read from the ``token`` query parameter or the
    Authorization header; connections without a valid one are refused.
    Send ``{"event": "ping"}`` to receive ``pong``.
    """
    try:
        caller = authenticate_connection(websocket)
    except ValidationError as e:
        logger.warning(f"Refused real-time connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub: RealtimeHub = websocket.app.state.realtime
    await websocket.accept()
    session = hub.open_session(caller)
    writer = asyncio.create_task(_pump(websocket, session))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.debug(f"Ignoring malformed message on session {session.id}")
                continue
            if isinstance(message, dict) and message.get("event") == "ping":
                hub.broadcaster.send(session, PONG)
    except WebSocketDisconnect:
        pass
    finally:
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        hub.close_session(session)


@router.get("/stream")
async def realtime_stream(request: Request):
    """
    Server-sent events fallback for clients that cannot hold a WebSocket.

    Emits the same events as the WebSocket channel plus ``stats_update``
    at a fixed interval. Authenticates like the WebSocket handshake.
    """
    try:
        caller = authenticate_connection(request)
    except ValidationError as e:
        logger.warning(f"Refused event stream: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    hub: RealtimeHub = request.app.state.realtime
    return StreamingResponse(
        hub.event_stream(caller, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
