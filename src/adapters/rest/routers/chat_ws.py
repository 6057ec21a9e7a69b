"""WebSocket endpoint driving the analyst/executor loop in real time."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from adapters.rest.dependencies import get_factory
from adapters.rest.schemas import ClientMessage
from domain.models import EventKind, SessionEvent

router = APIRouter()
logger = logging.getLogger(__name__)

ACK_MESSAGE = "🕵️ Analyst: examining the workspace and analyzing your request..."


@router.websocket("/ws")
async def websocket_chat(ws: WebSocket):
    """
    WebSocket chat endpoint.

    Every connection gets its own session id, thread ids and memory.

    Protocol:
      - Client sends: {"type": "chat", "message": "..."} or {"type": "file_tree"}
      - Server sends: {"type": "response" | "investigation", "content": ...},
        {"type": "tool_execution", "tool": ..., "result": ...},
        {"type": "error", "message": ...}, {"type": "file_tree", "tree": [...]}
      - Malformed frames produce an error event; the connection stays open.
    """
    factory = get_factory()
    await ws.accept()

    session = factory.create_session()
    file_tree = factory.create_file_tree_service()
    logger.info("WebSocket connected (session=%s)", session.ctx.session_id)

    async def send_event(event: SessionEvent) -> None:
        await ws.send_json(event.to_message())

    try:
        while True:
            raw = await ws.receive_text()
            try:
                message = ClientMessage.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.warning("Malformed frame (session=%s): %s", session.ctx.session_id, raw[:200])
                await send_event(SessionEvent(EventKind.ERROR, f"Invalid message: {exc}"))
                continue

            if message.type == "file_tree":
                await send_event(SessionEvent(EventKind.FILE_TREE, payload=file_tree.get_tree()))
                continue

            logger.info("WS session=%s | %s", session.ctx.session_id, message.message[:200])
            await send_event(SessionEvent(EventKind.RESPONSE, ACK_MESSAGE))
            reply = await session.handle(message.message, send_event)
            if reply.outcome is None and reply.text:
                await send_event(SessionEvent(EventKind.RESPONSE, reply.text))
            await send_event(SessionEvent(EventKind.FILE_TREE, payload=file_tree.get_tree()))
    except WebSocketDisconnect:
        logger.info("WebSocket closed (session=%s)", session.ctx.session_id)
    except Exception as exc:
        logger.exception("Unhandled error in WS handler (session=%s)", session.ctx.session_id)
        try:
            await send_event(SessionEvent(EventKind.ERROR, str(exc)))
        except Exception:
            pass
        await ws.close(code=1011)
