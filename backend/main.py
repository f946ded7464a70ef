import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

import uvloop
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from audio import get_available_sinks
from config import SessionConfig
from controller import build_guided_session
from routine_store import RoutineIdStore, resolve_routine_id

# Install and use uvloop as the default event loop
uvloop.install()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

config = SessionConfig.from_env()
routine_store = RoutineIdStore(config.routine_store_path)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {
        "message": "Welcome to the Guided Stretch Session API",
        "audio_sink": config.audio_sink,
        "available_sinks": get_available_sinks(),
        "config": config.to_dict(),
    }


async def _drain(
    websocket: WebSocket,
    outbox: "asyncio.Queue[Optional[Dict[str, Any]]]",
    on_failure: Optional[Callable[[], None]] = None,
):
    """Single writer for the socket; None ends the loop. A failed send calls on_failure."""
    while True:
        message = await outbox.get()
        if message is None:
            return
        try:
            await websocket.send_json(message)
        except Exception as send_error:
            logger.warning("Failed to send %s message: %s", message.get("type"), send_error)
            if on_failure is not None:
                on_failure()
            return


@app.websocket("/ws/stretch")
async def stretch_session(websocket: WebSocket):
    await websocket.accept()
    requested = websocket.query_params.get("routineId")
    routine_id = resolve_routine_id(requested, routine_store)

    if not routine_id:
        logger.error("No routine id in the request or the routine store")
        await websocket.send_json({"type": "navigate", "to": config.home_path})
        await websocket.close()
        return

    logger.info("Starting guided session for routine %s", routine_id)
    outbox: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()
    machine, sink = build_guided_session(config, routine_id, outbox.put_nowait)
    # A dead socket ends the session so nothing piles up in the outbox.
    sender = asyncio.create_task(
        _drain(websocket, outbox, on_failure=lambda: machine.close("send failed"))
    )
    machine.start()

    try:
        while not machine.lifecycle.closed:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Received malformed data packet")
                continue
            if not isinstance(message, dict):
                logger.warning("Ignoring non-object message")
                continue

            kind = message.get("type")
            if kind == "pose":
                landmarks = message.get("landmarks")
                if landmarks is None:
                    landmarks = message.get("keypoints")
                machine.submit_landmarks(landmarks)
            elif sink.handle_client_message(message):
                continue
            elif kind == "state":
                outbox.put_nowait({"type": "state", **machine.snapshot()})
            else:
                logger.warning("Unknown message type: %s", kind)

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as websocket_error:
        logger.error("WebSocket connection error: %s", websocket_error)
    finally:
        machine.close()
        outbox.put_nowait(None)
        await sender
        logger.info("Client connection closed")
