"""WebSocket host for real-time circle recognition.

Browsers (or any client) stream pointer samples over a WebSocket and get
lifecycle transitions back as JSON messages. Each connection owns its own
recognizer; configuration is shared and can be changed over REST.

Features:
- Per-connection circle recognition
- REST API for status, configuration and reset
- Prometheus metrics endpoint

Usage:
    python -m circle_gesture.server
    # or
    uvicorn circle_gesture.server:app --host 0.0.0.0 --port 8765
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from circle_gesture import __version__
from circle_gesture.config import CircleConfig, ScreenSize
from circle_gesture.metrics import MetricsCollector
from circle_gesture.recognizer import CircleEvent, GestureRecognizer, Transition

logger = logging.getLogger("circle_gesture.server")

app = FastAPI(title="circle-gesture", version=__version__)


# --- State ---

class ServerState:
    def __init__(self):
        self.config = CircleConfig()
        self.screen = ScreenSize()
        self.metrics = MetricsCollector()
        self.recognizers: dict[WebSocket, GestureRecognizer] = {}
        self.total_performed = 0
        self.total_canceled = 0
        self.last_performed: Optional[dict] = None

    def new_recognizer(self) -> GestureRecognizer:
        recognizer = GestureRecognizer(self.config, self.screen, metrics=self.metrics)
        recognizer.on_transition(self._count)
        return recognizer

    def _count(self, event: CircleEvent):
        if event.transition is Transition.PERFORMED:
            self.total_performed += 1
            self.last_performed = _event_message(event)
        elif event.transition is Transition.CANCELED:
            self.total_canceled += 1

    def apply_config(self, config: CircleConfig, screen: ScreenSize):
        """Push new settings to every live recognizer."""
        self.config = config
        self.screen = screen
        for recognizer in self.recognizers.values():
            recognizer.configure(**config.to_dict())
            recognizer.set_screen_size(screen.width, screen.height)


state = ServerState()


def _event_message(event: CircleEvent) -> dict:
    msg = {
        "type": "transition",
        "transition": event.transition.value,
        "timestamp": event.timestamp,
    }
    if event.reason is not None:
        msg["reason"] = event.reason.value
    if event.transition is Transition.PERFORMED:
        msg["duration"] = round(event.duration, 4)
        msg["angle_sum"] = round(event.angle_sum, 1)
    return msg


def _settings_dict() -> dict:
    return {"circle": state.config.to_dict(), "screen": state.screen.to_dict()}


# --- API endpoints ---

class ConfigUpdate(BaseModel):
    idle_timeout: Optional[float] = None
    gesture_max_duration: Optional[float] = None
    circle_close_tolerance: Optional[float] = None
    max_delta_angle: Optional[float] = None
    screen_width: Optional[float] = None
    screen_height: Optional[float] = None


@app.get("/api/status")
async def api_status():
    return {
        "clients": len(state.recognizers),
        "total_performed": state.total_performed,
        "total_canceled": state.total_canceled,
        "last_performed": state.last_performed,
        "settings": _settings_dict(),
    }


@app.get("/api/config")
async def get_config():
    return _settings_dict()


@app.put("/api/config")
async def update_config(update: ConfigUpdate):
    changes = update.model_dump(exclude_none=True)
    screen_changes = {
        key: changes.pop(f"screen_{key}")
        for key in ("width", "height")
        if f"screen_{key}" in changes
    }
    try:
        config = state.config.replace(**changes)
        screen = ScreenSize.from_dict({**state.screen.to_dict(), **screen_changes})
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    state.apply_config(config, screen)
    logger.info("Configuration updated: %s, %s", config, screen)
    return _settings_dict()


@app.post("/api/reset")
async def reset_all():
    """Reset every live recognizer back to waiting."""
    for recognizer in state.recognizers.values():
        recognizer.reset()
    logger.info("Reset %d recognizer(s)", len(state.recognizers))
    return {"reset": len(state.recognizers)}


# --- Prometheus metrics ---

@app.get("/metrics")
async def metrics():
    state.metrics.set_connections(len(state.recognizers))
    return PlainTextResponse(
        state.metrics.render(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


# --- WebSocket: samples in, transitions out ---

async def _handle_message(ws: WebSocket, recognizer: GestureRecognizer, data: dict):
    kind = data.get("type")

    if kind == "sample":
        try:
            position = (float(data["x"]), float(data["y"]))
            timestamp = float(data["t"]) if data.get("t") is not None else time.monotonic()
        except (KeyError, TypeError, ValueError):
            await ws.send_json({"type": "error", "detail": "sample needs numeric x and y"})
            return
        events: list[CircleEvent] = []
        recognizer.on_transition(events.append)
        try:
            recognizer.on_sample(position, timestamp)
        finally:
            recognizer.remove_transition_listener(events.append)
        for event in events:
            await ws.send_json(_event_message(event))

    elif kind == "screen":
        try:
            recognizer.set_screen_size(float(data["width"]), float(data["height"]))
        except (KeyError, TypeError, ValueError) as e:
            await ws.send_json({"type": "error", "detail": f"invalid screen size: {e}"})

    elif kind == "reset":
        recognizer.reset()

    elif kind == "ping":
        await ws.send_json({"type": "pong", "server_time": time.time()})

    else:
        logger.warning("Unknown message type: %r", kind)
        await ws.send_json({"type": "error", "detail": f"unknown message type: {kind!r}"})


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    recognizer = state.new_recognizer()
    state.recognizers[ws] = recognizer
    logger.info("Client connected (%d total)", len(state.recognizers))

    try:
        await ws.send_json({"type": "connected", "config": _settings_dict()})

        while True:
            try:
                msg = await asyncio.wait_for(ws.receive_text(), timeout=30)
            except asyncio.TimeoutError:
                await ws.send_json({"type": "ping"})
                continue

            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                logger.warning("Malformed message: %.80s", msg)
                await ws.send_json({"type": "error", "detail": "invalid JSON"})
                continue
            if not isinstance(data, dict):
                await ws.send_json({"type": "error", "detail": "expected a JSON object"})
                continue

            await _handle_message(ws, recognizer, data)
    except WebSocketDisconnect:
        pass
    finally:
        state.recognizers.pop(ws, None)
        logger.info("Client disconnected (%d total)", len(state.recognizers))


# --- CLI entry point ---

def main():
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="circle-gesture WebSocket server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8765, help="Port")
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
