import asyncio
import json
import time

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from tasksheet.config import SSE_KEEPALIVE_SECONDS, SSE_POLL_SECONDS
import tasksheet.state as state

router = APIRouter()


def _change_event():
    payload = {"version": state.data_version, "last_updated": state.last_updated}
    return f"event: tasks\ndata: {json.dumps(payload)}\n\n"


async def task_change_stream(poll_seconds=SSE_POLL_SECONDS, keepalive_seconds=SSE_KEEPALIVE_SECONDS):
    """Yield an SSE ``tasks`` event each time imported files or tasks change."""
    client = {"needs_update": False, "last_version": state.data_version}
    state.connected_clients.append(client)
    last_send_time = time.monotonic()

    try:
        while True:
            if client["needs_update"] or client["last_version"] != state.data_version:
                client["needs_update"] = False
                client["last_version"] = state.data_version
                last_send_time = time.monotonic()
                yield _change_event()
            elif time.monotonic() - last_send_time >= keepalive_seconds:
                # Idle proxies drop silent connections.
                last_send_time = time.monotonic()
                yield ": keepalive\n\n"

            await asyncio.sleep(poll_seconds)
    finally:
        if client in state.connected_clients:
            state.connected_clients.remove(client)


@router.get("/events")
async def sse_events():
    return StreamingResponse(
        task_change_stream(max(SSE_POLL_SECONDS, 0.1), max(SSE_KEEPALIVE_SECONDS, 1)),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
