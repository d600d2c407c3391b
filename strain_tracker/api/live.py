"""
WebSocket push of derived views.

The server sends the current views on connect and again after every change
to the session's sync store. The client may send JSON filter updates at any
time; each one triggers a fresh push. The socket is closed with 1008 once the
session signs out or is closed.
"""
import asyncio
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from strain_tracker.core.logging import logger
from strain_tracker.services.aggregation import FilterState


router = APIRouter(tags=["live"])


@router.websocket("/ws/live")
async def live_views(websocket: WebSocket, token: str = Query(...)):
    runtime = getattr(websocket.app.state, "runtime", None)
    session = runtime.sessions.get(token) if runtime is not None else None
    if session is None or session.identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    session.connections += 1
    filters = FilterState()
    changed = asyncio.Event()
    remove_listener = session.sync.add_listener(lambda kind: changed.set())

    async def push() -> None:
        while not session.closed and session.identity is not None:
            views = filters.derive(session.sync.reviews, session.sync.popular)
            await websocket.send_json(views.model_dump(mode="json", by_alias=True))
            await changed.wait()
            changed.clear()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)

    async def receive() -> None:
        while True:
            message = await websocket.receive_json()
            try:
                if not isinstance(message, dict):
                    raise ValueError("filter update must be a JSON object")
                filters.update(message)
            except ValueError as e:
                await websocket.send_json({"error": str(e)})
                continue
            session.touch()
            changed.set()

    tasks = [asyncio.create_task(push()), asyncio.create_task(receive())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Live view failed: {str(error)}", exc_info=error)
    finally:
        remove_listener()
        session.connections -= 1
        session.touch()
