"""WebSocket endpoint that breaking-news notifications are pushed to."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications/{owner_id}")
async def notifications(websocket: WebSocket, owner_id: str):
    notifier = websocket.app.state.notifier
    await websocket.accept()
    notifier.connect(owner_id, websocket)
    try:
        # Client messages are ignored; reading keeps the disconnect observable
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        notifier.disconnect(owner_id, websocket)
