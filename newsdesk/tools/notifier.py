"""
Live notification delivery over WebSockets.

One owner may have several open sockets (tabs, devices). Delivery is
best-effort: `notify` reports whether any socket received the payload, and an
owner with no sockets is not an error.
"""

import logging
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionNotifier:
    """Registry of open notification sockets, keyed by owner id."""

    def __init__(self) -> None:
        self._connections: Dict[str, Set[WebSocket]] = {}

    def connect(self, owner_id: str, websocket: WebSocket) -> None:
        self._connections.setdefault(owner_id, set()).add(websocket)
        logger.info(f"[Notifier] {owner_id} connected ({len(self._connections[owner_id])} sockets)")

    def disconnect(self, owner_id: str, websocket: WebSocket) -> None:
        sockets = self._connections.get(owner_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._connections[owner_id]
        logger.info(f"[Notifier] {owner_id} disconnected")

    def connection_count(self, owner_id: str) -> int:
        return len(self._connections.get(owner_id, ()))

    async def notify(self, owner_id: str, payload: Dict[str, Any]) -> bool:
        """Send a payload to every socket the owner has open."""
        sockets = list(self._connections.get(owner_id, ()))
        if not sockets:
            logger.debug(f"[Notifier] No live connection for {owner_id}")
            return False

        delivered = False
        for websocket in sockets:
            try:
                await websocket.send_json(payload)
                delivered = True
            except (RuntimeError, OSError) as e:
                # Socket closed under us; drop it so the next notify skips it
                logger.warning(f"[Notifier] Send to {owner_id} failed: {e}")
                self.disconnect(owner_id, websocket)
        return delivered
