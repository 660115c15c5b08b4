"""
Observer gateway.

Responsibilities:
- One gateway per WebSocket connection
- Subscribe to the broadcaster on connect, unsubscribe on disconnect
- Tracks connection_status independently of the observer mailbox
- Produce the connection_established greeting
- Log (and otherwise ignore) inbound client messages

NOT responsible for:
- Socket I/O (routes own the WebSocket)
- Any cooking or appliance logic
"""

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

from kitchen.broadcaster import Observer
from kitchen.events import BroadcastType
from observability.logger import log_event
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from session.context import KitchenContext


class ObserverGateway:
    """
    One gateway == one push-channel observer.
    """

    def __init__(self, *, context: KitchenContext) -> None:
        self._ctx = context
        self.observer: Observer | None = None
        self.connection_status = ConnectionStatus.DOWN

    @property
    def observer_id(self) -> str | None:
        return self.observer.observer_id if self.observer else None

    def on_ws_connect(self) -> dict[str, Any]:
        """
        Called once the WebSocket is accepted.

        Returns:
            The connection_established message to send first.
        """
        self.observer = self._ctx.broadcaster.subscribe()
        self.connection_status = ConnectionStatus.UP

        log_event({
            "event_type": "WS_CONNECTED",
            "observer_id": self.observer.observer_id,
            "observers": self._ctx.broadcaster.observer_count,
        })

        greeting = self._ctx.broadcaster.event(
            BroadcastType.CONNECTION_ESTABLISHED,
            {
                "message": "Connected to Smart Kitchen API",
                "observerId": self.observer.observer_id,
            },
        )
        return greeting.to_wire()

    def on_json_message(self, payload: str) -> None:
        """Inbound messages carry no commands; they are logged and dropped."""
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "event_type": "JSON_DECODE_ERROR",
                "observer_id": self.observer_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return

        msg_type = data.get("type") if isinstance(data, dict) else None
        log_event({
            "event_type": "WS_MESSAGE_IGNORED",
            "observer_id": self.observer_id,
            "msg_type": msg_type,
        })

    async def next_outbound(self) -> dict[str, Any] | None:
        """
        Wait for the next broadcast destined to this connection.

        Returns None once the observer has been closed (disconnect,
        delivery failure, or process shutdown).
        """
        if self.observer is None:
            return None
        return await self.observer.next_message()

    def on_ws_disconnect(self, reason: str | None = None) -> None:
        """Idempotent."""
        if self.observer is None:
            log_event({
                "event_type": "WS_DISCONNECT_WITHOUT_OBSERVER",
                "reason": reason,
            })
            return

        if self.connection_status is ConnectionStatus.DOWN:
            return

        self._ctx.broadcaster.unsubscribe(self.observer)
        self.connection_status = ConnectionStatus.DOWN

        log_event({
            "event_type": "WS_DISCONNECTED",
            "observer_id": self.observer.observer_id,
            "reason": reason,
            "delivered": self.observer.delivered,
        })
