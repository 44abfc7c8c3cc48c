"""
Listing Telemetry
=================
Streams structured JSON events from the listing agents to the browser's
generation progress panel over the /ws/telemetry WebSocket.

Each connected panel gets its own bounded queue. A panel that stops reading
loses events rather than holding memory; `dropped` counts how many.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

MAX_QUEUED_EVENTS = 500


class TelemetryEmitter:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(TelemetryEmitter, cls).__new__(cls)
            cls._instance.queues = []
            cls._instance.dropped = 0
        return cls._instance

    def subscribe(self) -> asyncio.Queue:
        """One queue per WebSocket client."""
        q = asyncio.Queue(maxsize=MAX_QUEUED_EVENTS)
        self.queues.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        if q in self.queues:
            self.queues.remove(q)

    @property
    def listeners(self) -> int:
        return len(self.queues)

    @staticmethod
    def build_event(agent: str, action: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "type": "listing_telemetry",
            "agent": agent,
            "action": action,
            "data": data or {},
            "timestamp": datetime.now().isoformat(),
        }

    def emit(self, agent: str, action: str, data: Optional[Dict[str, Any]] = None) -> None:
        if not self.queues:
            return

        msg = json.dumps(self.build_event(agent, action, data), ensure_ascii=False)
        full: List[asyncio.Queue] = []
        for q in self.queues:
            try:
                q.put_nowait(msg)
            except asyncio.QueueFull:
                full.append(q)
        if full:
            self.dropped += len(full)
            print(f"   ⚠️  Telemetry: {len(full)} listener(s) behind, dropped '{agent}.{action}'")


emitter = TelemetryEmitter()


def emit_telemetry(agent: str, action: str, data: Optional[Dict[str, Any]] = None) -> None:
    emitter.emit(agent, action, data)
