from __future__ import annotations

"""
Proximity chat registry.

Routes spoken lines to nearby actors. The registry is created by whatever composes
the actors and injected into each controller; there is no global instance.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_PROXIMITY_RADIUS = 8.0

PositionFn = Callable[[], Optional[Sequence[float]]]


class ChatListener(Protocol):
    def receive_proximity_chat(self, speaker_name: str, message: str) -> None:
        ...


@dataclass
class _Registration:
    name: str
    listener: ChatListener
    position_fn: PositionFn


class ProximityChatRegistry:
    def __init__(self, proximity_radius: float = DEFAULT_PROXIMITY_RADIUS):
        self.proximity_radius = max(0.0, float(proximity_radius))
        self._agents: Dict[str, _Registration] = {}
        self._lock = threading.Lock()

    def register(self, name: str, listener: ChatListener, position_fn: PositionFn) -> None:
        if not name or listener is None:
            return
        with self._lock:
            if name in self._agents:
                logger.warning("[Chat] %s is already registered; replacing listener.", name)
            self._agents[name] = _Registration(name=name, listener=listener, position_fn=position_fn)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._agents.pop(name, None)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._agents)

    def broadcast(self, speaker_name: str, message: str, position: Optional[Sequence[float]]) -> int:
        """Deliver `message` to every other registered actor within range. Returns the delivery count."""
        if not message or not message.strip() or not speaker_name or not speaker_name.strip() or position is None:
            return 0

        origin = np.asarray(position, dtype=float)
        with self._lock:
            registrations = [r for r in self._agents.values() if r.name != speaker_name]

        delivered = 0
        radius_sq = self.proximity_radius * self.proximity_radius
        for reg in registrations:
            try:
                pos = reg.position_fn()
                if pos is None:
                    continue
                offset = np.asarray(pos, dtype=float) - origin
                if float(np.dot(offset, offset)) > radius_sq:
                    continue
                reg.listener.receive_proximity_chat(speaker_name, message.strip())
            except Exception as e:
                logger.warning("[Chat] could not deliver %s's line to %s: %s", speaker_name, reg.name, e)
                continue
            delivered += 1

        logger.debug("[Chat] %s -> %d listener(s): %s", speaker_name, delivered, message[:120])
        return delivered

    def broadcast_from(self, speaker_name: str, message: str) -> int:
        with self._lock:
            reg = self._agents.get(speaker_name)
        if reg is None:
            logger.debug("[Chat] %s is not registered; nothing broadcast.", speaker_name)
            return 0
        return self.broadcast(speaker_name, message, reg.position_fn())
