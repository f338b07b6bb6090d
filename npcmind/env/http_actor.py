"""
HTTP bridge to a host engine that owns the actor's body.

The host exposes a tiny JSON API; this client implements every collaborator
interface the decision engine consumes:

  GET  /status      -> {"idle": bool, "position": [x, y, z]}
  GET  /perception  -> {"visible": [{"id", "description"}], "locations": [...]}
  POST /walk_to     {"target": str}                 -> {"accepted": bool}
  POST /speak       {"text": str, "duration": float} -> {"status": "success"}

Network failures are logged and mapped to conservative answers (not idle, not
accepted, nothing visible) so the decision loop simply waits for the next poll.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from npcmind.agent.decision.schemas import Entity

logger = logging.getLogger(__name__)


def _entities(items: Any) -> List[Entity]:
    out: List[Entity] = []
    if not isinstance(items, list):
        return out
    for item in items:
        if not isinstance(item, dict):
            continue
        entity_id = item.get("id") or item.get("name")
        if not entity_id:
            continue
        out.append(Entity(id=str(entity_id), description=str(item.get("description") or "")))
    return out


class HttpActorClient:
    """Interface to interact with the host engine server"""

    def __init__(self, base_url: str, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        logger.info(f"[INIT] HttpActorClient -> base_url={self.base_url}")

    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            resp = requests.get(f"{self.base_url}{path}", timeout=self.timeout)
            if resp.status_code == 200:
                return resp.json()
            logger.warning(f"GET {path} returned HTTP {resp.status_code}")
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to reach host ({path}): {e}")
        return None

    def _post(self, path: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            resp = requests.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
            if resp.status_code == 200:
                return resp.json()
            logger.warning(f"POST {path} returned HTTP {resp.status_code}")
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to reach host ({path}): {e}")
        return None

    # IdleProbe
    def is_idle(self) -> bool:
        data = self._get("/status")
        return bool(data and data.get("idle"))

    def position(self) -> Optional[List[float]]:
        data = self._get("/status")
        pos = data.get("position") if data else None
        if isinstance(pos, list) and pos:
            return [float(v) for v in pos]
        return None

    # NavigationSink
    def walk_to(self, target_name: str) -> bool:
        if not target_name or not target_name.strip():
            logger.warning("walk_to: target name was empty")
            return False
        data = self._post("/walk_to", {"target": target_name.strip()})
        accepted = bool(data and data.get("accepted"))
        if accepted:
            logger.info(f"Host accepted destination '{target_name}'")
        return accepted

    # SpeechSink
    def show(self, text: str, duration_hint: Optional[float] = None) -> None:
        payload: Dict[str, Any] = {"text": text}
        if duration_hint is not None and duration_hint > 0:
            payload["duration"] = float(duration_hint)
        self._post("/speak", payload)

    # PerceptionSource
    def visible_entities(self) -> List[Entity]:
        data = self._get("/perception")
        return _entities(data.get("visible")) if data else []

    def static_locations(self) -> List[Entity]:
        data = self._get("/perception")
        return _entities(data.get("locations")) if data else []
