from __future__ import annotations

"""
Perception memory (non-LLM).

Turns noisy per-scan visibility into a stable set of "known" entities:
- `visible()`: what the last scan saw directly (FOV/occlusion resolved upstream),
  minus anything that has since decayed
- `remembered()`: visible + recently seen entities whose memory has not decayed yet

Scans (`observe`) and frame ticks (`tick`) run on independent cadences.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set

from .schemas import Entity, VisibilityRecord

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_DURATION_S = 5.0


class PerceptionMemory:
    def __init__(self, memory_duration: float = DEFAULT_MEMORY_DURATION_S):
        self.memory_duration = max(0.0, float(memory_duration))
        self._records: Dict[str, VisibilityRecord] = {}
        self._visible: List[Entity] = []
        # Private to this memory; readers get copies.
        self._lock = threading.Lock()

    def observe(self, visible_now: Optional[Iterable[Entity]]) -> None:
        seen: Dict[str, Entity] = {}
        for entity in visible_now or ():
            if entity is None or not entity.id:
                continue
            seen.setdefault(entity.id, entity)

        with self._lock:
            self._visible = list(seen.values())
            for entity_id, entity in seen.items():
                record = self._records.get(entity_id)
                if record is None:
                    self._records[entity_id] = VisibilityRecord(entity=entity, remaining_memory=self.memory_duration)
                else:
                    record.entity = entity
                    record.remaining_memory = self.memory_duration

    def tick(self, delta_time: float) -> None:
        if delta_time <= 0:
            return
        with self._lock:
            expired = []
            for entity_id, record in self._records.items():
                record.remaining_memory -= delta_time
                if record.remaining_memory <= 0:
                    expired.append(entity_id)
            for entity_id in expired:
                del self._records[entity_id]
            if expired:
                # What is in view is always a subset of what is remembered.
                self._visible = [e for e in self._visible if e.id in self._records]
        if expired:
            logger.debug("[Perception] forgot %d entities: %s", len(expired), ", ".join(expired))

    def visible(self) -> List[Entity]:
        with self._lock:
            return list(self._visible)

    def remembered(self) -> Set[Entity]:
        with self._lock:
            return {record.entity for record in self._records.values()}

    def records(self) -> List[VisibilityRecord]:
        with self._lock:
            return [VisibilityRecord(entity=r.entity, remaining_memory=r.remaining_memory) for r in self._records.values()]
