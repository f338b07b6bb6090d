from __future__ import annotations

"""
World catalog: the nameable targets offered to the model for one decision cycle.

Rebuilt every cycle from the current perception + static locations; never mutated.
`snapshot` is a pure function so composed prompts are reproducible.
"""

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Set, Tuple

from .schemas import Entity

CatalogKind = Literal["visible", "location"]


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    description: str
    kind: CatalogKind = "visible"


@dataclass(frozen=True)
class WorldCatalog:
    entries: Tuple[CatalogEntry, ...] = ()

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    @property
    def visible_entries(self) -> List[CatalogEntry]:
        return [e for e in self.entries if e.kind == "visible"]

    @property
    def location_entries(self) -> List[CatalogEntry]:
        return [e for e in self.entries if e.kind == "location"]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)


def _collect(entities: Optional[Iterable[Entity]], kind: CatalogKind, seen: Set[str], out: List[CatalogEntry]) -> None:
    for entity in entities or ():
        if entity is None:
            continue
        name = (entity.id or "").strip()
        description = (entity.description or "").strip()
        if not name or not description:
            continue
        key = name.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(CatalogEntry(name=name, description=description, kind=kind))


def snapshot(visible: Optional[Iterable[Entity]], static_locations: Optional[Iterable[Entity]] = None) -> WorldCatalog:
    """
    Build a catalog: drop blank names/descriptions, dedupe by case-insensitive name
    (visible entities win over locations), then stable-sort by case-insensitive name.
    """
    seen: Set[str] = set()
    entries: List[CatalogEntry] = []
    _collect(visible, "visible", seen, entries)
    _collect(static_locations, "location", seen, entries)
    entries.sort(key=lambda e: e.name.casefold())
    return WorldCatalog(entries=tuple(entries))
