from __future__ import annotations

"""
Collaborator interfaces consumed by the decision engine.

These are implemented by the host (game engine bridge, HTTP host, test fakes);
the engine only ever calls them.
"""

from typing import Iterable, Optional, Protocol

from .schemas import DecisionRequest, Entity, ModelResponse


class ModelClient(Protocol):
    def send(self, request: DecisionRequest) -> ModelResponse:
        """Raises ModelClientError (or MissingCredentialsError) on failure."""
        ...


class NavigationSink(Protocol):
    def walk_to(self, target_name: str) -> bool:
        """Begin moving toward `target_name`; False when it cannot be resolved."""
        ...


class SpeechSink(Protocol):
    def show(self, text: str, duration_hint: Optional[float] = None) -> None:
        ...


class IdleProbe(Protocol):
    def is_idle(self) -> bool:
        ...


class PerceptionSource(Protocol):
    def visible_entities(self) -> Iterable[Entity]:
        ...

    def static_locations(self) -> Iterable[Entity]:
        ...
