from __future__ import annotations

"""
Decision controller (orchestrator + polling loop).

Wires together one decision cycle:
  PerceptionMemory + static locations -> WorldCatalog
    -> RequestComposer (DecisionRequest)
    -> ModelClient (the only blocking call)
    -> ResponseInterpreter (DecisionResult)
    -> dispatch to SpeechSink / NavigationSink + HistoryLedger

Phases: IDLE -> AWAITING_MODEL -> DISPATCHING -> IDLE. At most one cycle is in
flight per controller; triggers that arrive meanwhile are no-ops. Every failure
returns to IDLE and is logged; the loop keeps polling.

External interface is intentionally tiny: `poll_once()`, `tick(dt)`, `start()`, `stop()`.
"""

import logging
import threading
from typing import Callable, Iterable, Optional, Sequence, Union

from .catalog import WorldCatalog, snapshot
from .chat import PositionFn, ProximityChatRegistry
from .composer import RequestComposer
from .errors import MissingCredentialsError, ModelClientError
from .history import HistoryLedger
from .interfaces import IdleProbe, ModelClient, NavigationSink, SpeechSink
from .interpreter import ResponseInterpreter
from .perception import PerceptionMemory
from .schemas import CyclePhase, CycleState, DecisionResult, Entity, HistoryEntry

logger = logging.getLogger(__name__)

MIN_DECISION_INTERVAL_S = 0.1
DEFAULT_DECISION_INTERVAL_S = 0.75
DEFAULT_SPEECH_DURATION_S = 3.0

LocationSource = Union[Sequence[Entity], Callable[[], Iterable[Entity]]]


def arrival_notice(target: str) -> str:
    return f'You have reached "{target}".'


def heard_notice(speaker_name: str, message: str) -> str:
    return f'{speaker_name} says: "{message}"'


class DecisionController:
    def __init__(
        self,
        *,
        model_client: ModelClient,
        perception: PerceptionMemory,
        idle_probe: IdleProbe,
        navigation_sink: NavigationSink,
        speech_sink: SpeechSink,
        history: Optional[HistoryLedger] = None,
        composer: Optional[RequestComposer] = None,
        interpreter: Optional[ResponseInterpreter] = None,
        actor_name: str = "actor",
        persona: str = "",
        static_locations: LocationSource = (),
        decision_interval_s: float = DEFAULT_DECISION_INTERVAL_S,
        speech_duration_s: Optional[float] = DEFAULT_SPEECH_DURATION_S,
        catalog_from_memory: bool = False,
        chat_registry: Optional[ProximityChatRegistry] = None,
        position_fn: Optional[PositionFn] = None,
    ):
        self.model_client = model_client
        self.perception = perception
        self.idle_probe = idle_probe
        self.navigation_sink = navigation_sink
        self.speech_sink = speech_sink
        self.history = history if history is not None else HistoryLedger()
        self.composer = composer or RequestComposer()
        self.interpreter = interpreter or ResponseInterpreter()

        self.actor_name = actor_name
        self.persona = persona
        self.static_locations = static_locations
        self.decision_interval_s = max(MIN_DECISION_INTERVAL_S, float(decision_interval_s))
        self.speech_duration_s = speech_duration_s
        self.catalog_from_memory = catalog_from_memory

        self.state = CycleState()
        self._state_lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._missing_key_logged = False

        self.chat_registry = chat_registry
        if chat_registry is not None and position_fn is not None:
            chat_registry.register(actor_name, self, position_fn)

    # ------------------------------------------------------------------ lifecycle

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._cancel.is_set()

    @property
    def phase(self) -> CyclePhase:
        with self._state_lock:
            return self.state.phase

    def start(self) -> None:
        if self.is_running:
            return
        cancel = threading.Event()
        self._cancel = cancel
        self._thread = threading.Thread(
            target=self._loop,
            args=(cancel,),
            name=f"decision-{self.actor_name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        self._cancel.set()
        thread = self._thread
        self._thread = None
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.info("[Decision:%s] loop still waiting on the model; abandoning the in-flight call.", self.actor_name)

    def close(self) -> None:
        self.stop()
        if self.chat_registry is not None:
            self.chat_registry.unregister(self.actor_name)

    def tick(self, delta_time: float) -> None:
        self.perception.tick(delta_time)

    def _loop(self, cancel: threading.Event) -> None:
        logger.info("[Decision:%s] loop started (interval=%.2fs)", self.actor_name, self.decision_interval_s)
        while not cancel.is_set():
            if self.can_request_decision():
                try:
                    self.poll_once(cancel)
                except Exception:
                    logger.exception("[Decision:%s] unexpected error in decision loop", self.actor_name)
            if cancel.wait(self.decision_interval_s):
                break
        logger.info("[Decision:%s] loop stopped", self.actor_name)

    # ------------------------------------------------------------------ cycle

    def _is_idle(self) -> bool:
        try:
            return bool(self.idle_probe.is_idle())
        except Exception as e:
            logger.warning("[Decision:%s] idle probe failed: %s", self.actor_name, e)
            return False

    def can_request_decision(self) -> bool:
        if self._cancel.is_set():
            return False
        with self._state_lock:
            if self.state.in_flight:
                return False
        return self._is_idle()

    def poll_once(self, cancel: Optional[threading.Event] = None) -> Optional[DecisionResult]:
        """
        Run one decision cycle if the actor is idle and nothing is in flight.

        `cancel` is the event of the loop that owns this cycle; a later `start()`
        installs a new event and must not revive a cycle that `stop()` abandoned.
        """
        cancel = cancel if cancel is not None else self._cancel
        if cancel.is_set():
            return None
        with self._state_lock:
            if self.state.in_flight:
                return None
        # The idle probe may be a network call; keep it outside the state lock.
        if not self._is_idle():
            return None
        with self._state_lock:
            if self.state.in_flight:
                return None
            self.state.in_flight = True
            self.state.phase = CyclePhase.AWAITING_MODEL

        try:
            return self._run_cycle(cancel)
        except Exception:
            logger.exception("[Decision:%s] failed to decide on an action", self.actor_name)
            return None
        finally:
            with self._state_lock:
                self.state.in_flight = False
                self.state.phase = CyclePhase.IDLE

    def snapshot_catalog(self) -> WorldCatalog:
        seen = self.perception.remembered() if self.catalog_from_memory else self.perception.visible()
        locations = self.static_locations() if callable(self.static_locations) else self.static_locations
        return snapshot(seen, locations)

    def _record_arrival(self) -> None:
        with self._state_lock:
            target = self.state.pending_arrival_target
            self.state.pending_arrival_target = None
        if target:
            self.history.append(HistoryEntry.system_notice(arrival_notice(target)))
            logger.info("[Decision:%s] arrived at %r", self.actor_name, target)

    def _run_cycle(self, cancel: threading.Event) -> Optional[DecisionResult]:
        self._record_arrival()

        catalog = self.snapshot_catalog()
        logger.debug("[Decision:%s] catalog: %s", self.actor_name, ", ".join(catalog.names) or "(empty)")
        request = self.composer.compose(catalog, self.persona, self.history.entries())

        if cancel.is_set():
            return None

        try:
            response = self.model_client.send(request)
        except MissingCredentialsError as e:
            if not self._missing_key_logged:
                logger.error("[Decision:%s] %s", self.actor_name, e)
                self._missing_key_logged = True
            return None
        except ModelClientError as e:
            logger.error("[Decision:%s] model call failed: %s", self.actor_name, e)
            return None
        self._missing_key_logged = False

        if cancel.is_set():
            logger.info("[Decision:%s] cancelled while awaiting the model; discarding response.", self.actor_name)
            return None

        result = self.interpreter.interpret(response)
        if not result.has_action:
            logger.warning("[Decision:%s] could not determine an action from the model response.", self.actor_name)
            return None

        with self._state_lock:
            self.state.phase = CyclePhase.DISPATCHING
        self._dispatch(result)
        return result

    def _dispatch(self, result: DecisionResult) -> None:
        for line in result.speech_lines:
            self.speech_sink.show(line, self.speech_duration_s)
            self.history.append(HistoryEntry.assistant(line))
            logger.info("[Decision:%s] says: %s", self.actor_name, line[:140])
            if self.chat_registry is not None:
                try:
                    self.chat_registry.broadcast_from(self.actor_name, line)
                except Exception as e:
                    logger.warning("[Decision:%s] proximity chat broadcast failed: %s", self.actor_name, e)

        nav = result.navigation
        if nav is None:
            return

        self.speech_sink.show(nav.thoughts, self.speech_duration_s)
        self.history.append(HistoryEntry.assistant(nav.thoughts))
        accepted = bool(self.navigation_sink.walk_to(nav.target))
        if accepted:
            with self._state_lock:
                self.state.pending_arrival_target = nav.target
            logger.info("[Decision:%s] walking to %r: %s", self.actor_name, nav.target, nav.thoughts[:140])
        else:
            logger.warning("[Decision:%s] navigation target %r was not accepted.", self.actor_name, nav.target)

    # ------------------------------------------------------------------ chat

    def receive_proximity_chat(self, speaker_name: str, message: str) -> None:
        if not speaker_name or not message or not message.strip():
            return
        self.history.append(HistoryEntry.system_notice(heard_notice(speaker_name, message.strip())))
