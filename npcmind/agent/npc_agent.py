"""
Host-facing NPC agent wrapper.

Why this exists:
- `npcmind.agent.decision` keeps each piece (memory, composer, interpreter, controller)
  small and independently testable.
- A game host just wants one object per actor: build it from a config, call `tick(dt)`
  every frame, `start()` once and `stop()` on teardown.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Optional

from npcmind.agent.decision import (
    DEFAULT_PROFILE,
    DecisionController,
    DecisionPromptProfile,
    DecisionResult,
    Entity,
    HistoryLedger,
    OpenAIModelClient,
    PerceptionMemory,
    ProximityChatRegistry,
    RequestComposer,
    ResponseInterpreter,
)
from npcmind.agent.decision.chat import PositionFn
from npcmind.agent.decision.interfaces import IdleProbe, ModelClient, NavigationSink, PerceptionSource, SpeechSink

logger = logging.getLogger(__name__)

# Configuration (priority: explicit cfg > env vars > defaults)
DEFAULT_MODEL_NAME = os.environ.get("NPC_MODEL_NAME", "gpt-4.1-mini")
DEFAULT_BASE_URL = os.environ.get("OPENAI_BASE_URL", "")
DEFAULT_ENV_FILE = os.environ.get("NPC_ENV_FILE", ".env")

# Lower bounds for numeric settings; anything below is ignored by `from_settings`.
_SETTING_MINIMUMS = {
    "request_timeout_s": 0.0,
    "max_tokens": 1,
    "decision_interval_s": 0.0,
    "history_capacity": 1,
    "history_window": 0,
    "memory_duration_s": 0.0,
    "scan_interval_s": 0.0,
    "speech_duration_s": 0.0,
}


@dataclass
class NpcAgentCfg:
    """Everything one actor needs; hosts usually build it via `from_settings`."""

    name: str = "actor"
    persona: str = ""

    model_name: str = DEFAULT_MODEL_NAME
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    env_file: Optional[str] = DEFAULT_ENV_FILE
    request_timeout_s: float = 30.0
    max_tokens: int = 600

    decision_interval_s: float = 0.75
    history_capacity: int = 20
    history_window: int = 20
    memory_duration_s: float = 5.0
    scan_interval_s: float = 0.5
    speech_duration_s: float = 3.0
    # Offer remembered (recently seen) entities as targets, not only what is in view right now.
    catalog_from_memory: bool = False

    # Profiles are frozen; `from_settings` derives a new one with `replace`.
    profile: DecisionPromptProfile = field(default_factory=lambda: DEFAULT_PROFILE)

    dump_dir: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "NpcAgentCfg":
        """
        Lightweight overrides from a loosely typed dict (e.g. a JSON/py config).
        Values of the wrong type are ignored with a warning.

        Prompt keys:
          - npc_profile_name: str
          - npc_system_prompt: str (optional; if empty the default framing is used)
          - npc_setting_context: str
        """
        cfg = cls()
        for f in fields(cls):
            if f.name == "profile" or f.name not in settings:
                continue
            value = settings[f.name]
            default = getattr(cfg, f.name)
            if default is None or value is None:
                if value is None or isinstance(value, str):
                    setattr(cfg, f.name, value)
                else:
                    logger.warning("Ignoring setting %s=%r (expected str)", f.name, value)
            elif isinstance(default, bool):
                if isinstance(value, bool):
                    setattr(cfg, f.name, value)
                else:
                    logger.warning("Ignoring setting %s=%r (expected bool)", f.name, value)
            elif isinstance(default, (int, float)) and isinstance(value, (int, float)) and not isinstance(value, bool):
                if isinstance(default, int) and not float(value).is_integer():
                    logger.warning("Ignoring setting %s=%r (expected int)", f.name, value)
                elif value < _SETTING_MINIMUMS.get(f.name, value):
                    logger.warning("Ignoring setting %s=%r (must be >= %s)", f.name, value, _SETTING_MINIMUMS[f.name])
                else:
                    setattr(cfg, f.name, type(default)(value))
            elif isinstance(default, str) and isinstance(value, str):
                setattr(cfg, f.name, value)
            else:
                logger.warning("Ignoring setting %s=%r (expected %s)", f.name, value, type(default).__name__)

        overrides: Dict[str, str] = {}
        name = settings.get("npc_profile_name")
        if isinstance(name, str) and name.strip():
            overrides["name"] = name.strip()
        sys_prompt = settings.get("npc_system_prompt")
        if isinstance(sys_prompt, str) and sys_prompt.strip():
            overrides["system_prompt"] = sys_prompt
        setting_context = settings.get("npc_setting_context")
        if isinstance(setting_context, str) and setting_context.strip():
            overrides["setting_context"] = setting_context
        if overrides:
            cfg.profile = replace(cfg.profile, **overrides)
        return cfg


class NpcAgent:
    """One actor: perception scanning + decision loop, wired from `NpcAgentCfg`."""

    def __init__(
        self,
        cfg: NpcAgentCfg,
        *,
        navigation_sink: NavigationSink,
        speech_sink: SpeechSink,
        idle_probe: IdleProbe,
        perception_source: PerceptionSource,
        model_client: Optional[ModelClient] = None,
        chat_registry: Optional[ProximityChatRegistry] = None,
        position_fn: Optional[PositionFn] = None,
    ):
        self.cfg = cfg
        self.perception_source = perception_source
        self.memory = PerceptionMemory(memory_duration=cfg.memory_duration_s)
        self.history = HistoryLedger(capacity=cfg.history_capacity)
        self.model_client = model_client or OpenAIModelClient(
            model_name=cfg.model_name,
            api_key=cfg.api_key,
            base_url=cfg.base_url or None,
            env_file=cfg.env_file,
            timeout_s=cfg.request_timeout_s,
            max_tokens=cfg.max_tokens,
            dump_dir=cfg.dump_dir,
            dump_name=cfg.name,
        )
        self.controller = DecisionController(
            model_client=self.model_client,
            perception=self.memory,
            idle_probe=idle_probe,
            navigation_sink=navigation_sink,
            speech_sink=speech_sink,
            history=self.history,
            composer=RequestComposer(profile=cfg.profile, history_window=cfg.history_window),
            interpreter=ResponseInterpreter(),
            actor_name=cfg.name,
            persona=cfg.persona,
            static_locations=self._static_locations,
            decision_interval_s=cfg.decision_interval_s,
            speech_duration_s=cfg.speech_duration_s,
            catalog_from_memory=cfg.catalog_from_memory,
            chat_registry=chat_registry,
            position_fn=position_fn,
        )
        # Scan on the very first tick.
        self._scan_timer = 0.0

    @classmethod
    def from_host(cls, cfg: NpcAgentCfg, host: Any, **kwargs: Any) -> "NpcAgent":
        """`host` implements every collaborator interface (e.g. `HttpActorClient`)."""
        return cls(
            cfg,
            navigation_sink=host,
            speech_sink=host,
            idle_probe=host,
            perception_source=host,
            **kwargs,
        )

    def _static_locations(self) -> List[Entity]:
        try:
            return list(self.perception_source.static_locations() or ())
        except Exception as e:
            logger.warning("[Agent:%s] failed to read static locations: %s", self.cfg.name, e)
            return []

    def scan(self) -> None:
        try:
            entities: Iterable[Entity] = self.perception_source.visible_entities() or ()
        except Exception as e:
            logger.warning("[Agent:%s] perception scan failed: %s", self.cfg.name, e)
            return
        self.memory.observe(entities)

    def tick(self, delta_time: float) -> None:
        self.controller.tick(delta_time)
        self._scan_timer -= delta_time
        if self._scan_timer <= 0:
            self.scan()
            self._scan_timer = max(0.0, self.cfg.scan_interval_s)

    def poll_once(self) -> Optional[DecisionResult]:
        return self.controller.poll_once()

    def start(self) -> None:
        self.controller.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        self.controller.stop(timeout)

    def close(self) -> None:
        self.controller.close()

    @property
    def is_running(self) -> bool:
        return self.controller.is_running
