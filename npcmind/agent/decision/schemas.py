from __future__ import annotations

"""
Shared schemas for the decision engine.

`DecisionRequest` / `DecisionResult` are the stable contracts passed between modules:
  WorldCatalog -> RequestComposer (request) -> ModelClient -> ResponseInterpreter (result)
  -> DecisionController (dispatch + history).

`DecisionPromptProfile` is the task-adaptation knob: swap the operating-environment
framing without touching composer/interpreter code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class CallableAction(str, Enum):
    """The closed set of actions offered to the model."""

    SPEAK = "speak"
    SELECT_DESTINATION = "select_destination"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["CallableAction"]:
        if not name:
            return None
        wanted = str(name).strip().lower()
        for action in cls:
            if action.value == wanted:
                return action
        return None


class HistoryKind(str, Enum):
    ASSISTANT = "assistant"
    SYSTEM_NOTICE = "system_notice"


class CyclePhase(str, Enum):
    IDLE = "IDLE"
    AWAITING_MODEL = "AWAITING_MODEL"
    DISPATCHING = "DISPATCHING"


@dataclass(frozen=True)
class Entity:
    """Anything nameable and describable: a visible object or a known location."""

    id: str
    description: str = ""


@dataclass
class VisibilityRecord:
    entity: Entity
    remaining_memory: float


@dataclass(frozen=True)
class HistoryEntry:
    kind: HistoryKind
    text: str
    # Logical emission order, stamped by HistoryLedger.append (-1 = not yet recorded).
    sequence: int = -1

    @classmethod
    def assistant(cls, text: str) -> "HistoryEntry":
        return cls(kind=HistoryKind.ASSISTANT, text=text)

    @classmethod
    def system_notice(cls, text: str) -> "HistoryEntry":
        return cls(kind=HistoryKind.SYSTEM_NOTICE, text=text)

    def to_message(self) -> Dict[str, str]:
        role = "assistant" if self.kind is HistoryKind.ASSISTANT else "system"
        return {"role": role, "content": self.text}


@dataclass(frozen=True)
class DecisionRequest:
    system_context: str
    persona_context: str
    vision_context: str
    history: Tuple[HistoryEntry, ...] = ()
    available_targets: FrozenSet[str] = frozenset()
    callable_actions: Tuple[Dict[str, Any], ...] = ()
    closing_prompt: str = "Decide on your next action and use your tools to act."

    def to_messages(self) -> List[Dict[str, Any]]:
        system_prompt = (
            f"{self.system_context}\n\n"
            f"Character Context\n{self.persona_context}\n\n"
            f"Vision Context\n{self.vision_context}\n\n"
            f"Now follows your action & conversation history. You can see your last "
            f"{len(self.history)} actions and messages below. Use them to inform your next action."
        )
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        messages.extend(entry.to_message() for entry in self.history)
        messages.append({"role": "user", "content": self.closing_prompt})
        return messages

    @property
    def tools(self) -> List[Dict[str, Any]]:
        return list(self.callable_actions)


@dataclass
class NavigationDecision:
    target: str
    thoughts: str = ""

    @classmethod
    def from_tool_json(cls, args: Dict[str, Any]) -> Optional["NavigationDecision"]:
        target = args.get("target")
        if not isinstance(target, str) or not target.strip():
            return None
        thoughts = args.get("thoughts")
        thoughts = thoughts.strip() if isinstance(thoughts, str) else ""
        return cls(target=target.strip(), thoughts=thoughts)


@dataclass
class DecisionResult:
    speech_lines: List[str] = field(default_factory=list)
    navigation: Optional[NavigationDecision] = None

    @property
    def has_action(self) -> bool:
        return bool(self.speech_lines) or self.navigation is not None


@dataclass
class ToolInvocation:
    name: str
    # Either an already-decoded mapping or the raw JSON string sent by the model.
    arguments: Any = None


@dataclass
class ModelResponse:
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    text: str = ""


@dataclass
class CycleState:
    in_flight: bool = False
    pending_arrival_target: Optional[str] = None
    phase: CyclePhase = CyclePhase.IDLE


@dataclass(frozen=True)
class DecisionPromptProfile:
    """
    Minimal surface area for task adaptation: swap the framing text and keep the
    composer/interpreter/controller contracts stable.
    """

    name: str = "default"
    system_prompt: str = ""
    setting_context: str = ""
    closing_prompt: str = "Decide on your next action and use your tools to act."
