"""
LLM-driven decision engine for autonomous actors.

Design goal: keep the decision cycle modular (perception -> prompt -> one model call
-> interpretation -> dispatch) instead of one monolithic behaviour script.

Modules:
- `perception`: decaying memory of visible / recently visible entities
- `catalog`: per-cycle, deterministic snapshot of nameable targets
- `composer`: builds one `DecisionRequest` (context sections + two strict tools)
- `model_client`: OpenAI-compatible transport returning a `ModelResponse`
- `interpreter`: tool calls first, free-text JSON fallback second
- `history`: bounded, ordered conversation ledger
- `controller`: single-flight polling loop that dispatches speech / navigation
- `chat`: proximity chat registry shared by co-located actors
"""

from .catalog import CatalogEntry, WorldCatalog, snapshot
from .chat import ProximityChatRegistry
from .composer import RequestComposer
from .controller import DecisionController
from .errors import DecisionError, MissingCredentialsError, ModelClientError
from .history import HistoryLedger
from .interpreter import ResponseInterpreter
from .model_client import OpenAIModelClient, resolve_api_key
from .perception import PerceptionMemory
from .prompt_profiles import DEFAULT_PROFILE
from .schemas import (
    CallableAction,
    CyclePhase,
    CycleState,
    DecisionPromptProfile,
    DecisionRequest,
    DecisionResult,
    Entity,
    HistoryEntry,
    HistoryKind,
    ModelResponse,
    NavigationDecision,
    ToolInvocation,
)

__all__ = [
    "CallableAction",
    "CatalogEntry",
    "CyclePhase",
    "CycleState",
    "DecisionController",
    "DecisionError",
    "DecisionPromptProfile",
    "DecisionRequest",
    "DecisionResult",
    "DEFAULT_PROFILE",
    "Entity",
    "HistoryEntry",
    "HistoryKind",
    "HistoryLedger",
    "MissingCredentialsError",
    "ModelClientError",
    "ModelResponse",
    "NavigationDecision",
    "OpenAIModelClient",
    "PerceptionMemory",
    "ProximityChatRegistry",
    "RequestComposer",
    "ResponseInterpreter",
    "ToolInvocation",
    "WorldCatalog",
    "resolve_api_key",
    "snapshot",
]
