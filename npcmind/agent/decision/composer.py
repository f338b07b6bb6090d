from __future__ import annotations

"""
Request composer (no model call).

This module is responsible for:
- rendering the three context sections (system framing, persona, vision)
- windowing the conversation history
- declaring the two callable actions with strict argument schemas

The `target` argument of `select_destination` is an enum of exactly the catalog's
current names, so the model cannot name a target that does not exist this cycle.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .catalog import CatalogEntry, WorldCatalog
from .prompt_profiles import DEFAULT_PROFILE, build_default_system_prompt
from .schemas import CallableAction, DecisionPromptProfile, DecisionRequest, HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 20

NOTHING_VISIBLE = "In your field of vision you can see nothing notable."

SPEAK_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": CallableAction.SPEAK.value,
        "description": "Says something out loud to anyone nearby.",
        "strict": True,
        "parameters": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "What the character says out loud."},
            },
            "required": ["text"],
            "additionalProperties": False,
        },
    },
}

SELECT_DESTINATION_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": CallableAction.SELECT_DESTINATION.value,
        "description": "Selects the next navigation target for the character and states the reasoning.",
        "strict": True,
        "parameters": {
            "type": "object",
            "properties": {
                "target": {"type": "string", "description": "Exact name of the target to visit next."},
                "thoughts": {"type": "string", "description": "Short sentence explaining why this target was chosen."},
            },
            "required": ["target", "thoughts"],
            "additionalProperties": False,
        },
    },
}


def build_select_destination_tool(target_names: Sequence[str]) -> Dict[str, Any]:
    tool = copy.deepcopy(SELECT_DESTINATION_TOOL)
    names: List[str] = []
    for name in target_names:
        if name and name.strip() and name not in names:
            names.append(name)
    # An empty enum is rejected by most endpoints; leave the field open and let the sink refuse.
    if names:
        tool["function"]["parameters"]["properties"]["target"]["enum"] = names
    return tool


def build_tools(target_names: Sequence[str]) -> List[Dict[str, Any]]:
    tools: List[Dict[str, Any]] = []
    for action in CallableAction:
        if action is CallableAction.SPEAK:
            tools.append(copy.deepcopy(SPEAK_TOOL))
        elif action is CallableAction.SELECT_DESTINATION:
            tools.append(build_select_destination_tool(target_names))
    return tools


def describe(entry: CatalogEntry) -> str:
    return f"- Id: {entry.name}  Desc: {entry.description}"


def build_vision_prompt(catalog: WorldCatalog) -> str:
    visible = [describe(e) for e in catalog.visible_entries]
    locations = [describe(e) for e in catalog.location_entries]

    if visible:
        section = "In your field of vision you can see the following:\n" + "\n".join(visible)
    else:
        section = NOTHING_VISIBLE

    if locations:
        section += "\n\nYou can also go to these locations:\n" + "\n".join(locations)
    return section


@dataclass
class RequestComposer:
    profile: DecisionPromptProfile = DEFAULT_PROFILE
    history_window: int = DEFAULT_HISTORY_WINDOW

    def __post_init__(self) -> None:
        # Do NOT mutate the profile in-place (profiles may be shared between actors).
        self._system_prompt = self.profile.system_prompt or build_default_system_prompt(self.profile.setting_context)

    def window(self, history: Optional[Sequence[HistoryEntry]]) -> tuple:
        entries = [e for e in (history or ()) if e is not None]
        if self.history_window <= 0:
            return ()
        return tuple(entries[-self.history_window:])

    def compose(
        self,
        catalog: WorldCatalog,
        persona: str,
        history: Optional[Sequence[HistoryEntry]] = None,
    ) -> DecisionRequest:
        names = catalog.names
        request = DecisionRequest(
            system_context=self._system_prompt,
            persona_context=persona or "",
            vision_context=build_vision_prompt(catalog),
            history=self.window(history),
            available_targets=frozenset(names),
            callable_actions=tuple(build_tools(names)),
            closing_prompt=self.profile.closing_prompt,
        )
        logger.debug(
            "[Composer] request: targets=%d history=%d/%d",
            len(names),
            len(request.history),
            len(history or ()),
        )
        return request
