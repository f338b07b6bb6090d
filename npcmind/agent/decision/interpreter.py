from __future__ import annotations

"""
Response interpreter (no model call).

Turns a `ModelResponse` into a `DecisionResult`:
1) structured path: tool invocations (`speak` -> speech lines, first valid
   `select_destination` -> navigation decision)
2) fallback path: if (1) produced nothing, pull a `{target, thoughts}` JSON object
   out of the free-text content (models sometimes ignore tools and answer inline)

Malformed output never raises: broken invocations are skipped, broken fallback
text yields an empty result.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from .schemas import CallableAction, DecisionResult, ModelResponse, NavigationDecision, ToolInvocation

logger = logging.getLogger(__name__)


def _safe_json_extract(text: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(text[start:end])
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def normalize_arguments(arguments: Any) -> Optional[Dict[str, Any]]:
    """Tool arguments arrive either decoded or as a raw JSON string."""
    if arguments is None:
        return None
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if isinstance(arguments, (str, bytes)):
        raw = arguments.decode("utf-8", errors="replace") if isinstance(arguments, bytes) else arguments
        if not raw.strip():
            return None
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning("[Interpreter] failed to parse tool call arguments: %s", e)
            return None
        if not isinstance(parsed, dict):
            logger.warning("[Interpreter] tool call arguments are not an object: %r", raw[:200])
            return None
        return parsed
    logger.warning("[Interpreter] unsupported tool argument type: %s", type(arguments).__name__)
    return None


class ResponseInterpreter:
    def interpret(self, response: Optional[ModelResponse]) -> DecisionResult:
        result = DecisionResult()
        if response is None:
            return result

        for call in response.tool_calls or []:
            self._apply_invocation(call, result)

        if not result.has_action:
            navigation = self._parse_fallback(response.text or "")
            if navigation is not None:
                logger.warning("[Interpreter] model skipped tool calls; parsed decision from text content.")
                result.navigation = navigation

        if result.navigation is not None and not result.navigation.thoughts.strip():
            result.navigation.thoughts = f"Heading to {result.navigation.target}."
        return result

    def _apply_invocation(self, call: ToolInvocation, result: DecisionResult) -> None:
        action = CallableAction.parse(getattr(call, "name", None))
        if action is None:
            logger.debug("[Interpreter] ignoring unknown tool call: %r", getattr(call, "name", None))
            return

        args = normalize_arguments(call.arguments)
        if args is None:
            return

        if action is CallableAction.SPEAK:
            text = args.get("text")
            if isinstance(text, str) and text.strip():
                result.speech_lines.append(text.strip())
        elif action is CallableAction.SELECT_DESTINATION:
            navigation = NavigationDecision.from_tool_json(args)
            if navigation is None:
                return
            if result.navigation is not None:
                logger.info(
                    "[Interpreter] discarding extra destination %r (already chose %r)",
                    navigation.target,
                    result.navigation.target,
                )
                return
            result.navigation = navigation

    def _parse_fallback(self, text: str) -> Optional[NavigationDecision]:
        raw = text.strip()
        if not raw:
            return None
        parsed = _safe_json_extract(raw)
        if parsed is None:
            logger.warning("[Interpreter] no decision found in text content (trunc): %s", raw[:400])
            return None
        return NavigationDecision.from_tool_json(parsed)
