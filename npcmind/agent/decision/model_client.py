from __future__ import annotations

"""
OpenAI-compatible model client (one model call per decision cycle).

This module is responsible for:
- resolving the API key (explicit value, environment, then a `.env` file)
- calling an OpenAI-compatible chat-completions endpoint with the declared tools
- converting the completion into a transport-neutral `ModelResponse`

Failures are raised as `ModelClientError` (or `MissingCredentialsError`); the
controller decides how to report them.
"""

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import dotenv_values
from openai import OpenAI

from .errors import MissingCredentialsError, ModelClientError
from .schemas import DecisionRequest, ModelResponse, ToolInvocation

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = os.environ.get("NPC_MODEL_NAME", "gpt-4.1-mini")
API_KEY_ENV = "OPENAI_API_KEY"


def resolve_api_key(explicit: Optional[str] = None, env_file: Optional[str] = ".env") -> Optional[str]:
    if explicit and explicit.strip():
        return explicit.strip()

    from_env = os.environ.get(API_KEY_ENV, "").strip()
    if from_env:
        return from_env

    if env_file and os.path.isfile(env_file):
        value = (dotenv_values(env_file).get(API_KEY_ENV) or "").strip()
        if value:
            return value
        logger.warning("%s not found in %s", API_KEY_ENV, env_file)
    return None


def to_model_response(completion: Any) -> ModelResponse:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ModelResponse()

    msg = choices[0].message
    calls: List[ToolInvocation] = []
    for tool_call in getattr(msg, "tool_calls", None) or []:
        function = getattr(tool_call, "function", None)
        if function is None:
            continue
        calls.append(ToolInvocation(name=getattr(function, "name", "") or "", arguments=getattr(function, "arguments", None)))

    content = getattr(msg, "content", None)
    if content is None:
        text = ""
    elif isinstance(content, str):
        text = content.strip()
    else:
        text = str(content).strip()
    return ModelResponse(tool_calls=calls, text=text)


@dataclass
class OpenAIModelClient:
    """
    Lazily builds the `OpenAI` client on the first send that finds a key, so a
    missing credential can be supplied later without restarting the actor.
    """

    model_name: str = DEFAULT_MODEL_NAME
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    env_file: Optional[str] = ".env"
    timeout_s: float = 30.0
    max_tokens: int = 600
    temperature: Optional[float] = None

    dump_dir: Optional[str] = None
    dump_name: str = "actor"
    _client: Optional[OpenAI] = field(default=None, repr=False)
    _calls: int = 0

    def ensure_client(self) -> OpenAI:
        if self._client is not None:
            return self._client

        key = resolve_api_key(self.api_key, self.env_file)
        if not key:
            raise MissingCredentialsError(f"No {API_KEY_ENV} available (explicit, environment or {self.env_file}).")

        self._client = OpenAI(api_key=key, base_url=self.base_url or None, timeout=self.timeout_s)
        return self._client

    def send(self, request: DecisionRequest) -> ModelResponse:
        client = self.ensure_client()
        messages = request.to_messages()
        kwargs: Dict[str, Any] = dict(
            model=self.model_name,
            messages=messages,
            max_tokens=self.max_tokens,
            tools=request.tools,
            tool_choice="auto",
        )
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        logger.info(
            "[Model] LLM call: model=%s targets=%d history=%d",
            self.model_name,
            len(request.available_targets),
            len(request.history),
        )
        try:
            completion = client.chat.completions.create(**kwargs)
        except Exception as e:
            raise ModelClientError(f"Model call failed: {e}") from e

        self._calls += 1
        response = to_model_response(completion)
        self._dump(messages, response)
        return response

    def _dump(self, messages: List[Dict[str, Any]], response: ModelResponse) -> None:
        if not self.dump_dir:
            return
        try:
            os.makedirs(self.dump_dir, exist_ok=True)
            payload = {
                "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
                "call": self._calls,
                "messages": messages,
                "tool_calls": [{"name": c.name, "arguments": c.arguments} for c in response.tool_calls],
                "text": response.text,
            }
            path = os.path.join(self.dump_dir, f"{self.dump_name}_{self._calls:04d}.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
        except Exception as e:
            logger.warning("Failed to dump model exchange: %s", e)
