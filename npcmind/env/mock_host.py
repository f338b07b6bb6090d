"""
Mock host engine + scripted model endpoint for local end-to-end runs.

Serves both sides an actor talks to:
- the host API consumed by `HttpActorClient` (/status, /perception, /walk_to, /speak)
- an OpenAI-compatible /v1/chat/completions that answers with tool calls

Movement is simulated by counting status polls: after `travel_polls` polls the
actor is idle again at its destination.
"""

import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

logger = logging.getLogger("MockHost")

DEFAULT_LOCATIONS = [
    {"id": "Reception", "description": "Front desk where visitors check in.", "position": [0.0, 0.0, 0.0]},
    {"id": "Break Room", "description": "Kitchenette with a coffee machine and a fridge.", "position": [12.0, 0.0, 4.0]},
    {"id": "Conference Room", "description": "Glass-walled meeting room with a long table.", "position": [6.0, 0.0, 10.0]},
]

DEFAULT_OBJECTS = [
    {"id": "Coffee Machine", "description": "An old espresso machine, slightly leaking.", "position": [12.5, 0.0, 4.5]},
    {"id": "Printer", "description": "A large office printer with a paper jam light blinking.", "position": [3.0, 0.0, 2.0]},
]


class MockWorld:
    def __init__(self, locations: List[Dict[str, Any]], objects: List[Dict[str, Any]], travel_polls: int = 2):
        self.lock = threading.RLock()
        self.locations = locations
        self.objects = objects
        self.travel_polls = max(0, int(travel_polls))
        self.position = [0.0, 0.0, 0.0]
        self.destination: Optional[str] = None
        self.remaining_polls = 0
        self.speech: List[Dict[str, Any]] = []
        self.model_calls = 0

    def _find(self, name: str) -> Optional[Dict[str, Any]]:
        for item in self.locations + self.objects:
            if item["id"] == name:
                return item
        return None

    def status(self) -> Dict[str, Any]:
        with self.lock:
            if self.remaining_polls > 0:
                self.remaining_polls -= 1
                if self.remaining_polls == 0 and self.destination:
                    self.position = list(self._find(self.destination)["position"])
                    logger.info(f"Actor arrived at {self.destination}")
                    self.destination = None
            return {"idle": self.remaining_polls == 0, "position": self.position}

    def walk_to(self, target: str) -> bool:
        with self.lock:
            item = self._find(target)
            if item is None:
                logger.info(f"Unknown destination requested: {target!r}")
                return False
            self.destination = target
            self.remaining_polls = self.travel_polls
            if self.remaining_polls == 0:
                self.position = list(item["position"])
                self.destination = None
            return True

    def perception(self) -> Dict[str, Any]:
        with self.lock:
            return {"visible": _public(self.objects), "locations": _public(self.locations)}


def _public(items: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [{"id": i["id"], "description": i["description"]} for i in items]


def _target_names(tools: List[Dict[str, Any]]) -> List[str]:
    for tool in tools or []:
        fn = tool.get("function", {})
        if fn.get("name") == "select_destination":
            return list(fn.get("parameters", {}).get("properties", {}).get("target", {}).get("enum", []))
    return []


def scripted_completion(step: int, tools: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Step 1: speak + walk (tool calls). Every third step: inline JSON only. Otherwise: walk."""
    names = _target_names(tools)
    target = names[(step - 1) % len(names)] if names else "Reception"
    nav_args = {"target": target, "thoughts": f"Let me check the {target}."}

    message: Dict[str, Any] = {"role": "assistant", "content": None}
    if step % 3 == 0:
        message["content"] = "Hmm. " + json.dumps(nav_args) + " That's my plan."
    else:
        calls = []
        if step == 1:
            calls.append({"text": "Morning, everyone!"})
        tool_calls = [
            {
                "id": f"call_{step}_{i}",
                "type": "function",
                "function": {"name": "speak", "arguments": json.dumps(args)},
            }
            for i, args in enumerate(calls)
        ]
        tool_calls.append(
            {
                "id": f"call_{step}_nav",
                "type": "function",
                "function": {"name": "select_destination", "arguments": json.dumps(nav_args)},
            }
        )
        message["tool_calls"] = tool_calls

    return {
        "id": f"chatcmpl-mock-{step}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": "mock-model",
        "choices": [{"index": 0, "message": message, "finish_reason": "tool_calls" if "tool_calls" in message else "stop"}],
        "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150},
    }


def create_app(
    locations: Optional[List[Dict[str, Any]]] = None,
    objects: Optional[List[Dict[str, Any]]] = None,
    travel_polls: int = 2,
) -> Flask:
    app = Flask(__name__)
    world = MockWorld(
        locations=list(locations if locations is not None else DEFAULT_LOCATIONS),
        objects=list(objects if objects is not None else DEFAULT_OBJECTS),
        travel_polls=travel_polls,
    )
    app.config["WORLD"] = world

    @app.route("/status")
    def status():
        return jsonify(world.status())

    @app.route("/perception")
    def perception():
        return jsonify(world.perception())

    @app.route("/walk_to", methods=["POST"])
    def walk_to():
        data = request.get_json(silent=True) or {}
        return jsonify({"accepted": world.walk_to(str(data.get("target", "")))})

    @app.route("/speak", methods=["POST"])
    def speak():
        data = request.get_json(silent=True) or {}
        text = str(data.get("text", ""))
        with world.lock:
            world.speech.append({"text": text, "duration": data.get("duration")})
        logger.info(f"Actor says: {text}")
        return jsonify({"status": "success"})

    @app.route("/v1/chat/completions", methods=["POST"])
    def chat_completions():
        data = request.get_json(silent=True) or {}
        with world.lock:
            world.model_calls += 1
            step = world.model_calls
        logger.info(f"Received request with {len(data.get('messages', []))} messages")
        return jsonify(scripted_completion(step, data.get("tools", [])))

    @app.route("/v1/models", methods=["GET"])
    def list_models():
        return jsonify(
            {
                "object": "list",
                "data": [{"id": "mock-model", "object": "model", "created": 1677610602, "owned_by": "mock"}],
            }
        )

    return app
