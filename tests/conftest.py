import os
import sys
import threading
from pathlib import Path
import pytest


# Ensure the repo root is on PYTHONPATH so `import npcmind` works in tests
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from npcmind.agent.decision import (  # noqa: E402
    DecisionController,
    Entity,
    HistoryLedger,
    ModelResponse,
    PerceptionMemory,
)


class FakeModelClient:
    """Replays queued responses; queued exceptions are raised instead."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def send(self, request):
        self.requests.append(request)
        if not self.responses:
            return ModelResponse()
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class BlockingModelClient:
    """Blocks inside `send` until released, so tests can observe an in-flight cycle."""

    def __init__(self, response):
        self.response = response
        self.entered = threading.Event()
        self.release = threading.Event()
        self.requests = []

    def send(self, request):
        self.requests.append(request)
        self.entered.set()
        self.release.wait(5.0)
        return self.response


class FakeActor:
    """Idle probe + navigation/speech sinks + perception source in one object."""

    def __init__(self, visible=None, locations=None):
        self.idle = True
        self.accept = True
        self.walked = []
        self.spoken = []
        self.visible = list(visible or [])
        self.locations = list(locations or [])

    def is_idle(self):
        return self.idle

    def walk_to(self, target_name):
        self.walked.append(target_name)
        if self.accept:
            self.idle = False
        return self.accept

    def show(self, text, duration_hint=None):
        self.spoken.append(text)

    def visible_entities(self):
        return list(self.visible)

    def static_locations(self):
        return list(self.locations)


@pytest.fixture
def make_client():
    return FakeModelClient


@pytest.fixture
def make_blocking_client():
    return BlockingModelClient


@pytest.fixture
def actor():
    return FakeActor(
        visible=[Entity("Printer", "A large office printer."), Entity("Kitchen", "Small kitchen with a fridge.")],
        locations=[Entity("Break Room", "Coffee and snacks.")],
    )


@pytest.fixture
def make_controller(actor):
    def _make(model_client, **kwargs):
        perception = kwargs.pop("perception", None) or PerceptionMemory(memory_duration=5.0)
        history = kwargs.pop("history", None)
        perception.observe(actor.visible_entities())
        return DecisionController(
            model_client=model_client,
            perception=perception,
            idle_probe=kwargs.pop("idle_probe", actor),
            navigation_sink=actor,
            speech_sink=actor,
            history=history if history is not None else HistoryLedger(capacity=20),
            static_locations=actor.static_locations,
            **kwargs,
        )

    return _make


# global hook: skip mark
def pytest_runtest_setup(item):
    if "live" in item.keywords:
        if not os.environ.get("OPENAI_API_KEY"):
            pytest.skip("OPENAI_API_KEY not set for live-marked test")
