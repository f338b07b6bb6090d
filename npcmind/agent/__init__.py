"""
Agent package entrypoints.

Important: keep `npcmind.agent` import-light.

Importing `npcmind.agent` must not pull in the OpenAI client; the host wrapper is
therefore exposed via **lazy imports**.
"""

from __future__ import annotations

__all__ = [
    'NpcAgent',
    'NpcAgentCfg',
]


def __getattr__(name: str):
    # Lazy imports to avoid importing optional dependencies at package import time.
    if name == "NpcAgent":
        from npcmind.agent.npc_agent import NpcAgent

        return NpcAgent
    if name == "NpcAgentCfg":
        from npcmind.agent.npc_agent import NpcAgentCfg

        return NpcAgentCfg

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
