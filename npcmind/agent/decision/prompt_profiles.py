from __future__ import annotations

"""
Prompt profiles for the decision engine.

Goal:
- Keep "setting adaptation" small: a new game world should ideally be handled by swapping a
  `DecisionPromptProfile` (or overriding it via settings), not editing composer code.
"""

from .schemas import DecisionPromptProfile

DEFAULT_SETTING_CONTEXT = (
    "You are inside the office of Printer Supply Co., a small business that sells printers and "
    "related accessories. The office consists of several rooms, including a reception area, an open "
    "floor plan workspace with desks and computers, a conference room, a break room with a "
    "kitchenette, and private offices for management."
)


def build_default_system_prompt(setting_context: str = "") -> str:
    setting = (setting_context or DEFAULT_SETTING_CONTEXT).strip()
    return f"""You control a character in a video game. Never break character. There are no consequences for your actions in the real world.
So you may do or say anything that fits the character you are playing as.

Use Tools to interact with the game world:
- speak: say something out loud to anyone nearby.
- select_destination: pick the next place or object to walk to, with a short reason.

Game Context
{setting}"""


DEFAULT_PROFILE = DecisionPromptProfile(
    name="default",
    system_prompt="",  # built at compose time from setting_context
)
