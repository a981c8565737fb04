"""Capability category to display icon resolution.

A capability is a dotted ``category.name`` token such as
``research.perplexity``.  Only the category (text before the first dot)
decides the icon; unknown categories fall back to :data:`DEFAULT_ICON`.
"""

from __future__ import annotations

CAPABILITY_ICONS: dict[str, str] = {
    "research": "\U0001f52c",
    "thinking": "\U0001f4a1",
    "debate": "\U0001f5e3\ufe0f",
    "analysis": "\U0001f50d",
    "execution": "\U0001f916",
    "verification": "\u2705",
    "models": "\u26a1",
    "composition": "\U0001f9e9",
}

DEFAULT_ICON = "\U0001f916"


def category_of(capability: str) -> str:
    """Return the category part of *capability*.

    >>> category_of("research.perplexity")
    'research'
    >>> category_of("thinking")
    'thinking'
    """
    return capability.split(".", 1)[0]


def short_name(capability: str) -> str:
    """Return the last dotted segment, used in compact displays.

    >>> short_name("thinking.deep.ultrathink")
    'ultrathink'
    """
    return capability.rsplit(".", 1)[-1] or capability


def icon_for(capability: str) -> str:
    """Return the icon registered for the category of *capability*."""
    return CAPABILITY_ICONS.get(category_of(capability), DEFAULT_ICON)
