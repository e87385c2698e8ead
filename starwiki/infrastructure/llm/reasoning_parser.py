"""Removes <think> reasoning blocks (DeepSeek-R1, QwQ) from model replies."""

import re

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
THINK_OPEN = "<think>"


def strip_reasoning(text: str | None) -> str:
    """Reply text without reasoning.

    Closed blocks are cut out; an unterminated <think> drops everything
    after it, since the model ran out of tokens while still reasoning.
    """
    if not text:
        return ""
    visible = _THINK_BLOCK.sub("\n", text)
    return visible.split(THINK_OPEN, 1)[0].strip()
