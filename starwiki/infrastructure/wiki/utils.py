"""Small helpers shared by the page stages."""

import re
from typing import Any

from starwiki.domain.services.validators import is_finite_number

# Ordered: the first matching rule wins. Text is lower-cased before matching.
_LANG_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("python", re.compile(r"^\s*import\s+|^\s*def\s+|^\s*class\s+|from\s+.+\s+import\b")),
    ("javascript", re.compile(r"\bconsole\.log\b|^\s*function\b|=>")),
    ("go", re.compile(r"package\s+main|\bfmt\.println\b")),
    ("java", re.compile(r"^\s*package\s+|public\s+class\s+")),
    ("csharp", re.compile(r"^\s*using\s+|namespace\b")),
    ("cpp", re.compile(r"#include\b|std::|::")),
    ("rust", re.compile(r"\bfn\s+[a-z_]|println!")),
    ("html", re.compile(r"<[a-z-]+[^>]*>")),
    ("sql", re.compile(r"\bselect\b.*\bfrom\b")),
)

# Tags that name a human language rather than a programming one.
_NOT_A_LANG = {"", "en", "english", "text", "plain", "plaintext"}


def clamp_score(value: Any) -> int:
    """Integer score in [0, 100]; fractions truncate, junk becomes 0."""
    if not is_finite_number(value):
        return 0
    return max(0, min(100, int(float(value))))


def guess_lang(text: str) -> str | None:
    """Guess a fence language from the first few hundred characters."""
    head = (text or "")[:400].lower()
    for lang, pattern in _LANG_RULES:
        if pattern.search(head):
            return lang
    return None


def normalize_lang(lang: Any, text: str) -> str | None:
    """Lower-cased language tag; human-language or missing tags fall back to a guess."""
    tag = lang.strip().lower() if isinstance(lang, str) else ""
    if tag in _NOT_A_LANG:
        return guess_lang(text)
    return tag


def str_list(value: Any) -> list[str]:
    """Trimmed non-empty strings from a list; anything else yields []."""
    if not isinstance(value, list):
        return []
    return [s.strip() for s in value if isinstance(s, str) and s.strip()]
