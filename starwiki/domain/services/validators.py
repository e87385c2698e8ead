"""Validator Set - total predicates over raw model output, one per stage shape.

Each predicate accepts anything (parsed JSON, or garbage) and returns a bool;
none of them raise. Factories (``check_score_files``, ``check_score_narratives``)
bind the inputs a shape must be checked against.
"""

import json
import math
import re
from typing import Any

from starwiki.domain.ports.generation import Validator

MIN_CODE_CHARS = 3
MIN_EXPLANATION_CHARS = 10

_CODE_MARKERS = re.compile(
    r"(def |class |import |function\s|\(|\)|=>|;|\{|\}|\bvar\b|\bconst\b|\blet\b"
    r"|#include|package\s|using\s)"
)
_YAML_KEY = re.compile(r"""^\s*(-\s+)?["']?[\w.\-]+["']?\s*:(\s|$)""")
_YAML_ITEM = re.compile(r"^\s*-\s+\S")
_TOML_TABLE = re.compile(r"^\s*\[\[?[\w.\-\"' ]+\]\]?\s*$")
_TOML_KEY = re.compile(r"""^\s*["']?[\w.\-]+["']?\s*=\s*\S""")


def _field(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def is_finite_number(value: Any) -> bool:
    """True for finite ints/floats and numeric strings; bools and None are rejected."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError, OverflowError):
        return False


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def looks_like_config(text: str) -> bool:
    """True when text is a standalone JSON/YAML/TOML document rather than code."""
    stripped = text.strip()
    if stripped[:1] in ("{", "["):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            pass
        else:
            if isinstance(parsed, (dict, list)):
                return True
    lines = [
        ln for ln in stripped.splitlines() if ln.strip() and not ln.strip().startswith("#")
    ]
    if not lines or any("(" in ln for ln in lines):
        return False
    return all(
        _YAML_KEY.match(ln) or _YAML_ITEM.match(ln) or _TOML_TABLE.match(ln) or _TOML_KEY.match(ln)
        for ln in lines
    )


def is_code_like(text: Any) -> bool:
    """Code-shaped: brackets/keywords/terminators, multi-line or ';'-terminated, not config."""
    if not isinstance(text, str) or not text:
        return False
    if not _CODE_MARKERS.search(text):
        return False
    if "\n" not in text and ";" not in text:
        return False
    return not looks_like_config(text)


def check_score_files(allowed: list[str]) -> Validator:
    """Scores for files; at least one when candidate files exist."""

    def check(r: Any) -> bool:
        scores = _field(r, "scores")
        if not isinstance(scores, list):
            return False
        if allowed and not scores:
            return False
        for s in scores:
            if not isinstance(_field(s, "filePath"), str):
                return False
            if not is_finite_number(_field(s, "score")):
                return False
        return True

    return check


def check_headings(r: Any) -> bool:
    """At least one section, non-empty id and heading, ids unique after trimming.

    Lead may be empty.
    """
    sections = _field(r, "sections")
    if not _non_empty_list(sections):
        return False
    if not all(
        _non_empty_str(_field(s, "id")) and _non_empty_str(_field(s, "heading"))
        for s in sections
    ):
        return False
    ids = [_field(s, "id").strip() for s in sections]
    return len(set(ids)) == len(ids)


def check_plan_section(r: Any) -> bool:
    """must_cover and primary_files non-empty, finite code_need_score."""
    if not _non_empty_list(_field(r, "must_cover")):
        return False
    if not is_finite_number(_field(r, "code_need_score")):
        return False
    return _non_empty_list(_field(r, "primary_files"))


def check_single_code(r: Any) -> bool:
    """A single code-shaped snippet of at least three characters."""
    text = _field(r, "text")
    if not isinstance(text, str) or len(text.strip()) < MIN_CODE_CHARS:
        return False
    return is_code_like(text)


def check_select_between_two(r: Any) -> bool:
    """Winner names one of the two offered labels."""
    return _field(r, "winner") in ("A", "B")


def check_consolidate_code(r: Any) -> bool:
    text = _field(r, "text")
    return isinstance(text, str) and len(text.strip()) >= MIN_CODE_CHARS


def check_explain_code(r: Any) -> bool:
    explanation = _field(r, "explanation")
    return isinstance(explanation, str) and len(explanation.strip()) >= MIN_EXPLANATION_CHARS


def check_single_narrative(r: Any) -> bool:
    """Non-empty heading and at least one paragraph or bullet."""
    if not _non_empty_str(_field(r, "heading")):
        return False
    return _non_empty_list(_field(r, "paragraphs")) or _non_empty_list(_field(r, "bullets"))


def check_score_narratives(count: int) -> Validator:
    """A finite score for every supplied index 0..count-1."""

    def check(r: Any) -> bool:
        scores = _field(r, "scores")
        if not _non_empty_list(scores):
            return False
        seen: set[int] = set()
        for s in scores:
            index, score = _field(s, "index"), _field(s, "score")
            if not is_finite_number(index) or not is_finite_number(score):
                return False
            seen.add(int(float(index)))
        return all(i in seen for i in range(count))

    return check


def check_consolidate_narrative(r: Any) -> bool:
    return _non_empty_str(_field(r, "heading"))
