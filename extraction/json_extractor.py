"""Recover a single JSON value from free-form language model output.

Model replies may wrap JSON in fenced code blocks, surround it with prose, or nest
fences inside fences. Extraction works in three steps:

- Fenced blocks carrying a language tag are collected in order of appearance; the first
  block tagged ``json`` (any case) wins, otherwise the first tagged block, otherwise the
  whole input.
- Up to two nested outer fence wrappers are stripped from the candidate.
- An ordered list of strategies (direct parse, balanced-delimiter scan) is tried until one
  yields valid JSON. If none does, ``ExtractionError`` is raised.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

FENCE = "```"
SNIPPET_LENGTH = 200
MAX_FENCE_LAYERS = 2

_OUTER_FENCE_RE = re.compile(r"\A```.*?\n(.*?)\n```\Z", re.DOTALL)


class ExtractionError(ValueError):
    """Raised when no valid JSON can be recovered from model output."""

    def __init__(self, message: str, *, raw: Any = None) -> None:
        text = raw if isinstance(raw, str) else ""
        self.input_size = len(text)
        self.snippet = text[:SNIPPET_LENGTH]
        super().__init__(f"{message} (input_size={self.input_size}, snippet={self.snippet!r})")


@dataclass(frozen=True)
class FencedBlock:
    language: str
    content: str


@dataclass(frozen=True)
class StrategyResult:
    ok: bool
    value: JsonValue = None
    reason: str = ""


Strategy = Callable[[str], StrategyResult]


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def find_fenced_blocks(text: str) -> List[FencedBlock]:
    """Collect language-tagged fenced blocks in order of appearance.

    Fences without a language tag are skipped but scanning continues past them.
    An opening fence with no closing fence ends the scan without recording a block.
    """
    source = _normalize_newlines(text)
    blocks: List[FencedBlock] = []
    search_from = 0
    while True:
        open_idx = source.find(FENCE, search_from)
        if open_idx == -1:
            break
        line_end = source.find("\n", open_idx + len(FENCE))
        if line_end == -1:
            break

        info = source[open_idx + len(FENCE) : line_end].strip()
        language = info.split()[0] if info else ""
        if not language:
            search_from = line_end + 1
            continue

        close_idx = source.find(FENCE, line_end + 1)
        if close_idx == -1:
            break
        blocks.append(FencedBlock(language=language, content=source[line_end + 1 : close_idx]))
        search_from = close_idx + len(FENCE)
    return blocks


def strip_outer_fences(content: str) -> str:
    """Remove up to two nested ```lang ... ``` wrappers around ``content``."""
    result = content.strip()
    for _ in range(MAX_FENCE_LAYERS):
        match = _OUTER_FENCE_RE.match(result)
        if not match:
            break
        result = match.group(1).strip()
    return result


def select_candidate(text: str, blocks: Optional[List[FencedBlock]] = None) -> str:
    """Pick the text most likely to hold the JSON payload."""
    if blocks is None:
        blocks = find_fenced_blocks(text)
    if not blocks:
        return text.strip()
    selected = next((b for b in blocks if b.language.lower() == "json"), blocks[0])
    return strip_outer_fences(selected.content)


def find_balanced_json(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` or ``[...]`` slice of ``text``.

    Quoted strings are skipped, honoring backslash escapes, so delimiters inside
    string values do not affect depth.
    """
    trimmed = text.strip()
    starts = [idx for idx in (trimmed.find("{"), trimmed.find("[")) if idx != -1]
    if not starts:
        return None

    start = min(starts)
    opener = trimmed[start]
    closer = "}" if opener == "{" else "]"

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(trimmed)):
        ch = trimmed[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
        if depth == 0:
            return trimmed[start : idx + 1]
    return None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _finite_float(token: str) -> float:
    number = float(token)
    if math.isinf(number):
        raise ValueError(f"Number out of range: {token}")
    return number


def _loads(text: str) -> StrategyResult:
    try:
        value = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
        # The canonical form must serialize and encode as UTF-8 (no lone surrogates).
        canonical_json(value).encode("utf-8")
    except (ValueError, RecursionError) as exc:
        return StrategyResult(ok=False, reason=str(exc))
    return StrategyResult(ok=True, value=value)


def parse_direct(candidate: str) -> StrategyResult:
    return _loads(candidate.strip())


def parse_balanced(candidate: str) -> StrategyResult:
    balanced = find_balanced_json(candidate)
    if balanced is None:
        return StrategyResult(ok=False, reason="no balanced object or array found")
    return _loads(balanced)


EXTRACTION_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("direct", parse_direct),
    ("balanced", parse_balanced),
)


def _extract_value(raw: Any) -> JsonValue:
    if not isinstance(raw, str):
        raise ExtractionError("Model output must be text", raw=raw)

    candidate = select_candidate(raw)
    reasons: List[str] = []
    for name, strategy in EXTRACTION_STRATEGIES:
        result = strategy(candidate)
        if result.ok:
            logger.debug("Recovered JSON using %s strategy (input_size=%d)", name, len(raw))
            return result.value
        reasons.append(f"{name}: {result.reason}")

    logger.warning("JSON extraction failed after %d strategies: %s", len(reasons), "; ".join(reasons))
    raise ExtractionError("Failed to extract valid JSON from input text", raw=raw)


def canonical_json(value: JsonValue) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def extract_json_string(raw: str) -> str:
    """Return the recovered JSON value re-serialized in compact canonical form."""
    return canonical_json(_extract_value(raw))


def extract_json_object(raw: str) -> JsonValue:
    """Return the recovered JSON value as Python data (dict, list, str, number, bool, None)."""
    return json.loads(extract_json_string(raw))
