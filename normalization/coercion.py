"""Scalar coercions used to turn untrusted model JSON into typed records.

Every helper is total: any input maps to a value of the target type.
"""

from __future__ import annotations

import math
from typing import Any, List, Mapping, Optional


def string_or_empty(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        # JSON literal form
        return "true" if value else "false"
    return str(value)


def number_or_zero(value: Any) -> float:
    if value is None or (isinstance(value, str) and value == ""):
        return 0.0
    if isinstance(value, str) and "_" in value:
        # float() accepts digit separators ("1_000"); model output should not.
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def boolean_or_false(value: Any) -> bool:
    """Only a real boolean is trusted; ``"true"`` or ``1`` normalize to False."""
    if isinstance(value, bool):
        return value
    return False


def optional_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    return number_or_zero(value)


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def get_path(data: Any, path: str, default: Any = None) -> Any:
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current
