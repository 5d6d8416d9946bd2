"""Coerce untrusted model JSON into strictly-typed tax records."""

from .coercion import boolean_or_false, number_or_zero, string_or_empty
from .w2 import normalize, normalize_w2

__all__ = ["boolean_or_false", "normalize", "normalize_w2", "number_or_zero", "string_or_empty"]
