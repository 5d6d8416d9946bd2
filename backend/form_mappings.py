"""Form registry and logical-name -> AcroForm field mapping tables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "forms.yaml"


def _validate_form_entry(key: str, data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"Config for form {key} must be a mapping.")
    missing = [k for k in ("pdf", "download") if not data.get(k)]
    if missing:
        raise ValueError(f"Config for form {key} missing required keys: {', '.join(missing)}")
    if not isinstance(data.get("fields") or {}, dict):
        raise ValueError(f"Config for form {key}: 'fields' must be a mapping.")


@lru_cache(maxsize=1)
def load_form_config() -> Dict[str, Dict[str, Any]]:
    """Load config/forms.yaml keyed by form key (e.g. "f8843")."""
    if not CONFIG_PATH.exists():
        raise FileNotFoundError(f"Form config not found at {CONFIG_PATH}")
    with CONFIG_PATH.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    config: Dict[str, Dict[str, Any]] = {}
    for key, data in raw.items():
        _validate_form_entry(str(key), data)
        data.setdefault("fields", {})
        config[str(key)] = data
    return config


def get_form(form_key: str) -> Dict[str, Any]:
    config = load_form_config()
    if form_key not in config:
        raise KeyError(f"Unknown form: {form_key}")
    return config[form_key]


def map_logical_values(form_key: str, values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Translate logical value names into AcroForm field names.
    Names that already look like AcroForm names (contain "[") pass through;
    anything else without a mapping is dropped.
    """
    table: Dict[str, str] = get_form(form_key)["fields"]
    known_targets = set(table.values())
    mapped: Dict[str, Any] = {}
    for name, value in values.items():
        if name in table:
            mapped[table[name]] = value
        elif name in known_targets or "[" in name:
            mapped[name] = value
        else:
            logger.debug("Dropping unmapped value %s for form %s", name, form_key)
    return mapped


def flatten_values(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested sections into dotted logical names ("income.line_1a_wages_w2")."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_values(value, name))
        else:
            flat[name] = value
    return flat


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def build_f8843_values(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Compose Form 8843 lines from structured visa/status/presence data."""
    visa = data.get("visaInfo") or {}
    status = data.get("nonimmigrantStatus") or {}
    passport = data.get("passport") or {}
    days = data.get("daysPresent") or {}

    visa_line = _text(visa.get("type"))
    if visa.get("entryDate"):
        visa_line = f"{visa_line} - Entered: {_text(visa.get('entryDate'))}"

    status_line = _text(status.get("current"))
    if status.get("changed") and status.get("changeDate"):
        status_line += f" - Changed on {_text(status.get('changeDate'))}"
    if status.get("changed") and status.get("previousStatus"):
        status_line += f" from {_text(status.get('previousStatus'))}"

    return {
        "first_name": _text(data.get("firstName")),
        "last_name": _text(data.get("lastName")),
        "tax_id": _text(data.get("taxId")),
        "foreign_address": _text(data.get("foreignAddress")),
        "us_address": _text(data.get("usAddress")),
        "visa_line": visa_line.strip(),
        "status_line": status_line.strip(),
        "citizenship_countries": _text(data.get("citizenshipCountries")),
        "passport_issuing_countries": _text(passport.get("issuingCountries")),
        "passport_numbers": _text(passport.get("numbers")),
        "days_present_current_year": _text(days.get("currentYear")),
        "days_present_prior_year": _text(days.get("priorYear")),
        "days_present_second_prior_year": _text(days.get("secondPriorYear")),
        "days_excluded_current_year": _text(days.get("excludedCurrentYear")),
    }


VALUE_BUILDERS: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    "f8843": build_f8843_values,
    "f1040nr": flatten_values,
}


def build_form_values(form_key: str, values: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge builder output for structured ``data`` with explicit ``values`` (explicit wins)."""
    logical: Dict[str, Any] = {}
    builder = VALUE_BUILDERS.get(form_key)
    if data and builder is not None:
        logical.update(builder(data))
    logical.update(values)
    return map_logical_values(form_key, logical)
