"""Prefill values for Form 1040-NR from a stored profile and its W-2 records."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from normalization.coercion import as_list, as_mapping, get_path, number_or_zero, string_or_empty

logger = logging.getLogger(__name__)

# federal_wages_and_taxes box -> (section, 1040-NR line)
W2_LINE_SOURCES = (
    ("box_1_wages_tips_other_comp", "income", "line_1a_wages_w2"),
    ("box_7_social_security_tips", "income", "line_1c_tip_income"),
    ("box_10_dependent_care_benefits", "income", "line_1e_dependent_care_benefits"),
    ("box_8_allocated_tips", "income", "line_1h_other_earned_income"),
    ("box_11_nonqualified_plans", "income", "line_8_other_income_schedule_1"),
    ("box_2_federal_income_tax_withheld", "payments", "line_25a_federal_tax_withheld_w2"),
)

LINE_1Z_PARTS = (
    "line_1a_wages_w2",
    "line_1c_tip_income",
    "line_1e_dependent_care_benefits",
    "line_1h_other_earned_income",
)


def to_middle_initial(value: Optional[str]) -> str:
    text = (value or "").strip().replace(".", "")
    return text[:1].upper()


def format_us_address(address: Optional[Mapping[str, Any]]) -> str:
    """Single-line "line1, line2, city, ST zip" address; empty parts are skipped."""
    if not address:
        return ""
    text = string_or_empty(address.get("addressLine1"))
    if address.get("addressLine2"):
        text += f", {address['addressLine2']}"
    if address.get("city"):
        text += f", {address['city']}"
    state = string_or_empty(address.get("state"))
    zip_code = string_or_empty(address.get("zip"))
    if state or zip_code:
        text += f", {state} {zip_code}"
    return text.strip()


def _record_year(record: Mapping[str, Any]) -> int:
    try:
        return int(record.get("tax_year") or 0)
    except (TypeError, ValueError):
        return 0


def select_w2s_for_year(w2s: Iterable[Any], tax_year: int) -> Tuple[int, List[Mapping[str, Any]]]:
    """
    W-2 records for ``tax_year``. When that year has none, the latest year on
    file is used instead and returned as the effective year.
    """
    records = [w for w in w2s if isinstance(w, Mapping)]
    selected = [w for w in records if _record_year(w) == tax_year]
    if selected or not records:
        return tax_year, selected
    latest = max(_record_year(w) for w in records)
    logger.info("No W-2 for %s; using latest available year %s", tax_year, latest)
    return latest, [w for w in records if _record_year(w) == latest]


def _sum_box(records: Iterable[Mapping[str, Any]], box: str) -> float:
    total = 0.0
    for record in records:
        total += number_or_zero(get_path(record, f"federal_wages_and_taxes.{box}"))
    return total


def build_f1040nr_prefill(user: Mapping[str, Any], tax_year: int) -> Dict[str, Any]:
    personal = as_mapping(user.get("personalInfo"))
    effective_year, w2s = select_w2s_for_year(as_list(user.get("w2")), tax_year)

    header = {
        "first_name_and_middle_initial": (
            f"{string_or_empty(personal.get('firstName'))} {to_middle_initial(personal.get('middleName'))}"
        ).strip(),
        "last_name": string_or_empty(personal.get("lastName")),
        "identifying_number": string_or_empty(personal.get("ssnTin")),
        "us_address": format_us_address(as_mapping(user.get("address"))),
    }
    sections: Dict[str, Dict[str, Any]] = {"income": {}, "payments": {}}
    for box, section, line in W2_LINE_SOURCES:
        amount = _sum_box(w2s, box)
        if amount:
            sections[section][line] = amount

    total = sum(sections["income"].get(line, 0.0) for line in LINE_1Z_PARTS)
    if total:
        sections["income"]["line_1z_total_wages"] = round(total, 2)

    sign_here: Dict[str, str] = {}
    if personal.get("phone"):
        sign_here["phone_number"] = string_or_empty(personal.get("phone"))
    if personal.get("email"):
        sign_here["email_address"] = string_or_empty(personal.get("email"))

    return {
        "tax_year": effective_year,
        "header": header,
        "income": sections["income"],
        "payments": sections["payments"],
        "sign_here": sign_here,
        "w2_count": len(w2s),
    }
