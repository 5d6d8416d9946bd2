"""Normalize an arbitrarily-shaped W-2 JSON value into a ``W2Record``.

``normalize_w2`` never raises: missing, null or wrong-typed fields fall back to
defaults so the model output can be stored and used to fill forms as-is.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Mapping, Optional

from normalization.coercion import (
    as_list,
    as_mapping,
    boolean_or_false,
    number_or_zero,
    optional_number,
    string_or_empty,
)
from schemas.w2 import (
    BOX_12_CODES,
    MAX_BOX_12_ITEMS,
    W2Box12Item,
    W2Box13Checkboxes,
    W2Box14Item,
    W2CopiesMetadata,
    W2EmployeeAddress,
    W2EmployeeName,
    W2EmployerAddress,
    W2FederalWagesAndTaxes,
    W2IdentificationAndAddress,
    W2LocalEntry,
    W2Record,
    W2StateAndLocal,
    W2StateEntry,
)

logger = logging.getLogger(__name__)


def _employer_address(raw: Mapping[str, Any]) -> W2EmployerAddress:
    return W2EmployerAddress(
        name=string_or_empty(raw.get("name")),
        address_line1=string_or_empty(raw.get("address_line1")),
        address_line2=string_or_empty(raw.get("address_line2")),
        city=string_or_empty(raw.get("city")),
        state=string_or_empty(raw.get("state")),
        zip=string_or_empty(raw.get("zip")),
    )


def _employee_name(raw: Mapping[str, Any]) -> W2EmployeeName:
    return W2EmployeeName(
        first=string_or_empty(raw.get("first")),
        middle_initial=string_or_empty(raw.get("middle_initial")),
        last=string_or_empty(raw.get("last")),
        suffix=string_or_empty(raw.get("suffix")),
    )


def _employee_address(raw: Mapping[str, Any]) -> W2EmployeeAddress:
    return W2EmployeeAddress(
        address_line1=string_or_empty(raw.get("address_line1")),
        address_line2=string_or_empty(raw.get("address_line2")),
        city=string_or_empty(raw.get("city")),
        state=string_or_empty(raw.get("state")),
        zip=string_or_empty(raw.get("zip")),
    )


def _identification(raw: Mapping[str, Any]) -> W2IdentificationAndAddress:
    return W2IdentificationAndAddress(
        box_a_employee_ssn=string_or_empty(raw.get("box_a_employee_ssn")),
        box_b_employer_ein=string_or_empty(raw.get("box_b_employer_ein")),
        box_c_employer_name_address_zip=_employer_address(as_mapping(raw.get("box_c_employer_name_address_zip"))),
        box_d_control_number=string_or_empty(raw.get("box_d_control_number")),
        box_e_employee_name=_employee_name(as_mapping(raw.get("box_e_employee_name"))),
        box_f_employee_address_zip=_employee_address(as_mapping(raw.get("box_f_employee_address_zip"))),
    )


def normalize_box_12(items: Any) -> List[W2Box12Item]:
    """Keep the first four entries that carry a code, in their original order."""
    coded = [item for item in as_list(items) if isinstance(item, Mapping) and item.get("code")]
    for item in coded[:MAX_BOX_12_ITEMS]:
        if string_or_empty(item.get("code")).strip().upper() not in BOX_12_CODES:
            logger.debug("Unrecognized box 12 code %r kept as read", item.get("code"))
    return [
        W2Box12Item(code=string_or_empty(item.get("code")), amount=number_or_zero(item.get("amount")))
        for item in coded[:MAX_BOX_12_ITEMS]
    ]


def normalize_box_14(items: Any) -> List[W2Box14Item]:
    return [
        W2Box14Item(label=string_or_empty(item.get("label")), amount=number_or_zero(item.get("amount")))
        for item in as_list(items)
        if isinstance(item, Mapping) and (item.get("label") or item.get("amount"))
    ]


def _federal(raw: Mapping[str, Any]) -> W2FederalWagesAndTaxes:
    checkboxes = as_mapping(raw.get("box_13_checkboxes"))
    return W2FederalWagesAndTaxes(
        box_1_wages_tips_other_comp=number_or_zero(raw.get("box_1_wages_tips_other_comp")),
        box_2_federal_income_tax_withheld=number_or_zero(raw.get("box_2_federal_income_tax_withheld")),
        box_3_social_security_wages=number_or_zero(raw.get("box_3_social_security_wages")),
        box_4_social_security_tax_withheld=number_or_zero(raw.get("box_4_social_security_tax_withheld")),
        box_5_medicare_wages_and_tips=number_or_zero(raw.get("box_5_medicare_wages_and_tips")),
        box_6_medicare_tax_withheld=number_or_zero(raw.get("box_6_medicare_tax_withheld")),
        box_7_social_security_tips=number_or_zero(raw.get("box_7_social_security_tips")),
        box_8_allocated_tips=number_or_zero(raw.get("box_8_allocated_tips")),
        box_9_reserved=string_or_empty(raw.get("box_9_reserved")),
        box_10_dependent_care_benefits=number_or_zero(raw.get("box_10_dependent_care_benefits")),
        box_11_nonqualified_plans=number_or_zero(raw.get("box_11_nonqualified_plans")),
        box_12_items=normalize_box_12(raw.get("box_12_items")),
        box_13_checkboxes=W2Box13Checkboxes(
            statutory_employee=boolean_or_false(checkboxes.get("statutory_employee")),
            retirement_plan=boolean_or_false(checkboxes.get("retirement_plan")),
            third_party_sick_pay=boolean_or_false(checkboxes.get("third_party_sick_pay")),
        ),
        box_14_other=normalize_box_14(raw.get("box_14_other")),
    )


def normalize_locals(items: Any) -> List[W2LocalEntry]:
    return [
        W2LocalEntry(
            box_20_locality_name=string_or_empty(item.get("box_20_locality_name")),
            box_18_local_wages=optional_number(item.get("box_18_local_wages")),
            box_19_local_income_tax=optional_number(item.get("box_19_local_income_tax")),
        )
        for item in as_list(items)
        if isinstance(item, Mapping)
        and (item.get("box_20_locality_name") or item.get("box_18_local_wages") or item.get("box_19_local_income_tax"))
    ]


def normalize_state_entries(items: Any) -> List[W2StateEntry]:
    return [
        W2StateEntry(
            box_15_state=string_or_empty(entry.get("box_15_state")),
            box_15_employer_state_id=string_or_empty(entry.get("box_15_employer_state_id")),
            box_16_state_wages=number_or_zero(entry.get("box_16_state_wages")),
            box_17_state_income_tax=number_or_zero(entry.get("box_17_state_income_tax")),
            locals=normalize_locals(entry.get("locals")),
        )
        for entry in as_list(items)
        if isinstance(entry, Mapping)
    ]


def _tax_year(value: Any, default_tax_year: Optional[int]) -> int:
    """Whole-number year; fractions truncate, so anything below 1 falls back to the default."""
    year = int(number_or_zero(value))
    if year:
        return year
    return default_tax_year or date.today().year


def normalize_w2(parsed: Any, *, default_tax_year: Optional[int] = None) -> W2Record:
    """Build a fully-populated ``W2Record`` from untrusted JSON."""
    raw = as_mapping(parsed)
    copies = as_mapping(raw.get("copies_metadata"))
    return W2Record(
        tax_year=_tax_year(raw.get("tax_year"), default_tax_year),
        identification_and_address=_identification(as_mapping(raw.get("identification_and_address"))),
        federal_wages_and_taxes=_federal(as_mapping(raw.get("federal_wages_and_taxes"))),
        state_and_local=W2StateAndLocal(
            entries=normalize_state_entries(as_mapping(raw.get("state_and_local")).get("entries"))
        ),
        copies_metadata=W2CopiesMetadata(
            copy=string_or_empty(copies.get("copy")),
            void_indicator=boolean_or_false(copies.get("void_indicator")),
        ),
    )


normalize = normalize_w2
