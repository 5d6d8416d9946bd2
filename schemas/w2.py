"""Typed, fully-defaulted schema for a normalized Form W-2 (Wage and Tax Statement)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

BOX_12_CODES = frozenset(
    {
        "A", "B", "C", "D", "E", "F", "G", "H", "J", "K", "L", "M", "N", "P", "Q",
        "R", "S", "T", "V", "W", "Y", "Z", "AA", "BB", "DD", "EE", "FF", "GG", "HH", "II",
    }
)
MAX_BOX_12_ITEMS = 4


@dataclass
class W2EmployerAddress:
    name: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass
class W2EmployeeName:
    first: str = ""
    middle_initial: str = ""
    last: str = ""
    suffix: str = ""


@dataclass
class W2EmployeeAddress:
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass
class W2IdentificationAndAddress:
    box_a_employee_ssn: str = ""
    box_b_employer_ein: str = ""
    box_c_employer_name_address_zip: W2EmployerAddress = field(default_factory=W2EmployerAddress)
    box_d_control_number: str = ""
    box_e_employee_name: W2EmployeeName = field(default_factory=W2EmployeeName)
    box_f_employee_address_zip: W2EmployeeAddress = field(default_factory=W2EmployeeAddress)


@dataclass
class W2Box12Item:
    code: str = ""
    amount: float = 0.0


@dataclass
class W2Box13Checkboxes:
    statutory_employee: bool = False
    retirement_plan: bool = False
    third_party_sick_pay: bool = False


@dataclass
class W2Box14Item:
    label: str = ""
    amount: float = 0.0


@dataclass
class W2FederalWagesAndTaxes:
    box_1_wages_tips_other_comp: float = 0.0
    box_2_federal_income_tax_withheld: float = 0.0
    box_3_social_security_wages: float = 0.0
    box_4_social_security_tax_withheld: float = 0.0
    box_5_medicare_wages_and_tips: float = 0.0
    box_6_medicare_tax_withheld: float = 0.0
    box_7_social_security_tips: float = 0.0
    box_8_allocated_tips: float = 0.0
    box_9_reserved: str = ""
    box_10_dependent_care_benefits: float = 0.0
    box_11_nonqualified_plans: float = 0.0
    box_12_items: List[W2Box12Item] = field(default_factory=list)
    box_13_checkboxes: W2Box13Checkboxes = field(default_factory=W2Box13Checkboxes)
    box_14_other: List[W2Box14Item] = field(default_factory=list)


@dataclass
class W2LocalEntry:
    box_20_locality_name: str = ""
    # Local amounts stay None when the form leaves them blank.
    box_18_local_wages: Optional[float] = None
    box_19_local_income_tax: Optional[float] = None


@dataclass
class W2StateEntry:
    box_15_state: str = ""
    box_15_employer_state_id: str = ""
    box_16_state_wages: float = 0.0
    box_17_state_income_tax: float = 0.0
    locals: List[W2LocalEntry] = field(default_factory=list)


@dataclass
class W2StateAndLocal:
    entries: List[W2StateEntry] = field(default_factory=list)


@dataclass
class W2CopiesMetadata:
    copy: str = ""
    void_indicator: bool = False


@dataclass
class W2Record:
    tax_year: int = 0
    identification_and_address: W2IdentificationAndAddress = field(default_factory=W2IdentificationAndAddress)
    federal_wages_and_taxes: W2FederalWagesAndTaxes = field(default_factory=W2FederalWagesAndTaxes)
    state_and_local: W2StateAndLocal = field(default_factory=W2StateAndLocal)
    copies_metadata: W2CopiesMetadata = field(default_factory=W2CopiesMetadata)

    def to_document_dict(self) -> Dict[str, Any]:
        return asdict(self)
