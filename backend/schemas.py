from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class PersonalInfo(BaseModel):
    firstName: str
    middleName: Optional[str] = None
    lastName: str
    suffix: Optional[str] = None
    ssnTin: str = ""
    dateOfBirth: Optional[date] = None
    phone: str = ""
    email: str = ""


class Address(BaseModel):
    addressLine1: str = ""
    addressLine2: Optional[str] = None
    city: str = ""
    state: str = ""
    zip: str = ""
    residencyState: str = ""


class StudentInfo(BaseModel):
    universityName: str = ""


class ProfessionalInfo(BaseModel):
    employmentType: Literal["employed", "freelancer"]
    companyName: Optional[str] = None
    freelanceYears: Optional[int] = None


class StatusInfo(BaseModel):
    isUSResident: bool = False
    status: Literal["student", "professional"] = "student"
    studentInfo: Optional[StudentInfo] = None
    professionalInfo: Optional[ProfessionalInfo] = None


class UserFormData(BaseModel):
    personalInfo: PersonalInfo
    address: Address = Field(default_factory=Address)
    statusInfo: StatusInfo = Field(default_factory=StatusInfo)
    w2: List[Dict[str, Any]] = Field(default_factory=list)


class MinimalRegistration(BaseModel):
    firstName: str
    middleName: Optional[str] = None
    lastName: str
    suffix: Optional[str] = None
    dateOfBirth: date
    email: EmailStr

    def to_profile(self) -> UserFormData:
        """Expand a sign-up form into a full profile with empty address and status."""
        return UserFormData(
            personalInfo=PersonalInfo(
                firstName=self.firstName,
                middleName=self.middleName,
                lastName=self.lastName,
                suffix=self.suffix,
                dateOfBirth=self.dateOfBirth,
                email=str(self.email),
            )
        )


class UserUpdate(BaseModel):
    personalInfo: Optional[PersonalInfo] = None
    address: Optional[Address] = None
    statusInfo: Optional[StatusInfo] = None
    w2: Optional[List[Dict[str, Any]]] = None


class UserRead(BaseModel):
    id: str
    personalInfo: Dict[str, Any]
    address: Dict[str, Any]
    statusInfo: Dict[str, Any]
    w2: List[Dict[str, Any]] = Field(default_factory=list)
    createdAt: datetime
    updatedAt: datetime


class FormFieldRead(BaseModel):
    name: str
    type: str
    value: Any = None


class FormFieldsResponse(BaseModel):
    form: str
    fields: List[FormFieldRead]


class FillFormRequest(BaseModel):
    # Keys are logical names from config/forms.yaml or fully-qualified AcroForm names.
    values: Dict[str, Any] = Field(default_factory=dict)
    # Structured input for the form's value builder (e.g. visaInfo for 8843).
    data: Dict[str, Any] = Field(default_factory=dict)


class F1040NRPrefill(BaseModel):
    tax_year: int
    header: Dict[str, str]
    income: Dict[str, float] = Field(default_factory=dict)
    payments: Dict[str, float] = Field(default_factory=dict)
    sign_here: Dict[str, str] = Field(default_factory=dict)
    w2_count: int = 0
