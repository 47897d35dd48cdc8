# Input, finding and result models for 837P professional claim generation.
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ClaimInputModel(BaseModel):
    """Accepts both snake_case names and the camelCase keys callers send as JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitterInfo(_ClaimInputModel):
    """Loop 1000A submitter; submitter_id also fills ISA06 and GS02."""
    name: Optional[str] = None
    submitter_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class BillingProvider(_ClaimInputModel):
    """Loop 2010AA billing provider (practice or clinic)."""
    name: Optional[str] = None
    npi: Optional[str] = None
    taxonomy_code: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    tax_id: Optional[str] = None


class RenderingProvider(_ClaimInputModel):
    """Loop 2310B rendering provider (individual therapist)."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    npi: Optional[str] = None
    taxonomy_code: Optional[str] = None


class PatientSubscriber(_ClaimInputModel):
    """Loop 2010BA subscriber, who is also the patient."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = Field(None, description="YYYY-MM-DD")
    gender: Optional[str] = Field(None, description="M, F or U")
    medicaid_id: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None


class ClaimDetails(_ClaimInputModel):
    """Loop 2300 claim header."""
    claim_id: Optional[str] = Field(None, description="Patient account number, at most 20 characters on the wire.")
    total_charge: Optional[Decimal] = None
    place_of_service: Optional[str] = None
    date_of_service: Optional[str] = None
    diagnosis_codes: List[str] = Field(default_factory=list, description="ICD-10 codes; the first is principal.")
    frequency_code: str = "1"
    prior_auth_number: Optional[str] = None


class ServiceLine(_ClaimInputModel):
    """Loop 2400 service line."""
    cpt_code: Optional[str] = None
    modifiers: List[str] = Field(default_factory=list)
    units: Optional[Decimal] = None
    charge_amount: Optional[Decimal] = None
    date_of_service: Optional[str] = None
    icd_pointers: List[int] = Field(default_factory=list, description="1-based indexes into diagnosis_codes.")


class Claim837PInput(_ClaimInputModel):
    submitter: Optional[SubmitterInfo] = None
    billing_provider: Optional[BillingProvider] = None
    rendering_provider: Optional[RenderingProvider] = None
    patient: Optional[PatientSubscriber] = None
    claim: Optional[ClaimDetails] = None
    service_lines: List[ServiceLine] = Field(default_factory=list)


class FindingSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationFinding(BaseModel):
    """A single problem found before generation. ERROR blocks encoding."""
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    severity: FindingSeverity = FindingSeverity.ERROR


class ControlNumbers(BaseModel):
    model_config = ConfigDict(frozen=True)

    isa: str = ""
    gs: str = ""
    st: str = ""


class GenerationResult(BaseModel):
    success: bool
    edi_content: Optional[str] = None
    edi_content_formatted: Optional[str] = None
    errors: List[ValidationFinding] = Field(default_factory=list)
    control_numbers: ControlNumbers = Field(default_factory=ControlNumbers)
    segment_count: int = 0
    file_name: Optional[str] = None


class EncoderSettings(BaseModel):
    """Gateway-specific envelope values used by the encoder."""
    model_config = ConfigDict(frozen=True)

    receiver_id: str = "330897513"
    receiver_name: str = "TMHP"
    payer_name: str = "TEXAS MEDICAID"
    payer_id: str = "330897513"
    usage_indicator: Literal["P", "T"] = "P"
    implementation_reference: str = "005010X222A1"
    claim_filing_indicator: str = "MC"
