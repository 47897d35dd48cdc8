# Structured records for decoded ASC X12 835 (005010X221A1) remittance advice.
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CodedEnum(str, Enum):
    """Closed code set; values outside it map to UNKNOWN and the raw code is kept beside it."""

    @classmethod
    def from_code(cls, code: Optional[str]):
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class ClaimStatus(_CodedEnum):
    PROCESSED_PRIMARY = "1"
    PROCESSED_SECONDARY = "2"
    PROCESSED_TERTIARY = "3"
    DENIED = "4"
    PRIMARY_FORWARDED = "19"
    SECONDARY_FORWARDED = "20"
    TERTIARY_FORWARDED = "21"
    REVERSAL = "22"
    NOT_OUR_CLAIM = "23"
    REJECTED = "25"
    UNKNOWN = "UNKNOWN"


class AdjustmentGroup(_CodedEnum):
    CONTRACTUAL_OBLIGATION = "CO"
    PATIENT_RESPONSIBILITY = "PR"
    OTHER_ADJUSTMENT = "OA"
    PAYER_INITIATED = "PI"
    CORRECTION_REVERSAL = "CR"
    UNKNOWN = "UNKNOWN"


class PaymentMethod(_CodedEnum):
    CHECK = "CHK"
    ACH = "ACH"
    FEDERAL_WIRE = "FWT"
    FINANCIAL_INSTITUTION_OPTION = "BOP"
    NON_PAYMENT = "NON"
    UNKNOWN = "UNKNOWN"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Envelope ---

class InterchangeHeader(_Record):
    authorization_qualifier: str = ""
    authorization_info: str = ""
    security_qualifier: str = ""
    security_info: str = ""
    sender_qualifier: str = ""
    sender_id: str = ""
    receiver_qualifier: str = ""
    receiver_id: str = ""
    date: str = ""
    time: str = ""
    repetition_separator: str = ""
    version: str = ""
    control_number: str = ""
    acknowledgment_requested: str = ""
    usage_indicator: str = ""
    component_separator: str = ""


class GroupHeader(_Record):
    functional_id: str = ""
    sender_code: str = ""
    receiver_code: str = ""
    date: str = ""
    time: str = ""
    control_number: str = ""
    agency_code: str = ""
    version: str = ""


# --- Parties ---

class Address(_Record):
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    state: str = ""
    zip: str = ""


class ContactInfo(_Record):
    name: Optional[str] = None
    phone: Optional[str] = None
    phone_extension: Optional[str] = None
    fax: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None


class PayerIdentification(_Record):
    name: str = ""
    identifier: str = ""
    address: Optional[Address] = None
    technical_contact: Optional[ContactInfo] = None
    web_contact: Optional[ContactInfo] = None
    additional_id: Optional[str] = None


class ReferenceNumber(_Record):
    qualifier: str
    value: str
    description: Optional[str] = None


class PayeeIdentification(_Record):
    name: str = ""
    identifier_qualifier: str = ""
    identifier: str = ""
    npi: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[Address] = None
    additional_ids: List[ReferenceNumber] = Field(default_factory=list)


class EntityName(_Record):
    """NM1 person or organization name inside a claim."""
    entity_type: str = "1"
    last_name: str = ""
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    identifier_qualifier: Optional[str] = None
    identifier: Optional[str] = None


# --- Adjustments and supplemental data ---

class AdjustmentDetail(_Record):
    reason_code: str
    amount: Decimal
    quantity: Optional[Decimal] = None


class Adjustment(_Record):
    """One CAS segment: a group code shared by up to six reason/amount/quantity triples."""
    group_code: str
    group: AdjustmentGroup
    details: List[AdjustmentDetail] = Field(default_factory=list)


class ProcedureCode(_Record):
    qualifier: str = "HC"
    code: str = ""
    modifiers: List[str] = Field(default_factory=list)


class RemarkCode(_Record):
    qualifier: str
    code: str


class SupplementalAmount(_Record):
    qualifier: str
    amount: Decimal


class OutpatientAdjudication(_Record):
    """MOA segment."""
    reimbursement_rate: Optional[Decimal] = None
    hcpcs_payable_amount: Optional[Decimal] = None
    remark_codes: List[str] = Field(default_factory=list)
    esrd_payment_amount: Optional[Decimal] = None
    non_payable_professional_amount: Optional[Decimal] = None


class InpatientAdjudication(_Record):
    """MIA01..MIA04."""
    covered_days: Optional[Decimal] = None
    pps_operating_outlier_amount: Optional[Decimal] = None
    lifetime_psychiatric_days: Optional[Decimal] = None
    drg_amount: Optional[Decimal] = None


# --- Claims and service lines ---

class ServiceLinePayment(_Record):
    procedure: ProcedureCode
    charged_amount: Decimal
    paid_amount: Decimal
    revenue_code: Optional[str] = None
    units_paid: Optional[Decimal] = None
    original_procedure: Optional[ProcedureCode] = None
    units_billed: Optional[Decimal] = None
    service_date: Optional[str] = None
    service_date_end: Optional[str] = None
    adjustments: List[Adjustment] = Field(default_factory=list)
    reference_numbers: List[ReferenceNumber] = Field(default_factory=list)
    supplemental_amounts: List[SupplementalAmount] = Field(default_factory=list)
    remark_codes: List[RemarkCode] = Field(default_factory=list)
    allowed_amount: Optional[Decimal] = None


class RemittanceClaim(_Record):
    patient_account_number: str
    status_code: str
    status: ClaimStatus
    total_charged: Decimal
    total_paid: Decimal
    patient_responsibility: Optional[Decimal] = None
    claim_filing_indicator: Optional[str] = None
    payer_claim_control_number: Optional[str] = None
    facility_code: Optional[str] = None
    frequency_code: Optional[str] = None

    patient_name: Optional[EntityName] = None
    insured_name: Optional[EntityName] = None
    corrected_patient_name: Optional[EntityName] = None
    rendering_provider_npi: Optional[str] = None
    crossover_carrier: Optional[str] = None

    statement_from_date: Optional[str] = None
    statement_to_date: Optional[str] = None
    coverage_expiration_date: Optional[str] = None

    original_reference_number: Optional[str] = None
    payer_claim_id: Optional[str] = None
    institutional_bill_type: Optional[str] = None
    medical_record_number: Optional[str] = None
    other_reference_numbers: List[ReferenceNumber] = Field(default_factory=list)
    supplemental_amounts: List[SupplementalAmount] = Field(default_factory=list)

    outpatient_adjudication: Optional[OutpatientAdjudication] = None
    inpatient_adjudication: Optional[InpatientAdjudication] = None

    adjustments: List[Adjustment] = Field(default_factory=list)
    service_lines: List[ServiceLinePayment] = Field(default_factory=list)


class ProviderAdjustmentDetail(_Record):
    reason_code: str
    amount: Decimal
    reference_id: Optional[str] = None


class ProviderAdjustment(_Record):
    """PLB segment, not tied to any claim."""
    provider_identifier: str
    fiscal_period_date: str
    details: List[ProviderAdjustmentDetail] = Field(default_factory=list)


class RemittanceTransaction(_Record):
    control_number: str
    payment_method_code: str
    payment_method: PaymentMethod
    total_payment: Decimal
    credit_debit_flag: str = "C"
    sender_bank_id: Optional[str] = None
    sender_account_number: Optional[str] = None
    receiver_bank_id: Optional[str] = None
    receiver_account_number: Optional[str] = None
    check_number: str = ""
    trace_originator_id: Optional[str] = None
    trace_originator_supplemental_id: Optional[str] = None
    payment_date: str = ""
    payer: PayerIdentification = Field(default_factory=PayerIdentification)
    payee: PayeeIdentification = Field(default_factory=PayeeIdentification)
    claims: List[RemittanceClaim] = Field(default_factory=list)
    provider_adjustments: List[ProviderAdjustment] = Field(default_factory=list)


class DecodeResult(BaseModel):
    """
    Outcome of decoding one 835 interchange.

    An interchange may carry several ST..SE transactions, one per check or EFT.
    `claims` spans all of them; the other shortcuts read the first transaction.
    """
    success: bool
    interchange: Optional[InterchangeHeader] = None
    group: Optional[GroupHeader] = None
    transactions: List[RemittanceTransaction] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    segment_count: int = 0

    @property
    def transaction(self) -> Optional[RemittanceTransaction]:
        """The first transaction; most interchanges carry exactly one."""
        return self.transactions[0] if self.transactions else None

    @property
    def claims(self) -> List[RemittanceClaim]:
        return [claim for transaction in self.transactions for claim in transaction.claims]

    @property
    def check_number(self) -> Optional[str]:
        return self.transaction.check_number if self.transaction else None

    @property
    def total_payment(self) -> Optional[Decimal]:
        return self.transaction.total_payment if self.transaction else None

    @property
    def payment_date(self) -> Optional[str]:
        return self.transaction.payment_date if self.transaction else None

    @property
    def payer_name(self) -> Optional[str]:
        return self.transaction.payer.name if self.transaction else None

    @property
    def payer_id(self) -> Optional[str]:
        return self.transaction.payer.identifier if self.transaction else None

    @property
    def payee_name(self) -> Optional[str]:
        return self.transaction.payee.name if self.transaction else None
