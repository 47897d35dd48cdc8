import logging
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from reason_codes import (
    DenialCategory,
    classify_denial,
    describe_claim_status,
    describe_adjustment_group,
    describe_payment_method,
    lookup_carc,
    lookup_plb_reason,
    lookup_rarc,
)
from remit_models import (
    Adjustment,
    ClaimStatus,
    DecodeResult,
    RemittanceClaim,
    RemittanceTransaction,
    ServiceLinePayment,
)
from segment_grammar import display_date, format_amount, format_quantity

logger = logging.getLogger(__name__)

_ZERO = Decimal('0')
UNDERPAYMENT_TOLERANCE = Decimal('0.01')
RECOUPMENT_REASONS = frozenset({'WO', 'WU'})
_NOT_PAID_STATUSES = (ClaimStatus.DENIED, ClaimStatus.REVERSAL)


class FlagType(str, Enum):
    UNDERPAYMENT = "UNDERPAYMENT"
    DENIAL = "DENIAL"
    PARTIAL_DENIAL = "PARTIAL_DENIAL"
    REVERSAL = "REVERSAL"
    UNUSUAL_ADJUSTMENT = "UNUSUAL_ADJUSTMENT"
    VISIT_LIMIT_EXCEEDED = "VISIT_LIMIT_EXCEEDED"
    NO_PRIOR_AUTH = "NO_PRIOR_AUTH"
    BUNDLED_SERVICE = "BUNDLED_SERVICE"
    MEDICAL_NECESSITY = "MEDICAL_NECESSITY"
    RECOUPMENT = "RECOUPMENT"
    ZERO_PAYMENT = "ZERO_PAYMENT"
    UNITS_REDUCED = "UNITS_REDUCED"


class FlagSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


DENIAL_CATEGORY_FLAGS = {
    DenialCategory.VISIT_LIMIT: FlagType.VISIT_LIMIT_EXCEEDED,
    DenialCategory.NO_PRIOR_AUTH: FlagType.NO_PRIOR_AUTH,
    DenialCategory.BUNDLED: FlagType.BUNDLED_SERVICE,
    DenialCategory.MEDICAL_NECESSITY: FlagType.MEDICAL_NECESSITY,
    DenialCategory.NOT_COVERED: FlagType.DENIAL,
    DenialCategory.OTHER: FlagType.DENIAL,
}


class _Summary(BaseModel):
    model_config = ConfigDict(frozen=True)


class SummaryFlag(_Summary):
    type: FlagType
    message: str
    severity: FlagSeverity
    claim_id: Optional[str] = None
    line_index: Optional[int] = None


class AdjustmentSummaryDetail(_Summary):
    group_code: str
    group_description: str
    reason_code: str
    reason_description: str
    amount: Decimal


class DenialReasonSummary(_Summary):
    reason_code: str
    description: str
    remark_codes: List[str] = Field(default_factory=list)
    remark_descriptions: List[str] = Field(default_factory=list)


class ServiceLineSummary(_Summary):
    cpt_code: str
    modifiers: List[str] = Field(default_factory=list)
    service_date: Optional[str] = None
    charged_amount: Decimal
    allowed_amount: Decimal
    paid_amount: Decimal
    units_billed: Optional[Decimal] = None
    units_paid: Optional[Decimal] = None
    patient_responsibility: Decimal
    contractual_adjustment: Decimal
    other_adjustments: Decimal
    adjustment_details: List[AdjustmentSummaryDetail] = Field(default_factory=list)
    is_denied: bool
    denial_reasons: List[DenialReasonSummary] = Field(default_factory=list)

    @property
    def units_reduced(self) -> bool:
        return self.units_billed is not None and self.units_paid is not None and self.units_paid < self.units_billed


class ClaimSummary(_Summary):
    patient_account_number: str
    patient_name: str
    claim_status: str
    claim_status_description: str
    charged_amount: Decimal
    allowed_amount: Decimal
    paid_amount: Decimal
    patient_responsibility: Decimal
    contractual_adjustment: Decimal
    other_adjustments: Decimal
    payer_claim_control_number: Optional[str] = None
    statement_date_range: Optional[str] = None
    service_lines: List[ServiceLineSummary] = Field(default_factory=list)
    denial_reasons: List[DenialReasonSummary] = Field(default_factory=list)
    flags: List[SummaryFlag] = Field(default_factory=list)


class ProviderAdjustmentSummary(_Summary):
    reason_code: str
    reason_description: str
    amount: Decimal
    reference_id: Optional[str] = None


class PaymentSummary(_Summary):
    """Posting summary for one check or EFT."""
    check_number: str
    payment_method: str
    payment_date: str
    payer_name: str
    payer_id: str
    payee_name: str
    payee_npi: Optional[str] = None
    total_payment_amount: Decimal
    total_charged_amount: Decimal
    total_allowed_amount: Decimal
    total_patient_responsibility: Decimal
    total_contractual_adjustment: Decimal
    total_other_adjustments: Decimal
    provider_adjustment_total: Decimal
    claim_count: int
    paid_claim_count: int
    denied_claim_count: int
    reversal_count: int
    claims: List[ClaimSummary] = Field(default_factory=list)
    provider_adjustments: List[ProviderAdjustmentSummary] = Field(default_factory=list)
    flags: List[SummaryFlag] = Field(default_factory=list)


# --- Helpers ---

def sum_adjustments(adjustments: Iterable[Adjustment], group_code: str) -> Decimal:
    return sum(
        (detail.amount for adj in adjustments if adj.group_code == group_code for detail in adj.details),
        _ZERO,
    )


def format_patient_name(claim: RemittanceClaim) -> str:
    """'LAST, FIRST, MIDDLE' from the NM1*QC name, or 'Unknown Patient'."""
    name = claim.patient_name
    if name is None or not name.last_name:
        return "Unknown Patient"
    return ", ".join(part for part in (name.last_name, name.first_name, name.middle_name) if part)


def format_statement_range(claim: RemittanceClaim) -> Optional[str]:
    if not claim.statement_from_date:
        return None
    date_range = display_date(claim.statement_from_date)
    if claim.statement_to_date and claim.statement_to_date != claim.statement_from_date:
        date_range += f" - {display_date(claim.statement_to_date)}"
    return date_range


def _is_denied_line(line: ServiceLinePayment) -> bool:
    return line.paid_amount == 0 and line.charged_amount > 0


# --- Service lines ---

def build_service_line_summary(line: ServiceLinePayment) -> ServiceLineSummary:
    contractual = sum_adjustments(line.adjustments, 'CO')
    patient_resp = sum_adjustments(line.adjustments, 'PR')
    other = sum_adjustments(line.adjustments, 'OA') + sum_adjustments(line.adjustments, 'PI')
    allowed = line.allowed_amount if line.allowed_amount is not None else line.charged_amount - contractual
    is_denied = _is_denied_line(line)

    adjustment_details = [
        AdjustmentSummaryDetail(
            group_code=adj.group_code,
            group_description=describe_adjustment_group(adj.group_code),
            reason_code=detail.reason_code,
            reason_description=lookup_carc(detail.reason_code),
            amount=detail.amount,
        )
        for adj in line.adjustments
        for detail in adj.details
    ]

    denial_reasons: List[DenialReasonSummary] = []
    if is_denied:
        remark_codes = [remark.code for remark in line.remark_codes]
        for adj in line.adjustments:
            for detail in adj.details:
                if detail.amount > 0 or adj.group_code != 'CO':
                    denial_reasons.append(DenialReasonSummary(
                        reason_code=detail.reason_code,
                        description=lookup_carc(detail.reason_code),
                        remark_codes=remark_codes,
                        remark_descriptions=[lookup_rarc(code) for code in remark_codes],
                    ))

    return ServiceLineSummary(
        cpt_code=line.procedure.code,
        modifiers=list(line.procedure.modifiers),
        service_date=display_date(line.service_date) if line.service_date else None,
        charged_amount=line.charged_amount,
        allowed_amount=allowed,
        paid_amount=line.paid_amount,
        units_billed=line.units_billed,
        units_paid=line.units_paid,
        patient_responsibility=patient_resp,
        contractual_adjustment=contractual,
        other_adjustments=other,
        adjustment_details=adjustment_details,
        is_denied=is_denied,
        denial_reasons=denial_reasons,
    )


# --- Claims ---

def collect_denial_reasons(claim: RemittanceClaim) -> List[DenialReasonSummary]:
    """Claim-level and denied-line reasons, first occurrence of each reason code wins."""
    reasons: List[DenialReasonSummary] = []

    if claim.status == ClaimStatus.DENIED or claim.total_paid == 0:
        claim_remarks = claim.outpatient_adjudication.remark_codes if claim.outpatient_adjudication else []
        for adj in claim.adjustments:
            for detail in adj.details:
                if detail.amount > 0:
                    reasons.append(DenialReasonSummary(
                        reason_code=detail.reason_code,
                        description=lookup_carc(detail.reason_code),
                        remark_codes=list(claim_remarks),
                        remark_descriptions=[lookup_rarc(code) for code in claim_remarks],
                    ))

    for line in claim.service_lines:
        if not _is_denied_line(line):
            continue
        line_remarks = [remark.code for remark in line.remark_codes]
        for adj in line.adjustments:
            for detail in adj.details:
                if detail.amount > 0:
                    reasons.append(DenialReasonSummary(
                        reason_code=detail.reason_code,
                        description=lookup_carc(detail.reason_code),
                        remark_codes=line_remarks,
                        remark_descriptions=[lookup_rarc(code) for code in line_remarks],
                    ))

    seen = set()
    unique: List[DenialReasonSummary] = []
    for reason in reasons:
        if reason.reason_code not in seen:
            seen.add(reason.reason_code)
            unique.append(reason)
    return unique


def build_claim_flags(claim: RemittanceClaim, lines: List[ServiceLineSummary], allowed: Decimal) -> List[SummaryFlag]:
    flags: List[SummaryFlag] = []
    claim_id = claim.patient_account_number

    if claim.status == ClaimStatus.DENIED:
        flags.append(SummaryFlag(
            type=FlagType.DENIAL, message=f"Claim {claim_id} was fully denied",
            severity=FlagSeverity.CRITICAL, claim_id=claim_id,
        ))

    if claim.status == ClaimStatus.REVERSAL:
        flags.append(SummaryFlag(
            type=FlagType.REVERSAL, message=f"Claim {claim_id} is a reversal of a previous payment",
            severity=FlagSeverity.WARNING, claim_id=claim_id,
        ))

    denied_count = sum(1 for line in lines if line.is_denied)
    if 0 < denied_count < len(lines):
        flags.append(SummaryFlag(
            type=FlagType.PARTIAL_DENIAL,
            message=f"Claim {claim_id}: {denied_count} of {len(lines)} service lines denied",
            severity=FlagSeverity.WARNING, claim_id=claim_id,
        ))

    for index, line in enumerate(lines):
        if line.units_reduced:
            flags.append(SummaryFlag(
                type=FlagType.UNITS_REDUCED,
                message=(
                    f"Claim {claim_id}, CPT {line.cpt_code}: {format_quantity(line.units_billed)} units billed, "
                    f"{format_quantity(line.units_paid)} units paid"
                ),
                severity=FlagSeverity.WARNING, claim_id=claim_id, line_index=index,
            ))

    all_adjustments = list(claim.adjustments) + [adj for line in claim.service_lines for adj in line.adjustments]
    for adj in all_adjustments:
        for detail in adj.details:
            classification = classify_denial(detail.reason_code)
            if not classification.is_denial or classification.category is None:
                continue
            flag_type = DENIAL_CATEGORY_FLAGS[classification.category]
            # One flag per type per claim, including the status-based DENIAL
            if any(f.type == flag_type for f in flags):
                continue
            flags.append(SummaryFlag(
                type=flag_type,
                message=f"Claim {claim_id}: {lookup_carc(detail.reason_code)} (CARC {detail.reason_code})",
                severity=FlagSeverity.CRITICAL if flag_type == FlagType.DENIAL else FlagSeverity.WARNING,
                claim_id=claim_id,
            ))

    if claim.status not in _NOT_PAID_STATUSES and claim.total_paid > 0 and allowed > 0:
        expected = allowed - sum_adjustments(claim.adjustments, 'PR')
        if expected > 0 and claim.total_paid < expected - UNDERPAYMENT_TOLERANCE:
            flags.append(SummaryFlag(
                type=FlagType.UNDERPAYMENT,
                message=(
                    f"Claim {claim_id}: Paid ${format_amount(claim.total_paid)} but expected "
                    f"${format_amount(expected)} based on allowed amount"
                ),
                severity=FlagSeverity.WARNING, claim_id=claim_id,
            ))

    return flags


def build_claim_summary(claim: RemittanceClaim) -> ClaimSummary:
    lines = [build_service_line_summary(line) for line in claim.service_lines]

    contractual = sum_adjustments(claim.adjustments, 'CO') + sum((l.contractual_adjustment for l in lines), _ZERO)

    if claim.patient_responsibility:
        patient_resp = claim.patient_responsibility
    else:
        patient_resp = sum_adjustments(claim.adjustments, 'PR') + sum((l.patient_responsibility for l in lines), _ZERO)

    other = (
        sum_adjustments(claim.adjustments, 'OA')
        + sum_adjustments(claim.adjustments, 'PI')
        + sum((l.other_adjustments for l in lines), _ZERO)
    )

    # AMT*AU, then the line allowed amounts, then charged minus contractual
    reported_allowed = next((amt.amount for amt in claim.supplemental_amounts if amt.qualifier == 'AU'), None)
    if reported_allowed is not None:
        allowed = reported_allowed
    else:
        line_allowed = sum((l.allowed_amount for l in lines), _ZERO)
        allowed = line_allowed if line_allowed != 0 else claim.total_charged - contractual

    return ClaimSummary(
        patient_account_number=claim.patient_account_number,
        patient_name=format_patient_name(claim),
        claim_status=claim.status_code,
        claim_status_description=describe_claim_status(claim.status_code),
        charged_amount=claim.total_charged,
        allowed_amount=allowed,
        paid_amount=claim.total_paid,
        patient_responsibility=patient_resp,
        contractual_adjustment=contractual,
        other_adjustments=other,
        payer_claim_control_number=claim.payer_claim_control_number,
        statement_date_range=format_statement_range(claim),
        service_lines=lines,
        denial_reasons=collect_denial_reasons(claim),
        flags=build_claim_flags(claim, lines, allowed),
    )


# --- Transactions ---

def flatten_provider_adjustments(transaction: RemittanceTransaction) -> List[ProviderAdjustmentSummary]:
    return [
        ProviderAdjustmentSummary(
            reason_code=detail.reason_code,
            reason_description=lookup_plb_reason(detail.reason_code),
            amount=detail.amount,
            reference_id=detail.reference_id,
        )
        for plb in transaction.provider_adjustments
        for detail in plb.details
    ]


def build_payment_summary(transaction: RemittanceTransaction) -> PaymentSummary:
    """
    Builds the posting summary for one remittance transaction (one check or EFT).

    Totals are sums over the claim summaries. Claim flags are carried up and
    transaction-level flags (recoupments, zero payment) are appended after them.
    """
    claims = [build_claim_summary(claim) for claim in transaction.claims]

    total_charged = sum((c.charged_amount for c in claims), _ZERO)
    provider_adjustments = flatten_provider_adjustments(transaction)

    flags: List[SummaryFlag] = [flag for claim in claims for flag in claim.flags]
    for adjustment in provider_adjustments:
        if adjustment.reason_code in RECOUPMENT_REASONS:
            flags.append(SummaryFlag(
                type=FlagType.RECOUPMENT,
                message=f"Provider-level recoupment: {adjustment.reason_description} (${format_amount(abs(adjustment.amount))})",
                severity=FlagSeverity.WARNING,
            ))

    if transaction.total_payment == 0 and total_charged > 0:
        flags.append(SummaryFlag(
            type=FlagType.ZERO_PAYMENT,
            message="Total payment amount is $0.00 - all claims may be denied or adjusted",
            severity=FlagSeverity.CRITICAL,
        ))

    summary = PaymentSummary(
        check_number=transaction.check_number,
        payment_method=describe_payment_method(transaction.payment_method_code),
        payment_date=display_date(transaction.payment_date) or '',
        payer_name=transaction.payer.name,
        payer_id=transaction.payer.identifier,
        payee_name=transaction.payee.name,
        payee_npi=transaction.payee.npi,
        total_payment_amount=transaction.total_payment,
        total_charged_amount=total_charged,
        total_allowed_amount=sum((c.allowed_amount for c in claims), _ZERO),
        total_patient_responsibility=sum((c.patient_responsibility for c in claims), _ZERO),
        total_contractual_adjustment=sum((c.contractual_adjustment for c in claims), _ZERO),
        total_other_adjustments=sum((c.other_adjustments for c in claims), _ZERO),
        provider_adjustment_total=sum((a.amount for a in provider_adjustments), _ZERO),
        claim_count=len(claims),
        paid_claim_count=sum(1 for c in transaction.claims if c.status not in _NOT_PAID_STATUSES),
        denied_claim_count=sum(1 for c in transaction.claims if c.status == ClaimStatus.DENIED),
        reversal_count=sum(1 for c in transaction.claims if c.status == ClaimStatus.REVERSAL),
        claims=claims,
        provider_adjustments=provider_adjustments,
        flags=flags,
    )
    logger.info(
        f"Payment summary for {summary.check_number}: {summary.claim_count} claims, "
        f"{len(flags)} flags, total payment {format_amount(summary.total_payment_amount)}"
    )
    return summary


def build_payment_summaries(result: DecodeResult) -> List[PaymentSummary]:
    """One summary per decoded transaction; empty when decoding failed."""
    if not result.success:
        return []
    return [build_payment_summary(transaction) for transaction in result.transactions]
