import logging
import re
from decimal import Decimal
from typing import List, Optional

from claim_models import Claim837PInput, FindingSeverity, ValidationFinding
from segment_grammar import digits_only, format_amount, sanitize

logger = logging.getLogger(__name__)

NPI_RE = re.compile(r'^\d{10}$')
TAX_ID_RE = re.compile(r'^\d{9}$')
DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
CPT_RE = re.compile(r'^[0-9A-Z]{5}$')
MODIFIER_RE = re.compile(r'^[A-Z0-9]{2}$')
STATE_RE = re.compile(r'^[A-Z]{2}$')

MAX_DIAGNOSIS_CODES = 12
MAX_MODIFIERS = 4
MAX_POINTERS = 4
CHARGE_TOLERANCE = Decimal('0.01')


def _blank(value: Optional[str]) -> bool:
    """True when nothing is left after trimming and removing delimiter characters."""
    return not sanitize(value)


def _matches(pattern: re.Pattern, value: Optional[str]) -> bool:
    return bool(value) and pattern.fullmatch(value) is not None


def _positive(value: Optional[Decimal]) -> bool:
    return value is not None and value > 0


def has_errors(findings: List[ValidationFinding]) -> bool:
    return any(f.severity == FindingSeverity.ERROR for f in findings)


def validate_claim(claim_input: Claim837PInput) -> List[ValidationFinding]:
    """
    Runs every pre-flight rule over the claim input and returns all findings.

    Rules are independent and never short-circuit, so one call surfaces every problem.
    Findings with severity ERROR prevent encoding; WARNING findings are advisory.
    """
    findings: List[ValidationFinding] = []

    def error(field: str, message: str):
        findings.append(ValidationFinding(field=field, message=message, severity=FindingSeverity.ERROR))

    def warning(field: str, message: str):
        findings.append(ValidationFinding(field=field, message=message, severity=FindingSeverity.WARNING))

    # --- Submitter ---
    sub = claim_input.submitter
    if sub is None or _blank(sub.name):
        error('submitter.name', 'Submitter name is required')
    if sub is None or _blank(sub.submitter_id):
        error('submitter.submitterId', 'Submitter ID is required')
    if sub is None or _blank(sub.contact_name):
        error('submitter.contactName', 'Submitter contact name is required')
    if sub is None or len(digits_only(sub.contact_phone)) < 10:
        error('submitter.contactPhone', 'Submitter contact phone must be at least 10 digits')

    # --- Billing provider ---
    bp = claim_input.billing_provider
    if bp is None:
        error('billingProvider', 'Billing provider is required')
    else:
        if not _matches(NPI_RE, digits_only(bp.npi)):
            error('billingProvider.npi', 'Billing provider NPI must be 10 digits')
        if not _matches(TAX_ID_RE, digits_only(bp.tax_id)):
            error('billingProvider.taxId', 'Billing provider Tax ID (EIN) must be 9 digits')
        if _blank(bp.taxonomy_code):
            error('billingProvider.taxonomyCode', 'Billing provider taxonomy code is required')
        if _blank(bp.name):
            error('billingProvider.name', 'Billing provider name is required')
        if _blank(bp.address1):
            error('billingProvider.address1', 'Billing provider street address is required')
        if _blank(bp.city):
            error('billingProvider.city', 'Billing provider city is required')
        if not _matches(STATE_RE, bp.state):
            error('billingProvider.state', 'Billing provider state must be a 2-letter code')
        if _blank(bp.zip):
            error('billingProvider.zip', 'Billing provider ZIP code is required')

    # --- Rendering provider ---
    rp = claim_input.rendering_provider
    if rp is None:
        error('renderingProvider', 'Rendering provider is required')
    else:
        if not _matches(NPI_RE, digits_only(rp.npi)):
            error('renderingProvider.npi', 'Rendering provider NPI must be 10 digits')
        if _blank(rp.last_name):
            error('renderingProvider.lastName', 'Rendering provider last name is required')
        if _blank(rp.first_name):
            error('renderingProvider.firstName', 'Rendering provider first name is required')
        if _blank(rp.taxonomy_code):
            error('renderingProvider.taxonomyCode', 'Rendering provider taxonomy code is required')

    # --- Patient / subscriber ---
    pt = claim_input.patient
    if pt is None:
        error('patient', 'Patient information is required')
    else:
        if _blank(pt.first_name):
            error('patient.firstName', 'Patient first name is required')
        if _blank(pt.last_name):
            error('patient.lastName', 'Patient last name is required')
        if not _matches(DATE_RE, pt.date_of_birth):
            error('patient.dateOfBirth', 'Patient DOB must be YYYY-MM-DD')
        if pt.gender not in ('M', 'F', 'U'):
            error('patient.gender', 'Patient gender must be M, F, or U')
        if _blank(pt.medicaid_id):
            error('patient.medicaidId', 'Medicaid ID is required')
        if _blank(pt.address1):
            error('patient.address1', 'Patient street address is required')
        if _blank(pt.city):
            error('patient.city', 'Patient city is required')
        if not _matches(STATE_RE, pt.state):
            error('patient.state', 'Patient state must be a 2-letter code')
        if _blank(pt.zip):
            error('patient.zip', 'Patient ZIP code is required')

    # --- Claim header ---
    cl = claim_input.claim
    if cl is None:
        error('claim', 'Claim details are required')
    else:
        if _blank(cl.claim_id):
            error('claim.claimId', 'Claim ID is required')
        if not _positive(cl.total_charge):
            error('claim.totalCharge', 'Total charge must be a positive dollar amount')
        if _blank(cl.place_of_service):
            error('claim.placeOfService', 'Place of service code is required')
        if not _matches(DATE_RE, cl.date_of_service):
            error('claim.dateOfService', 'Claim date of service must be YYYY-MM-DD')
        if not cl.diagnosis_codes:
            error('claim.diagnosisCodes', 'At least one ICD-10 diagnosis code is required')
        if len(cl.diagnosis_codes) > MAX_DIAGNOSIS_CODES:
            error('claim.diagnosisCodes', f'Maximum {MAX_DIAGNOSIS_CODES} diagnosis codes per claim')

    # --- Service lines ---
    lines = claim_input.service_lines
    if not lines:
        error('serviceLines', 'At least one service line is required')
    else:
        line_total = sum((line.charge_amount or Decimal('0') for line in lines), Decimal('0'))
        if cl is not None and cl.total_charge is not None and abs(line_total - cl.total_charge) > CHARGE_TOLERANCE:
            warning(
                'serviceLines',
                f'Service line charges (${format_amount(line_total)}) do not match claim total (${format_amount(cl.total_charge)})',
            )

        diagnosis_count = len(cl.diagnosis_codes) if cl is not None else None
        for idx, line in enumerate(lines):
            path = f'serviceLines[{idx}]'
            n = idx + 1

            if not _matches(CPT_RE, line.cpt_code):
                error(f'{path}.cptCode', f'Line {n}: CPT code must be 5 alphanumeric characters')
            if not _positive(line.charge_amount):
                error(f'{path}.chargeAmount', f'Line {n}: Charge amount must be positive')
            if not _positive(line.units):
                error(f'{path}.units', f'Line {n}: Units must be positive')
            if not _matches(DATE_RE, line.date_of_service):
                error(f'{path}.dateOfService', f'Line {n}: Date of service must be YYYY-MM-DD')

            if not line.icd_pointers:
                error(f'{path}.icdPointers', f'Line {n}: At least one diagnosis pointer is required')
            else:
                if len(line.icd_pointers) > MAX_POINTERS:
                    error(f'{path}.icdPointers', f'Line {n}: Maximum {MAX_POINTERS} diagnosis pointers')
                if diagnosis_count is not None:
                    for pointer in line.icd_pointers:
                        if pointer < 1 or pointer > diagnosis_count:
                            error(
                                f'{path}.icdPointers',
                                f'Line {n}: Pointer {pointer} exceeds diagnosis count ({diagnosis_count})',
                            )

            if len(line.modifiers) > MAX_MODIFIERS:
                error(f'{path}.modifiers', f'Line {n}: Maximum {MAX_MODIFIERS} modifiers')
            for mi, modifier in enumerate(line.modifiers):
                if not _matches(MODIFIER_RE, modifier):
                    error(f'{path}.modifiers[{mi}]', f'Line {n}: Modifier "{modifier}" must be 2 alphanumeric characters')

    error_count = sum(1 for f in findings if f.severity == FindingSeverity.ERROR)
    logger.debug(f"Claim validation produced {error_count} errors and {len(findings) - error_count} warnings.")
    return findings
