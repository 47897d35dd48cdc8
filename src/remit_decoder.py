import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from remit_models import (
    Address,
    Adjustment,
    AdjustmentDetail,
    AdjustmentGroup,
    ClaimStatus,
    ContactInfo,
    DecodeResult,
    EntityName,
    GroupHeader,
    InpatientAdjudication,
    InterchangeHeader,
    OutpatientAdjudication,
    PayeeIdentification,
    PayerIdentification,
    PaymentMethod,
    ProcedureCode,
    ProviderAdjustment,
    ProviderAdjustmentDetail,
    ReferenceNumber,
    RemarkCode,
    RemittanceClaim,
    RemittanceTransaction,
    ServiceLinePayment,
    SupplementalAmount,
)
from segment_grammar import Delimiters, Segment, detect_delimiters, parse_amount, parse_quantity, tokenize

logger = logging.getLogger(__name__)

EXPECTED_TRANSACTION_SET = "835"
EXPECTED_FUNCTIONAL_ID = "HP"
REQUIRED_SEGMENTS = ('ISA', 'GS', 'ST', 'BPR', 'SE', 'GE', 'IEA')

_ZERO = Decimal('0')

# Element positions (1-based) per segment tag. Every positional read goes through here.
SEGMENT_LAYOUTS: Mapping[str, Mapping[str, int]] = MappingProxyType({
    'ISA': {
        'authorization_qualifier': 1, 'authorization_info': 2, 'security_qualifier': 3,
        'security_info': 4, 'sender_qualifier': 5, 'sender_id': 6, 'receiver_qualifier': 7,
        'receiver_id': 8, 'date': 9, 'time': 10, 'repetition_separator': 11, 'version': 12,
        'control_number': 13, 'acknowledgment_requested': 14, 'usage_indicator': 15,
        'component_separator': 16,
    },
    'GS': {
        'functional_id': 1, 'sender_code': 2, 'receiver_code': 3, 'date': 4, 'time': 5,
        'control_number': 6, 'agency_code': 7, 'version': 8,
    },
    'ST': {'transaction_set_id': 1, 'control_number': 2},
    'SE': {'segment_count': 1, 'control_number': 2},
    'GE': {'transaction_count': 1, 'control_number': 2},
    'IEA': {'group_count': 1, 'control_number': 2},
    'BPR': {
        'transaction_handling': 1, 'total_payment': 2, 'credit_debit_flag': 3, 'payment_method': 4,
        'sender_bank_id': 7, 'sender_account_number': 9, 'receiver_bank_id': 13,
        'receiver_account_number': 15,
    },
    'TRN': {'trace_type': 1, 'check_number': 2, 'originator_id': 3, 'originator_supplemental_id': 4},
    'DTM': {'qualifier': 1, 'date': 2},
    'N1': {'entity': 1, 'name': 2, 'identifier_qualifier': 3, 'identifier': 4},
    'N3': {'line1': 1, 'line2': 2},
    'N4': {'city': 1, 'state': 2, 'zip': 3},
    'PER': {'function': 1, 'name': 2},
    'REF': {'qualifier': 1, 'value': 2, 'description': 3},
    'AMT': {'qualifier': 1, 'amount': 2},
    'LQ': {'qualifier': 1, 'code': 2},
    'CLP': {
        'patient_account_number': 1, 'status_code': 2, 'total_charged': 3, 'total_paid': 4,
        'patient_responsibility': 5, 'claim_filing_indicator': 6, 'payer_claim_control_number': 7,
        'facility_code': 8, 'frequency_code': 9,
    },
    'NM1': {
        'entity': 1, 'entity_type': 2, 'last_name': 3, 'first_name': 4, 'middle_name': 5,
        'suffix': 7, 'identifier_qualifier': 8, 'identifier': 9,
    },
    'MOA': {
        'reimbursement_rate': 1, 'hcpcs_payable_amount': 2, 'esrd_payment_amount': 8,
        'non_payable_professional_amount': 9,
    },
    'MIA': {
        'covered_days': 1, 'pps_operating_outlier_amount': 2, 'lifetime_psychiatric_days': 3,
        'drg_amount': 4,
    },
    'SVC': {
        'procedure': 1, 'charged_amount': 2, 'paid_amount': 3, 'revenue_code': 4, 'units_paid': 5,
        'original_procedure': 6, 'units_billed': 7,
    },
    'CAS': {'group_code': 1},
    'PLB': {'provider_identifier': 1, 'fiscal_period_date': 2},
})

# Repeating element groups
CAS_TRIPLE_POSITIONS = range(2, 18, 3)
PLB_PAIR_POSITIONS = range(3, 14, 2)
PER_PAIR_POSITIONS = range(3, 8, 2)
MOA_REMARK_POSITIONS = range(3, 8)

_PER_QUALIFIER_FIELDS = {'TE': 'phone', 'EX': 'phone_extension', 'FX': 'fax', 'EM': 'email', 'UR': 'url'}


def read_fields(segment: Segment) -> Dict[str, Optional[str]]:
    """Maps a segment's positional elements to named fields; absent or empty values are None."""
    layout = SEGMENT_LAYOUTS.get(segment.segment_id, {})
    fields: Dict[str, Optional[str]] = {}
    for name, position in layout.items():
        value = segment.get_element(position)
        fields[name] = value if value else None
    return fields


def _amount(value: Optional[str]) -> Decimal:
    """Required monetary position: unparseable degrades to zero."""
    amount = parse_amount(value)
    return amount if amount is not None else _ZERO


def _find_segment(segments: List[Segment], segment_id: str, start: int = 0) -> Optional[int]:
    for i in range(start, len(segments)):
        if segments[i].segment_id == segment_id:
            return i
    return None


def partition(segments: List[Segment], start_tag: str, end_tags: FrozenSet[str] = frozenset()) -> List[Tuple[int, int]]:
    """
    Splits a segment list into [start, end) ranges, one per start_tag occurrence.

    A range ends at the next start_tag or at any of end_tags, whichever comes first.
    Segments outside every range are ignored.
    """
    boundaries = end_tags | {start_tag}
    ranges: List[Tuple[int, int]] = []
    i = 0
    while i < len(segments):
        if segments[i].segment_id != start_tag:
            i += 1
            continue
        end = len(segments)
        for j in range(i + 1, len(segments)):
            if segments[j].segment_id in boundaries:
                end = j
                break
        ranges.append((i, end))
        i = end
    return ranges


def transaction_ranges(segments: List[Segment]) -> List[Tuple[int, int]]:
    """[start, end) range of every ST..SE transaction; the SE is inside the range when present."""
    ranges: List[Tuple[int, int]] = []
    for start, end in partition(segments, 'ST', frozenset({'SE', 'GE', 'IEA'})):
        if end < len(segments) and segments[end].segment_id == 'SE':
            end += 1
        ranges.append((start, end))
    return ranges


def _control_mismatch(opening_fields, closing_fields, header, trailer, header_pos, trailer_pos) -> List[str]:
    opening = (opening_fields['control_number'] or '').strip()
    closing = (closing_fields['control_number'] or '').strip()
    if opening and closing and opening != closing:
        return [f"{header}/{trailer} control number mismatch: {header_pos}={opening}, {trailer_pos}={closing}"]
    return []


class RemitDecoder:
    """
    Decodes ASC X12 835 remittance advice into structured payment records.

    Structural problems (missing envelope segments, wrong transaction type, control
    number mismatches) are reported as errors and stop decoding before any claim is
    read. Past that point extraction is best-effort per segment.
    """

    def decode(self, raw: str) -> DecodeResult:
        try:
            return self._decode(raw)
        except Exception as e:
            logger.error(f"Unexpected error while decoding 835: {e}", exc_info=True)
            return DecodeResult(success=False, errors=[f"Unexpected error while decoding 835: {e}"])

    def _decode(self, raw: str) -> DecodeResult:
        if not raw or not raw.strip():
            return DecodeResult(success=False, errors=["Empty EDI content"])

        text = raw.strip()
        if not text.startswith('ISA'):
            return DecodeResult(success=False, errors=["EDI content must start with ISA segment"])

        try:
            delimiters = detect_delimiters(text)
            segments = tokenize(text, delimiters)
        except (ValueError, IndexError) as e:
            logger.warning(f"835 tokenizing failed: {e}")
            return DecodeResult(success=False, errors=["Failed to tokenize 835 content"])

        errors, warnings = self._check_structure(segments)
        if errors:
            for message in errors:
                logger.warning(f"835 structural error: {message}")
            return DecodeResult(success=False, errors=errors, warnings=warnings, segment_count=len(segments))

        ranges = transaction_ranges(segments)
        transactions = [self._decode_transaction(segments[start:end], delimiters) for start, end in ranges]

        for transaction in transactions:
            logger.info(
                f"Decoded 835 transaction {transaction.control_number} with {len(transaction.claims)} claims, "
                f"total payment {transaction.total_payment}, check/EFT {transaction.check_number}"
            )
        return DecodeResult(
            success=True,
            interchange=InterchangeHeader(**self._header_fields(segments[0])),
            group=GroupHeader(**self._header_fields(segments[_find_segment(segments, 'GS')])),
            transactions=transactions,
            warnings=warnings,
            segment_count=len(segments),
        )

    # --- Structural checks ---

    def _check_structure(self, segments: List[Segment]) -> Tuple[List[str], List[str]]:
        errors: List[str] = []
        warnings: List[str] = []
        first: Dict[str, Dict[str, Optional[str]]] = {}
        for segment in segments:
            if segment.segment_id not in first:
                first[segment.segment_id] = read_fields(segment)

        for tag in REQUIRED_SEGMENTS:
            if tag not in first:
                errors.append(f"Missing required segment: {tag}")
        if errors:
            return errors, warnings

        ranges = transaction_ranges(segments)
        several = len(ranges) > 1

        transaction_set_errors = []
        for number, (start, end) in enumerate(ranges, start=1):
            transaction_set_id = read_fields(segments[start])['transaction_set_id']
            if transaction_set_id != EXPECTED_TRANSACTION_SET:
                message = f"Expected transaction set {EXPECTED_TRANSACTION_SET}, got {transaction_set_id}"
                transaction_set_errors.append(f"Transaction {number}: {message}" if several else message)
        if transaction_set_errors:
            return transaction_set_errors, warnings

        functional_id = first['GS']['functional_id']
        if functional_id != EXPECTED_FUNCTIONAL_ID:
            warnings.append(f"Expected GS01=HP (Health Care Claim Payment/Advice), got {functional_id}")

        for header, trailer, header_pos, trailer_pos in (
            ('ISA', 'IEA', 'ISA13', 'IEA02'),
            ('GS', 'GE', 'GS06', 'GE02'),
        ):
            errors.extend(_control_mismatch(first[header], first[trailer], header, trailer, header_pos, trailer_pos))

        declared = (first['GE']['transaction_count'] or '').strip()
        if declared.isdigit() and int(declared) != len(ranges):
            warnings.append(f"GE01 declares {declared} transactions but {len(ranges)} were found")

        for number, (start, end) in enumerate(ranges, start=1):
            prefix = f"Transaction {number}: " if several else ""
            transaction = segments[start:end]
            if transaction[-1].segment_id != 'SE':
                errors.append(f"{prefix}ST segment has no matching SE")
            else:
                errors.extend(
                    prefix + message for message in
                    _control_mismatch(read_fields(transaction[0]), read_fields(transaction[-1]), 'ST', 'SE', 'ST02', 'SE02')
                )

            bpr_idx = _find_segment(transaction, 'BPR')
            if bpr_idx is None:
                errors.append(f"{prefix}Missing required segment: BPR")
            elif parse_amount(read_fields(transaction[bpr_idx])['total_payment']) is None:
                errors.append(f"{prefix}BPR02 payment amount is missing or not numeric")

            if _find_segment(transaction, 'CLP') is None:
                warnings.append(f"{prefix}No CLP (claim) segments found; 835 has no claim payment data")

        return errors, warnings

    def _header_fields(self, segment: Segment) -> Dict[str, str]:
        return {name: (value or '').strip() for name, value in read_fields(segment).items()}

    # --- Transaction (ST..SE) ---

    def _decode_transaction(self, segments: List[Segment], delimiters: Delimiters) -> RemittanceTransaction:
        component = delimiters.component
        st = read_fields(segments[0])
        bpr_idx = _find_segment(segments, 'BPR')
        bpr = read_fields(segments[bpr_idx]) if bpr_idx is not None else {}
        method_code = bpr.get('payment_method') or bpr.get('transaction_handling') or ''

        trn_idx = _find_segment(segments, 'TRN')
        trn = read_fields(segments[trn_idx]) if trn_idx is not None else {}

        payment_date = ''
        for segment in segments:
            if segment.segment_id == 'DTM':
                dtm = read_fields(segment)
                if dtm['qualifier'] == '405':
                    payment_date = dtm['date'] or ''
                    break

        claim_ranges = partition(segments, 'CLP', frozenset({'PLB', 'SE'}))
        claims = [self._decode_claim(segments[start:end], component) for start, end in claim_ranges]
        provider_adjustments = [
            self._decode_plb(segment, component) for segment in segments if segment.segment_id == 'PLB'
        ]

        return RemittanceTransaction(
            control_number=st['control_number'] or '',
            payment_method_code=method_code,
            payment_method=PaymentMethod.from_code(method_code),
            total_payment=_amount(bpr.get('total_payment')),
            credit_debit_flag=bpr.get('credit_debit_flag') or '',
            sender_bank_id=bpr.get('sender_bank_id'),
            sender_account_number=bpr.get('sender_account_number'),
            receiver_bank_id=bpr.get('receiver_bank_id'),
            receiver_account_number=bpr.get('receiver_account_number'),
            check_number=trn.get('check_number') or '',
            trace_originator_id=trn.get('originator_id'),
            trace_originator_supplemental_id=trn.get('originator_supplemental_id'),
            payment_date=payment_date,
            payer=self._decode_payer(segments),
            payee=self._decode_payee(segments),
            claims=claims,
            provider_adjustments=provider_adjustments,
        )

    # --- Loop 1000A / 1000B ---

    def _party_block(self, segments: List[Segment], entity_code: str) -> Tuple[Optional[Dict[str, Optional[str]]], List[Segment]]:
        """Returns the N1 fields for the entity and the segments that follow it up to the next N1, CLP or LX."""
        for i, segment in enumerate(segments):
            if segment.segment_id != 'N1':
                continue
            n1 = read_fields(segment)
            if n1['entity'] != entity_code:
                continue
            block: List[Segment] = []
            for following in segments[i + 1:]:
                if following.segment_id in ('N1', 'CLP', 'LX'):
                    break
                block.append(following)
            return n1, block
        return None, []

    def _address(self, block: List[Segment]) -> Optional[Address]:
        values: Dict[str, Optional[str]] = {}
        for segment in block:
            if segment.segment_id in ('N3', 'N4'):
                values.update(read_fields(segment))
        if not values:
            return None
        return Address(
            line1=values.get('line1') or '',
            line2=values.get('line2'),
            city=values.get('city') or '',
            state=values.get('state') or '',
            zip=values.get('zip') or '',
        )

    def _contact(self, segment: Segment) -> ContactInfo:
        values = {'name': read_fields(segment)['name']}
        for position in PER_PAIR_POSITIONS:
            qualifier = segment.get_element(position)
            value = segment.get_element(position + 1)
            if not qualifier or not value:
                continue
            field = _PER_QUALIFIER_FIELDS.get(qualifier)
            if field:
                values[field] = value
        return ContactInfo(**values)

    def _decode_payer(self, segments: List[Segment]) -> PayerIdentification:
        n1, block = self._party_block(segments, 'PR')
        if n1 is None:
            logger.debug("No N1*PR payer loop found.")
            return PayerIdentification()

        technical_contact = None
        web_contact = None
        additional_id = None
        for segment in block:
            if segment.segment_id == 'PER':
                if read_fields(segment)['function'] in ('CX', 'BL'):
                    technical_contact = self._contact(segment)
                else:
                    web_contact = self._contact(segment)
            elif segment.segment_id == 'REF':
                additional_id = read_fields(segment)['value']

        return PayerIdentification(
            name=n1['name'] or '',
            identifier=n1['identifier'] or '',
            address=self._address(block),
            technical_contact=technical_contact,
            web_contact=web_contact,
            additional_id=additional_id,
        )

    def _decode_payee(self, segments: List[Segment]) -> PayeeIdentification:
        n1, block = self._party_block(segments, 'PE')
        if n1 is None:
            logger.debug("No N1*PE payee loop found.")
            return PayeeIdentification()

        qualifier = n1['identifier_qualifier'] or ''
        identifier = n1['identifier'] or ''
        npi = identifier if qualifier == 'XX' else None
        tax_id = identifier if qualifier == 'FI' else None

        additional_ids: List[ReferenceNumber] = []
        for segment in block:
            if segment.segment_id != 'REF':
                continue
            ref = read_fields(segment)
            reference = ReferenceNumber(qualifier=ref['qualifier'] or '', value=ref['value'] or '')
            additional_ids.append(reference)
            if reference.qualifier == 'TJ':
                tax_id = reference.value
            if reference.qualifier in ('PQ', 'XX'):
                npi = reference.value

        return PayeeIdentification(
            name=n1['name'] or '',
            identifier_qualifier=qualifier,
            identifier=identifier,
            npi=npi,
            tax_id=tax_id,
            address=self._address(block),
            additional_ids=additional_ids,
        )

    # --- Loop 2100 claims ---

    def _decode_claim(self, segments: List[Segment], component: str) -> RemittanceClaim:
        clp = read_fields(segments[0])
        status_code = clp['status_code'] or ''
        claim = {
            'patient_account_number': clp['patient_account_number'] or '',
            'status_code': status_code,
            'status': ClaimStatus.from_code(status_code),
            'total_charged': _amount(clp['total_charged']),
            'total_paid': _amount(clp['total_paid']),
            'patient_responsibility': parse_amount(clp['patient_responsibility']),
            'claim_filing_indicator': clp['claim_filing_indicator'],
            'payer_claim_control_number': clp['payer_claim_control_number'],
            'facility_code': clp['facility_code'],
            'frequency_code': clp['frequency_code'],
        }

        line_ranges = partition(segments, 'SVC')
        claim_level_end = line_ranges[0][0] if line_ranges else len(segments)
        claim.update(self._claim_level_data(segments[1:claim_level_end]))
        claim['service_lines'] = [self._decode_service_line(segments[start:end], component) for start, end in line_ranges]

        logger.debug(f"Claim {claim['patient_account_number']}: status {status_code}, {len(claim['service_lines'])} service lines")
        return RemittanceClaim(**claim)

    def _claim_level_data(self, segments: List[Segment]) -> Dict[str, object]:
        data: Dict[str, object] = {
            'adjustments': [],
            'other_reference_numbers': [],
            'supplemental_amounts': [],
        }
        for segment in segments:
            tag = segment.segment_id
            if tag == 'CAS':
                data['adjustments'].append(self._decode_cas(segment))
            elif tag == 'NM1':
                self._apply_claim_name(segment, data)
            elif tag == 'MIA':
                data['inpatient_adjudication'] = self._decode_mia(segment)
            elif tag == 'MOA':
                data['outpatient_adjudication'] = self._decode_moa(segment)
            elif tag == 'DTM':
                dtm = read_fields(segment)
                value = dtm['date'] or ''
                if dtm['qualifier'] == '232':
                    if '-' in value:
                        data['statement_from_date'], data['statement_to_date'] = value.split('-', 1)
                    else:
                        data['statement_from_date'] = value
                elif dtm['qualifier'] == '233':
                    data['statement_to_date'] = value
                elif dtm['qualifier'] == '036':
                    data['coverage_expiration_date'] = value
            elif tag == 'REF':
                self._apply_claim_reference(segment, data)
            elif tag == 'AMT':
                data['supplemental_amounts'].append(self._decode_amt(segment))
        return data

    def _apply_claim_name(self, segment: Segment, data: Dict[str, object]):
        entity = read_fields(segment)['entity']
        name = self._decode_nm1(segment)
        if entity == 'QC':
            data['patient_name'] = name
        elif entity == 'IL':
            data['insured_name'] = name
        elif entity == '74':
            data['corrected_patient_name'] = name
        elif entity == '82':
            data['rendering_provider_npi'] = name.identifier
        elif entity == 'TT':
            data['crossover_carrier'] = name.identifier

    def _apply_claim_reference(self, segment: Segment, data: Dict[str, object]):
        ref = read_fields(segment)
        qualifier = ref['qualifier'] or ''
        value = ref['value'] or ''
        if qualifier == 'F8':
            data['original_reference_number'] = value
        elif qualifier == '1K':
            data['payer_claim_id'] = value
        elif qualifier == 'BLT':
            data['institutional_bill_type'] = value
        elif qualifier == 'EA':
            data['medical_record_number'] = value
        else:
            data['other_reference_numbers'].append(
                ReferenceNumber(qualifier=qualifier, value=value, description=ref['description'])
            )

    # --- Loop 2110 service lines ---

    def _decode_service_line(self, segments: List[Segment], component: str) -> ServiceLinePayment:
        svc = read_fields(segments[0])
        line = {
            'procedure': self._decode_procedure(svc['procedure'] or '', component),
            'charged_amount': _amount(svc['charged_amount']),
            'paid_amount': _amount(svc['paid_amount']),
            'revenue_code': svc['revenue_code'],
            'units_paid': parse_quantity(svc['units_paid']),
            'original_procedure': self._decode_procedure(svc['original_procedure'], component) if svc['original_procedure'] else None,
            'units_billed': parse_quantity(svc['units_billed']),
            'adjustments': [],
            'reference_numbers': [],
            'supplemental_amounts': [],
            'remark_codes': [],
        }

        for segment in segments[1:]:
            tag = segment.segment_id
            if tag == 'CAS':
                line['adjustments'].append(self._decode_cas(segment))
            elif tag == 'DTM':
                dtm = read_fields(segment)
                if dtm['qualifier'] == '472':
                    value = dtm['date'] or ''
                    if '-' in value:
                        line['service_date'], line['service_date_end'] = value.split('-', 1)
                    else:
                        line['service_date'] = value
            elif tag == 'REF':
                ref = read_fields(segment)
                line['reference_numbers'].append(
                    ReferenceNumber(qualifier=ref['qualifier'] or '', value=ref['value'] or '', description=ref['description'])
                )
            elif tag == 'AMT':
                supplemental = self._decode_amt(segment)
                line['supplemental_amounts'].append(supplemental)
                if supplemental.qualifier == 'B6':
                    line['allowed_amount'] = supplemental.amount
            elif tag == 'LQ':
                lq = read_fields(segment)
                line['remark_codes'].append(RemarkCode(qualifier=lq['qualifier'] or '', code=lq['code'] or ''))

        return ServiceLinePayment(**line)

    # --- Per-segment decoders ---

    def _decode_procedure(self, composite: str, component: str) -> ProcedureCode:
        parts = composite.split(component)
        return ProcedureCode(
            qualifier=parts[0] or 'HC',
            code=parts[1] if len(parts) > 1 else '',
            modifiers=[m for m in parts[2:] if m],
        )

    def _decode_cas(self, segment: Segment) -> Adjustment:
        group_code = read_fields(segment)['group_code'] or ''
        details: List[AdjustmentDetail] = []
        for position in CAS_TRIPLE_POSITIONS:
            reason_code = segment.get_element(position)
            if not reason_code:
                break
            details.append(AdjustmentDetail(
                reason_code=reason_code,
                amount=_amount(segment.get_element(position + 1)),
                quantity=parse_quantity(segment.get_element(position + 2)),
            ))
        return Adjustment(group_code=group_code, group=AdjustmentGroup.from_code(group_code), details=details)

    def _decode_nm1(self, segment: Segment) -> EntityName:
        nm1 = read_fields(segment)
        return EntityName(
            entity_type=nm1['entity_type'] or '1',
            last_name=nm1['last_name'] or '',
            first_name=nm1['first_name'],
            middle_name=nm1['middle_name'],
            suffix=nm1['suffix'],
            identifier_qualifier=nm1['identifier_qualifier'],
            identifier=nm1['identifier'],
        )

    def _decode_moa(self, segment: Segment) -> OutpatientAdjudication:
        moa = read_fields(segment)
        remarks = [segment.get_element(p) for p in MOA_REMARK_POSITIONS if segment.get_element(p)]
        return OutpatientAdjudication(
            reimbursement_rate=parse_quantity(moa['reimbursement_rate']),
            hcpcs_payable_amount=parse_amount(moa['hcpcs_payable_amount']),
            remark_codes=remarks,
            esrd_payment_amount=parse_amount(moa['esrd_payment_amount']),
            non_payable_professional_amount=parse_amount(moa['non_payable_professional_amount']),
        )

    def _decode_mia(self, segment: Segment) -> InpatientAdjudication:
        mia = read_fields(segment)
        return InpatientAdjudication(
            covered_days=parse_quantity(mia['covered_days']),
            pps_operating_outlier_amount=parse_amount(mia['pps_operating_outlier_amount']),
            lifetime_psychiatric_days=parse_quantity(mia['lifetime_psychiatric_days']),
            drg_amount=parse_amount(mia['drg_amount']),
        )

    def _decode_amt(self, segment: Segment) -> SupplementalAmount:
        amt = read_fields(segment)
        return SupplementalAmount(qualifier=amt['qualifier'] or '', amount=_amount(amt['amount']))

    def _decode_plb(self, segment: Segment, component: str) -> ProviderAdjustment:
        plb = read_fields(segment)
        details: List[ProviderAdjustmentDetail] = []
        for position in PLB_PAIR_POSITIONS:
            reason = segment.get_element(position) or ''
            amount = segment.get_element(position + 1) or ''
            if not reason and not amount:
                break
            parts = reason.split(component)
            details.append(ProviderAdjustmentDetail(
                reason_code=parts[0],
                reference_id=parts[1] if len(parts) > 1 and parts[1] else None,
                amount=_amount(amount),
            ))
        return ProviderAdjustment(
            provider_identifier=plb['provider_identifier'] or '',
            fiscal_period_date=plb['fiscal_period_date'] or '',
            details=details,
        )


def decode_835(raw: str) -> DecodeResult:
    """Shortcut for RemitDecoder().decode(raw)."""
    return RemitDecoder().decode(raw)
