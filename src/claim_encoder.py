import logging
from datetime import datetime
from typing import List, Optional

from claim_models import (
    Claim837PInput,
    ClaimDetails,
    ControlNumbers,
    EncoderSettings,
    FindingSeverity,
    GenerationResult,
    PatientSubscriber,
    ServiceLine,
)
from claim_validator import has_errors, validate_claim
from segment_grammar import (
    COMPONENT_SEPARATOR,
    REPETITION_SEPARATOR,
    build_segment,
    control_number,
    digits_only,
    fixed_width,
    format_amount,
    format_date,
    format_quantity,
    format_short_date,
    format_time,
    normalize_npi,
    normalize_tax_id,
    sanitize,
    submission_file_name,
)

logger = logging.getLogger(__name__)

TRANSACTION_SET_ID = "837"
FUNCTIONAL_ID = "HC"
INTERCHANGE_VERSION = "00501"


class ClaimEncoder:
    """
    Generates ANSI X12 837P (005010X222A1) professional claim interchanges.

    One call produces one interchange holding one transaction with one claim.
    Envelope values for the receiving gateway come from EncoderSettings.
    """

    def __init__(self, settings: Optional[EncoderSettings] = None):
        self.settings = settings or EncoderSettings()

    def generate(self, claim_input: Claim837PInput, now: Optional[datetime] = None) -> GenerationResult:
        """
        Validates the claim and, when no error finding exists, builds the interchange.

        Args:
            claim_input: Complete claim data
            now: Creation timestamp for BHT/ISA/GS (defaults to the current time)

        Returns:
            GenerationResult with compact and formatted content, control numbers,
            findings and the ST..SE segment count. On validation errors only the
            findings are returned.
        """
        findings = validate_claim(claim_input)
        if has_errors(findings):
            logger.warning(f"837P generation refused: {sum(1 for f in findings if f.severity == FindingSeverity.ERROR)} validation errors.")
            return GenerationResult(success=False, errors=findings)

        now = now or datetime.now()
        controls = ControlNumbers(isa=control_number(9), gs=control_number(6), st=control_number(4))
        logger.debug(f"837P control numbers: ISA13={controls.isa}, GS06={controls.gs}, ST02={controls.st}")

        transaction = self._build_transaction(claim_input, controls.st, now)
        segment_count = len(transaction)

        segments = [
            self._build_isa(claim_input.submitter.submitter_id, controls.isa, now),
            self._build_gs(claim_input.submitter.submitter_id, controls.gs, now),
            *transaction,
            build_segment('GE', 1, controls.gs),
            build_segment('IEA', 1, controls.isa),
        ]

        file_name = submission_file_name(claim_input.submitter.submitter_id, now)
        logger.info(f"Generated 837P for claim {claim_input.claim.claim_id}: {segment_count} transaction segments, file {file_name}")

        return GenerationResult(
            success=True,
            edi_content=''.join(segments),
            edi_content_formatted='\n'.join(segments),
            errors=findings,
            control_numbers=controls,
            segment_count=segment_count,
            file_name=file_name,
        )

    # --- Envelope ---

    def _build_isa(self, submitter_id: str, isa_control: str, now: datetime) -> str:
        return build_segment(
            'ISA',
            '00', fixed_width('', 10),
            '00', fixed_width('', 10),
            'ZZ', fixed_width(sanitize(submitter_id), 15),
            'ZZ', fixed_width(sanitize(self.settings.receiver_id), 15),
            format_short_date(now),
            format_time(now),
            REPETITION_SEPARATOR,
            INTERCHANGE_VERSION,
            isa_control,
            '0',
            self.settings.usage_indicator,
            COMPONENT_SEPARATOR,
        )

    def _build_gs(self, submitter_id: str, gs_control: str, now: datetime) -> str:
        return build_segment(
            'GS', FUNCTIONAL_ID, sanitize(submitter_id), sanitize(self.settings.receiver_id),
            format_date(now), format_time(now), gs_control, 'X',
            sanitize(self.settings.implementation_reference),
        )

    # --- Transaction set (ST..SE) ---

    def _build_transaction(self, claim_input: Claim837PInput, st_control: str, now: datetime) -> List[str]:
        settings = self.settings
        submitter = claim_input.submitter
        billing = claim_input.billing_provider
        rendering = claim_input.rendering_provider
        claim = claim_input.claim

        txn: List[str] = [
            build_segment('ST', TRANSACTION_SET_ID, st_control, sanitize(settings.implementation_reference)),
            build_segment('BHT', '0019', '00', sanitize(claim.claim_id)[:30], format_date(now), format_time(now), 'CH'),
        ]

        # Loop 1000A submitter, 1000B receiver
        txn.append(build_segment(
            'NM1', '41', '2', sanitize(submitter.name), '', '', '', '', '46', sanitize(submitter.submitter_id),
        ))
        per = ['IC', sanitize(submitter.contact_name), 'TE', digits_only(submitter.contact_phone)]
        if submitter.contact_email:
            per += ['EM', sanitize(submitter.contact_email)]
        txn.append(build_segment('PER', *per))
        txn.append(build_segment(
            'NM1', '40', '2', sanitize(settings.receiver_name), '', '', '', '', '46', sanitize(settings.receiver_id),
        ))

        # Loop 2000A / 2010AA billing provider
        txn.append(build_segment('HL', '1', '', '20', '1'))
        txn.append(build_segment('PRV', 'BI', 'PXC', sanitize(billing.taxonomy_code)))
        txn.append(build_segment('NM1', '85', '2', sanitize(billing.name), '', '', '', '', 'XX', normalize_npi(billing.npi)))
        txn.extend(self._address_segments(billing.address1, billing.address2, billing.city, billing.state, billing.zip))
        txn.append(build_segment('REF', 'EI', normalize_tax_id(billing.tax_id)))

        # Loop 2000B / 2010BA subscriber (patient is the subscriber), 2010BB payer
        txn.append(build_segment('HL', '2', '1', '22', '0'))
        txn.append(build_segment('SBR', 'P', '18', '', '', '', '', '', '', sanitize(settings.claim_filing_indicator)))
        txn.extend(self._subscriber_segments(claim_input.patient))
        txn.append(build_segment('NM1', 'PR', '2', sanitize(settings.payer_name), '', '', '', '', 'PI', sanitize(settings.payer_id)))

        # Loop 2300 claim
        txn.extend(self._claim_segments(claim))

        # Loop 2310B rendering provider
        txn.append(build_segment(
            'NM1', '82', '1', sanitize(rendering.last_name), sanitize(rendering.first_name),
            '', '', '', 'XX', normalize_npi(rendering.npi),
        ))
        txn.append(build_segment('PRV', 'PE', 'PXC', sanitize(rendering.taxonomy_code)))

        # Loop 2400 service lines
        for idx, line in enumerate(claim_input.service_lines, start=1):
            txn.extend(self._service_line_segments(idx, line))

        # SE01 counts ST through SE inclusive
        txn.append(build_segment('SE', len(txn) + 1, st_control))
        return txn

    def _address_segments(self, address1, address2, city, state, zip_code) -> List[str]:
        if address2:
            n3 = build_segment('N3', sanitize(address1), sanitize(address2))
        else:
            n3 = build_segment('N3', sanitize(address1))
        return [n3, build_segment('N4', sanitize(city), sanitize(state), digits_only(zip_code))]

    def _subscriber_segments(self, patient: PatientSubscriber) -> List[str]:
        segments = [build_segment(
            'NM1', 'IL', '1', sanitize(patient.last_name), sanitize(patient.first_name),
            '', '', '', 'MI', sanitize(patient.medicaid_id),
        )]
        segments.extend(self._address_segments(patient.address1, patient.address2, patient.city, patient.state, patient.zip))
        segments.append(build_segment('DMG', 'D8', format_date(patient.date_of_birth), sanitize(patient.gender)))
        return segments

    def _claim_segments(self, claim: ClaimDetails) -> List[str]:
        frequency = sanitize(claim.frequency_code) or '1'
        service_location = COMPONENT_SEPARATOR.join([sanitize(claim.place_of_service), 'B', frequency])
        segments = [build_segment(
            'CLM', sanitize(claim.claim_id)[:20], format_amount(claim.total_charge),
            '', '', service_location, 'Y', 'A', 'Y', 'I',
        )]
        prior_auth = sanitize(claim.prior_auth_number)
        if prior_auth:
            segments.append(build_segment('REF', 'G1', prior_auth))
        segments.append(build_segment('DTP', '472', 'D8', format_date(claim.date_of_service)))

        # First diagnosis is principal (ABK), the rest are other diagnoses (ABF)
        diagnoses = [
            f"{'ABK' if i == 0 else 'ABF'}{COMPONENT_SEPARATOR}{sanitize(code).replace('.', '')}"
            for i, code in enumerate(claim.diagnosis_codes)
        ]
        segments.append(build_segment('HI', *diagnoses))
        return segments

    def _service_line_segments(self, line_number: int, line: ServiceLine) -> List[str]:
        modifiers = [sanitize(m) for m in line.modifiers if sanitize(m)]
        procedure = COMPONENT_SEPARATOR.join(['HC', sanitize(line.cpt_code), *modifiers])
        pointers = COMPONENT_SEPARATOR.join(str(p) for p in (line.icd_pointers or [1]))
        return [
            build_segment('LX', line_number),
            build_segment(
                'SV1', procedure, format_amount(line.charge_amount), 'UN',
                format_quantity(line.units), '', '', pointers,
            ),
            build_segment('DTP', '472', 'D8', format_date(line.date_of_service)),
        ]


def generate_837p(claim_input: Claim837PInput, settings: Optional[EncoderSettings] = None) -> GenerationResult:
    """Convenience wrapper around ClaimEncoder.generate."""
    return ClaimEncoder(settings).generate(claim_input)
