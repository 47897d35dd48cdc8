from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from claim_encoder import ClaimEncoder, generate_837p
from claim_models import Claim837PInput, EncoderSettings, FindingSeverity
from segment_grammar import tokenize

pytestmark = pytest.mark.unit

CREATED_AT = datetime(2026, 2, 20, 14, 30, 0)


def _segments(result):
    return result.edi_content_formatted.split('\n')


class TestClaimEncoder:
    """837P generation from validated claim input."""

    def setup_method(self):
        """Set up test fixtures."""
        self.encoder = ClaimEncoder()

    def test_sample_claim_produces_expected_transaction(self, valid_claim: Claim837PInput):
        """Every ST..SE segment of the sample claim, in order."""
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        assert result.success
        st = result.control_numbers.st

        expected = [
            f'ST*837*{st}*005010X222A1~',
            'BHT*0019*00*BPT-2026-001234*20260220*1430*CH~',
            'NM1*41*2*BUCKEYE PHYSICAL THERAPY*****46*1234567890~',
            'PER*IC*JANE SMITH*TE*5125551234*EM*billing@buckeyept.com~',
            'NM1*40*2*TMHP*****46*330897513~',
            'HL*1**20*1~',
            'PRV*BI*PXC*225100000X~',
            'NM1*85*2*BUCKEYE PHYSICAL THERAPY LLC*****XX*1234567890~',
            'N3*1234 MAIN STREET*SUITE 100~',
            'N4*AUSTIN*TX*78701~',
            'REF*EI*123456789~',
            'HL*2*1*22*0~',
            'SBR*P*18*******MC~',
            'NM1*IL*1*GARCIA*MARIA****MI*123456789012~',
            'N3*5678 OAK AVENUE*APT 2B~',
            'N4*AUSTIN*TX*78702~',
            'DMG*D8*19850315*F~',
            'NM1*PR*2*TEXAS MEDICAID*****PI*330897513~',
            'CLM*BPT-2026-001234*285.00***11:B:1*Y*A*Y*I~',
            'DTP*472*D8*20260220~',
            'HI*ABK:M545~',
            'NM1*82*1*DOE*JOHN****XX*9876543210~',
            'PRV*PE*PXC*225100000X~',
            'LX*1~',
            'SV1*HC:97110:GP*120.00*UN*3***1~',
            'DTP*472*D8*20260220~',
            'LX*2~',
            'SV1*HC:97140:GP*90.00*UN*2***1~',
            'DTP*472*D8*20260220~',
            'LX*3~',
            'SV1*HC:97530:GP*75.00*UN*2***1~',
            'DTP*472*D8*20260220~',
            f'SE*33*{st}~',
        ]
        assert _segments(result)[2:-2] == expected
        assert result.segment_count == 33

    def test_envelope_segments(self, valid_claim: Claim837PInput):
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        controls = result.control_numbers
        segments = _segments(result)

        assert segments[0] == (
            f"ISA*00*{' ' * 10}*00*{' ' * 10}*ZZ*{'1234567890'.ljust(15)}*ZZ*{'330897513'.ljust(15)}"
            f'*260220*1430*^*00501*{controls.isa}*0*P*:~'
        )
        assert len(segments[0]) == 106
        assert segments[1] == f'GS*HC*1234567890*330897513*20260220*1430*{controls.gs}*X*005010X222A1~'
        assert segments[-2] == f'GE*1*{controls.gs}~'
        assert segments[-1] == f'IEA*1*{controls.isa}~'

    def test_control_numbers_have_fixed_widths(self, valid_claim: Claim837PInput):
        controls = self.encoder.generate(valid_claim).control_numbers
        assert len(controls.isa) == 9 and controls.isa.isdigit()
        assert len(controls.gs) == 6 and controls.gs.isdigit()
        assert len(controls.st) == 4 and controls.st.isdigit()

    def test_compact_and_formatted_content_hold_the_same_segments(self, valid_claim: Claim837PInput):
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        assert '\n' not in result.edi_content
        assert result.edi_content == result.edi_content_formatted.replace('\n', '')

    def test_trailer_counts_and_control_numbers_agree(self, valid_claim: Claim837PInput):
        """Re-tokenized output: SE01 equals the ST..SE span and every trailer echoes its header."""
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        segments = tokenize(result.edi_content)
        ids = [s.segment_id for s in segments]
        st_idx, se_idx = ids.index('ST'), ids.index('SE')

        assert int(segments[se_idx].get_element(1)) == se_idx - st_idx + 1
        assert segments[se_idx].get_element(2) == segments[st_idx].get_element(2)
        assert segments[ids.index('GE')].get_element(2) == segments[ids.index('GS')].get_element(6)
        assert segments[ids.index('IEA')].get_element(2) == segments[0].get_element(13)

    def test_file_name_uses_submitter_and_timestamp(self, valid_claim: Claim837PInput):
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        assert result.file_name.startswith('837P_1234567890_20260220_143000_')
        assert result.file_name.endswith('.edi')

    def test_validation_errors_block_generation(self, valid_claim: Claim837PInput):
        valid_claim.billing_provider.npi = '123'
        result = self.encoder.generate(valid_claim)
        assert not result.success
        assert result.edi_content is None
        assert result.edi_content_formatted is None
        assert result.segment_count == 0
        assert result.file_name is None
        assert any(f.field == 'billingProvider.npi' for f in result.errors)

    def test_warnings_do_not_block_generation(self, valid_claim: Claim837PInput):
        valid_claim.claim.total_charge = Decimal('300.00')
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        assert result.success
        assert [f.severity for f in result.errors] == [FindingSeverity.WARNING]
        assert 'CLM*BPT-2026-001234*300.00***11:B:1*Y*A*Y*I~' in _segments(result)

    def test_multiple_diagnoses_and_prior_auth(self, valid_claim: Claim837PInput):
        valid_claim.claim.diagnosis_codes = ['M54.5', 'M25.561', 'R26.2']
        valid_claim.claim.prior_auth_number = 'PA123456'
        valid_claim.service_lines[0].icd_pointers = [1, 3]
        segments = _segments(self.encoder.generate(valid_claim, now=CREATED_AT))

        clm_idx = next(i for i, s in enumerate(segments) if s.startswith('CLM*'))
        assert segments[clm_idx + 1] == 'REF*G1*PA123456~'
        assert 'HI*ABK:M545*ABF:M25561*ABF:R262~' in segments
        assert 'SV1*HC:97110:GP*120.00*UN*3***1:3~' in segments

    def test_optional_values_are_omitted(self, valid_claim: Claim837PInput):
        valid_claim.submitter.contact_email = None
        valid_claim.billing_provider.address2 = None
        valid_claim.service_lines[0].modifiers = []
        segments = _segments(self.encoder.generate(valid_claim, now=CREATED_AT))

        assert 'PER*IC*JANE SMITH*TE*5125551234~' in segments
        assert 'N3*1234 MAIN STREET~' in segments
        assert 'SV1*HC:97110*120.00*UN*3***1~' in segments

    def test_free_text_is_sanitized_and_identifiers_normalized(self, valid_claim: Claim837PInput):
        valid_claim.billing_provider.name = 'BUCKEYE*PT~LLC'
        valid_claim.billing_provider.tax_id = '12-3456789'
        valid_claim.billing_provider.zip = '78701-1234'
        valid_claim.claim.claim_id = 'BPT-2026-001234-EXTRA-LONG-ID'
        segments = _segments(self.encoder.generate(valid_claim, now=CREATED_AT))

        assert 'NM1*85*2*BUCKEYEPTLLC*****XX*1234567890~' in segments
        assert 'REF*EI*123456789~' in segments
        assert 'N4*AUSTIN*TX*787011234~' in segments
        assert any(s.startswith('CLM*BPT-2026-001234-EXTR*') for s in segments)
        assert any(s.startswith('BHT*0019*00*BPT-2026-001234-EXTRA-LONG-ID*') for s in segments)

    def test_delimiter_characters_never_reach_the_wire(self, valid_claim: Claim837PInput):
        """Re-tokenizing the output gives back exactly the segments that were built."""
        valid_claim.claim.prior_auth_number = 'PA~123'
        valid_claim.patient.medicaid_id = '1234*5678'
        valid_claim.submitter.submitter_id = 'SUB:001'
        valid_claim.submitter.contact_email = 'billing~desk@buckeyept.com'
        valid_claim.billing_provider.taxonomy_code = '225100000X*'
        valid_claim.claim.place_of_service = '1:1'
        valid_claim.claim.diagnosis_codes = ['M54.5~']
        result = self.encoder.generate(valid_claim, now=CREATED_AT)
        assert result.success

        built = _segments(result)
        tokens = tokenize(result.edi_content)
        assert [s.raw_segment + '~' for s in tokens] == built

        ids = [s.segment_id for s in tokens]
        st_idx, se_idx = ids.index('ST'), ids.index('SE')
        assert int(tokens[se_idx].get_element(1)) == se_idx - st_idx + 1 == result.segment_count == 34

        assert tokens[0].get_element(6) == 'SUB001'.ljust(15)
        assert tokens[1].get_element(2) == 'SUB001'
        assert 'NM1*41*2*BUCKEYE PHYSICAL THERAPY*****46*SUB001~' in built
        assert 'PER*IC*JANE SMITH*TE*5125551234*EM*billingdesk@buckeyept.com~' in built
        assert 'PRV*BI*PXC*225100000X~' in built
        assert 'NM1*IL*1*GARCIA*MARIA****MI*12345678~' in built
        assert 'CLM*BPT-2026-001234*285.00***11:B:1*Y*A*Y*I~' in built
        assert 'REF*G1*PA123~' in built
        assert 'HI*ABK:M545~' in built

    def test_fractional_units(self, valid_claim: Claim837PInput):
        valid_claim.service_lines[0].units = Decimal('1.5')
        segments = _segments(self.encoder.generate(valid_claim, now=CREATED_AT))
        assert 'SV1*HC:97110:GP*120.00*UN*1.5***1~' in segments


class TestEncoderSettings:
    """Gateway values flowing into the envelope."""

    def test_custom_gateway_and_test_mode(self, valid_claim: Claim837PInput):
        settings = EncoderSettings(
            receiver_id='RCV001', receiver_name='CLEARINGHOUSE', payer_name='ACME HEALTH',
            payer_id='ACME1', usage_indicator='T',
        )
        result = ClaimEncoder(settings).generate(valid_claim, now=CREATED_AT)
        segments = tokenize(result.edi_content)

        isa = segments[0]
        assert isa.get_element(8) == 'RCV001'.ljust(15)
        assert isa.get_element(15) == 'T'
        assert segments[1].get_element(3) == 'RCV001'
        assert 'NM1*40*2*CLEARINGHOUSE*****46*RCV001~' in result.edi_content
        assert 'NM1*PR*2*ACME HEALTH*****PI*ACME1~' in result.edi_content

    def test_usage_indicator_is_restricted(self):
        with pytest.raises(ValidationError):
            EncoderSettings(usage_indicator='X')

    def test_camel_case_json_input(self, valid_claim: Claim837PInput):
        """Claim input accepts the camelCase keys sent by web clients."""
        payload = valid_claim.model_dump(by_alias=True)
        assert 'billingProvider' in payload
        rebuilt = Claim837PInput.model_validate(payload)
        assert rebuilt == valid_claim

    def test_generate_837p_uses_default_settings(self, valid_claim: Claim837PInput):
        result = generate_837p(valid_claim)
        assert result.success
        assert 'NM1*PR*2*TEXAS MEDICAID*****PI*330897513~' in result.edi_content
