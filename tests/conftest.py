# FILE: tests/conftest.py

import pytest
import sys
import os
import logging

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from claim_models import Claim837PInput
from sample_claim import sample_claim

# ==============================================================================
# PYTEST CONFIGURATION & HOOKS
# ==============================================================================

def pytest_configure(config):
    """Configure pytest settings and markers."""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies.")
    config.addinivalue_line("markers", "integration: End-to-end tests across encoder, decoder and report.")

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment(pytestconfig):
    """Set up test environment with logging configuration."""
    # Use pytest's log_cli_level if available, otherwise default to INFO
    log_level = pytestconfig.getoption("log_cli_level") or "INFO"
    logging.basicConfig(
        level=log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    logging.info(f"Test logging configured with level: {log_level.upper()}")
    yield

# ==============================================================================
# CLAIM FIXTURES
# ==============================================================================

@pytest.fixture
def valid_claim() -> Claim837PInput:
    """A fresh copy of the three-line physical therapy claim; tests may mutate it."""
    return sample_claim()

# ==============================================================================
# 835 FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def multi_claim_835() -> str:
    """
    Provides an 835 with two claims paid by EFT from a Medicaid payer.

    Contains:
    - CLAIM001: PT evaluation plus 3 treatment codes, paid with CO/PR adjustments
    - CLAIM002: fully denied, no prior authorization (CARC 197)
    - A PLB overpayment recovery (WO) of -75.00
    """
    return "\n".join([
        'ISA*00*          *00*          *ZZ*TMHP           *ZZ*1234567890     *240115*1230*^*00501*000000123*0*P*:~',
        'GS*HP*TMHP*1234567890*20240115*1230*000123*X*005010X221A1~',
        'ST*835*0001~',
        'BPR*C*450.00*C*ACH*CCP*01*111000025*DA*123456789*9876543210**01*222000050*DA*987654321*20240115~',
        'TRN*1*EFT20240115001*1234567890~',
        'DTM*405*20240115~',
        'N1*PR*TEXAS MEDICAID*PI*TXMCD~',
        'N3*12357 RIATA TRACE PKWY~',
        'N4*AUSTIN*TX*78727~',
        'PER*BL*TMHP PROVIDER SERVICES*TE*8005551234*UR*WWW.TMHP.COM~',
        'N1*PE*SOUTH TEXAS PT CLINIC*XX*1234567890~',
        'N3*1200 S 10TH ST~',
        'N4*MCALLEN*TX*78501~',
        'REF*TJ*741234567~',
        'CLP*CLAIM001*1*350.00*280.00*35.00*MC*TXMCD20240001*11*1~',
        'CAS*CO*45*70.00~',
        'CAS*PR*2*25.00*1*3*10.00~',
        'NM1*QC*1*DOE*JOHN*A***MI*123456789~',
        'NM1*IL*1*DOE*JOHN*A***MI*123456789~',
        'NM1*82*1*GARCIA*MARIA****XX*9876543210~',
        'MOA***MA01*MA18~',
        'DTM*232*20240115~',
        'DTM*233*20240115~',
        'REF*F8*ORIG835REF001~',
        'REF*1K*TXMCD20240001~',
        'AMT*AU*280.00~',
        'SVC*HC:97161:GP*150.00*120.00**1*1~',
        'DTM*472*20240115~',
        'CAS*CO*45*30.00~',
        'AMT*B6*120.00~',
        'SVC*HC:97110:GP*80.00*65.00**2**2~',
        'DTM*472*20240115~',
        'CAS*CO*45*15.00~',
        'AMT*B6*65.00~',
        'SVC*HC:97140:GP:59*70.00*55.00**1*1~',
        'DTM*472*20240115~',
        'CAS*CO*45*15.00~',
        'AMT*B6*55.00~',
        'SVC*HC:97530:GP*50.00*40.00**1*1~',
        'DTM*472*20240115~',
        'CAS*CO*45*10.00~',
        'AMT*B6*40.00~',
        'CLP*CLAIM002*4*200.00*0.00*0.00*MC*TXMCD20240002*11*1~',
        'CAS*CO*197*200.00~',
        'NM1*QC*1*SMITH*JANE*M***MI*987654321~',
        'DTM*232*20240110~',
        'DTM*233*20240110~',
        'REF*F8*ORIG835REF002~',
        'SVC*HC:97161:GP*150.00*0.00**1*1~',
        'DTM*472*20240110~',
        'CAS*CO*197*150.00~',
        'LQ*HE*N700~',
        'SVC*HC:97110:GP*50.00*0.00**1*1~',
        'DTM*472*20240110~',
        'CAS*CO*197*50.00~',
        'LQ*HE*N700~',
        'PLB*741234567*20240115*WO:RECOUP001*-75.00~',
        'SE*52*0001~',
        'GE*1*000123~',
        'IEA*1*000000123~',
    ])

@pytest.fixture(scope="session")
def check_single_835() -> str:
    """Provides an 835 paid by check with one commercial claim carrying deductible, coinsurance and copay."""
    return "\n".join([
        'ISA*00*          *00*          *ZZ*BCBSTX         *ZZ*1234567890     *240201*0900*^*00501*000000456*0*P*:~',
        'GS*HP*BCBSTX*1234567890*20240201*0900*000456*X*005010X221A1~',
        'ST*835*0002~',
        'BPR*C*185.00*C*CHK*****9876543210~',
        'TRN*1*CHK000789*BCBSTX~',
        'DTM*405*20240201~',
        'N1*PR*BLUE CROSS BLUE SHIELD TX*PI*BCBSTX~',
        'N1*PE*SOUTH TEXAS PT CLINIC*XX*1234567890~',
        'REF*TJ*741234567~',
        'CLP*CLAIM003*1*350.00*185.00*95.00*BL*BCBS20240003*11*1~',
        'CAS*CO*45*70.00~',
        'CAS*PR*1*50.00*1*2*20.00*1*3*25.00~',
        'NM1*QC*1*JOHNSON*ROBERT*L***MI*JRX1234567~',
        'DTM*232*20240125~',
        'DTM*233*20240125~',
        'REF*F8*ORIG835REF003~',
        'AMT*AU*280.00~',
        'SVC*HC:97161:GP*150.00*95.00**1*1~',
        'DTM*472*20240125~',
        'CAS*CO*45*30.00~',
        'CAS*PR*1*25.00~',
        'AMT*B6*120.00~',
        'SVC*HC:97110:GP*80.00*45.00**2*2~',
        'DTM*472*20240125~',
        'CAS*CO*45*15.00~',
        'CAS*PR*2*20.00~',
        'AMT*B6*65.00~',
        'SVC*HC:97530:GP*70.00*25.00**1*1~',
        'DTM*472*20240125~',
        'CAS*CO*45*15.00~',
        'CAS*PR*1*25.00*1*2*5.00~',
        'AMT*B6*55.00~',
        'SVC*HC:97140:GP:59*50.00*20.00**1*1~',
        'DTM*472*20240125~',
        'CAS*CO*45*10.00~',
        'CAS*PR*2*20.00~',
        'AMT*B6*40.00~',
        'SE*36*0002~',
        'GE*1*000456~',
        'IEA*1*000000456~',
    ])

@pytest.fixture(scope="session")
def two_transaction_835(multi_claim_835, check_single_835) -> str:
    """
    One interchange carrying two payments: the EFT of multi_claim_835 (ST 0001) followed
    by the check transaction of check_single_835 (ST 0002) in the same functional group.
    """
    first = multi_claim_835.split("\n")
    second = check_single_835.split("\n")
    st = next(i for i, s in enumerate(second) if s.startswith('ST*'))
    se = next(i for i, s in enumerate(second) if s.startswith('SE*'))
    ge = next(i for i, s in enumerate(first) if s.startswith('GE*'))
    group_trailer = first[ge].replace('GE*1*', 'GE*2*')
    return "\n".join(first[:ge] + second[st:se + 1] + [group_trailer] + first[ge + 1:])

@pytest.fixture(scope="session")
def reversal_835() -> str:
    """Provides an 835 with a reversal (status 22) of CLAIM004 followed by its corrected claim."""
    return "\n".join([
        'ISA*00*          *00*          *ZZ*AETNA          *ZZ*1234567890     *240301*1400*^*00501*000000789*0*P*:~',
        'GS*HP*AETNA*1234567890*20240301*1400*000789*X*005010X221A1~',
        'ST*835*0003~',
        'BPR*C*65.00*C*ACH*CCP*01*333000075*DA*555555555*9876543210**01*444000080*DA*666666666*20240301~',
        'TRN*1*EFT20240301002*AETNA~',
        'DTM*405*20240301~',
        'N1*PR*AETNA*PI*60054~',
        'N1*PE*SOUTH TEXAS PT CLINIC*XX*1234567890~',
        'CLP*CLAIM004*22*200.00*-200.00*0.00*CI*AETNA20240004*11*7~',
        'NM1*QC*1*WILLIAMS*LISA****MI*AET9999999~',
        'DTM*232*20240215~',
        'REF*F8*ORIG835REF004~',
        'SVC*HC:97161:GP*150.00*-150.00**1~',
        'DTM*472*20240215~',
        'SVC*HC:97110:GP*50.00*-50.00**1~',
        'DTM*472*20240215~',
        'CLP*CLAIM004C*1*200.00*265.00*0.00*CI*AETNA20240004C*11*7~',
        'CAS*CO*45*-65.00~',
        'NM1*QC*1*WILLIAMS*LISA****MI*AET9999999~',
        'DTM*232*20240215~',
        'REF*F8*ORIG835REF004C~',
        'SVC*HC:97161:GP*150.00*165.00**1~',
        'DTM*472*20240215~',
        'CAS*CO*45*-15.00~',
        'SVC*HC:97110:GP*50.00*100.00**1~',
        'DTM*472*20240215~',
        'CAS*CO*45*-50.00~',
        'SE*26*0003~',
        'GE*1*000789~',
        'IEA*1*000000789~',
    ])

@pytest.fixture(scope="session")
def pt_denials_835() -> str:
    """
    Provides a test-mode (ISA15=T) 835 with one partially paid claim.

    Contains visit limit (CARC 119) and bundled service (CARC 97) denials and a
    97150 line billed at 4 units but paid at 2.
    """
    return "\n".join([
        'ISA*00*          *00*          *ZZ*UNITEDHC       *ZZ*1234567890     *240315*1000*^*00501*000000999*0*T*:~',
        'GS*HP*UHC*1234567890*20240315*1000*000999*X*005010X221A1~',
        'ST*835*0004~',
        'BPR*C*65.00*C*CHK*****9876543210~',
        'TRN*1*CHK001234*UHC~',
        'DTM*405*20240315~',
        'N1*PR*UNITED HEALTHCARE*PI*87726~',
        'N1*PE*SOUTH TEXAS PT CLINIC*XX*1234567890~',
        'CLP*CLAIM005*1*280.00*65.00*0.00*CI*UHC20240005*11*1~',
        'CAS*CO*45*65.00~',
        'CAS*CO*119*100.00~',
        'CAS*CO*97*50.00~',
        'NM1*QC*1*MARTINEZ*CARLOS****MI*UHC5551234~',
        'DTM*232*20240310~',
        'REF*F8*ORIG835REF005~',
        'SVC*HC:97110:GP*80.00*65.00**2**2~',
        'DTM*472*20240310~',
        'CAS*CO*45*15.00~',
        'AMT*B6*65.00~',
        'SVC*HC:97140:GP:59*70.00*0.00**1*1~',
        'DTM*472*20240310~',
        'CAS*CO*119*70.00~',
        'LQ*HE*N362~',
        'SVC*HC:97530:GP*50.00*0.00**1*1~',
        'DTM*472*20240310~',
        'CAS*CO*97*50.00~',
        'LQ*HE*M15~',
        'SVC*HC:97150:GP*80.00*0.00**2**4~',
        'DTM*472*20240310~',
        'CAS*CO*119*80.00~',
        'LQ*HE*N362~',
        'SE*30*0004~',
        'GE*1*000999~',
        'IEA*1*000000999~',
    ])

@pytest.fixture(scope="session")
def minimal_835_factory():
    """
    Builds a small single-segment-per-line 835 around a BPR amount, with optional
    CLP content, so envelope checks can be exercised one field at a time.
    """
    def _build(st_id="835", gs_id="HP", bpr="BPR*C*100.00*C*CHK~", claims="", iea_control="000000001"):
        return "".join([
            'ISA*00*          *00*          *ZZ*SENDER         *ZZ*RECEIVER       *240101*1200*^*00501*000000001*0*P*:~',
            f'GS*{gs_id}*SENDER*RECEIVER*20240101*1200*000001*X*005010X221A1~',
            f'ST*{st_id}*0001~',
            bpr,
            'TRN*1*CHK001~',
            claims,
            'SE*3*0001~',
            'GE*1*000001~',
            f'IEA*1*{iea_control}~',
        ])
    return _build
