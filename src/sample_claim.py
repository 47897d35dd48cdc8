# A complete physical therapy claim used by the command line tool and the tests.
from decimal import Decimal

from claim_models import Claim837PInput

SAMPLE_CLAIM_DATA = {
    "submitter": {
        "name": "BUCKEYE PHYSICAL THERAPY",
        "submitterId": "1234567890",
        "contactName": "JANE SMITH",
        "contactPhone": "5125551234",
        "contactEmail": "billing@buckeyept.com",
    },
    "billingProvider": {
        "name": "BUCKEYE PHYSICAL THERAPY LLC",
        "npi": "1234567890",
        "taxonomyCode": "225100000X",
        "address1": "1234 MAIN STREET",
        "address2": "SUITE 100",
        "city": "AUSTIN",
        "state": "TX",
        "zip": "78701",
        "taxId": "123456789",
    },
    "renderingProvider": {
        "firstName": "JOHN",
        "lastName": "DOE",
        "npi": "9876543210",
        "taxonomyCode": "225100000X",
    },
    "patient": {
        "firstName": "MARIA",
        "lastName": "GARCIA",
        "dateOfBirth": "1985-03-15",
        "gender": "F",
        "medicaidId": "123456789012",
        "address1": "5678 OAK AVENUE",
        "address2": "APT 2B",
        "city": "AUSTIN",
        "state": "TX",
        "zip": "78702",
    },
    "claim": {
        "claimId": "BPT-2026-001234",
        "totalCharge": Decimal("285.00"),
        "placeOfService": "11",
        "dateOfService": "2026-02-20",
        "diagnosisCodes": ["M54.5"],
        "frequencyCode": "1",
    },
    "serviceLines": [
        # GP: delivered under a PT plan of care
        {
            "cptCode": "97110",
            "modifiers": ["GP"],
            "units": 3,
            "chargeAmount": Decimal("120.00"),
            "dateOfService": "2026-02-20",
            "icdPointers": [1],
        },
        {
            "cptCode": "97140",
            "modifiers": ["GP"],
            "units": 2,
            "chargeAmount": Decimal("90.00"),
            "dateOfService": "2026-02-20",
            "icdPointers": [1],
        },
        {
            "cptCode": "97530",
            "modifiers": ["GP"],
            "units": 2,
            "chargeAmount": Decimal("75.00"),
            "dateOfService": "2026-02-20",
            "icdPointers": [1],
        },
    ],
}


def sample_claim() -> Claim837PInput:
    """Three-line, single-diagnosis claim totalling 285.00 that passes validation."""
    return Claim837PInput.model_validate(SAMPLE_CLAIM_DATA)
