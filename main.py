#!/usr/bin/env python3
"""
X12 Claims Command Line Tool

Generates 837P professional claims from JSON and turns 835 remittance files into
payment posting reports.

Usage:
    python main.py encode                                  # Encode the built-in sample claim
    python main.py encode claim.json                       # Encode claim.json (camelCase or snake_case keys)
    python main.py encode claim.json -o claim.edi --test   # Test-mode interchange to a chosen file
    python main.py decode remit.edi                        # Print the payment report
    python main.py decode remit.edi -o remit.txt           # Save the payment report
    python main.py decode remit.edi --json                 # JSON payment summaries instead
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Try importing from installed package first, fallback to src path
try:
    from claim_encoder import ClaimEncoder
    from claim_models import Claim837PInput, EncoderSettings, FindingSeverity
    from payment_summary import build_payment_summaries
    from remit_decoder import RemitDecoder
    from remit_report import format_payment_report
    from sample_claim import sample_claim
except ImportError:
    # Add src to path for imports when not installed
    sys.path.insert(0, str(Path(__file__).parent / "src"))
    from claim_encoder import ClaimEncoder
    from claim_models import Claim837PInput, EncoderSettings, FindingSeverity
    from payment_summary import build_payment_summaries
    from remit_decoder import RemitDecoder
    from remit_report import format_payment_report
    from sample_claim import sample_claim

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s"


def load_claim(input_file: str) -> Claim837PInput:
    """Load a claim from a JSON file."""
    with open(input_file, 'r') as f:
        return Claim837PInput.model_validate(json.load(f))


def encode_claim(args) -> int:
    """Generate an 837P interchange and write it to disk."""

    source = args.input_file or "built-in sample claim"
    print(f"837P Encoder - Processing {source}")
    print("=" * 50)

    try:
        if args.input_file:
            print(f"Loading claim: {args.input_file}")
            claim_input = load_claim(args.input_file)
        else:
            claim_input = sample_claim()
        print("Claim loaded successfully!")

        settings = EncoderSettings(
            receiver_id=args.receiver_id,
            payer_name=args.payer_name,
            payer_id=args.payer_id,
            usage_indicator='T' if args.test else 'P',
        )

        print("\nValidating and generating 837P...")
        result = ClaimEncoder(settings).generate(claim_input)

        warnings = [f for f in result.errors if f.severity == FindingSeverity.WARNING]
        if not result.success:
            errors = [f for f in result.errors if f.severity == FindingSeverity.ERROR]
            print(f"Claim validation found {len(errors)} errors:")
            for i, finding in enumerate(errors):
                print(f"  {i+1}. {finding.field}: {finding.message}")
            return 1

        for finding in warnings:
            print(f"  Warning: {finding.field}: {finding.message}")

        print("837P generated successfully!")
        print(f"\nGeneration Results:")
        print(f"  ISA Control Number: {result.control_numbers.isa}")
        print(f"  GS Control Number: {result.control_numbers.gs}")
        print(f"  ST Control Number: {result.control_numbers.st}")
        print(f"  Transaction Segments: {result.segment_count}")
        print(f"  Usage Indicator: {settings.usage_indicator}")

        output_file = args.output_file or result.file_name
        content = result.edi_content_formatted if args.formatted else result.edi_content
        with open(output_file, 'w') as f:
            f.write(content)

        print(f"\n837P saved to: {output_file}")
        print(f"Output size: {len(content):,} characters")
        return 0

    except FileNotFoundError as e:
        print(f"Error: File not found: {e}")
        return 1
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: Claim input is not valid: {e}")
        return 1


def decode_remittance(args) -> int:
    """Decode an 835 file and write its payment report."""

    print(f"835 Decoder - Processing {args.input_file}")
    print("=" * 50)

    try:
        print(f"Loading EDI file: {args.input_file}")
        with open(args.input_file, 'r') as f:
            edi_content = f.read()
        print(f"Loaded {len(edi_content)} characters")
    except FileNotFoundError as e:
        print(f"Error: File not found: {e}")
        return 1

    print("\nDecoding 835 content...")
    result = RemitDecoder().decode(edi_content)
    for warning in result.warnings:
        print(f"  Warning: {warning}")
    if not result.success:
        print(f"835 decoding found {len(result.errors)} errors:")
        for i, message in enumerate(result.errors):
            print(f"  {i+1}. {message}")
        return 1

    print("835 decoded successfully!")
    print(f"\nDecoding Results:")
    print(f"  Transactions: {len(result.transactions)}")
    print(f"  Check/EFT Number: {result.check_number}")
    print(f"  Payer: {result.payer_name} ({result.payer_id})")
    print(f"  Payee: {result.payee_name}")
    print(f"  Total Payment: {result.total_payment}")
    print(f"  Claims: {len(result.claims)}")
    print(f"  Total Segments: {result.segment_count}")

    summaries = build_payment_summaries(result)
    if args.json:
        output = json.dumps([s.model_dump(mode='json') for s in summaries], indent=2)
    else:
        output = '\n\n'.join(format_payment_report(s) for s in summaries)

    if args.output_file:
        with open(args.output_file, 'w') as f:
            f.write(output)
        print(f"\nReport saved to: {args.output_file}")
        print(f"Output size: {len(output):,} characters")
    else:
        print()
        print(output)
    return 0


def main():
    """Main entry point with command line argument parsing."""

    parser = argparse.ArgumentParser(
        description="Generate 837P claims and summarize 835 remittances",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py encode                               # Encode the sample claim
  python main.py encode claim.json -o out.edi         # Encode claim.json to out.edi
  python main.py decode remit.edi                     # Print the payment report
  python main.py decode remit.edi --json -o out.json  # Save summaries as JSON
        """
    )
    parser.add_argument('--log-level', default='WARNING',
                        help='Logging level (default: WARNING)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    encode = subparsers.add_parser('encode', help='Generate an 837P interchange')
    encode.add_argument('input_file', nargs='?',
                        help='Claim JSON file (default: built-in sample claim)')
    encode.add_argument('-o', '--output-file',
                        help='Output EDI file (default: generated submission file name)')
    encode.add_argument('--formatted', action='store_true',
                        help='Write one segment per line')
    encode.add_argument('--test', action='store_true',
                        help='Mark the interchange as test data (ISA15=T)')
    encode.add_argument('--receiver-id', default=EncoderSettings().receiver_id,
                        help='Receiver ID for ISA08/GS03 and loop 1000B')
    encode.add_argument('--payer-name', default=EncoderSettings().payer_name,
                        help='Payer name for loop 2010BB')
    encode.add_argument('--payer-id', default=EncoderSettings().payer_id,
                        help='Payer ID for loop 2010BB')
    encode.set_defaults(handler=encode_claim)

    decode = subparsers.add_parser('decode', help='Decode an 835 into a payment report')
    decode.add_argument('input_file', help='Input 835 EDI file')
    decode.add_argument('-o', '--output-file',
                        help='Output file (default: print to stdout)')
    decode.add_argument('--json', action='store_true',
                        help='Write payment summaries as JSON instead of the text report')
    decode.set_defaults(handler=decode_remittance)

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT, stream=sys.stderr)

    if args.command == 'encode' and args.input_file and not Path(args.input_file).exists():
        print(f"Error: Input file not found: {args.input_file}")
        return 1

    return args.handler(args)


if __name__ == "__main__":
    exit(main())
