# Fixed-width text rendering of a PaymentSummary for payment posting review.
from decimal import Decimal
from typing import List

from payment_summary import ClaimSummary, FlagSeverity, PaymentSummary, ServiceLineSummary
from segment_grammar import format_amount, format_quantity

REPORT_WIDTH = 80
RULE = '=' * REPORT_WIDTH
SECTION_RULE = '-' * REPORT_WIDTH
LINE_TABLE_RULE = '  ' + '-' * 70
LINE_DETAIL_INDENT = ' ' * 11

FLAG_ICONS = {
    FlagSeverity.CRITICAL: '[!!]',
    FlagSeverity.WARNING: '[!]',
    FlagSeverity.INFO: '[i]',
}


def _money(amount: Decimal) -> str:
    return f"${format_amount(amount)}"


def _section(title: str) -> List[str]:
    return [SECTION_RULE, title, SECTION_RULE]


def _header_lines(summary: PaymentSummary) -> List[str]:
    payee = summary.payee_name
    if summary.payee_npi:
        payee += f" (NPI: {summary.payee_npi})"
    return [
        f"Payment Method:    {summary.payment_method}",
        f"Check/EFT #:       {summary.check_number}",
        f"Payment Date:      {summary.payment_date}",
        f"Payer:             {summary.payer_name} ({summary.payer_id})",
        f"Payee:             {payee}",
        '',
    ]


def _totals_lines(summary: PaymentSummary) -> List[str]:
    lines = _section('PAYMENT TOTALS')
    lines += [
        f"Total Charged:              {_money(summary.total_charged_amount)}",
        f"Total Allowed:              {_money(summary.total_allowed_amount)}",
        f"Total Contractual Adj:     -{_money(summary.total_contractual_adjustment)}",
        f"Total Patient Resp:         {_money(summary.total_patient_responsibility)}",
        f"Total Other Adj:           -{_money(summary.total_other_adjustments)}",
        f"Total Payment:              {_money(summary.total_payment_amount)}",
    ]
    if summary.provider_adjustment_total != 0:
        lines.append(f"Provider Adjustments:       {_money(summary.provider_adjustment_total)}")
    lines += [
        '',
        f"Claims: {summary.claim_count} total, {summary.paid_claim_count} paid, "
        f"{summary.denied_claim_count} denied, {summary.reversal_count} reversals",
        '',
    ]
    return lines


def _flag_lines(summary: PaymentSummary) -> List[str]:
    if not summary.flags:
        return []
    lines = _section('FLAGS / ALERTS')
    for flag in summary.flags:
        lines.append(f"  {FLAG_ICONS[flag.severity]} {flag.message}")
    lines.append('')
    return lines


def _service_line_rows(line: ServiceLineSummary) -> List[str]:
    mods = ','.join(line.modifiers) if line.modifiers else '-'
    status = 'DENIED' if line.is_denied else 'PAID'
    rows = [
        f"  {line.cpt_code.ljust(8)}{mods.ljust(12)}"
        f"{_money(line.charged_amount).rjust(10)}{_money(line.allowed_amount).rjust(10)}"
        f"{_money(line.paid_amount).rjust(10)}{_money(line.patient_responsibility).rjust(10)}"
        f"{status.rjust(10)}"
    ]
    if line.units_reduced:
        rows.append(
            f"{LINE_DETAIL_INDENT}Units: {format_quantity(line.units_billed)} billed -> "
            f"{format_quantity(line.units_paid)} paid"
        )
    if line.service_date:
        rows.append(f"{LINE_DETAIL_INDENT}Date: {line.service_date}")
    if line.is_denied:
        for reason in line.denial_reasons:
            rows.append(f"{LINE_DETAIL_INDENT}Denial: CARC {reason.reason_code} - {reason.description}")
    else:
        for detail in line.adjustment_details:
            rows.append(
                f"{LINE_DETAIL_INDENT}{detail.group_code} {detail.reason_code}: "
                f"-{_money(detail.amount)} ({detail.reason_description})"
            )
    return rows


def _claim_lines(claim: ClaimSummary) -> List[str]:
    lines = _section(f"CLAIM: {claim.patient_account_number}")
    lines += [
        f"  Patient:         {claim.patient_name}",
        f"  Status:          {claim.claim_status_description}",
    ]
    if claim.payer_claim_control_number:
        lines.append(f"  Payer Ctrl #:    {claim.payer_claim_control_number}")
    if claim.statement_date_range:
        lines.append(f"  Date Range:      {claim.statement_date_range}")
    lines += [
        f"  Charged:         {_money(claim.charged_amount)}",
        f"  Allowed:         {_money(claim.allowed_amount)}",
        f"  Paid:            {_money(claim.paid_amount)}",
        f"  Patient Resp:    {_money(claim.patient_responsibility)}",
        f"  Contractual Adj: {_money(claim.contractual_adjustment)}",
    ]
    if claim.other_adjustments > 0:
        lines.append(f"  Other Adj:       {_money(claim.other_adjustments)}")
    lines.append('')

    if claim.denial_reasons:
        lines.append('  DENIAL REASONS:')
        for reason in claim.denial_reasons:
            lines.append(f"    CARC {reason.reason_code}: {reason.description}")
            for code, description in zip(reason.remark_codes, reason.remark_descriptions):
                lines.append(f"      RARC {code}: {description}")
        lines.append('')

    if claim.service_lines:
        lines.append('  SERVICE LINES:')
        lines.append(
            f"  {'CPT'.ljust(8)}{'Mods'.ljust(12)}{'Charged'.rjust(10)}{'Allowed'.rjust(10)}"
            f"{'Paid'.rjust(10)}{'Pt Resp'.rjust(10)}{'Status'.rjust(10)}"
        )
        lines.append(LINE_TABLE_RULE)
        for line in claim.service_lines:
            lines.extend(_service_line_rows(line))
        lines.append('')
    return lines


def _provider_adjustment_lines(summary: PaymentSummary) -> List[str]:
    if not summary.provider_adjustments:
        return []
    lines = _section('PROVIDER-LEVEL ADJUSTMENTS (PLB)')
    for adjustment in summary.provider_adjustments:
        reference = f" (Ref: {adjustment.reference_id})" if adjustment.reference_id else ''
        lines.append(
            f"  {adjustment.reason_code}: {adjustment.reason_description} - {_money(adjustment.amount)}{reference}"
        )
    lines.append('')
    return lines


def format_payment_report(summary: PaymentSummary) -> str:
    """Renders the summary as an 80-column plain-text report."""
    lines = [RULE, 'ELECTRONIC REMITTANCE ADVICE (835) - PAYMENT POSTING SUMMARY', RULE, '']
    lines += _header_lines(summary)
    lines += _totals_lines(summary)
    lines += _flag_lines(summary)
    for claim in summary.claims:
        lines += _claim_lines(claim)
    lines += _provider_adjustment_lines(summary)
    lines += [RULE, 'END OF REMITTANCE SUMMARY', RULE]
    return '\n'.join(lines)
