import logging
import random
import re
import threading
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from itertools import count
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Delimiters used on every outbound interchange.
ELEMENT_SEPARATOR = '*'
SEGMENT_TERMINATOR = '~'
COMPONENT_SEPARATOR = ':'
REPETITION_SEPARATOR = '^'

_RESERVED_CHARS = re.compile(r'[~*:^]')
_NON_DIGITS = re.compile(r'\D')
_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')
_CENTS = Decimal('0.01')

ElementValue = Union[str, int, Decimal, None]


class Delimiters(BaseModel):
    """The single-character separators of one interchange."""
    model_config = ConfigDict(frozen=True)

    element: str = ELEMENT_SEPARATOR
    segment: str = SEGMENT_TERMINATOR
    component: str = COMPONENT_SEPARATOR
    repetition: str = REPETITION_SEPARATOR


DEFAULT_DELIMITERS = Delimiters()


class Segment(BaseModel):
    """One tokenized segment. Positions are 1-based, the tag itself is position 0."""
    model_config = ConfigDict(frozen=True)

    segment_id: str
    elements: List[str] = Field(default_factory=list)
    line_number: int = 0
    raw_segment: str = ""

    def get_element(self, position: int) -> Optional[str]:
        """Retrieves the value of an element by its position (1-based index)."""
        if 1 <= position <= len(self.elements):
            return self.elements[position - 1]
        return None

    def get_component(self, position: int, index: int, separator: str = COMPONENT_SEPARATOR) -> Optional[str]:
        """Retrieves one component (1-based) of a composite element."""
        value = self.get_element(position)
        if value is None:
            return None
        parts = value.split(separator)
        if 1 <= index <= len(parts):
            return parts[index - 1]
        return None


# --- Segment building ---

def build_segment(tag: str, *elements: ElementValue, delimiters: Delimiters = DEFAULT_DELIMITERS) -> str:
    """
    Builds a terminated segment string, e.g. build_segment('LX', 1) -> 'LX*1~'.
    None elements are emitted as empty positions.
    """
    parts = ['' if value is None else str(value) for value in elements]
    return f"{tag}{delimiters.element}{delimiters.element.join(parts)}{delimiters.segment}"


# --- Delimiter detection and tokenizing ---

def detect_delimiters(raw: str) -> Delimiters:
    """
    Reads the separators from an ISA header.

    The element separator is the byte right after 'ISA'. The component separator is
    ISA16, and the segment terminator is the first non-whitespace character after it,
    so headers padded with spaces or line breaks are accepted.
    """
    text = raw.lstrip()
    element = text[3]
    parts = text.split(element)
    if len(parts) < 17 or not parts[16]:
        raise ValueError("ISA header is truncated; cannot locate ISA16.")

    isa16_and_rest = parts[16]
    component = isa16_and_rest[0]

    segment = SEGMENT_TERMINATOR
    crossed_newline = False
    for ch in isa16_and_rest[1:]:
        if ch in (' ', '\t'):
            continue
        if ch in ('\r', '\n'):
            crossed_newline = True
            continue
        if ch.isalnum():
            # Header ends at a line break and the next segment tag follows directly.
            segment = '\n' if crossed_newline else SEGMENT_TERMINATOR
        else:
            segment = ch
        break

    repetition = REPETITION_SEPARATOR
    if len(parts) > 11 and len(parts[11]) == 1 and not parts[11].isalnum():
        repetition = parts[11]

    delimiters = Delimiters(element=element, segment=segment, component=component, repetition=repetition)
    logger.debug(f"Delimiters detected: Element='{element}', Segment='{segment!r}', Component='{component}'")
    return delimiters


def tokenize(raw: str, delimiters: Optional[Delimiters] = None) -> List[Segment]:
    """Splits raw interchange text into segments using detected (or given) delimiters."""
    if delimiters is None:
        delimiters = detect_delimiters(raw)

    normalized = raw.replace('\r\n', '\n').replace('\r', '\n')
    segments: List[Segment] = []
    for i, raw_segment in enumerate(normalized.split(delimiters.segment)):
        clean_segment = raw_segment.strip().replace('\n', '')
        if not clean_segment:
            continue
        parts = clean_segment.split(delimiters.element)
        segments.append(Segment(
            segment_id=parts[0],
            elements=parts[1:],
            line_number=i + 1,
            raw_segment=clean_segment,
        ))
    logger.debug(f"Tokenized {len(segments)} segments.")
    return segments


# --- Dates and times ---

def format_date(value: Union[str, date, datetime]) -> str:
    """'2026-02-20' or a date -> '20260220'."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y%m%d")
    return value.replace('-', '')


def format_short_date(value: Union[date, datetime]) -> str:
    return value.strftime("%y%m%d")


def format_time(value: datetime) -> str:
    return value.strftime("%H%M")


def parse_date(value: Optional[str]) -> Optional[date]:
    """'20260220' -> date, None when absent or malformed."""
    if not value or len(value) != 8 or not value.isdigit():
        return None
    try:
        return datetime.strptime(value, '%Y%m%d').date()
    except ValueError:
        return None


def display_date(value: Optional[str]) -> Optional[str]:
    """'20240115' -> '01/15/2024'; values that are not a valid date are returned unchanged."""
    parsed = parse_date(value)
    if parsed is None:
        return value
    return parsed.strftime("%m/%d/%Y")


# --- Amounts ---

def format_amount(amount: Union[Decimal, int, float, str]) -> str:
    """Two-decimal fixed string, e.g. Decimal('120') -> '120.00'."""
    return str(Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def parse_amount(value: Optional[str]) -> Optional[Decimal]:
    """Parses a monetary element; None when absent or not numeric."""
    if value is None or not value.strip():
        return None
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_quantity(value: Optional[str]) -> Optional[Decimal]:
    return parse_amount(value)


def format_quantity(value: Union[Decimal, int, float]) -> str:
    """Unit counts without a trailing '.0' when integral."""
    quantity = Decimal(str(value))
    if quantity == quantity.to_integral_value():
        return str(quantity.to_integral_value())
    return str(quantity.normalize())


# --- Identifiers and free text ---

def digits_only(value: Optional[str]) -> str:
    return _NON_DIGITS.sub('', value or '')


def normalize_npi(npi: str) -> str:
    """Digits only, left-padded with zeros, first 10 digits."""
    return digits_only(npi).zfill(10)[:10]


def normalize_tax_id(tax_id: str) -> str:
    return digits_only(tax_id)


def sanitize(value: Optional[str]) -> str:
    """Removes the reserved delimiter characters and trims."""
    if not value:
        return ''
    return _RESERVED_CHARS.sub('', value).strip()


def fixed_width(value: str, width: int) -> str:
    """Truncates then right-pads with spaces (ISA fixed fields)."""
    return value[:width].ljust(width, ' ')


def zero_pad(value: Union[str, int], width: int) -> str:
    return str(value).zfill(width)


# --- Control numbers and file names ---

def control_number(width: int) -> str:
    """Random control number in 1..10^width-1, zero-padded to width."""
    return zero_pad(random.randint(1, 10 ** width - 1), width)


_file_sequence = count(random.randrange(10000))
_file_sequence_lock = threading.Lock()


def submission_file_name(submitter_id: str, now: Optional[datetime] = None) -> str:
    """
    Builds the outbound file name: 837P_{submitter}_{YYYYMMDD}_{HHMMSS}_{NNNN}.edi

    The 4-digit suffix is drawn from a process-wide sequence, so names issued by one
    process in the same second differ.
    """
    now = now or datetime.now()
    with _file_sequence_lock:
        suffix = next(_file_sequence) % 10000
    clean_id = _NON_ALNUM.sub('', submitter_id or '')[:20]
    return f"837P_{clean_id}_{now.strftime('%Y%m%d')}_{now.strftime('%H%M%S')}_{suffix:04d}.edi"
