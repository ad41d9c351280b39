"""
In-memory model and parser of ECF filings.

A filing is a sequence of pipe-delimited records ("|M010|...|"). The parser
indexes, per fiscal period, the line range of each summary block
(M010..M990) and of each tax-computation block (N030..N990). The ranges are
plain mutable objects so the rewriter can shift them after every insertion
instead of scanning the file again.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from . import config

LINE_SPLIT_RE = re.compile(r'\r?\n')
QUARTER_RE = re.compile(r'^[1-4]T$')
DIGIT_DOT_DIGIT_RE = re.compile(r'\d\.\d')


class PeriodKey(str, Enum):
    ANUAL = 'ANUAL'
    Q1 = '1T'
    Q2 = '2T'
    Q3 = '3T'
    Q4 = '4T'

    def __str__(self):
        return self.value


def normalize_period(period):
    """Upper-cased text of a period key given as a PeriodKey or a plain string."""
    return str(getattr(period, 'value', period) or '').strip().upper()


class FilingLine:
    """One record of the filing, kept as its list of '|'-split fields."""

    __slots__ = ('fields',)

    def __init__(self, fields):
        self.fields = list(fields)

    @classmethod
    def from_text(cls, text):
        return cls(text.split(config.DELIMITER))

    @property
    def text(self):
        return config.DELIMITER.join(self.fields)

    @property
    def record_type(self):
        return self.fields[1] if len(self.fields) > 1 else ''

    def get(self, index, default=''):
        return self.fields[index] if index < len(self.fields) else default

    def set(self, index, value):
        # positions past the end are created empty, as in a sparse record
        if index >= len(self.fields):
            self.fields.extend([''] * (index + 1 - len(self.fields)))
        self.fields[index] = value

    def __eq__(self, other):
        if isinstance(other, FilingLine):
            return self.fields == other.fields
        return NotImplemented

    def __repr__(self):
        return f"FilingLine({self.text!r})"


@dataclass
class BlockRange:
    start: int
    end: int

    def shift(self, offset):
        self.start += offset
        self.end += offset


@dataclass(frozen=True)
class OpenBlock:
    period: str
    start: int


@dataclass(frozen=True)
class Closed:
    pass


CLOSED = Closed()


class BlockTracker:
    """
    Single-slot tracker of the current open block of one record family.

    The state is either CLOSED or an OpenBlock(period, start). An opening
    record without a readable period leaves the tracker CLOSED, so that block
    is not indexed.
    """

    def __init__(self, family, open_code, close_code):
        self.family = family
        self.open_code = open_code
        self.close_code = close_code
        self.state = CLOSED

    def feed(self, index, line, ranges):
        reg = line.record_type
        if reg == self.open_code:
            period = extract_period(line.fields)
            if period is None:
                logger.debug(f"{self.open_code} sem período na linha {index}: bloco não indexado")
                self.state = CLOSED
            else:
                self.state = OpenBlock(period, index)
        elif reg == self.close_code and isinstance(self.state, OpenBlock):
            ranges[self.state.period] = BlockRange(self.state.start, index)
            self.state = CLOSED

    def finish(self):
        if isinstance(self.state, OpenBlock):
            logger.info(
                f"Bloco {self.family} do período {self.state.period} "
                f"(linha {self.state.start}) sem encerramento: descartado"
            )
            self.state = CLOSED


@dataclass
class ParsedFiling:
    lines: list
    summary_ranges: dict = field(default_factory=dict)
    computation_ranges: dict = field(default_factory=dict)
    decimal_separator: str = config.DEFAULT_DECIMAL_SEPARATOR


def split_lines(raw_text):
    """Split a filing on CRLF or LF into FilingLine objects."""
    return [FilingLine.from_text(ln) for ln in LINE_SPLIT_RE.split(raw_text)]


def extract_period(fields):
    """Return the first 'ANUAL' or '1T'..'4T' token found in fields 2..7, else None."""
    stop = min(len(fields), config.PERIOD_FIELD_STOP)
    for i in range(config.PERIOD_FIELD_START, stop):
        token = (fields[i] or '').upper()
        if token == PeriodKey.ANUAL.value or QUARTER_RE.match(token):
            return token
    return None


def detect_decimal_separator(lines):
    """
    Sniff the decimal separator from the amount field of N630/N670/M300/M350.

    The first of these records whose value carries a comma, or a dot between
    digits, decides; files without such evidence default to a comma.
    """
    for line in lines:
        if not line.text.startswith(config.DELIMITER):
            continue
        if line.record_type in config.SEPARATOR_SAMPLE_REGS:
            candidate = line.get(config.VALUE_FIELD)
            if ',' in candidate:
                return ','
            if DIGIT_DOT_DIGIT_RE.search(candidate):
                return '.'
    return config.DEFAULT_DECIMAL_SEPARATOR


def index_blocks(lines):
    """Build the period -> BlockRange maps of the summary and computation families."""
    summary_ranges = {}
    computation_ranges = {}
    summary = BlockTracker('M', config.REG_SUMMARY_OPEN, config.REG_SUMMARY_CLOSE)
    computation = BlockTracker('N', config.REG_COMPUTATION_OPEN, config.REG_COMPUTATION_CLOSE)

    for i, line in enumerate(lines):
        summary.feed(i, line, summary_ranges)
        computation.feed(i, line, computation_ranges)

    summary.finish()
    computation.finish()
    return summary_ranges, computation_ranges


def parse_filing(raw_text):
    """
    Parse a raw ECF text into lines, period ranges and decimal separator.

    Example:
        parsed = parse_filing(text)
        parsed.computation_ranges['1T'] -> BlockRange(start=10, end=16)
    """
    lines = split_lines(raw_text)
    summary_ranges, computation_ranges = index_blocks(lines)
    parsed = ParsedFiling(
        lines=lines,
        summary_ranges=summary_ranges,
        computation_ranges=computation_ranges,
        decimal_separator=detect_decimal_separator(lines),
    )
    logger.debug(
        f"ECF lida: {len(lines)} linhas, períodos M={sorted(summary_ranges)} "
        f"N={sorted(computation_ranges)}, separador '{parsed.decimal_separator}'"
    )
    return parsed


def shift_ranges_after(insert_at, count, *range_maps):
    """
    Shift every range starting after ``insert_at`` by ``count`` lines.

    Ranges that start at or before the insertion point are left untouched.
    """
    for ranges in range_maps:
        for block in ranges.values():
            if block.start > insert_at:
                block.shift(count)
