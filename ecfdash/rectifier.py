"""
Rewriting of ECF filings into rectifying filings.

For every adjusted period the IRPJ/CSLL bases and taxes of the computation
block are patched in place, two adjustment records (M410 and M510) carrying
the evaporation loss are inserted into the summary block, and the block
counters are recomputed at the end.
"""

from dataclasses import dataclass

from loguru import logger

from . import config
from .filing import FilingLine, normalize_period, parse_filing, shift_ranges_after
from .utils import format_amount


@dataclass(frozen=True)
class AdjustmentPeriod:
    exercise_year: int
    method: str
    period: str
    generated_loss: float
    irpj_base: float
    irpj_flat: float
    irpj_surtax: float
    csll_base: float
    csll_total: float


def patch_computation_block(lines, block, adjustment, decimal_separator):
    """Overwrite the N630 (codes 1/3/4) and N670 (codes 1/2) amounts inside the block."""
    irpj_values = {
        config.IRPJ_CODE_BASE: adjustment.irpj_base,
        config.IRPJ_CODE_FLAT: adjustment.irpj_flat,
        config.IRPJ_CODE_SURTAX: adjustment.irpj_surtax,
    }
    csll_values = {
        config.CSLL_CODE_BASE: adjustment.csll_base,
        config.CSLL_CODE_TOTAL: adjustment.csll_total,
    }
    for i in range(block.start, block.end + 1):
        line = lines[i]
        if line.record_type == config.REG_IRPJ:
            values = irpj_values
        elif line.record_type == config.REG_CSLL:
            values = csll_values
        else:
            continue
        code = line.get(2)
        if code in values:
            line.set(config.VALUE_FIELD, format_amount(values[code], decimal_separator))


def adjustment_records(adjustment, irpj_code, csll_code, description, decimal_separator):
    """Build the M410 and M510 records for one period."""
    amount = format_amount(adjustment.generated_loss, decimal_separator)
    return [
        FilingLine(['', config.REG_IRPJ_ADJUSTMENT, irpj_code, description, amount, '']),
        FilingLine(['', config.REG_CSLL_ADJUSTMENT, csll_code, description, amount, '']),
    ]


def insertion_point(lines, block):
    """Index of the first M415 inside the block, or the block end."""
    marker = f"{config.DELIMITER}{config.REG_SUMMARY_INSERT_MARKER}{config.DELIMITER}"
    for k in range(block.start, block.end + 1):
        if lines[k].text.startswith(marker):
            return k
    return block.end


def apply_adjustment(lines, summary_ranges, computation_ranges, adjustment,
                     irpj_code, csll_code, description, decimal_separator=config.DEFAULT_DECIMAL_SEPARATOR):
    """
    Apply one period adjustment to the line list, in place.

    Periods missing from the computation index are not patched and periods
    missing from the summary index get no M410/M510; neither is an error.
    After an insertion all ranges that start after the insertion point are
    shifted by the number of inserted lines.
    """
    key = normalize_period(adjustment.period)

    block = computation_ranges.get(key)
    if block is None:
        logger.info(f"Período {key} ausente nos blocos N da ECF {adjustment.exercise_year}: ajuste ignorado")
        return
    patch_computation_block(lines, block, adjustment, decimal_separator)

    block = summary_ranges.get(key)
    if block is None:
        logger.info(f"Período {key} ausente nos blocos M da ECF {adjustment.exercise_year}: M410/M510 não inseridos")
        return
    insert_at = insertion_point(lines, block)
    lines[insert_at:insert_at] = adjustment_records(adjustment, irpj_code, csll_code, description, decimal_separator)
    shift_ranges_after(insert_at, config.INSERTED_LINES, summary_ranges, computation_ranges)


def recompute_trailers(lines):
    """
    Rewrite the 0990, M990, 9990 and 9999 counters and cut the file after 9999.

    Each trailer receives the running count of records of its family seen so
    far (itself included); 9999 receives the count of every '|' record.
    """
    count_0 = count_m = count_9 = total = 0
    for i, line in enumerate(lines):
        text = line.text.strip()
        if not text.startswith(config.DELIMITER):
            continue
        total += 1
        reg = text[1:5]
        if reg.startswith('0'):
            count_0 += 1
        if reg.startswith('M'):
            count_m += 1
        if reg.startswith('9'):
            count_9 += 1

        if reg == config.REG_TRAILER_0:
            lines[i] = FilingLine(['', reg, str(count_0), ''])
        elif reg == config.REG_TRAILER_M:
            lines[i] = FilingLine(['', reg, str(count_m), ''])
        elif reg == config.REG_TRAILER_9:
            lines[i] = FilingLine(['', reg, str(count_9), ''])
        elif reg == config.REG_TERMINATOR:
            lines[i] = FilingLine(['', reg, str(total), ''])
            del lines[i + 1:]
            break
    return lines


def rewrite(lines, summary_ranges, computation_ranges, adjustments, irpj_code, csll_code,
            description, decimal_separator=config.DEFAULT_DECIMAL_SEPARATOR):
    """
    Apply all adjustments in order and recompute the trailers.

    The line list and both range maps are modified in place; the returned
    list is the same object as ``lines``.
    """
    for adjustment in adjustments:
        apply_adjustment(lines, summary_ranges, computation_ranges, adjustment,
                         irpj_code, csll_code, description, decimal_separator)
    return recompute_trailers(lines)


def serialize_lines(lines):
    """Join the records with CRLF, with a trailing CRLF."""
    return config.LINE_BREAK.join(line.text for line in lines) + config.LINE_BREAK


def rectify_filing(raw_text, adjustments, irpj_code=config.DEFAULT_COD_AJUSTE_IRPJ,
                   csll_code=config.DEFAULT_COD_AJUSTE_CSLL, description=config.DEFAULT_DESCRICAO_AJUSTE):
    """Parse, rewrite and serialize one filing."""
    parsed = parse_filing(raw_text)
    lines = rewrite(
        parsed.lines,
        parsed.summary_ranges,
        parsed.computation_ranges,
        adjustments,
        irpj_code,
        csll_code,
        description,
        parsed.decimal_separator,
    )
    return serialize_lines(lines)
