"""
Batch generation of rectifying ECF filings.

Each source filing is rewritten with the adjustments of its own exercise;
the results are packaged into a single zip archive for download.
"""

import io
import zipfile
from dataclasses import dataclass

from loguru import logger

from . import config
from .filing import normalize_period
from .loaders import read_filing_text
from .rectifier import rectify_filing


class NothingToProcessError(RuntimeError):
    """No filing had both an eligible exercise and adjustments to apply."""


@dataclass
class FilingSource:
    exercise_year: int
    content: bytes


def is_eligible_year(year):
    return config.ELIGIBLE_YEAR_FIRST <= int(year) <= config.ELIGIBLE_YEAR_LAST


def unique_adjustments(adjustments):
    """Keep the first adjustment of each (exercise, period); repeats are logged and dropped."""
    seen = set()
    unique = []
    for adjustment in adjustments:
        key = (int(adjustment.exercise_year), normalize_period(adjustment.period))
        if key in seen:
            logger.warning(f"Ajuste repetido para {key[1]}/{key[0]}: ignorado")
            continue
        seen.add(key)
        unique.append(adjustment)
    return unique


def generate_rectified_filings(sources, adjustments,
                               irpj_code=config.DEFAULT_COD_AJUSTE_IRPJ,
                               csll_code=config.DEFAULT_COD_AJUSTE_CSLL,
                               description=config.DEFAULT_DESCRICAO_AJUSTE):
    """
    Rewrite every eligible source with the adjustments of its exercise.

    Args:
        sources: iterable of FilingSource
        adjustments: iterable of AdjustmentPeriod (any exercise)
        irpj_code: COD_AJUSTE written in the M410 records
        csll_code: COD_AJUSTE written in the M510 records
        description: description written in both records

    Returns:
        dict file name -> rectified filing bytes, in source order

    Raises:
        NothingToProcessError: when no file could be generated
    """
    adjustments = unique_adjustments(adjustments)
    outputs = {}

    for source in sources:
        year = int(source.exercise_year)
        logger.info(f"Processando exercício: {year}")

        if not is_eligible_year(year):
            logger.info(f"Exercício {year} fora da janela {config.ELIGIBLE_YEAR_FIRST}-{config.ELIGIBLE_YEAR_LAST}: ignorado")
            continue

        name = config.RECTIFIED_FILE_NAME.format(exercicio=year)
        if name in outputs:
            logger.warning(f"Exercício {year} repetido: apenas a primeira ECF é retificada")
            continue

        year_adjustments = [a for a in adjustments if int(a.exercise_year) == year]
        if not year_adjustments:
            logger.info(f"Exercício {year} sem ajustes calculados: ignorado")
            continue

        text = read_filing_text(source.content)
        rectified = rectify_filing(text, year_adjustments, irpj_code, csll_code, description)
        outputs[name] = rectified.encode(config.ENCODING, errors='replace')

    if not outputs:
        raise NothingToProcessError("Nenhum arquivo elegível processado.")

    logger.success(f"{len(outputs)} arquivo(s) retificador(es) gerado(s)")
    return outputs


def package_zip(files):
    """Pack {file name: bytes} into an in-memory zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()
