import csv
import re
from dataclasses import dataclass, field
from io import StringIO

import numpy as np
import pandas as pd
from loguru import logger

from . import config
from .filing import parse_filing
from .processors import PeriodTaxes
from .selic import SelicRate
from .utils import clean_and_convert_numeric, parse_amount

DATE_FIELD_RE = re.compile(r'^\d{8}$')


@dataclass
class EcfFiling:
    name: str
    exercise_year: int
    method: str
    taxes: dict = field(default_factory=dict)
    content: bytes = b''


def read_filing_text(uploaded_file):
    """Read an uploaded file (or path) and decode it with the SPED encoding."""
    if isinstance(uploaded_file, (bytes, bytearray)):
        raw = uploaded_file
    elif isinstance(uploaded_file, str):
        with open(uploaded_file, 'rb') as fh:
            raw = fh.read()
    else:
        uploaded_file.seek(0)
        raw = uploaded_file.read()
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode(config.ENCODING, errors='ignore')
    return raw


def _truncate_at_terminator(file_content):
    # |9999| marks the end of valid SPED data (a digital certificate may follow)
    lines = file_content.split('\n')
    for idx, line in enumerate(lines):
        if line.startswith('|9999|'):
            return '\n'.join(lines[:idx + 1])
    return file_content


def _read_sped_frame(file_content, column_count):
    column_names = [str(i) for i in range(column_count)]
    f_clean = StringIO(_truncate_at_terminator(file_content))

    try:
        reader = pd.read_csv(
            f_clean,
            header=None,
            delimiter=config.DELIMITER,
            names=column_names,
            dtype=str,
            engine="c",
            on_bad_lines="skip",
            chunksize=config.CHUNK_SIZE
        )
        parts = [chunk for chunk in reader]
    except (pd.errors.ParserError, ValueError):
        # Fallback to Python engine if C engine fails
        f_clean.seek(0)
        reader = pd.read_csv(
            f_clean,
            header=None,
            delimiter=config.DELIMITER,
            names=column_names,
            dtype=str,
            engine="python",
            on_bad_lines="skip",
            chunksize=config.CHUNK_SIZE,
            quoting=csv.QUOTE_NONE
        )
        parts = [chunk for chunk in reader]

    df = pd.concat(parts, ignore_index=True) if parts else pd.DataFrame(columns=column_names)
    if not df.empty:
        mask_all = df['1'].astype(str).eq(config.REG_TERMINATOR)
        if mask_all.any():
            cut = int(np.argmax(mask_all.to_numpy()))
            df = df.iloc[:cut + 1].copy()
    return df


def load_efd_revenue(uploaded_files):
    """
    Load one or more EFD Contribuições files and sum the monthly resale revenue.

    The month comes from DT_INI of register 0000; the revenue is VL_TOT_REC of
    the M400 records whose CST is a monophasic resale code.

    Returns:
        DataFrame with columns ano_mes ('YYYYMM') and total_geral
    """
    if uploaded_files is None or (isinstance(uploaded_files, list) and len(uploaded_files) == 0):
        raise ValueError("Por favor, carregue pelo menos um arquivo .txt da EFD Contribuições")

    files = uploaded_files if isinstance(uploaded_files, list) else [uploaded_files]
    records = []

    for f in files:
        df_temp = _read_sped_frame(read_filing_text(f), config.COLUMN_COUNT_CONTRIB)
        if df_temp.empty or df_temp.loc[0, '1'] != '0000':
            logger.warning(f"Arquivo EFD ignorado: registro 0000 ausente ({getattr(f, 'name', f)!s})")
            continue

        dt_ini = df_temp.loc[0, '6'] if pd.notna(df_temp.loc[0, '6']) else ''
        if not DATE_FIELD_RE.match(dt_ini):
            logger.warning(f"Arquivo EFD ignorado: DT_INI inválida '{dt_ini}'")
            continue
        ano_mes = f"{dt_ini[4:]}{dt_ini[2:4]}"

        M400 = df_temp[df_temp['1'] == 'M400'].iloc[:, 0:6].copy()
        clean_and_convert_numeric(M400, ['3'])
        revenda = M400[M400['2'].isin(config.CST_REVENDA_MONOFASICA)]['3'].sum()

        records.append({'ano_mes': ano_mes, 'total_geral': float(revenda)})

    if not records:
        raise ValueError("Falha ao ler a EFD Contribuições: nenhum arquivo válido.")

    df = pd.DataFrame(records)
    return df.groupby('ano_mes', as_index=False)['total_geral'].sum().round(2)


def monthly_revenue_map(df_revenue):
    """Turn the ano_mes/total_geral frame into a {'YYYYMM': total} dict."""
    if df_revenue is None or df_revenue.empty:
        return {}
    return dict(zip(df_revenue['ano_mes'].astype(str), df_revenue['total_geral'].astype(float)))


def detect_exercise_year(lines):
    """Year of the first ddmmyyyy date found in the 0000 record, or None."""
    for line in lines:
        if line.record_type != '0000':
            continue
        for value in line.fields[2:]:
            if DATE_FIELD_RE.match(value):
                return int(value[4:])
        return None
    return None


def extract_ecf_taxes(parsed):
    """
    Read the originally declared IRPJ/CSLL figures of each period.

    N630 code 1 is the IRPJ base and codes 3 and 4 the IRPJ due (15% and
    surtax); N670 code 1 is the CSLL base and code 2 the CSLL due.
    """
    sep = parsed.decimal_separator
    taxes = {}
    for period, block in parsed.computation_ranges.items():
        values = {}
        for line in parsed.lines[block.start:block.end + 1]:
            if line.record_type in (config.REG_IRPJ, config.REG_CSLL):
                values[(line.record_type, line.get(2))] = parse_amount(line.get(config.VALUE_FIELD), sep)
        taxes[period] = PeriodTaxes(
            base_irpj=values.get((config.REG_IRPJ, config.IRPJ_CODE_BASE), 0.0),
            base_csll=values.get((config.REG_CSLL, config.CSLL_CODE_BASE), 0.0),
            irpj_due=values.get((config.REG_IRPJ, config.IRPJ_CODE_FLAT), 0.0)
            + values.get((config.REG_IRPJ, config.IRPJ_CODE_SURTAX), 0.0),
            csll_due=values.get((config.REG_CSLL, config.CSLL_CODE_TOTAL), 0.0),
        )
    return taxes


def load_ecf_filing(uploaded_file, name=None):
    """Parse one ECF upload into an EcfFiling with its exercise, method and taxes."""
    text = read_filing_text(uploaded_file)
    raw = text.encode(config.ENCODING, errors='ignore')
    name = name or getattr(uploaded_file, 'name', 'ECF')

    parsed = parse_filing(text)
    year = detect_exercise_year(parsed.lines)
    if year is None:
        raise ValueError(f"Não foi possível identificar o exercício da ECF '{name}'.")

    method = config.METHOD_ANUAL if config.PERIOD_ANUAL in parsed.computation_ranges else config.METHOD_TRIMESTRAL
    taxes = extract_ecf_taxes(parsed)
    if not taxes:
        logger.warning(f"ECF '{name}' ({year}) sem blocos N030/N990 indexados")

    return EcfFiling(name=name, exercise_year=year, method=method, taxes=taxes, content=raw)


def _normalize_column(name):
    return re.sub(r'[^a-z]', '', str(name).lower())


def load_selic_rates(uploaded_file):
    """
    Load the monthly SELIC series from a ';'-separated CSV.

    Accepts the Banco Central export (data;valor, dd/mm/yyyy, comma decimals)
    or month;rate with ISO dates. Invalid rows are dropped.

    Returns:
        tuple of SelicRate sorted by month
    """
    text = read_filing_text(uploaded_file)
    df = pd.read_csv(StringIO(text), sep=';', dtype=str)
    df.columns = [_normalize_column(c) for c in df.columns]

    date_col = next((c for c in ('data', 'month', 'mes') if c in df.columns), None)
    rate_col = next((c for c in ('valor', 'rate', 'taxa') if c in df.columns), None)
    if date_col is None or rate_col is None:
        raise ValueError("Arquivo SELIC deve conter as colunas data;valor (ou month;rate)")

    df = df[[date_col, rate_col]].dropna().copy()
    df[date_col] = df[date_col].str.strip()
    clean_and_convert_numeric(df, [rate_col])

    date_format = '%d/%m/%Y' if df[date_col].str.contains('/').any() else '%Y-%m-%d'
    df[date_col] = pd.to_datetime(df[date_col], format=date_format, errors='coerce')
    df = df.dropna().sort_values(by=date_col)

    return tuple(
        SelicRate(month=ts.date().replace(day=1), rate=float(rate))
        for ts, rate in zip(df[date_col], df[rate_col])
    )
