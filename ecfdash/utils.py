"""
Utility functions for monetary values and DataFrame operations.

This module provides the rounding and formatting rules shared by the
benefit calculator and the filing rewriter, plus helpers for common
DataFrame transformations.
"""

import math
import sys
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

import pandas as pd

CENT = Decimal('0.01')


def round2(value):
    """
    Round a monetary value to cents, half-up.

    A machine epsilon is added before scaling so values such as 1.005, whose
    binary representation falls just short of the half cent, still round up.

    Example:
        round2(100000 * 0.006) -> 600.0
    """
    return math.floor((value + sys.float_info.epsilon) * 100 + 0.5) / 100


def format_amount(value, decimal_separator=','):
    """
    Format a number with exactly two decimals using the given separator.

    Non-finite values (NaN, Infinity) are written as zero.

    Args:
        value: Number to format
        decimal_separator: ',' or '.'

    Returns:
        Formatted string, e.g. "1234,50"

    Example:
        format_amount(750, ',') -> "750,00"
    """
    value = float(value)
    if not math.isfinite(value) or value == 0:
        value = 0.0
    text = str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
    return text if decimal_separator == '.' else text.replace('.', ',')


def parse_amount(text, decimal_separator=','):
    """
    Parse a filing amount field into a float, returning 0.0 when empty or invalid.

    Example:
        parse_amount("1500,00", ',') -> 1500.0
    """
    if text is None:
        return 0.0
    text = str(text).strip()
    if not text:
        return 0.0
    if decimal_separator == ',':
        text = text.replace('.', '').replace(',', '.')
    try:
        value = float(Decimal(text))
    except (InvalidOperation, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def clean_and_convert_numeric(df, columns, inplace=True):
    """
    Clean decimal separators and convert to numeric in one operation.

    Args:
        df: DataFrame to modify
        columns: List of column names to process
        inplace: If True, modify df in place. If False, return modified copy.

    Returns:
        Modified DataFrame (or None if inplace=True)

    Example:
        clean_and_convert_numeric(df, ['3'])
    """
    if not inplace:
        df = df.copy()

    # First clean decimal separators
    df[columns] = df[columns].replace(',', '.', regex=True)
    # Then convert to numeric
    df[columns] = df[columns].apply(pd.to_numeric, errors='coerce')

    if not inplace:
        return df
