import math

import pandas as pd
import pytest

from ecfdash.utils import clean_and_convert_numeric, format_amount, parse_amount, round2


@pytest.mark.parametrize("value, expected", [
    (100000 * 0.006, 600.0),
    (1.005, 1.01),
    (0.125, 0.13),
    (-1.5, -1.5),
    (0, 0.0),
])
def test_round2(value, expected):
    assert round2(value) == expected


@pytest.mark.parametrize("value, separator, expected", [
    (750, ",", "750,00"),
    (1234.5, ",", "1234,50"),
    (1234.5, ".", "1234.50"),
    (-12.5, ",", "-12,50"),
    (-0.125, ".", "-0.13"),
    (-0.0, ",", "0,00"),
    (math.nan, ",", "0,00"),
    (math.inf, ".", "0.00"),
])
def test_format_amount(value, separator, expected):
    assert format_amount(value, separator) == expected


@pytest.mark.parametrize("text, separator, expected", [
    ("1.234,56", ",", 1234.56),
    ("1500,00", ",", 1500.0),
    ("1234.56", ".", 1234.56),
    ("", ",", 0.0),
    (None, ",", 0.0),
    ("abc", ",", 0.0),
    ("NaN", ".", 0.0),
])
def test_parse_amount(text, separator, expected):
    assert parse_amount(text, separator) == expected


def test_clean_and_convert_numeric():
    df = pd.DataFrame({"3": ["150000,00", "x"], "4": ["1,5", "2"]})

    out = clean_and_convert_numeric(df, ["3"], inplace=False)

    assert out["3"].iloc[0] == 150000.0
    assert pd.isna(out["3"].iloc[1])
    assert df["3"].iloc[0] == "150000,00"
