import pandas as pd

from . import config


PERIOD_LABELS = {
    config.PERIOD_ANUAL: "Apuração Anual",
    "1T": "1º Tri",
    "2T": "2º Tri",
    "3T": "3º Tri",
    "4T": "4º Tri",
}

METHOD_LABELS = {
    config.METHOD_ANUAL: "Anual",
    config.METHOD_TRIMESTRAL: "Trimestral",
}

PERIOD_LABEL_SERIES = pd.Series(PERIOD_LABELS, dtype="string")
METHOD_LABEL_SERIES = pd.Series(METHOD_LABELS, dtype="string")


def map_period_label(series: pd.Series) -> pd.Series:
    """Map period keys ('1T', 'ANUAL', ...) to their display labels."""
    return series.map(PERIOD_LABEL_SERIES)


def map_method_label(series: pd.Series) -> pd.Series:
    """Map apportionment methods to display labels."""
    return series.map(METHOD_LABEL_SERIES)
