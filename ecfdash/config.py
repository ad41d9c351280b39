"""
Configuration constants for the ECF rectification engine.

This module centralizes the record codes, tax rates and file conventions
shared by the parser, the rewriter and the benefit calculator.
"""

# File encoding and parsing
ENCODING = 'latin-1'
DELIMITER = '|'
CHUNK_SIZE = 200_000
LINE_BREAK = '\r\n'
DEFAULT_DECIMAL_SEPARATOR = ','

# Column counts for pandas reads
COLUMN_COUNT_CONTRIB = 40  # SPED Contribuições

# Period keys
PERIOD_ANUAL = 'ANUAL'
PERIODS_QUARTERLY = ['1T', '2T', '3T', '4T']
METHOD_ANUAL = 'ANUAL'
METHOD_TRIMESTRAL = 'TRIMESTRAL'

# Block delimiters (summary family = M, computation family = N)
REG_SUMMARY_OPEN = 'M010'
REG_SUMMARY_CLOSE = 'M990'
REG_SUMMARY_INSERT_MARKER = 'M415'
REG_COMPUTATION_OPEN = 'N030'
REG_COMPUTATION_CLOSE = 'N990'

# Records patched in place
REG_IRPJ = 'N630'
REG_CSLL = 'N670'
IRPJ_CODE_BASE = '1'
IRPJ_CODE_FLAT = '3'
IRPJ_CODE_SURTAX = '4'
CSLL_CODE_BASE = '1'
CSLL_CODE_TOTAL = '2'
VALUE_FIELD = 4

# Records inserted into the summary block
REG_IRPJ_ADJUSTMENT = 'M410'
REG_CSLL_ADJUSTMENT = 'M510'
INSERTED_LINES = 2

# Records used to sniff the decimal separator
SEPARATOR_SAMPLE_REGS = ['N630', 'N670', 'M300', 'M350']

# Trailer records recomputed on output
REG_TRAILER_0 = '0990'
REG_TRAILER_M = 'M990'
REG_TRAILER_9 = '9990'
REG_TERMINATOR = '9999'

# Period marker scan window inside M010/N030 (fields 2..7)
PERIOD_FIELD_START = 2
PERIOD_FIELD_STOP = 8

# Tax rates
EVAPORATION_LOSS_RATE = 0.006  # notional fuel evaporation allowance (0,6%)
IRPJ_RATE = 0.15
IRPJ_SURTAX_RATE = 0.10
CSLL_RATE = 0.09
IRPJ_SURTAX_THRESHOLD_ANUAL = 240000
IRPJ_SURTAX_THRESHOLD_QUARTERLY = 60000

# SELIC correction: period -> (first correction month, year offset)
SELIC_CORRECTION_START = {
    '1T': (6, 0),
    '2T': (9, 0),
    '3T': (12, 0),
    '4T': (3, 1),
    'ANUAL': (3, 1),
}
SELIC_PAYMENT_MONTH_RATE = 1.0  # 1% for the month of payment

# Rectification batch
ELIGIBLE_YEAR_FIRST = 2020
ELIGIBLE_YEAR_LAST = 2024
DEFAULT_COD_AJUSTE_IRPJ = '900'
DEFAULT_COD_AJUSTE_CSLL = '900'
DEFAULT_DESCRICAO_AJUSTE = 'Perda por Evaporação'
RECTIFIED_FILE_NAME = '{exercicio}-RETIFICADORA.txt'
RECTIFIED_ZIP_NAME = 'ECF_RETIFICADORAS.zip'

# EFD Contribuições: CST PIS of monophasic fuel resale revenue (M400)
CST_REVENDA_MONOFASICA = ['04']

# Logging
LOG_LEVEL = 'INFO'
LOG_FILE = 'logs/ecfdash_{time}.log'
LOG_ROTATION = '10 MB'
LOG_RETENTION = '30 days'
