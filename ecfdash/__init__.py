from .filing import (
    BlockRange,
    FilingLine,
    ParsedFiling,
    PeriodKey,
    parse_filing,
    shift_ranges_after,
)
from .rectifier import (
    AdjustmentPeriod,
    rectify_filing,
    rewrite,
    serialize_lines,
)
from .selic import SelicRate, calculate_selic
from .processors import (
    BenefitResult,
    CalculationRow,
    PeriodTaxes,
    aggregate_revenue_by_period,
    build_adjustments,
    compute_benefit,
)
from .loaders import (
    load_ecf_filing,
    load_efd_revenue,
    load_selic_rates,
)
from .batch import (
    FilingSource,
    NothingToProcessError,
    generate_rectified_filings,
    package_zip,
)

__all__ = [
    "AdjustmentPeriod",
    "BenefitResult",
    "BlockRange",
    "CalculationRow",
    "FilingLine",
    "FilingSource",
    "NothingToProcessError",
    "ParsedFiling",
    "PeriodKey",
    "PeriodTaxes",
    "SelicRate",
    "aggregate_revenue_by_period",
    "build_adjustments",
    "calculate_selic",
    "compute_benefit",
    "generate_rectified_filings",
    "load_ecf_filing",
    "load_efd_revenue",
    "load_selic_rates",
    "package_zip",
    "parse_filing",
    "rectify_filing",
    "rewrite",
    "serialize_lines",
    "shift_ranges_after",
]
