"""
SELIC correction of refundable amounts.

The refund of a period is corrected by the accumulated monthly SELIC rate
from the second month after the tax fell due up to the month before the
computation, plus 1% for the month of payment.
"""

from dataclasses import dataclass
from datetime import date

from loguru import logger

from . import config
from .filing import normalize_period


@dataclass(frozen=True)
class SelicRate:
    month: date
    rate: float


def correction_start(period_key, fiscal_year):
    """Return the first day of the first corrected month, or None for an unknown period."""
    key = normalize_period(period_key)
    if key not in config.SELIC_CORRECTION_START:
        return None
    month, year_offset = config.SELIC_CORRECTION_START[key]
    return date(int(fiscal_year) + year_offset, month, 1)


def correction_end(now=None):
    """Return the first day of the month before ``now`` (today by default)."""
    now = now or date.today()
    if now.month == 1:
        return date(now.year - 1, 12, 1)
    return date(now.year, now.month - 1, 1)


def calculate_selic(amount, period_key, fiscal_year, rates, now=None):
    """
    Compute the SELIC interest due on a refundable amount.

    Args:
        amount: Refundable amount of the period
        period_key: 'ANUAL', '1T', '2T', '3T' or '4T'
        fiscal_year: Exercise year of the period
        rates: Sequence of SelicRate ordered by month
        now: Reference date of the computation (defaults to today)

    Returns:
        The interest amount (not rounded); 0 when nothing is due
    """
    if amount <= 0 or not rates:
        return 0

    start = correction_start(period_key, fiscal_year)
    if start is None:
        logger.debug(f"Período '{period_key}' sem regra de correção SELIC")
        return 0

    end = correction_end(now)
    if start > end:
        return 0

    total_rate = sum(r.rate for r in rates if start <= r.month <= end)
    total_rate += config.SELIC_PAYMENT_MONTH_RATE

    return amount * (total_rate / 100)
