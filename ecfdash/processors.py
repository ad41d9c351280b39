"""
Benefit calculation and summary functions.

This module turns the resale revenue of each fiscal period into the
evaporation-loss deduction, restates the IRPJ/CSLL due with the loss
carried forward between periods, and builds the adjustments and the
SELIC-corrected summaries shown by the app.
"""

from dataclasses import dataclass, asdict

import pandas as pd

from ecfdash import config
from ecfdash.lookups import map_period_label
from ecfdash.rectifier import AdjustmentPeriod
from ecfdash.selic import calculate_selic
from ecfdash.utils import round2


@dataclass(frozen=True)
class PeriodTaxes:
    base_irpj: float = 0.0
    base_csll: float = 0.0
    irpj_due: float = 0.0
    csll_due: float = 0.0

    @classmethod
    def from_mapping(cls, data):
        """Accept either a PeriodTaxes or the stored dict (base_irpj, irpj_devido_original, ...)."""
        if isinstance(data, cls):
            return data
        data = data or {}
        return cls(
            base_irpj=float(data.get('base_irpj') or 0),
            base_csll=float(data.get('base_csll') or 0),
            irpj_due=float(data.get('irpj_devido_original', data.get('irpj_due')) or 0),
            csll_due=float(data.get('csll_devida_original', data.get('csll_due')) or 0),
        )


@dataclass(frozen=True)
class CalculationRow:
    period: str
    revenue: float
    generated_loss: float
    opening_carry_forward: float
    total_deduction: float
    restated_base_irpj: float
    irpj_flat: float
    irpj_surtax: float
    new_irpj: float
    irpj_refund: float
    restated_base_csll: float
    new_csll: float
    csll_refund: float
    total_refund: float
    closing_carry_forward: float


@dataclass
class BenefitResult:
    method: str
    rows: list

    @property
    def is_annual(self):
        return self.method == config.METHOD_ANUAL

    def by_period(self):
        return {row.period: row for row in self.rows}

    def to_frame(self):
        return pd.DataFrame([asdict(row) for row in self.rows])


def is_annual_method(method):
    """True for 'ANUAL' or descriptions such as 'Lucro Real - Anual'."""
    return 'ANUAL' in str(method or '').upper()


def periods_for(annual):
    return [config.PERIOD_ANUAL] if annual else list(config.PERIODS_QUARTERLY)


def surtax_threshold(annual):
    return config.IRPJ_SURTAX_THRESHOLD_ANUAL if annual else config.IRPJ_SURTAX_THRESHOLD_QUARTERLY


def month_to_quarter(month):
    """Map a month (1-12) to its quarter key '1T'..'4T'."""
    if month <= 3:
        return '1T'
    if month <= 6:
        return '2T'
    if month <= 9:
        return '3T'
    return '4T'


def aggregate_revenue_by_period(monthly, year, annual):
    """
    Sum monthly resale revenue (keys 'YYYYMM') into the periods of one exercise.

    Annual exercises get a single 'ANUAL' entry; quarterly ones always get the
    four quarter keys, missing months counting as zero.
    """
    if annual:
        total = sum(monthly.get(f"{year}{m:02d}", 0) or 0 for m in range(1, 13))
        return {config.PERIOD_ANUAL: round2(total)}

    by_period = {key: 0 for key in config.PERIODS_QUARTERLY}
    for m in range(1, 13):
        key = month_to_quarter(m)
        by_period[key] = round2(by_period[key] + (monthly.get(f"{year}{m:02d}", 0) or 0))
    return by_period


def compute_benefit(method, revenue_by_period, original_taxes):
    """
    Restate the IRPJ/CSLL of each period deducting the evaporation loss.

    Periods are processed in chronological order; the unused part of the
    deduction is carried into the next period. Every intermediate amount is
    rounded to cents.

    Args:
        method: 'ANUAL'/'TRIMESTRAL' or the apportionment description
        revenue_by_period: period key -> resale revenue
        original_taxes: period key -> PeriodTaxes or stored dict

    Returns:
        BenefitResult with one CalculationRow per period
    """
    annual = is_annual_method(method)
    threshold = surtax_threshold(annual)
    original_taxes = original_taxes or {}
    rows = []
    carry_forward = 0

    for key in periods_for(annual):
        taxes = PeriodTaxes.from_mapping(original_taxes.get(key))
        original_base = taxes.base_irpj
        revenue = float(revenue_by_period.get(key, 0) or 0)

        generated_loss = round2(revenue * config.EVAPORATION_LOSS_RATE)
        opening = carry_forward
        total_deduction = round2(opening + generated_loss)
        restated_base = round2(original_base - total_deduction)

        # only the deficit created by the deduction carries over, never a negative original base
        next_balance = restated_base - min(0, original_base)
        carry_forward = abs(next_balance) if next_balance < 0 else 0

        taxable = max(0, restated_base)
        surtax_base = max(0, taxable - threshold)
        new_irpj = round2(taxable * config.IRPJ_RATE + surtax_base * config.IRPJ_SURTAX_RATE)
        new_csll = round2(taxable * config.CSLL_RATE)

        irpj_refund = max(0, round2(taxes.irpj_due - new_irpj))
        csll_refund = max(0, round2(taxes.csll_due - new_csll))

        rows.append(CalculationRow(
            period=key,
            revenue=revenue,
            generated_loss=generated_loss,
            opening_carry_forward=opening,
            total_deduction=total_deduction,
            restated_base_irpj=restated_base,
            irpj_flat=round2(taxable * config.IRPJ_RATE),
            irpj_surtax=round2(surtax_base * config.IRPJ_SURTAX_RATE),
            new_irpj=new_irpj,
            irpj_refund=irpj_refund,
            restated_base_csll=restated_base,
            new_csll=new_csll,
            csll_refund=csll_refund,
            total_refund=round2(irpj_refund + csll_refund),
            closing_carry_forward=carry_forward,
        ))

    method_key = config.METHOD_ANUAL if annual else config.METHOD_TRIMESTRAL
    return BenefitResult(method=method_key, rows=rows)


def build_adjustments(exercise_year, result):
    """Derive the rectification adjustments of one exercise from its benefit rows."""
    threshold = surtax_threshold(result.is_annual)
    adjustments = []
    for row in result.rows:
        irpj_base = round2(max(0, row.restated_base_irpj))
        csll_base = round2(max(0, row.restated_base_csll))
        adjustments.append(AdjustmentPeriod(
            exercise_year=int(exercise_year),
            method=result.method,
            period=row.period,
            generated_loss=round2(row.generated_loss),
            irpj_base=irpj_base,
            irpj_flat=round2(irpj_base * config.IRPJ_RATE),
            irpj_surtax=round2(max(0, irpj_base - threshold) * config.IRPJ_SURTAX_RATE),
            csll_base=csll_base,
            csll_total=round2(row.new_csll),
        ))
    return adjustments


def selic_correction_table(result, exercise_year, rates, now=None):
    """Per-period refund, SELIC interest and corrected total."""
    records = []
    for row in result.rows:
        selic = calculate_selic(row.total_refund, row.period, exercise_year, rates, now=now)
        records.append({
            'periodo': row.period,
            'beneficio': row.total_refund,
            'selic': round2(selic),
            'total_corrigido': round2(row.total_refund + selic),
        })
    df = pd.DataFrame(records, columns=['periodo', 'beneficio', 'selic', 'total_corrigido'])
    df.insert(1, 'descricao', map_period_label(df['periodo']))
    return df


def annual_overview(entries, rates, now=None):
    """
    One row per exercise with revenue, evaporation loss and corrected refund.

    Args:
        entries: iterable of dicts with keys exercise_year, method,
            revenue_by_period and result (BenefitResult)
        rates: SELIC series
        now: Reference date of the SELIC correction

    Returns:
        DataFrame sorted by exercise, most recent first
    """
    records = []
    for entry in entries:
        year = entry['exercise_year']
        revenue = round2(sum(float(v or 0) for v in entry['revenue_by_period'].values()))
        corrected = 0
        for row in entry['result'].rows:
            corrected += row.total_refund + calculate_selic(row.total_refund, row.period, year, rates, now=now)
        records.append({
            'exercicio': year,
            'metodo_apuracao': entry['method'],
            'receita_revenda': revenue,
            'perdas_evaporacao': round2(revenue * config.EVAPORATION_LOSS_RATE),
            'total_corrigido': round2(corrected),
        })
    columns = ['exercicio', 'metodo_apuracao', 'receita_revenda', 'perdas_evaporacao', 'total_corrigido']
    df = pd.DataFrame(records, columns=columns)
    return df.sort_values(by='exercicio', ascending=False).reset_index(drop=True)
