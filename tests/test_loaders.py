import io
from datetime import date

import pytest

from ecfdash import config
from ecfdash.loaders import (
    detect_exercise_year,
    load_ecf_filing,
    load_efd_revenue,
    load_selic_rates,
    monthly_revenue_map,
    read_filing_text,
)
from ecfdash.filing import split_lines
from ecfdash.processors import PeriodTaxes
from ecfdash.selic import SelicRate


def _upload(text, name="arquivo.txt"):
    fh = io.BytesIO(text.encode(config.ENCODING))
    fh.name = name
    return fh


def test_efd_loader_sums_monophasic_resale_revenue(efd_text):
    df = load_efd_revenue([_upload(efd_text)])

    assert list(df.columns) == ["ano_mes", "total_geral"]
    assert df["ano_mes"].tolist() == ["202303"]
    assert df["total_geral"].tolist() == [150000.0]


def test_efd_loader_groups_files_of_the_same_month(efd_text):
    df = load_efd_revenue([_upload(efd_text), _upload(efd_text)])

    assert monthly_revenue_map(df) == {"202303": 300000.0}


def test_efd_loader_skips_files_without_0000(efd_text):
    df = load_efd_revenue([_upload("|M400|04|10,00|\r\n|9999|2|\r\n"), _upload(efd_text)])
    assert df["total_geral"].tolist() == [150000.0]


def test_efd_loader_requires_files():
    with pytest.raises(ValueError):
        load_efd_revenue([])
    with pytest.raises(ValueError):
        load_efd_revenue([_upload("|M400|04|10,00|\r\n|9999|2|\r\n")])


def test_monthly_revenue_map_of_empty_frame():
    assert monthly_revenue_map(None) == {}


def test_load_ecf_filing_reads_year_method_and_taxes(ecf_1t_text):
    ecf = load_ecf_filing(_upload(ecf_1t_text, "ecf2023.txt"))

    assert ecf.name == "ecf2023.txt"
    assert ecf.exercise_year == 2023
    assert ecf.method == config.METHOD_TRIMESTRAL
    assert ecf.taxes == {
        "1T": PeriodTaxes(base_irpj=10000.0, base_csll=10000.0, irpj_due=1500.0, csll_due=900.0),
    }
    assert ecf.content == ecf_1t_text.encode(config.ENCODING)


def test_load_ecf_filing_with_dot_decimals(ecf_two_quarters_text):
    ecf = load_ecf_filing(ecf_two_quarters_text.encode(config.ENCODING), name="ecf2022.txt")

    assert ecf.exercise_year == 2022
    assert ecf.taxes["1T"].base_irpj == 70000.0
    assert ecf.taxes["2T"].base_csll == 90000.0
    assert ecf.taxes["2T"].irpj_due == 0.0


def test_load_ecf_filing_detects_annual_method():
    text = "\n".join([
        "|0000|LECF|0010|01012021|31122021|",
        "|N030|ANUAL|",
        "|N630|1|BASE|250000,00|",
        "|N630|3|IRPJ|37500,00|",
        "|N630|4|ADICIONAL|1000,00|",
        "|N990|5|",
        "|9999|6|",
    ])
    ecf = load_ecf_filing(text.encode(config.ENCODING), name="anual.txt")

    assert ecf.exercise_year == 2021
    assert ecf.method == config.METHOD_ANUAL
    assert ecf.taxes["ANUAL"].irpj_due == 38500.0


def test_load_ecf_filing_without_year_fails():
    with pytest.raises(ValueError):
        load_ecf_filing(b"|0000|LECF|0010|\r\n|9999|2|\r\n", name="sem_data.txt")


def test_detect_exercise_year():
    assert detect_exercise_year(split_lines("|0000|LECF|12345678000195|01012024|31122024|")) == 2024
    assert detect_exercise_year(split_lines("|0001|0|\n|0000|X|")) is None
    assert detect_exercise_year([]) is None


def test_load_selic_rates_banco_central_export():
    csv_text = "data;valor\n01/02/2023;0,92\n01/01/2023;1,12\n\n"
    rates = load_selic_rates(_upload(csv_text, "selic.csv"))

    assert rates == (
        SelicRate(date(2023, 1, 1), 1.12),
        SelicRate(date(2023, 2, 1), 0.92),
    )


def test_load_selic_rates_iso_month_rate():
    csv_text = "month;rate\n2023-03-15;1.17\n2023-02-01;0.92\n"
    rates = load_selic_rates(csv_text.encode(config.ENCODING))

    assert rates == (
        SelicRate(date(2023, 2, 1), 0.92),
        SelicRate(date(2023, 3, 1), 1.17),
    )


def test_load_selic_rates_rejects_unknown_columns():
    with pytest.raises(ValueError):
        load_selic_rates(b"inicio;fim\n1;2\n")


def test_read_filing_text_sources(tmp_path, ecf_1t_text):
    path = tmp_path / "ecf.txt"
    path.write_bytes(ecf_1t_text.encode(config.ENCODING))

    assert read_filing_text(str(path)) == ecf_1t_text
    assert read_filing_text(ecf_1t_text.encode(config.ENCODING)) == ecf_1t_text
    assert read_filing_text(_upload("|0000|Ação|")) == "|0000|Ação|"
