import dataclasses
import io
import zipfile

import pytest

from ecfdash import config
from ecfdash.batch import (
    FilingSource,
    NothingToProcessError,
    generate_rectified_filings,
    is_eligible_year,
    unique_adjustments,
    package_zip,
)


@pytest.fixture
def source_2023(ecf_1t_text):
    return FilingSource(2023, ecf_1t_text.encode(config.ENCODING))


def test_generates_one_file_per_exercise(source_2023, adjustment_1t):
    files = generate_rectified_filings([source_2023], [adjustment_1t])

    assert list(files) == ["2023-RETIFICADORA.txt"]
    text = files["2023-RETIFICADORA.txt"].decode(config.ENCODING)
    assert "|M410|900|Perda por Evaporação|30,00|" in text
    assert text.endswith("|9999|22|\r\n")


def test_adjustments_of_other_exercises_are_not_applied(ecf_1t_text, source_2023, adjustment_1t):
    other = FilingSource(2022, ecf_1t_text.encode(config.ENCODING))

    files = generate_rectified_filings([other, source_2023], [adjustment_1t])

    assert list(files) == ["2023-RETIFICADORA.txt"]


def test_exercises_outside_the_window_are_skipped(ecf_1t_text, adjustment_1t):
    old = FilingSource(2019, ecf_1t_text.encode(config.ENCODING))
    old_adjustment = dataclasses.replace(adjustment_1t, exercise_year=2019)

    with pytest.raises(NothingToProcessError, match="Nenhum arquivo elegível processado."):
        generate_rectified_filings([old], [old_adjustment])


def test_nothing_to_process_without_adjustments(source_2023):
    with pytest.raises(NothingToProcessError):
        generate_rectified_filings([source_2023], [])


@pytest.mark.parametrize("year, eligible", [(2019, False), (2020, True), (2024, True), (2025, False)])
def test_is_eligible_year(year, eligible):
    assert is_eligible_year(year) is eligible


def test_package_zip_contains_every_file():
    payload = package_zip({"2023-RETIFICADORA.txt": b"|9999|1|\r\n", "2024-RETIFICADORA.txt": b"x"})

    with zipfile.ZipFile(io.BytesIO(payload)) as zf:
        assert sorted(zf.namelist()) == ["2023-RETIFICADORA.txt", "2024-RETIFICADORA.txt"]
        assert zf.read("2023-RETIFICADORA.txt") == b"|9999|1|\r\n"


def test_repeated_exercise_is_rectified_once(ecf_1t_text, source_2023, adjustment_1t):
    amended = FilingSource(2023, ecf_1t_text.replace("|9001|0|", "|9001|1|").encode(config.ENCODING))

    files = generate_rectified_filings([source_2023, amended], [adjustment_1t, adjustment_1t])

    assert list(files) == ["2023-RETIFICADORA.txt"]
    text = files["2023-RETIFICADORA.txt"].decode(config.ENCODING)
    assert text.count("|M410|") == 1
    assert text.count("|M510|") == 1
    assert "|9001|0|" in text
    assert text.endswith("|9999|22|\r\n")


def test_unique_adjustments_keeps_first_per_exercise_and_period(adjustment_1t):
    second_quarter = dataclasses.replace(adjustment_1t, period="2T")
    repeated = dataclasses.replace(adjustment_1t, generated_loss=99)
    other_year = dataclasses.replace(adjustment_1t, exercise_year=2022)

    kept = unique_adjustments([adjustment_1t, second_quarter, repeated, other_year])

    assert kept == [adjustment_1t, second_quarter, other_year]
