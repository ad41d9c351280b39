import pytest

from ecfdash.rectifier import AdjustmentPeriod


ECF_1T_LINES = [
    "|0000|LECF|0010|12345678000195|POSTO TESTE LTDA|0|0||01012023|31122023|",
    "|0001|0|",
    "|0990|3|",
    "|M001|0|",
    "|M010|1T|A|",
    "|M300|1|LUCRO LIQUIDO|1000,00|",
    "|M350|1|LUCRO LIQUIDO|1000,00|",
    "|M415|1|",
    "|M990|6|",
    "|N001|0|",
    "|N030|1T|01012023|31032023|",
    "|N630|1|BASE DE CALCULO DO IRPJ|10000,00|",
    "|N630|3|IRPJ ALIQUOTA 15%|1500,00|",
    "|N630|4|ADICIONAL DO IRPJ|0,00|",
    "|N670|1|BASE DE CALCULO DA CSLL|10000,00|",
    "|N670|2|CSLL APURADA|900,00|",
    "|N990|8|",
    "|9001|0|",
    "|9990|2|",
    "|9999|20|",
]

ECF_TWO_QUARTERS_LINES = [
    "|0000|LECF|0010|12345678000195|POSTO TESTE LTDA|0|0||01012022|31122022|",
    "|0990|2|",
    "|M001|0|",
    "|M010|1T|",
    "|M300|1|LUCRO|500.00|",
    "|M990|4|",
    "|M010|2T|",
    "|M300|1|LUCRO|800.00|",
    "|M990|7|",
    "|N030|1T|",
    "|N630|1|BASE|70000.00|",
    "|N670|1|BASE|70000.00|",
    "|N990|4|",
    "|N030|2T|",
    "|N630|1|BASE|90000.00|",
    "|N670|1|BASE|90000.00|",
    "|N990|4|",
    "|9990|1|",
    "|9999|19|",
]


@pytest.fixture
def ecf_1t_text():
    """A 20-line quarterly ECF with one 1T summary block and one 1T computation block."""
    return "\r\n".join(ECF_1T_LINES) + "\r\n"


@pytest.fixture
def ecf_two_quarters_text():
    """ECF with dot decimals and 1T/2T blocks, M blocks before N blocks, no M415."""
    return "\n".join(ECF_TWO_QUARTERS_LINES)


@pytest.fixture
def adjustment_1t():
    return AdjustmentPeriod(
        exercise_year=2023,
        method="TRIMESTRAL",
        period="1T",
        generated_loss=30,
        irpj_base=5000,
        irpj_flat=750,
        irpj_surtax=0,
        csll_base=5000,
        csll_total=450,
    )


@pytest.fixture
def efd_text():
    """Monthly EFD Contribuições with monophasic (04) and zero-rate (06) resale revenue."""
    return "\r\n".join([
        "|0000|006|0|||01032023|31032023|POSTO TESTE LTDA|12345678000195|AM|1302603||00|0|",
        "|0001|0|",
        "|0990|3|",
        "|M001|0|",
        "|M400|04|150000,00|3.01.01|REVENDA DE COMBUSTIVEIS|",
        "|M400|06|1000,50||OUTRAS|",
        "|M990|4|",
        "|9001|0|",
        "|9990|3|",
        "|9999|10|",
        "CERTIFICADO DIGITAL|IGNORADO|",
    ]) + "\r\n"
