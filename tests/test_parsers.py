import pytest
from frigorifico.adapters.parsers import parse_peso_raw, parse_tipo_peca, parse_valor_brl

@pytest.mark.parametrize(
    "txt,exp_num,exp_unit",
    [
        ("120,5 kg", 120.5, "KG"),
        ("118", 118.0, "KG"),
        ("1.020 KG", 1020.0, "KG"),
        ("1.234,5 kg", 1234.5, "KG"),
        ("500 g", 0.5, "KG"),
        (235, 235.0, "KG"),
        ("", None, None),
        ("sem peso", None, None),
        (None, None, None),
    ],
)
def test_parse_peso_raw(txt, exp_num, exp_unit):
    num, unit = parse_peso_raw(txt)
    assert (num == exp_num) or (num is None and exp_num is None)
    assert unit == exp_unit


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("R$ 1.234,56", 1234.56),
        ("5825", 5825.0),
        ("R$ 18.700,00", 18700.0),
        ("3,5", 3.5),
        ("", None),
        (None, None),
    ],
)
def test_parse_valor_brl(txt, esperado):
    assert parse_valor_brl(txt) == esperado


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("A", "BANDA_A"),
        ("banda a", "BANDA_A"),
        ("BANDA_A", "BANDA_A"),
        ("b", "BANDA_B"),
        ("Banda B", "BANDA_B"),
        ("inteiro", "INTEIRO"),
        ("I", "INTEIRO"),
        ("Carcaça", "INTEIRO"),
        ("dianteiro", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_tipo_peca(txt, esperado):
    assert parse_tipo_peca(txt) == esperado
