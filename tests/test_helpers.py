from datetime import date, datetime

import pytest

from app.utils.helpers import (coerce_non_negative_int, format_local, local_date_bounds,
                               round_half_up, validity_text)


@pytest.mark.parametrize("value, expected", [
    (24, 24),
    ("2", 2),
    ("2.7", 2),
    (-3, 0),
    ("abc", 0),
    (None, 0),
    (True, 0),
])
def test_coerce_non_negative_int(value, expected):
    assert coerce_non_negative_int(value) == expected


@pytest.mark.parametrize("hours, minutes, expected", [
    (24, 0, "24 horas"),
    (1, 0, "1 hora"),
    (2, 30, "2 horas y 30 minutos"),
    (1, 1, "1 hora y 1 minuto"),
    (0, 30, "30 minutos"),
    (0, 1, "1 minuto"),
])
def test_validity_text(hours, minutes, expected):
    assert validity_text(hours, minutes) == expected


def test_round_half_up():
    assert round_half_up(1.33) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.2) == 0


def test_local_date_bounds_bogota():
    start, end = local_date_bounds(date(2026, 10, 19), "America/Bogota")

    assert start == datetime(2026, 10, 19, 5, 0)
    assert end == datetime(2026, 10, 20, 5, 0)


def test_format_local():
    assert format_local(datetime(2026, 10, 19, 13, 0), "America/Bogota") == "2026-10-19 08:00:00"
    assert format_local(None, "America/Bogota") is None
