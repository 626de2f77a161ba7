from __future__ import annotations

import pytest

from meterthing.models import ObisCode


def test_str_is_dotted() -> None:
    assert str(ObisCode(0, 0, 96, 1, 0, 255)) == "0.0.96.1.0.255"


def test_parse_accepts_dotted_and_display_forms() -> None:
    assert ObisCode.parse("1.0.1.8.0.255") == ObisCode(1, 0, 1, 8, 0, 255)
    assert ObisCode.parse("1-0:1.8.0*255") == ObisCode(1, 0, 1, 8, 0, 255)


@pytest.mark.parametrize("text", ["", "1.0.1.8.0", "1.0.1.8.0.256", "a.b.c.d.e.f"])
def test_parse_rejects_malformed_codes(text: str) -> None:
    with pytest.raises(ValueError):
        ObisCode.parse(text)


def test_codes_are_ordered_group_by_group() -> None:
    codes = [ObisCode(1, 0, 2, 8, 0, 255), ObisCode(0, 0, 96, 1, 0, 255), ObisCode(1, 0, 1, 8, 0, 255)]

    assert sorted(codes) == [
        ObisCode(0, 0, 96, 1, 0, 255),
        ObisCode(1, 0, 1, 8, 0, 255),
        ObisCode(1, 0, 2, 8, 0, 255),
    ]


def test_codes_are_hashable_and_stable() -> None:
    mapping = {ObisCode(1, 0, 1, 8, 0, 255): "import"}
    assert mapping[ObisCode.parse("1.0.1.8.0.255")] == "import"
