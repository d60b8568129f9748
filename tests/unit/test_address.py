import pytest

from barmap.common.models import BarRecord
from barmap.pipeline.address import resolve_address


def _record(raw=None, corrected=None):
    return BarRecord(id="x", name="X", raw_address=raw, corrected_address=corrected)


def test_corrected_address_wins_over_raw():
    record = _record("Hornsgatan 66", "Tjärhovsgatan 4, Södermalm, Stockholm")
    assert resolve_address(record) == "Tjärhovsgatan 4, Södermalm, Stockholm"


def test_raw_address_used_when_no_correction():
    assert resolve_address(_record(' "Götgatan 1" ', "  ")) == "Götgatan 1"


@pytest.mark.parametrize("value", [None, "", "   ", "null", "NULL", '"null"'])
def test_empty_and_null_placeholder_resolve_to_none(value):
    assert resolve_address(_record(value, None)) is None


def test_null_correction_falls_back_to_raw():
    assert resolve_address(_record("Götgatan 1", "null")) == "Götgatan 1"
