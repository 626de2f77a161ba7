from __future__ import annotations

from conftest import meter_reading

from meterthing._logfmt import summarize_for_log


def test_reading_summary_shortens_bytes() -> None:
    summary = summarize_for_log(meter_reading(b"SN12345"))

    assert summary["1.0.1.8.0.255"] == {"value": {"type": "unsigned", "value": 1000}, "unit": "Wh"}
    assert summary["0.0.96.1.0.255"]["value"]["value"] == "<bytes:7b>"


def test_long_strings_are_truncated() -> None:
    summary = summarize_for_log({"value": "x" * 100}, max_string=10)

    assert summary["value"].startswith("x" * 10)
    assert "<truncated>" in summary["value"]
