from __future__ import annotations

import io
import json

import pytest
from aiohttp.test_utils import unused_port

from meterthing.__main__ import main, serve
from meterthing.config import BridgeConfig


def _registers_line(serial: str) -> str:
    return json.dumps(
        {
            "registers": {
                "1.0.1.8.0.255": {"value": {"type": "unsigned", "value": 1}, "unit": "Wh"},
                "0.0.96.1.0.255": {"value": {"type": "octet_string", "value": serial.encode().hex()}},
            }
        }
    )


@pytest.mark.asyncio
async def test_serve_returns_zero_when_source_ends() -> None:
    config = BridgeConfig(host="127.0.0.1", port=unused_port())
    lines = io.StringIO("\n".join([_registers_line("SN1"), _registers_line("SN2")]))

    assert await serve(config, lines) == 0


@pytest.mark.asyncio
async def test_serve_returns_error_code_when_source_fails() -> None:
    config = BridgeConfig(host="127.0.0.1", port=unused_port())
    lines = io.StringIO("\n".join([_registers_line("SN1"), '{"error": "port closed"}']))

    assert await serve(config, lines) == 1


def test_main_reports_missing_source(tmp_path) -> None:
    assert main(["--source", str(tmp_path / "missing.jsonl"), "--port", "8899"]) == 1


def test_main_reports_empty_source(tmp_path) -> None:
    source = tmp_path / "empty.jsonl"
    source.write_text("")

    assert main(["--source", str(source), "--port", "8899"]) == 1
