"""E2E tests: a real ``mcpline serve`` process driven over its stdin/stdout."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

_TIMEOUT = 30.0


async def _exchange(lines: list[str], *extra_args: str) -> tuple[list[dict[str, Any]], int]:
    proc = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "mcpline",
        "serve",
        "mcpline.demo",
        *extra_args,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    payload = "".join(line + "\n" for line in lines).encode("utf-8")
    stdout, _ = await asyncio.wait_for(proc.communicate(payload), timeout=_TIMEOUT)
    responses = [json.loads(line) for line in stdout.decode("utf-8").splitlines() if line.strip()]
    return responses, proc.returncode or 0


class TestStdioSession:
    async def test_full_session(self) -> None:
        responses, code = await _exchange(
            [
                '{"jsonrpc":"2.0","id":1,"method":"initialize","params":{"protocolVersion":"2024-11-05"}}',
                '{"jsonrpc":"2.0","method":"notifications/initialized"}',
                '{"jsonrpc":"2.0","id":2,"method":"tools/list"}',
                '{"jsonrpc":"2.0","id":3,"method":"tools/call","params":{"name":"add","arguments":{"a":2,"b":3}}}',
                "garbage that is not json",
                '{"jsonrpc":"2.0","id":4,"method":"tools/call","params":{"name":"sleep","arguments":{}}}',
                '{"jsonrpc":"2.0","id":5,"method":"tools/call","params":{"name":"add","arguments":{"a":1}}}',
            ]
        )

        assert code == 0
        assert [r["id"] for r in responses] == [1, 2, 3, 4, 5]
        assert responses[0]["result"]["serverInfo"]["name"] == "demo"
        assert "add" in [t["name"] for t in responses[1]["result"]["tools"]]
        assert responses[2]["result"] == {"content": [{"type": "text", "text": "5"}]}
        assert responses[3]["result"]["content"][0]["text"] == "success"
        assert responses[4]["error"]["code"] == -32602

    async def test_structured_arguments(self) -> None:
        call = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {
                "name": "summarize_readings",
                "arguments": {
                    "readings": [
                        {"sensorId": "a", "value": 1.0},
                        {"sensorId": "a", "value": 3.0, "unit": "FAHRENHEIT"},
                        {"sensorId": "b", "value": 5.0, "tags": ["roof"]},
                    ]
                },
            },
        }
        responses, _ = await _exchange([json.dumps(call)])
        assert json.loads(responses[0]["result"]["content"][0]["text"]) == {"a": 2.0, "b": 5.0}

    async def test_non_ascii_round_trip(self) -> None:
        call = '{"jsonrpc":"2.0","id":"x","method":"tools/call","params":{"name":"echo","arguments":{"text":"grüß dich"}}}'
        responses, _ = await _exchange([call])
        assert responses[0]["id"] == "x"
        assert responses[0]["result"]["content"][0]["text"] == "grüß dich"

    async def test_debug_log_written(self, tmp_path: Path) -> None:
        log_file = tmp_path / "debug.txt"
        responses, code = await _exchange(
            ['{"jsonrpc":"2.0","id":1,"method":"tools/list"}'],
            "--debug",
            "--log-file",
            str(log_file),
        )
        assert code == 0
        assert len(responses) == 1
        content = log_file.read_text(encoding="utf-8")
        assert "[RECV]:" in content
        assert "[SEND]:" in content
