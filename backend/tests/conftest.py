"""Shared fixtures: an in-memory sandbox provider that records every call."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import pytest

from fragments_api.config import Settings
from fragments_api.utils.e2b import CodeRunOutput, CommandOutput


class FakeSandbox:
    def __init__(self, sandbox_id: str, calls: list[tuple[Any, ...]]) -> None:
        self._sandbox_id = sandbox_id
        self.calls = calls
        self.code_output = CodeRunOutput()
        self.host_template = "{port}-{sandbox_id}.provider.dev"
        self.command_error: Exception | None = None
        self.write_errors: dict[str, Exception] = {}
        self.write_delays: dict[str, float] = {}
        self.run_code_error: Exception | None = None
        self.files: dict[str, str] = {}

    @property
    def sandbox_id(self) -> str:
        return self._sandbox_id

    async def run_command(self, command: str) -> CommandOutput:
        self.calls.append(("run_command", command))
        if self.command_error is not None:
            raise self.command_error
        return CommandOutput(exit_code=0)

    async def write_file(self, path: str, content: str) -> None:
        self.calls.append(("write_file_start", path))
        delay = self.write_delays.get(path)
        if delay:
            await asyncio.sleep(delay)
        if path in self.write_errors:
            raise self.write_errors[path]
        self.files[path] = content
        self.calls.append(("write_file", path, content))

    async def run_code(self, code: str) -> CodeRunOutput:
        self.calls.append(("run_code", code))
        if self.run_code_error is not None:
            raise self.run_code_error
        return self.code_output

    def get_host(self, port: int) -> str:
        self.calls.append(("get_host", port))
        return self.host_template.format(port=port, sandbox_id=self._sandbox_id)


class FakeProvider:
    def __init__(self, sandbox_id: str = "sbx_1") -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.sandbox = FakeSandbox(sandbox_id, self.calls)
        self.create_error: Exception | None = None
        self.create_kwargs: dict[str, Any] | None = None

    async def create(
        self,
        template: str,
        *,
        api_key: str,
        metadata: Mapping[str, str],
        timeout_ms: int,
        headers: Mapping[str, str] | None = None,
    ) -> FakeSandbox:
        self.calls.append(("create", template))
        self.create_kwargs = {
            "api_key": api_key,
            "metadata": dict(metadata),
            "timeout_ms": timeout_ms,
            "headers": None if headers is None else dict(headers),
        }
        if self.create_error is not None:
            raise self.create_error
        return self.sandbox

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> Settings:
    return Settings(e2b_api_key="e2b_test_key")
