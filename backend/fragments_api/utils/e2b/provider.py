"""Sandbox provider interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


@dataclass(frozen=True)
class CommandOutput:
    exit_code: int
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class CodeRunOutput:
    """Captured output of a single interpreter run."""

    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    error: dict[str, str] | None = None
    results: list[dict[str, Any]] = field(default_factory=list)


class ProvisionedSandbox(Protocol):
    @property
    def sandbox_id(self) -> str:
        ...

    async def run_command(self, command: str) -> CommandOutput:
        ...

    async def write_file(self, path: str, content: str) -> None:
        ...

    async def run_code(self, code: str) -> CodeRunOutput:
        ...

    def get_host(self, port: int) -> str:
        ...


class SandboxProvider(Protocol):
    async def create(
        self,
        template: str,
        *,
        api_key: str,
        metadata: Mapping[str, str],
        timeout_ms: int,
        headers: Mapping[str, str] | None = None,
    ) -> ProvisionedSandbox:
        ...
