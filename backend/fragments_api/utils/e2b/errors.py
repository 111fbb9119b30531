"""Failures raised while provisioning a sandbox for a fragment."""

from __future__ import annotations

from .models import SandboxErrorResponse


class ProvisionError(Exception):
    """Base class for every failure surfaced by the sandbox pipeline."""

    status_code: int = 500
    message: str = "Sandbox request failed"

    def __init__(self, details: str | None = None) -> None:
        super().__init__(details or self.message)
        self.details = details

    def to_payload(self) -> SandboxErrorResponse:
        return SandboxErrorResponse(error=self.message, details=self.details)


class ConfigurationError(ProvisionError):
    message = "E2B API key not configured"

    def __init__(self) -> None:
        super().__init__(None)

    def to_payload(self) -> SandboxErrorResponse:
        return SandboxErrorResponse(error=self.message, api_key_set=False)


class SandboxCreationError(ProvisionError):
    message = "Failed to create sandbox"

    def __init__(self, details: str, *, api_key_set: bool) -> None:
        super().__init__(details)
        self.api_key_set = api_key_set

    def to_payload(self) -> SandboxErrorResponse:
        return SandboxErrorResponse(
            error=self.message,
            details=self.details,
            api_key_set=self.api_key_set,
        )


class DependencyInstallError(ProvisionError):
    message = "Failed to install dependencies"


class FileWriteError(ProvisionError):
    message = "Failed to write files"

    def __init__(self, details: str, *, paths: list[str]) -> None:
        super().__init__(details)
        self.paths = paths


class ExecutionError(ProvisionError):
    message = "Failed to execute code"


class CommandFailedError(Exception):
    """A sandbox command exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int, stderr: str = "", error: str | None = None) -> None:
        detail = error or stderr.strip() or f"exited with code {exit_code}"
        super().__init__(f"{command!r} failed: {detail}")
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
