from __future__ import annotations

import logging
from typing import Any, Mapping

from e2b import CommandExitException
from e2b_code_interpreter import AsyncSandbox

from ..misc.typeguards import is_str_any_dict
from .errors import CommandFailedError
from .provider import CodeRunOutput, CommandOutput


logger = logging.getLogger(__name__)


RESULT_FORMATS: tuple[str, ...] = (
    "text",
    "html",
    "markdown",
    "svg",
    "png",
    "jpeg",
    "pdf",
    "latex",
    "json",
    "javascript",
    "data",
)


def _serialize_result(result: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name in RESULT_FORMATS:
        value = getattr(result, name, None)
        if value is not None:
            payload[name] = value

    extra = getattr(result, "extra", None)
    if is_str_any_dict(extra) and extra:
        payload["extra"] = extra

    payload["isMainResult"] = bool(getattr(result, "is_main_result", False))
    return payload


def _serialize_error(error: Any) -> dict[str, str] | None:
    if error is None:
        return None
    return {
        "name": str(getattr(error, "name", "Error")),
        "value": str(getattr(error, "value", "")),
        "traceback": str(getattr(error, "traceback", "")),
    }


class E2BSandbox:
    """Thin async wrapper exposing the calls the provisioner needs."""

    def __init__(self, sandbox: AsyncSandbox) -> None:
        self._sandbox = sandbox

    @property
    def sandbox_id(self) -> str:
        return self._sandbox.sandbox_id

    async def run_command(self, command: str) -> CommandOutput:
        try:
            result = await self._sandbox.commands.run(command)
        except CommandExitException as exc:
            raise CommandFailedError(
                command,
                exc.exit_code,
                stderr=exc.stderr or "",
                error=exc.error,
            ) from exc

        return CommandOutput(
            exit_code=result.exit_code,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    async def write_file(self, path: str, content: str) -> None:
        await self._sandbox.files.write(path, content)

    async def run_code(self, code: str) -> CodeRunOutput:
        execution = await self._sandbox.run_code(code)
        return CodeRunOutput(
            stdout=list(execution.logs.stdout),
            stderr=list(execution.logs.stderr),
            error=_serialize_error(execution.error),
            results=[_serialize_result(item) for item in execution.results],
        )

    def get_host(self, port: int) -> str:
        return self._sandbox.get_host(port)


class E2BSandboxProvider:
    """Creates sandboxes through the E2B code interpreter SDK."""

    async def create(
        self,
        template: str,
        *,
        api_key: str,
        metadata: Mapping[str, str],
        timeout_ms: int,
        headers: Mapping[str, str] | None = None,
    ) -> E2BSandbox:
        options: dict[str, Any] = {
            "api_key": api_key,
            "metadata": dict(metadata),
            "timeout": max(1, timeout_ms // 1000),
            # Create is sent exactly once; no control-plane retries.
            "retries": 0,
        }
        if headers:
            options["headers"] = dict(headers)

        sandbox = await AsyncSandbox.create(template, **options)
        logger.info("Created sandbox %s from template %s", sandbox.sandbox_id, template)
        return E2BSandbox(sandbox)
