from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ...config import Settings
from ..misc.typeguards import is_file_sequence
from .errors import (
    ConfigurationError,
    DependencyInstallError,
    ExecutionError,
    FileWriteError,
    SandboxCreationError,
)
from .models import (
    DEFAULT_PORT,
    CallerContext,
    ExecutionResult,
    ExecutionResultInterpreter,
    ExecutionResultWeb,
    FragmentFile,
    FragmentSchema,
    RuntimeErrorPayload,
)
from .provider import ProvisionedSandbox, SandboxProvider


logger = logging.getLogger(__name__)


TEAM_HEADER = "X-Firebase-Team"
TOKEN_HEADER = "X-Firebase-Token"

# Strong references to fire-and-forget writes so the loop does not drop them.
_background_writes: set[asyncio.Task[None]] = set()


class SessionProvisioner:
    """Create a sandbox for a fragment, seed it, then run or expose the code.

    Every remote call is attempted exactly once. Sandboxes are left to expire
    on the provider's timeout; nothing here tears them down.
    """

    def __init__(self, provider: SandboxProvider, settings: Settings) -> None:
        self._provider = provider
        self._settings = settings

    async def provision(
        self,
        fragment: FragmentSchema,
        caller: CallerContext | None = None,
    ) -> ExecutionResult:
        caller = caller or CallerContext()
        api_key = self._settings.e2b_api_key
        if not api_key:
            logger.error("E2B_API_KEY is not set in environment variables")
            raise ConfigurationError()

        sandbox = await self._acquire(fragment, caller, api_key)

        if fragment.has_additional_dependencies:
            await self._install_dependencies(sandbox, fragment)

        await self._write_code(sandbox, fragment)

        if fragment.is_interpreter:
            return await self._run_interpreter(sandbox, fragment)
        return self._expose(sandbox, fragment)

    async def _acquire(
        self,
        fragment: FragmentSchema,
        caller: CallerContext,
        api_key: str,
    ) -> ProvisionedSandbox:
        metadata = {
            "template": fragment.template,
            "userID": caller.user_id or "",
            "teamID": caller.team_id or "",
        }
        headers: dict[str, str] | None = None
        if caller.team_id and caller.access_token:
            headers = {
                TEAM_HEADER: caller.team_id,
                TOKEN_HEADER: caller.access_token,
            }

        try:
            return await self._provider.create(
                fragment.template,
                api_key=api_key,
                metadata=metadata,
                timeout_ms=self._settings.sandbox_timeout_ms,
                headers=headers,
            )
        except Exception as exc:
            logger.exception("Sandbox creation failed for template %s", fragment.template)
            raise SandboxCreationError(str(exc), api_key_set=bool(api_key)) from exc

    async def _install_dependencies(
        self, sandbox: ProvisionedSandbox, fragment: FragmentSchema
    ) -> None:
        try:
            await sandbox.run_command(fragment.install_dependencies_command)
        except Exception as exc:
            logger.exception(
                "Dependency install failed in sandbox %s", sandbox.sandbox_id
            )
            raise DependencyInstallError(str(exc)) from exc

        logger.info(
            "Installed dependencies: %s in sandbox %s",
            ", ".join(fragment.additional_dependencies),
            sandbox.sandbox_id,
        )

    async def _write_code(self, sandbox: ProvisionedSandbox, fragment: FragmentSchema) -> None:
        if is_file_sequence(fragment.code):
            if not fragment.code:
                return
            if self._settings.await_file_writes:
                await self._write_files(sandbox, fragment.code)
            else:
                self._dispatch_files(sandbox, fragment.code)
            return

        code = fragment.code if isinstance(fragment.code, str) else ""
        try:
            await sandbox.write_file(fragment.file_path, code)
        except Exception as exc:
            logger.exception(
                "Failed to copy %s into sandbox %s", fragment.file_path, sandbox.sandbox_id
            )
            raise FileWriteError(str(exc), paths=[fragment.file_path]) from exc
        logger.info("Copied file to %s in %s", fragment.file_path, sandbox.sandbox_id)

    async def _write_files(
        self, sandbox: ProvisionedSandbox, files: Sequence[FragmentFile]
    ) -> None:
        outcomes = await asyncio.gather(
            *(sandbox.write_file(item.file_path, item.file_content) for item in files),
            return_exceptions=True,
        )

        failed: list[str] = []
        first_error: BaseException | None = None
        for item, outcome in zip(files, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Failed to copy %s into sandbox %s: %s",
                    item.file_path,
                    sandbox.sandbox_id,
                    outcome,
                )
                failed.append(item.file_path)
                first_error = first_error or outcome
            else:
                logger.info("Copied file to %s in %s", item.file_path, sandbox.sandbox_id)

        if failed:
            raise FileWriteError(str(first_error), paths=failed) from first_error

    def _dispatch_files(
        self, sandbox: ProvisionedSandbox, files: Sequence[FragmentFile]
    ) -> None:
        """Start every write without waiting; failures are only logged."""

        for item in files:
            task = asyncio.ensure_future(sandbox.write_file(item.file_path, item.file_content))
            _background_writes.add(task)
            task.add_done_callback(_write_done_callback(sandbox.sandbox_id, item.file_path))

    async def _run_interpreter(
        self, sandbox: ProvisionedSandbox, fragment: FragmentSchema
    ) -> ExecutionResultInterpreter:
        code = fragment.code if isinstance(fragment.code, str) else ""
        try:
            output = await sandbox.run_code(code or "")
        except Exception as exc:
            logger.exception("Code execution failed in sandbox %s", sandbox.sandbox_id)
            raise ExecutionError(str(exc)) from exc

        runtime_error = (
            RuntimeErrorPayload.model_validate(output.error) if output.error else None
        )
        return ExecutionResultInterpreter(
            sbx_id=sandbox.sandbox_id,
            template=fragment.template,
            stdout=list(output.stdout),
            stderr=list(output.stderr),
            runtime_error=runtime_error,
            cell_results=list(output.results),
        )

    def _expose(self, sandbox: ProvisionedSandbox, fragment: FragmentSchema) -> ExecutionResultWeb:
        host = sandbox.get_host(fragment.port or DEFAULT_PORT)
        return ExecutionResultWeb(
            sbx_id=sandbox.sandbox_id,
            template=fragment.template,
            url=f"https://{host}",
        )


def _write_done_callback(sandbox_id: str, path: str):
    def _done(task: asyncio.Task[None]) -> None:
        _background_writes.discard(task)
        if task.cancelled():
            logger.warning("Write of %s to %s was cancelled", path, sandbox_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to copy %s into sandbox %s: %s", path, sandbox_id, exc)
            return
        logger.info("Copied file to %s in %s", path, sandbox_id)

    return _done
