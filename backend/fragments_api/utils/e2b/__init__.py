"""E2B sandbox helpers."""

from .errors import (
    CommandFailedError,
    ConfigurationError,
    DependencyInstallError,
    ExecutionError,
    FileWriteError,
    ProvisionError,
    SandboxCreationError,
)
from .executor import E2BSandbox, E2BSandboxProvider
from .models import (
    CODE_INTERPRETER_TEMPLATE,
    CallerContext,
    ExecutionResult,
    ExecutionResultInterpreter,
    ExecutionResultWeb,
    FragmentFile,
    FragmentSchema,
    SandboxErrorResponse,
    SandboxRequest,
)
from .provider import CodeRunOutput, CommandOutput, ProvisionedSandbox, SandboxProvider
from .provisioner import SessionProvisioner

__all__ = [
    "CODE_INTERPRETER_TEMPLATE",
    "CallerContext",
    "CodeRunOutput",
    "CommandFailedError",
    "CommandOutput",
    "ConfigurationError",
    "DependencyInstallError",
    "E2BSandbox",
    "E2BSandboxProvider",
    "ExecutionError",
    "ExecutionResult",
    "ExecutionResultInterpreter",
    "ExecutionResultWeb",
    "FileWriteError",
    "FragmentFile",
    "FragmentSchema",
    "ProvisionError",
    "ProvisionedSandbox",
    "SandboxCreationError",
    "SandboxErrorResponse",
    "SandboxProvider",
    "SandboxRequest",
    "SessionProvisioner",
]
