from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


CODE_INTERPRETER_TEMPLATE = "code-interpreter-v1"
DEFAULT_PORT = 80


class FragmentFile(BaseModel):
    """A single file shipped into the sandbox alongside a fragment."""

    file_path: str = Field(..., min_length=1, description="Destination path inside the sandbox")
    file_content: str = Field("", description="Text content written to file_path")


class FragmentSchema(BaseModel):
    """Fragment produced by the front end describing what to run and how."""

    model_config = ConfigDict(extra="ignore")

    commentary: str | None = None
    title: str | None = None
    description: str | None = None
    template: str = Field(..., min_length=1, description="Sandbox template identifier")
    additional_dependencies: list[str] = Field(default_factory=list)
    has_additional_dependencies: bool = False
    install_dependencies_command: str = ""
    port: int | None = Field(
        default=None,
        description="Port of the exposed service; defaults to 80 when omitted",
    )
    file_path: str = Field("", description="Target path for single-file code")
    code: str | list[FragmentFile] = ""

    @property
    def is_interpreter(self) -> bool:
        return self.template == CODE_INTERPRETER_TEMPLATE


class SandboxRequest(BaseModel):
    """Body accepted by the sandbox endpoint."""

    fragment: FragmentSchema
    user_id: str | None = Field(default=None, alias="userID")
    team_id: str | None = Field(default=None, alias="teamID")
    access_token: str | None = Field(default=None, alias="accessToken")

    model_config = ConfigDict(populate_by_name=True)


class CallerContext(BaseModel):
    """Identity of the caller, used for sandbox attribution."""

    user_id: str | None = None
    team_id: str | None = None
    access_token: str | None = None

    @classmethod
    def from_request(cls, request: SandboxRequest) -> "CallerContext":
        return cls(
            user_id=request.user_id,
            team_id=request.team_id,
            access_token=request.access_token,
        )


class RuntimeErrorPayload(BaseModel):
    """Error raised by user code while it ran inside the interpreter."""

    name: str
    value: str
    traceback: str


class ExecutionResultInterpreter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    sbx_id: str = Field(..., alias="sbxId")
    template: str
    stdout: list[str] = Field(default_factory=list)
    stderr: list[str] = Field(default_factory=list)
    runtime_error: RuntimeErrorPayload | None = Field(default=None, alias="runtimeError")
    cell_results: list[dict[str, Any]] = Field(default_factory=list, alias="cellResults")


class ExecutionResultWeb(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    sbx_id: str = Field(..., alias="sbxId")
    template: str
    url: str


ExecutionResult = ExecutionResultInterpreter | ExecutionResultWeb


class SandboxErrorResponse(BaseModel):
    """Diagnostic body returned when provisioning fails."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    details: str | None = None
    api_key_set: bool | None = Field(default=None, alias="apiKeySet")
