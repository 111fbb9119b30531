from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import dotenv

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import Settings, configure_logging, get_settings, load_settings
from .utils.e2b import (
    CallerContext,
    E2BSandboxProvider,
    ExecutionResultInterpreter,
    ExecutionResultWeb,
    ProvisionError,
    SandboxErrorResponse,
    SandboxProvider,
    SandboxRequest,
    SessionProvisioner,
)

dotenv.load_dotenv()


logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple response model used for the root health check."""

    status: str = Field(..., description="Overall API status indicator")
    message: str = Field(..., description="Additional context about the API state")


def get_sandbox_provider() -> SandboxProvider:
    return E2BSandboxProvider()


def _error_response(status_code: int, payload: SandboxErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(by_alias=True, exclude_none=True),
    )


_startup_settings = load_settings()
configure_logging(_startup_settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(
        "Fragments sandbox API starting (E2B_API_KEY set: %s)",
        _startup_settings.api_key_set,
    )
    yield


app = FastAPI(
    title="Fragments Sandbox API",
    version="0.1.0",
    summary="Run AI-generated code fragments inside E2B sandboxes",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_startup_settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", response_model=HealthResponse, summary="Service status")
def read_root() -> HealthResponse:
    """Return a basic health-check payload for quick diagnostics."""

    return HealthResponse(
        status="ok",
        message="Fragments Sandbox API is running",
    )


@app.post(
    "/api/sandbox",
    response_model=ExecutionResultInterpreter | ExecutionResultWeb,
    responses={
        500: {"model": SandboxErrorResponse},
        504: {"model": SandboxErrorResponse},
    },
    summary="Run a fragment in a fresh E2B sandbox",
)
async def create_sandbox(
    payload: SandboxRequest,
    settings: Settings = Depends(get_settings),
    provider: SandboxProvider = Depends(get_sandbox_provider),
) -> ExecutionResultInterpreter | ExecutionResultWeb | JSONResponse:
    """Provision a sandbox, seed it with the fragment, then run it or expose its port."""

    fragment = payload.fragment
    logger.info(
        "Sandbox request template=%s user=%s team=%s",
        fragment.template,
        payload.user_id,
        payload.team_id,
    )
    logger.info("E2B_API_KEY exists: %s", settings.api_key_set)

    provisioner = SessionProvisioner(provider, settings)
    try:
        return await asyncio.wait_for(
            provisioner.provision(fragment, CallerContext.from_request(payload)),
            timeout=settings.max_duration_seconds,
        )
    except ProvisionError as exc:
        return _error_response(exc.status_code, exc.to_payload())
    except asyncio.TimeoutError:
        logger.error(
            "Sandbox request for template %s exceeded %ss",
            fragment.template,
            settings.max_duration_seconds,
        )
        return _error_response(
            504,
            SandboxErrorResponse(
                error="Sandbox request timed out",
                details=f"Request exceeded {settings.max_duration_seconds:g} seconds",
            ),
        )
