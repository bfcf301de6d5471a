"""
FastAPI HTTP interface for the agent orchestrator.

Endpoints:
  POST /agents/discuss          run one agent role for a transcript
  POST /commands                save a completed turn
  GET  /commands                all saved turns, newest first
  GET  /commands/recent/{limit} the N most recent turns
  POST /commands/search         relevance-ranked turns
  GET  /health                  liveness + model credential check
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .. import __version__
from ..core.config import get_effective_config
from ..core.errors import InvalidInputError, ModelInvocationError, PersistenceError
from ..core.orchestrator import AgentOrchestrator
from ..models.agent import AgentResponse, ContextEntry
from ..models.command import AgentMessage, Command
from ..models.research import ResearchData
from ..storage import get_command_store
from ..storage.base import CommandStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiscussRequest(_CamelModel):
    # Presence is checked by the orchestrator so both failures map to 400.
    transcript: Optional[str] = None
    agent_role: Optional[str] = None
    context: list[ContextEntry] = []
    demo_mode: bool = False
    previous_research: Optional[ResearchData] = None


class SaveCommandRequest(_CamelModel):
    transcript: str = Field(..., min_length=1)
    agent_responses: list[AgentMessage] = []
    # Accepted for compatibility, always replaced by the server time.
    timestamp: Optional[datetime] = None


class SearchCommandsRequest(_CamelModel):
    query: str = Field(..., min_length=1)
    limit: int = Field(10, ge=1, le=100)


class HealthResponse(_CamelModel):
    status: str
    model_configured: bool


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    config: Optional[dict] = None,
    orchestrator: Optional[AgentOrchestrator] = None,
    store: Optional[CommandStore] = None,
) -> FastAPI:
    """Build the ASGI app. Collaborators are created from config when not given."""
    config = config or get_effective_config()
    store = store or get_command_store(config)
    orchestrator = orchestrator or AgentOrchestrator.from_config(config, store=store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await app.state.store.init()
        except PersistenceError as e:
            logger.error("Command store unavailable, history disabled: %s", e)
        yield

    app = FastAPI(
        title="Cerebral Voice",
        version=__version__,
        description="Voice-driven architect/backend/frontend/QA agent orchestration.",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": exc.message, "acceptedRoles": exc.accepted_roles},
        )

    @app.exception_handler(ModelInvocationError)
    async def _model_failed(request: Request, exc: ModelInvocationError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate agent response", "details": exc.detail},
        )

    @app.exception_handler(PersistenceError)
    async def _persistence_failed(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Command store error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Command store request failed", "details": str(exc)},
        )


def _register_routes(app: FastAPI) -> None:
    @app.post("/agents/discuss", response_model=AgentResponse, tags=["agents"])
    async def discuss(body: DiscussRequest, request: Request) -> AgentResponse:
        """Run one agent role against the transcript and prior agents' context."""
        orchestrator: AgentOrchestrator = request.app.state.orchestrator
        return await orchestrator.run_agent(
            transcript=body.transcript,
            role=body.agent_role,
            prior_context=body.context,
            demo_mode=body.demo_mode,
            previous_research=body.previous_research,
        )

    @app.get("/health", response_model=HealthResponse, tags=["meta"])
    async def health(request: Request) -> HealthResponse:
        """Liveness probe."""
        orchestrator: AgentOrchestrator = request.app.state.orchestrator
        return HealthResponse(status="ok", model_configured=orchestrator.provider.is_configured())

    @app.post("/commands", response_model=Command, tags=["commands"])
    async def save_command(body: SaveCommandRequest, request: Request) -> Command:
        store: CommandStore = request.app.state.store
        return await store.save(body.transcript, body.agent_responses)

    @app.get("/commands", response_model=list[Command], tags=["commands"])
    async def list_commands(request: Request) -> list[Command]:
        store: CommandStore = request.app.state.store
        return await store.list_all()

    @app.get("/commands/recent/{limit}", response_model=list[Command], tags=["commands"])
    async def recent_commands(limit: int, request: Request) -> list[Command]:
        store: CommandStore = request.app.state.store
        return await store.list_recent(limit if limit > 0 else 10)

    @app.post("/commands/search", response_model=list[Command], tags=["commands"])
    async def search_commands(body: SearchCommandsRequest, request: Request) -> list[Command]:
        store: CommandStore = request.app.state.store
        return await store.search(body.query, body.limit)
