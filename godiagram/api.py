"""
FastAPI REST API for godiagram.

Holds interactive diagrams server-side so a browser renderer can drive
them: each session owns one diagram and its reply scheduler, and every
request pumps replies that have come due before answering.

Usage:
    # Start the server
    uvicorn godiagram.api:app --host 0.0.0.0 --port 8000 --reload

    # Or run directly
    python -m godiagram.api
"""

import logging
import random
import threading
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .base import InputAction
from .board import Coordinate
from .config import AppConfig, load_config
from .diagrams import Diagram, create_diagram
from .errors import DiagramError
from .scheduler import ManualScheduler

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models (OpenAPI Schema)
# ============================================================================

EXAMPLE_SOURCE = "problem\na b .\n. . .\n. . .\n---\nsize: 3\nto-play: black\nsolutions: a>b\n"


class SourceRequest(BaseModel):
    """Request body for /validate."""
    source: str = Field(..., description="Diagram source: type keyword, board rows, options")

    class Config:
        json_schema_extra = {
            "example": {"source": EXAMPLE_SOURCE}
        }


class ValidateResponse(BaseModel):
    """Result of validating a diagram source."""
    valid: bool = Field(..., description="Whether the source builds a diagram")
    diagram_type: Optional[str] = Field(None, description="static, problem, freeplay or replay")
    error: Optional[str] = Field(None, description="Validation error message")


class CreateDiagramRequest(BaseModel):
    """Request body for POST /diagrams."""
    source: str = Field(..., description="Diagram source text")
    seed: Optional[int] = Field(None, description="Seed for problem replies (deterministic play)")

    class Config:
        json_schema_extra = {
            "example": {"source": EXAMPLE_SOURCE, "seed": 42}
        }


class InputRequest(BaseModel):
    """Request body for POST /diagrams/{id}/input."""
    action: InputAction = Field(..., description="click, undo, redo, pass, reset, first, previous, next or last")
    row: Optional[int] = Field(None, ge=0, description="Row for click (0 = top)")
    col: Optional[int] = Field(None, ge=0, description="Column for click (0 = left)")

    class Config:
        json_schema_extra = {
            "example": {"action": "click", "row": 0, "col": 0}
        }


class AnnotationModel(BaseModel):
    row: int
    col: int
    label: str
    shape: str = Field(..., description="text, triangle, square, circle or x")


class AreaPrefixModel(BaseModel):
    row: int
    col: int
    prefix: str


class CapturesModel(BaseModel):
    white_captured: int = Field(..., ge=0, description="White stones captured")
    black_captured: int = Field(..., ge=0, description="Black stones captured")


class DiagramStateModel(BaseModel):
    """Render snapshot of a diagram."""
    diagram_type: str
    size: int = Field(..., description="Board size")
    row_count: int
    column_count: int
    rows: List[str] = Field(..., description="Visible window, 'X' black, 'O' white, '.' empty")
    annotations: List[AnnotationModel]
    area_prefixes: List[AreaPrefixModel]
    area_colors: Dict[str, str]
    last_move: Optional[List[int]] = Field(None, description="[row, col] of the last move")
    captures: CapturesModel
    move_number: int
    total_moves: Optional[int] = Field(None, description="Replay length")
    controls: Dict[str, bool] = Field(..., description="Control name -> enabled")
    result: Optional[str] = Field(None, description="Problem result: success, failure or incomplete")
    turn: Optional[str] = Field(None, description="black or white")
    reply_pending: bool


class DiagramResponse(BaseModel):
    """A diagram session and its current state."""
    id: str = Field(..., description="Session id")
    changed: bool = Field(True, description="Whether the last input changed the diagram")
    state: DiagramStateModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    sessions: int = Field(..., description="Number of live diagram sessions")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# Sessions
# ============================================================================

@dataclass
class DiagramSession:
    """One server-side diagram with its own reply scheduler."""
    id: str
    diagram: Diagram
    scheduler: ManualScheduler
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionStore:
    """
    Bounded, insertion-ordered session map.

    When full, creating a session evicts the oldest one.
    """

    def __init__(self, max_sessions: int = 256):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, DiagramSession]" = OrderedDict()
        self._lock = threading.Lock()

    def add(self, diagram: Diagram, scheduler: ManualScheduler) -> DiagramSession:
        session = DiagramSession(id=uuid.uuid4().hex, diagram=diagram, scheduler=scheduler)
        with self._lock:
            while len(self._sessions) >= self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted diagram session %s", evicted)
            self._sessions[session.id] = session
        logger.info("Created %s diagram session %s", diagram.diagram_type, session.id)
        return session

    def get(self, session_id: str) -> Optional[DiagramSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)


# ============================================================================
# Application State
# ============================================================================

class AppState:
    """Application state container."""
    config: AppConfig = AppConfig()
    sessions: SessionStore = SessionStore()


state = AppState()


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup/shutdown)."""
    state.config = load_config()
    logging.basicConfig(level=state.config.logging.level)
    state.sessions = SessionStore(state.config.api.max_sessions)
    logger.info("Starting godiagram API (max %d sessions)", state.config.api.max_sessions)

    yield

    logger.info("Shutting down godiagram API (%d sessions dropped)", state.sessions.count())


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="godiagram API",
    description="""
REST API for interactive Go diagrams.

## Features
- Validate diagram sources (static, problem, freeplay, replay)
- Hold interactive diagrams server-side and drive them with inputs
- Deterministic problem replies with a seed

## Usage
1. `POST /diagrams` with the source to open a session
2. `POST /diagrams/{id}/input` for clicks and buttons
3. `GET /diagrams/{id}` to poll (problem replies arrive after a short delay)
    """,
    version="0.1.0",
    lifespan=lifespan,
    responses={
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _session_or_404(session_id: str) -> DiagramSession:
    session = state.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Diagram session not found: {session_id}")
    return session


def _snapshot(session: DiagramSession, changed: bool = True) -> DiagramResponse:
    """Pump due replies and build the response. Caller holds session.lock."""
    session.scheduler.run_due()
    return DiagramResponse(
        id=session.id,
        changed=changed,
        state=DiagramStateModel(**session.diagram.render_state().to_dict()),
    )


# ============================================================================
# Endpoints
# ============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check",
)
async def health_check():
    """Return service health status."""
    return HealthResponse(status="ok", sessions=state.sessions.count())


@app.post(
    "/validate",
    response_model=ValidateResponse,
    tags=["Diagrams"],
    summary="Validate a diagram source",
    description="Build the diagram without keeping it and report the first error, if any.",
)
async def validate_source(request: SourceRequest):
    """Validate a diagram source."""
    try:
        diagram = create_diagram(request.source, scheduler=ManualScheduler())
    except DiagramError as e:
        return ValidateResponse(valid=False, error=str(e))
    return ValidateResponse(valid=True, diagram_type=diagram.diagram_type)


@app.post(
    "/diagrams",
    response_model=DiagramResponse,
    tags=["Diagrams"],
    summary="Open a diagram session",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid diagram source"},
    },
)
async def create_session(request: CreateDiagramRequest):
    """Build a diagram and keep it server-side."""
    scheduler = ManualScheduler()
    rng = random.Random(request.seed) if request.seed is not None else None
    try:
        diagram = create_diagram(
            request.source,
            rng=rng,
            scheduler=scheduler,
            reply_delay=state.config.diagrams.reply_delay,
        )
    except DiagramError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = state.sessions.add(diagram, scheduler)
    with session.lock:
        return _snapshot(session)


@app.get(
    "/diagrams/{session_id}",
    response_model=DiagramResponse,
    tags=["Diagrams"],
    summary="Get diagram state",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown session"},
    },
)
async def get_session(session_id: str):
    """Return the current render state (after any due reply)."""
    session = _session_or_404(session_id)
    with session.lock:
        return _snapshot(session)


@app.post(
    "/diagrams/{session_id}/input",
    response_model=DiagramResponse,
    tags=["Diagrams"],
    summary="Send an input to a diagram",
    description="""
Apply a click or button press. Inputs the diagram does not support, and
moves that are illegal, are ignored and reported with `changed: false`.
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Click without row/col"},
        404: {"model": ErrorResponse, "description": "Unknown session"},
    },
)
async def send_input(session_id: str, request: InputRequest):
    """Apply one input to a diagram."""
    session = _session_or_404(session_id)

    coordinate = None
    if request.action is InputAction.CLICK:
        if request.row is None or request.col is None:
            raise HTTPException(status_code=400, detail="click requires row and col")
        coordinate = Coordinate(request.row, request.col)

    with session.lock:
        session.scheduler.run_due()
        changed = session.diagram.apply_input(request.action, coordinate)
        return _snapshot(session, changed=changed)


@app.delete(
    "/diagrams/{session_id}",
    tags=["Diagrams"],
    summary="Close a diagram session",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown session"},
    },
)
async def delete_session(session_id: str):
    """Drop a diagram session."""
    if not state.sessions.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Diagram session not found: {session_id}")
    logger.info("Closed diagram session %s", session_id)
    return {"deleted": session_id}


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "godiagram.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
