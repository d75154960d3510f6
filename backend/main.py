"""
Roots & Recipes Backend - FastAPI Application
Main entry point for the heritage recipe and business discovery API
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import (
    CORS_ORIGINS,
    COMMON_CULTURES,
    COMMON_INGREDIENTS,
    COOKING_APPLIANCES,
    PROCESSING_TOOLS,
    DEFAULT_MAX_TIME,
    MAX_SESSIONS,
)
from roots.cards import Card, enrich_cards, favicon_url
from roots.llm import create_client
from roots.metadata import fetch_metadata
from roots.models import SearchCriteria, SearchMode, record_from_dict
from roots.search import (
    InvalidCriteriaError,
    SearchInProgressError,
    SearchOrchestrator,
    SearchSession,
    ZipCodeRequiredError,
)


logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Roots & Recipes API",
    description="Heritage recipe and small business discovery, grounded in web search",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory search sessions; nothing survives a restart
sessions: dict[str, SearchSession] = {}

_orchestrator: Optional[SearchOrchestrator] = None


def get_orchestrator() -> SearchOrchestrator:
    """Lazily build the orchestrator around the configured LLM client"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SearchOrchestrator(create_client())
    return _orchestrator


def get_metadata_fetcher():
    return fetch_metadata


# Request/Response Models
class SearchRequest(BaseModel):
    ingredients: list[str] = []
    appliances: list[str] = []
    cultures: list[str] = []
    max_time: int = DEFAULT_MAX_TIME
    zip_code: Optional[str] = None
    mode: SearchMode = SearchMode.RECIPE

    def to_criteria(self) -> SearchCriteria:
        return SearchCriteria.create(
            ingredients=self.ingredients,
            appliances=self.appliances,
            cultures=self.cultures,
            max_time_minutes=self.max_time,
            zip_code=self.zip_code
        )


class CardsRequest(BaseModel):
    records: list[dict] = []


def _get_session(session_id: str) -> SearchSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _search_error(e: Exception) -> HTTPException:
    if isinstance(e, ZipCodeRequiredError):
        return HTTPException(
            status_code=422,
            detail={"error": "zip_code_required", "message": str(e)}
        )
    if isinstance(e, SearchInProgressError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# API Endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "Roots & Recipes API is running", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "active_sessions": len(sessions)}


@app.get("/options")
async def options():
    """Selectable cultures, ingredients and kitchen equipment"""
    return {
        "cultures": COMMON_CULTURES,
        "ingredients": COMMON_INGREDIENTS,
        "cooking_appliances": COOKING_APPLIANCES,
        "processing_tools": PROCESSING_TOOLS,
        "default_max_time": DEFAULT_MAX_TIME
    }


@app.post("/sessions")
async def create_session(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """Start a new search session"""
    while sessions and len(sessions) >= MAX_SESSIONS:
        # dicts keep insertion order, so the first key is the oldest session
        evicted = next(iter(sessions))
        del sessions[evicted]
        logger.info("Evicted session %s", evicted)

    session_id = uuid.uuid4().hex
    sessions[session_id] = SearchSession(orchestrator)
    return {"session_id": session_id, **sessions[session_id].to_dict()}


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Current state and results of a session"""
    return {"session_id": session_id, **_get_session(session_id).to_dict()}


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Discard a session and its results"""
    _get_session(session_id)
    del sessions[session_id]
    return {"session_id": session_id, "deleted": True}


@app.post("/sessions/{session_id}/search")
async def search(session_id: str, request: SearchRequest):
    """
    Run a fresh recipe or business search.
    Invalid selections are rejected before anything is sent to the model.
    """
    session = _get_session(session_id)
    try:
        await session.search(request.to_criteria(), request.mode)
    except (InvalidCriteriaError, SearchInProgressError) as e:
        raise _search_error(e)
    return {"session_id": session_id, **session.to_dict()}


@app.post("/sessions/{session_id}/more")
async def load_more(session_id: str):
    """Append more results, excluding the ones already shown"""
    session = _get_session(session_id)
    try:
        await session.load_more()
    except (InvalidCriteriaError, SearchInProgressError) as e:
        raise _search_error(e)
    return {"session_id": session_id, **session.to_dict()}


@app.get("/preview")
async def preview(url: str, fetcher=Depends(get_metadata_fetcher)):
    """Link preview for one card; metadata is null when no proxy could fetch it"""
    metadata = await fetcher(url)
    return {
        "url": url,
        "metadata": metadata.to_dict() if metadata else None,
        "favicon_url": favicon_url(metadata, url)
    }


@app.post("/cards")
async def cards(request: CardsRequest, fetcher=Depends(get_metadata_fetcher)):
    """Build display cards for records, enriching them with link previews"""
    records = [record_from_dict(data) for data in request.records]
    records = [record for record in records if record.name]
    enriched: list[Card] = await enrich_cards(records, fetcher)
    return [card.to_dict() for card in enriched]


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("Roots & Recipes backend started")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
