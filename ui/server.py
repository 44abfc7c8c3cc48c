"""
FastAPI Server
==============
Serves the React frontend and provides the REST + WebSocket API for the
Etsy Listing Optimizer.

Run:
    uvicorn ui.server:app --reload
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from errors import GenerationError, ImageIngestError, RegenerateError
from gemini_llm import GeminiConfig, GeminiLLM
from highlighter import highlight
from listing_types import Keyword
from listing_generator.master_pipeline import ListingSession
from listing_generator.output_writer import build_listing_view
from listing_validators import validate_keyword
from settings import load_settings, update_settings
from telemetry import emitter
from ui.session_manager import (
    PROJECT_ROOT, create_session, drop_session, get_all_sessions, get_session,
)

load_dotenv(PROJECT_ROOT / ".env")

app = FastAPI(title="Etsy Listing Optimizer")

# Allow React dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Read once at startup, written back on every change
_settings = load_settings()

_llm: Optional[GeminiLLM] = None


def get_llm():
    """Shared Gemini client, created on first use so the server starts without a key."""
    global _llm
    if _llm is None:
        try:
            _llm = GeminiLLM(GeminiConfig.from_env())
        except RuntimeError as e:
            print(f"[server] ❌ {e}")
            raise HTTPException(503, str(e))
    return _llm


# ─── Pydantic models ─────────────────────────────────────────────────────────

class GenerateParams(BaseModel):
    description: str
    priorityKeyword: Optional[str] = None
    purchaseIntent: Optional[str] = None
    geography: Optional[str] = None


class SelectTitleParams(BaseModel):
    title: str


class SelectCategoryParams(BaseModel):
    category: str


class KeywordParams(BaseModel):
    keyword: str
    volume: str
    reason: str = ""


class RegenerateParams(BaseModel):
    keyword: str


class FilterParams(BaseModel):
    volume: str


class SeasonalParams(BaseModel):
    description: Optional[str] = None


class UploadedImage(BaseModel):
    filename: str = "image"
    mimeType: str
    data: str  # base64, no data: prefix


class UploadParams(BaseModel):
    images: List[UploadedImage]


class UrlParams(BaseModel):
    urls: str  # one URL per line


class SettingsParams(BaseModel):
    theme: Optional[str] = None
    language: Optional[str] = None


class HighlightParams(BaseModel):
    text: str
    keywords: List[str] = []


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _session_or_404(session_id: str) -> ListingSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(404, f"Session not found: {session_id}")
    return session


def _state(session: ListingSession, **extra: Any) -> Dict[str, Any]:
    return {**session.to_dict(), "view": build_listing_view(session), **extra}


# ─── REST endpoints ───────────────────────────────────────────────────────────

@app.post("/api/sessions")
async def api_create_session():
    return {"sessionId": create_session(get_llm)}


@app.get("/api/sessions")
async def api_sessions():
    return get_all_sessions()


@app.get("/api/sessions/{session_id}")
async def api_session(session_id: str):
    return _state(_session_or_404(session_id))


@app.delete("/api/sessions/{session_id}")
async def api_drop_session(session_id: str):
    return {"dropped": drop_session(session_id)}


@app.post("/api/sessions/{session_id}/generate")
async def api_generate(session_id: str, params: GenerateParams):
    session = _session_or_404(session_id)
    try:
        listing = await session.generate(
            params.description,
            params.priorityKeyword,
            params.purchaseIntent,
            params.geography,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    except GenerationError as e:
        raise HTTPException(502, e.message)
    return _state(session, superseded=listing is None)


@app.post("/api/sessions/{session_id}/titles/select")
async def api_select_title(session_id: str, params: SelectTitleParams):
    session = _session_or_404(session_id)
    try:
        session.select_alternative_title(params.title)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _state(session)


@app.post("/api/sessions/{session_id}/categories/select")
async def api_select_category(session_id: str, params: SelectCategoryParams):
    session = _session_or_404(session_id)
    try:
        session.select_alternative_category(params.category)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _state(session)


@app.put("/api/sessions/{session_id}/keywords/{index}")
async def api_save_keyword(session_id: str, index: int, params: KeywordParams):
    session = _session_or_404(session_id)
    ok, errors = validate_keyword(params.dict())
    if not ok:
        raise HTTPException(400, "; ".join(errors))
    try:
        session.save_keyword(index, Keyword.from_dict(params.dict()))
    except ValueError as e:
        raise HTTPException(400, str(e))
    except IndexError as e:
        raise HTTPException(404, str(e))
    return _state(session)


@app.post("/api/sessions/{session_id}/keywords/regenerate")
async def api_regenerate_keyword(session_id: str, params: RegenerateParams):
    session = _session_or_404(session_id)
    try:
        keyword = await session.regenerate_keyword(params.keyword)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except RegenerateError as e:
        raise HTTPException(502, e.message)
    return keyword.to_dict()


@app.post("/api/sessions/{session_id}/keyword-filter")
async def api_keyword_filter(session_id: str, params: FilterParams):
    session = _session_or_404(session_id)
    try:
        session.set_keyword_filter(params.volume)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _state(session)


@app.post("/api/sessions/{session_id}/seasonal-keywords")
async def api_seasonal_keywords(session_id: str, params: SeasonalParams):
    session = _session_or_404(session_id)
    try:
        keywords = await session.suggest_seasonal_keywords(params.description)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"keywords": keywords}


@app.post("/api/sessions/{session_id}/images")
async def api_upload_images(session_id: str, params: UploadParams):
    session = _session_or_404(session_id)
    try:
        result = session.add_uploads([img.dict() for img in params.images])
    except ImageIngestError as e:
        raise HTTPException(400, e.message)
    return _state(session, added=len(result.added))


@app.post("/api/sessions/{session_id}/images/urls")
async def api_image_urls(session_id: str, params: UrlParams):
    session = _session_or_404(session_id)
    try:
        result = await session.add_image_urls(params.urls)
    except ImageIngestError as e:
        raise HTTPException(400, e.message)
    return _state(session, added=len(result.added), warning=result.warning)


@app.delete("/api/sessions/{session_id}/images/{image_id}")
async def api_remove_image(session_id: str, image_id: str):
    session = _session_or_404(session_id)
    try:
        session.remove_image(image_id)
    except KeyError:
        raise HTTPException(404, f"Image not found: {image_id}")
    return _state(session)


@app.get("/api/settings")
async def api_settings():
    return _settings.to_dict()


@app.put("/api/settings")
async def api_update_settings(params: SettingsParams):
    global _settings
    try:
        _settings = update_settings(_settings, theme=params.theme, language=params.language)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _settings.to_dict()


@app.post("/api/highlight")
async def api_highlight(params: HighlightParams):
    return {"segments": [s.to_dict() for s in highlight(params.text, params.keywords)]}


# ─── WebSocket ────────────────────────────────────────────────────────────────

@app.websocket("/ws/telemetry")
async def ws_telemetry(websocket: WebSocket):
    """Streams live agent telemetry for the generation progress panel."""
    await websocket.accept()
    queue = emitter.subscribe()
    try:
        while True:
            msg = await queue.get()
            await websocket.send_text(msg)
    except WebSocketDisconnect:
        pass
    finally:
        emitter.unsubscribe(queue)


# ─── Serve React build (production) ──────────────────────────────────────────

FRONTEND_DIST = Path(__file__).parent / "frontend" / "dist"
if FRONTEND_DIST.exists():
    app.mount("/", StaticFiles(directory=str(FRONTEND_DIST), html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ui.server:app", host="127.0.0.1", port=8000)
