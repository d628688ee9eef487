"""FastAPI application -- history, favorites and flashcard routes for Charla."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from phrasebook.deck import FlashcardDeck
from phrasebook.errors import InvalidInput, NotFound, StoreUnavailable
from phrasebook.history import HistoryStore
from server.__version__ import __version__
from server.config import Settings
from server.dependencies import get_deck, get_history, get_settings, get_store
from server.schemas import (
    DeckStatsResponse,
    DeleteRequest,
    DeleteResponse,
    DueFlashcardsResponse,
    FavoriteRequest,
    FavoriteResponse,
    HistoryResponse,
    ReviewRequest,
    ReviewResponse,
    TranslateResultRequest,
    TranslateResultResponse,
)
from server.services import flashcard_service, history_service

logger = logging.getLogger("charla")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: create store tables if missing, on the database the routes will use."""
    from server.db.session import init_db
    if get_store not in app.dependency_overrides:
        settings_provider = app.dependency_overrides.get(get_settings, get_settings)
        init_db(settings_provider())
    ts = datetime.now(timezone.utc).isoformat()
    logger.info("[%s] Startup: store ready", ts)
    yield
    ts_end = datetime.now(timezone.utc).isoformat()
    logger.info("[%s] Shutdown: complete", ts_end)


app = FastAPI(title="Charla", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400 with a readable reason, like domain InvalidInput."""
    reasons = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        reasons.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return JSONResponse(status_code=400, content={"detail": "; ".join(reasons)})


def _store_error(action: str, e: StoreUnavailable) -> HTTPException:
    logger.error("%s failed: %s", action, e)
    return HTTPException(status_code=503, detail=f"Failed to {action}")


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. No store access."""
    return {"ok": True}


# ---- Translations ----

@app.post("/translate-result", response_model=TranslateResultResponse)
def translate_result(body: TranslateResultRequest, history: HistoryStore = Depends(get_history)):
    """Persist a translation produced upstream and index it in the history."""
    try:
        return history_service.record_translation(
            history,
            body.original,
            body.translation,
            body.from_lang,
            body.to_lang,
            examples=[e.model_dump() for e in body.examples],
        )
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailable as e:
        raise _store_error("store translation", e)


# ---- History ----

@app.get("/history", response_model=HistoryResponse)
def history_list(
    limit: int | None = Query(default=None, ge=1, le=500),
    q: str | None = Query(default=None, max_length=200),
    settings: Settings = Depends(get_settings),
    history: HistoryStore = Depends(get_history),
):
    """Recent translations, optionally filtered by a search text."""
    return history_service.list_history(history, limit or settings.history_page_size, query=q)


@app.delete("/history/item", response_model=DeleteResponse)
def history_delete(body: DeleteRequest, history: HistoryStore = Depends(get_history)):
    try:
        return history_service.delete_item(history, body.key)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailable as e:
        raise _store_error("delete item", e)


# ---- Favorites ----

@app.post("/favorite", response_model=FavoriteResponse)
def favorite(body: FavoriteRequest, history: HistoryStore = Depends(get_history)):
    try:
        return history_service.set_favorite(history, body.key, body.favorite)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailable as e:
        raise _store_error("update favorite status", e)


# ---- Flashcards ----

@app.get("/flashcards/due", response_model=DueFlashcardsResponse)
def flashcards_due(deck: FlashcardDeck = Depends(get_deck)):
    return flashcard_service.get_due_flashcards(deck)


@app.post("/flashcards/review", response_model=ReviewResponse)
def flashcards_review(body: ReviewRequest, deck: FlashcardDeck = Depends(get_deck)):
    try:
        return flashcard_service.review_flashcard(deck, body.key, body.quality)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailable as e:
        raise _store_error("submit review", e)


@app.get("/flashcards/stats", response_model=DeckStatsResponse)
def flashcards_stats(deck: FlashcardDeck = Depends(get_deck)):
    return flashcard_service.get_deck_stats(deck)
