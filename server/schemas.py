"""Pydantic request/response schemas for the Charla API.

Wire names are camelCase (fromLang, nextReview, ...) to match what the PWA
already sends and stores; request models also accept snake_case.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


Language = Literal["en", "es"]


# ---- Translations / history ----

class ExampleSchema(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    english: str = Field(default="", max_length=2000)


class TranslateResultRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original: str = Field(..., min_length=1, max_length=5000)
    translation: str = Field(..., max_length=10000)
    from_lang: Language = Field(..., alias="fromLang")
    to_lang: Language = Field(..., alias="toLang")
    examples: List[ExampleSchema] = Field(default_factory=list)


class WriteStatus(BaseModel):
    status: str
    warnings: List[str] = Field(default_factory=list)


class TranslateResultResponse(WriteStatus):
    key: str
    timestamp: int


class TranslationItem(BaseModel):
    key: str
    original: str
    translation: str
    examples: List[ExampleSchema] = Field(default_factory=list)
    fromLang: str
    toLang: str
    timestamp: int
    favorite: bool = False


class HistoryResponse(BaseModel):
    history: List[TranslationItem]


class DeleteRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=512)


class DeleteResponse(WriteStatus):
    success: bool


# ---- Favorites ----

class FavoriteRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=512)
    favorite: bool


class FavoriteResponse(WriteStatus):
    success: bool
    favorite: bool


# ---- Flashcards ----

class SchedulingStateSchema(BaseModel):
    easeFactor: float
    repetitions: int
    interval: int
    nextReview: int
    lastReview: Optional[int] = None


class FlashcardItem(TranslationItem):
    srs: SchedulingStateSchema


class DueFlashcardsResponse(BaseModel):
    flashcards: List[FlashcardItem]


class ReviewRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=512)
    quality: int


class ReviewResponse(BaseModel):
    success: bool
    nextReview: str
    interval: int


class DeckStatsResponse(BaseModel):
    favorites: int
    due: int
    scheduled: int
    learning: int
