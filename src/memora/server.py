import logging
import time
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from memora.application.config import AppConfig, resolve_config
from memora.application.factory import ReviewEngine, build_engine
from memora.consts import VERSION
from memora.domain.errors import (
    CardAccessDeniedError,
    CardNotFoundError,
    InvalidGradeError,
    ValidationFailure,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("memora.server")


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CreateCardRequest(BaseModel):
    user_id: str
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    deck_id: str | None = None


class CardResponse(BaseModel):
    id: str
    user_id: str
    deck_id: str | None
    question: str
    answer: str


class ImportPair(BaseModel):
    question: str
    answer: str


class ImportRequest(BaseModel):
    user_id: str
    cards: list[ImportPair]


class ImportResponse(BaseModel):
    cards_imported: int
    cards_skipped: int


class ReviewRequest(BaseModel):
    user_id: str
    answer: str


class ReviewResponse(BaseModel):
    card_id: str
    score: float
    grade: int
    method: str
    scheduled_days: int


class StatsResponse(BaseModel):
    total_reviews: int
    correct_reviews: int
    days_studied: int
    accuracy_percentage: float
    last_active_date: date | None
    total_card_count: int | None = None


def create_app(
    engine: ReviewEngine | None = None, config: AppConfig | None = None
) -> FastAPI:
    """
    Build the HTTP app. Without an explicit engine, one is wired at startup from
    `config` (or the resolved config) and drained on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        if owned:
            app.state.engine = build_engine(config or resolve_config())
        else:
            app.state.engine = engine
        logger.info(f"memora server v{VERSION} starting up...")
        yield
        logger.info("memora server shutting down...")
        if owned:
            await app.state.engine.aclose()

    app = FastAPI(
        title="memora",
        description="Spaced-repetition review engine with cascading answer grading.",
        version=VERSION,
        lifespan=lifespan,
    )
    start_time = time.time()

    def get_engine(request: Request) -> ReviewEngine:
        return request.app.state.engine

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """
        Simple health check to verify server is reachable.
        """
        return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)

    @app.get("/version")
    async def get_version():
        return {"version": VERSION}

    @app.post("/cards", response_model=CardResponse, status_code=201)
    async def create_card(req: CreateCardRequest, request: Request):
        card = await get_engine(request).create_card(
            req.user_id, req.question, req.answer, req.deck_id
        )
        return CardResponse(
            id=card.id,
            user_id=card.user_id,
            deck_id=card.deck_id,
            question=card.question,
            answer=card.answer,
        )

    @app.post("/decks/{deck_id}/import", response_model=ImportResponse)
    async def import_cards(deck_id: str, req: ImportRequest, request: Request):
        """Import already-parsed question/answer pairs into a deck."""
        result = await get_engine(request).import_cards(
            req.user_id, deck_id, [(p.question, p.answer) for p in req.cards]
        )
        return ImportResponse(
            cards_imported=result.cards_imported, cards_skipped=result.cards_skipped
        )

    @app.post("/cards/{card_id}/review", response_model=ReviewResponse)
    async def review_card(card_id: str, req: ReviewRequest, request: Request):
        try:
            result = await get_engine(request).submit_review(card_id, req.user_id, req.answer)
        except CardNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except CardAccessDeniedError as e:
            raise HTTPException(status_code=403, detail=str(e)) from e
        except InvalidGradeError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except ValidationFailure as e:
            logger.error(f"Review of {card_id} failed: {e}")
            raise HTTPException(status_code=502, detail=str(e)) from e

        return ReviewResponse(
            card_id=result.card_id,
            score=result.score,
            grade=int(result.grade),
            method=result.method.value,
            scheduled_days=result.scheduled_days,
        )

    @app.get("/stats/users/{user_id}", response_model=StatsResponse)
    async def user_stats(user_id: str, request: Request):
        stats = await get_engine(request).stats.get_user_stats(user_id)
        return StatsResponse(
            total_reviews=stats.total_reviews,
            correct_reviews=stats.correct_reviews,
            days_studied=stats.days_studied,
            accuracy_percentage=stats.accuracy_percentage,
            last_active_date=stats.last_active_date,
        )

    @app.get("/stats/decks/{deck_id}", response_model=StatsResponse)
    async def deck_stats(deck_id: str, user_id: str, request: Request):
        stats = await get_engine(request).stats.get_deck_stats(deck_id, user_id)
        return StatsResponse(
            total_reviews=stats.total_reviews,
            correct_reviews=stats.correct_reviews,
            days_studied=stats.days_studied,
            accuracy_percentage=stats.accuracy_percentage,
            last_active_date=stats.last_active_date,
            total_card_count=stats.total_card_count,
        )

    return app


app = create_app()
