import logging
import time
from contextlib import asynccontextmanager
from datetime import date, datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, field_validator

from tether.application.service import EngagementService
from tether.consts import VERSION
from tether.domain.errors import TetherError
from tether.domain.models import InteractionType
from tether.domain.timeutil import as_utc

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("tether.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Tether Server v{VERSION} starting up...")
    if getattr(app.state, "service", None) is None:
        from tether.application.config import resolve_config
        from tether.application.factory import get_engagement_service

        app.state.service = await get_engagement_service(resolve_config())
    yield
    # Shutdown
    logger.info("Tether Server shutting down...")


app = FastAPI(
    title="Tether Server",
    description="Read-side views and interaction logging for the tether engine.",
    version=VERSION,
    lifespan=lifespan,
)


def get_service(request: Request) -> EngagementService:
    return request.app.state.service


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class StatsResponse(BaseModel):
    overall_score: int
    tier_scores: dict[str, int]
    total_connections: int
    connections_this_week: int
    connections_this_month: int
    longest_streak: int
    current_streak: int
    overdue_count: int
    upcoming_birthdays: int


class BirthdayResponse(BaseModel):
    friend_id: str
    friend_name: str
    next_occurrence: date
    days_until: int


class RelationshipHealthResponse(BaseModel):
    friend_id: str
    score: int
    trend: str
    days_since_contact: int | None
    average_gap_days: float | None
    suggestions: list[str]
    suggestion: str | None = None


class InteractionRequest(BaseModel):
    type: InteractionType
    occurred_at: datetime | None = None
    note: str | None = None
    duration_minutes: int | None = None

    @field_validator("occurred_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class FriendStateResponse(BaseModel):
    friend_id: str
    interaction_id: str
    next_due_at: datetime
    streak_count: int


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/stats", response_model=StatsResponse)
async def get_stats(service: EngagementService = Depends(get_service)):
    stats = service.health_stats()
    return StatsResponse(**vars(stats))


@app.get("/birthdays", response_model=list[BirthdayResponse])
async def get_birthdays(service: EngagementService = Depends(get_service)):
    return [
        BirthdayResponse(
            friend_id=b.friend_id,
            friend_name=b.friend_name,
            next_occurrence=b.next_occurrence,
            days_until=b.days_until,
        )
        for b in service.upcoming_birthdays()
    ]


@app.get("/friends/{friend_id}/health", response_model=RelationshipHealthResponse)
async def get_friend_health(friend_id: str, service: EngagementService = Depends(get_service)):
    try:
        health = service.relationship_health(friend_id)
        suggestion = service.suggestion(friend_id)
    except TetherError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return RelationshipHealthResponse(**vars(health), suggestion=suggestion)


@app.post("/friends/{friend_id}/interactions", response_model=FriendStateResponse)
async def log_interaction(
    friend_id: str,
    req: InteractionRequest,
    service: EngagementService = Depends(get_service),
):
    """
    Log an interaction and return the friend's recomputed schedule.
    """
    logger.info(f"Interaction logged via API for {friend_id}")
    try:
        interaction = await service.log_interaction(
            friend_id,
            req.type,
            occurred_at=req.occurred_at,
            note=req.note,
            duration_minutes=req.duration_minutes,
        )
    except TetherError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    friend = service.store.friend(friend_id)
    return FriendStateResponse(
        friend_id=friend.id,
        interaction_id=interaction.id,
        next_due_at=friend.next_due_at,
        streak_count=friend.streak_count,
    )
