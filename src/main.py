"""
FastAPI Application for CarbonTrackr

Provides local REST API endpoints for:
- Footprint calculation (emissions, record, streaks, badges, suggestion)
- Stats and badges
- Trends and chart series
- Daily tips and AI coach
- AI settings
"""

# Load environment variables FIRST (before other imports that may need them)
from dotenv import load_dotenv
load_dotenv()

import logging
import os
import sys
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add src to path
sys.path.insert(0, os.path.dirname(__file__))

from models.coach import AISettings
from models.footprint import ActivityInput
from services.enrichment import EnrichmentRunner
from services.llm_service import get_llm_service
from services.tracker_service import FootprintTracker
from storage.database import InMemoryBlobStore, SqliteBlobStore, StorageError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("carbontrackr")


# =============================================================================
# APP SETUP
# =============================================================================

app = FastAPI(
    title="CarbonTrackr API",
    description="Personal carbon footprint tracking with streaks, badges and trends",
    version="1.0.0",
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# GLOBAL STATE
# =============================================================================

try:
    blob_store = SqliteBlobStore()
except StorageError as e:
    logger.warning(f"Local database unavailable, running in-memory only: {e}")
    blob_store = InMemoryBlobStore()

enrichment_runner = EnrichmentRunner()
tracker = FootprintTracker(
    blob_store,
    llm_service=get_llm_service(),
    runner=enrichment_runner,
)


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ActivityRequest(BaseModel):
    car_distance_km: float = 0
    electricity_kwh: float = 0
    meat_grams: float = 0
    plastic_items: float = 0
    commit: bool = True


class CoachRequest(BaseModel):
    question: str


class AISettingsRequest(BaseModel):
    api_key: Optional[str] = None
    enabled: bool = False
    personalized_tips: bool = True


class SampleDataRequest(BaseModel):
    days: int = Field(30, ge=1, le=90)
    seed: Optional[int] = None


# =============================================================================
# ROUTES
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": app.version,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/api/footprint/calculate")
def calculate_footprint(request: ActivityRequest):
    """
    Calculate today's emissions.

    With commit=true (default) the daily record is stored and the
    streak/badge stats are updated.
    """
    activity = ActivityInput(
        car_distance_km=request.car_distance_km,
        electricity_kwh=request.electricity_kwh,
        meat_grams=request.meat_grams,
        plastic_items=request.plastic_items,
    )
    outcome = tracker.calculate(activity, commit=request.commit)
    return outcome.to_dict()


@app.get("/api/stats")
def get_stats():
    """Current streaks and badges."""
    return tracker.stats().to_dict()


@app.get("/api/trends")
def get_trends():
    """Weekly/monthly averages and change."""
    return tracker.summary().to_dict()


@app.get("/api/trends/chart")
def get_chart(period: str = Query("week")):
    """Zero-filled daily series for the last week or month."""
    try:
        points = tracker.chart(period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"period": period, "points": [p.to_dict() for p in points]}


@app.post("/api/trends/sample")
def load_sample_data(request: SampleDataRequest):
    """Replace history with generated demo data."""
    records = tracker.load_sample_data(days=request.days, seed=request.seed)
    return {"records": [r.to_dict() for r in records]}


@app.get("/api/tips/today")
def get_todays_tip():
    """Tip of the day."""
    return tracker.todays_tip().to_dict()


@app.get("/api/recommendations/latest")
def get_latest_recommendation():
    """Latest personalized recommendation (null until one succeeds)."""
    recommendation = tracker.latest_recommendation()
    return {"recommendation": recommendation.to_dict() if recommendation else None}


@app.post("/api/coach/ask")
def ask_coach(request: CoachRequest):
    """Ask the eco coach. Answer is null when AI is not available."""
    if not request.question.strip():
        raise HTTPException(status_code=400, detail="Question must not be empty")
    answer = tracker.advisor.ask_coach(request.question)
    return {"answer": answer, "available": answer is not None}


@app.get("/api/settings/ai")
def get_ai_settings():
    """AI settings with the key masked."""
    return tracker.settings.get().redacted()


@app.put("/api/settings/ai")
def update_ai_settings(request: AISettingsRequest):
    """Update AI settings. Omit api_key to keep the stored one."""
    current = tracker.settings.get()
    settings = AISettings(
        api_key=current.api_key if request.api_key is None else request.api_key,
        enabled=request.enabled,
        personalized_tips=request.personalized_tips,
    )
    return tracker.settings.save(settings).redacted()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
