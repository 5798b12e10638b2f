from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from careercoach.auth.context import CallerContext
from careercoach.auth.dependencies import get_caller_context
from careercoach.database import get_db
from careercoach.routes.assessments import get_generation_client
from careercoach.services.gemini_service import GeminiClient
from careercoach.services.insights import get_industry_insights

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class IndustryInsightResponse(BaseModel):
    industry: str
    salary_ranges: List[Any]
    growth_rate: float
    demand_level: str
    top_skills: List[Any]
    market_outlook: str
    key_trends: List[Any]
    recommended_skills: List[Any]
    last_updated: Optional[datetime]
    next_update: Optional[datetime]
    is_default: bool


@router.get("/insights", response_model=IndustryInsightResponse)
def industry_insights(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context),
    client: GeminiClient = Depends(get_generation_client)
):
    """Industry insights for the caller's dashboard (default set when not signed in)"""
    return get_industry_insights(db, caller, client)
