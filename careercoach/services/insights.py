"""
Industry insights for the dashboard.

One row per industry is generated with Gemini and reused for a week. Callers
without a profile, and any failed generation, get a built-in default.
"""
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from careercoach.auth.context import CallerContext
from careercoach.models import IndustryInsight, User
from careercoach.services.errors import AssessmentError, ResponseParseFailure
from careercoach.services.gemini_service import GeminiClient
from careercoach.services.response_parser import strip_code_fences

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRY = "Technology"
REFRESH_INTERVAL = timedelta(days=7)

REQUIRED_FIELDS = [
    "salaryRanges", "growthRate", "demandLevel", "topSkills",
    "marketOutlook", "keyTrends", "recommendedSkills"
]

DEFAULT_INSIGHTS = {
    "salary_ranges": [
        {"role": "Software Engineer", "min": 70000, "max": 150000, "median": 100000, "location": "United States"},
        {"role": "Product Manager", "min": 90000, "max": 180000, "median": 130000, "location": "United States"},
        {"role": "Data Scientist", "min": 80000, "max": 160000, "median": 120000, "location": "United States"},
        {"role": "UX Designer", "min": 60000, "max": 130000, "median": 95000, "location": "United States"},
        {"role": "DevOps Engineer", "min": 85000, "max": 170000, "median": 125000, "location": "United States"},
    ],
    "growth_rate": 12.5,
    "demand_level": "High",
    "top_skills": ["JavaScript", "Python", "React", "Node.js", "SQL"],
    "market_outlook": "Positive",
    "key_trends": [
        "Remote work opportunities",
        "AI and machine learning integration",
        "Cloud computing adoption",
        "Cybersecurity focus",
        "Agile development practices",
    ],
    "recommended_skills": ["Cloud Computing", "AI/ML", "Cybersecurity", "Agile", "DevOps"],
}


def compose_insights_prompt(industry: str) -> str:
    return f"""Analyze the current state of the {industry} industry and provide insights in ONLY the following JSON format without any additional notes or explanations:

{{
  "salaryRanges": [
    {{ "role": "string", "min": 0, "max": 0, "median": 0, "location": "string" }}
  ],
  "growthRate": 0,
  "demandLevel": "High" or "Medium" or "Low",
  "topSkills": ["skill1", "skill2"],
  "marketOutlook": "Positive" or "Neutral" or "Negative",
  "keyTrends": ["trend1", "trend2"],
  "recommendedSkills": ["skill1", "skill2"]
}}

IMPORTANT:
- Return ONLY the JSON. No additional text, notes, or markdown formatting
- Include at least 5 common roles for salary ranges
- Growth rate should be a percentage
- Include at least 5 skills and trends

Return the JSON now:"""


def parse_insights(raw_text: str) -> Dict[str, Any]:
    """Turn generated text into column values, rejecting incomplete payloads."""
    try:
        parsed = json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        raise ResponseParseFailure(f"Invalid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ResponseParseFailure("Insights payload is not a JSON object")
    for field in REQUIRED_FIELDS:
        if field not in parsed:
            raise ResponseParseFailure(f"Insights response missing required field: {field}")

    for field in ("salaryRanges", "topSkills", "keyTrends", "recommendedSkills"):
        if not isinstance(parsed[field], list):
            raise ResponseParseFailure(f"Insights field {field} is not a list")

    try:
        growth_rate = float(parsed["growthRate"])
    except (TypeError, ValueError) as e:
        raise ResponseParseFailure(f"Invalid growthRate: {parsed['growthRate']!r}") from e

    return {
        "salary_ranges": parsed["salaryRanges"],
        "growth_rate": growth_rate,
        "demand_level": str(parsed["demandLevel"]),
        "top_skills": parsed["topSkills"],
        "market_outlook": str(parsed["marketOutlook"]),
        "key_trends": parsed["keyTrends"],
        "recommended_skills": parsed["recommendedSkills"],
    }


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def default_insights(industry: str = DEFAULT_INDUSTRY, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "industry": industry,
        **DEFAULT_INSIGHTS,
        "last_updated": now,
        "next_update": now + REFRESH_INTERVAL,
        "is_default": True,
    }


def insight_to_dict(insight: IndustryInsight) -> Dict[str, Any]:
    return {
        "industry": insight.industry,
        "salary_ranges": insight.salary_ranges,
        "growth_rate": insight.growth_rate,
        "demand_level": insight.demand_level,
        "top_skills": insight.top_skills,
        "market_outlook": insight.market_outlook,
        "key_trends": insight.key_trends,
        "recommended_skills": insight.recommended_skills,
        "last_updated": insight.last_updated,
        "next_update": insight.next_update,
        "is_default": False,
    }


def get_industry_insights(
    db: Session,
    caller: CallerContext,
    client: GeminiClient,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Insights for the caller's industry, generating and caching them when stale."""
    now = now or datetime.now(timezone.utc)
    if not caller.is_authenticated:
        return default_insights(now=now)

    user = db.query(User).filter(User.id == caller.user_id).first()
    if user is None:
        return default_insights(now=now)

    industry = user.industry or DEFAULT_INDUSTRY
    existing = db.query(IndustryInsight).filter(IndustryInsight.industry == industry).first()
    if existing is not None and _as_utc(existing.next_update) > now:
        return insight_to_dict(existing)

    try:
        values = parse_insights(client.generate(compose_insights_prompt(industry)))
    except AssessmentError as e:
        logger.error("Could not generate insights for %s: %s", industry, e)
        if existing is not None:
            return insight_to_dict(existing)
        return default_insights(industry, now=now)

    insight = existing or IndustryInsight(industry=industry)
    for field_name, value in values.items():
        setattr(insight, field_name, value)
    insight.last_updated = now
    insight.next_update = now + REFRESH_INTERVAL

    try:
        if existing is None:
            db.add(insight)
        db.commit()
        db.refresh(insight)
    except Exception:
        db.rollback()
        raise

    logger.info("%s insights for industry %s", "Refreshed" if existing else "Generated", industry)
    return insight_to_dict(insight)
