from sqlalchemy import Column, Integer, String, Float, DateTime, JSON
from sqlalchemy.sql import func

from careercoach.database import Base


class IndustryInsight(Base):
    __tablename__ = "industry_insights"

    id = Column(Integer, primary_key=True, index=True)
    industry = Column(String(255), unique=True, index=True, nullable=False)
    salary_ranges = Column(JSON, nullable=False)  # [{role, min, max, median, location}]
    growth_rate = Column(Float, nullable=False)
    demand_level = Column(String(20), nullable=False)  # High / Medium / Low
    top_skills = Column(JSON, nullable=False)
    market_outlook = Column(String(20), nullable=False)  # Positive / Neutral / Negative
    key_trends = Column(JSON, nullable=False)
    recommended_skills = Column(JSON, nullable=False)
    last_updated = Column(DateTime(timezone=True), server_default=func.now())
    next_update = Column(DateTime(timezone=True), nullable=False)
