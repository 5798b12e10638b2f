from careercoach.models.user import User
from careercoach.models.assessment import Assessment
from careercoach.models.industry_insight import IndustryInsight

__all__ = [
    "User",
    "Assessment",
    "IndustryInsight",
]
