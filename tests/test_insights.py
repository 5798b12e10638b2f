import json
from datetime import datetime, timedelta, timezone

import pytest
from google.api_core import exceptions as google_exceptions

from careercoach.auth.context import ANONYMOUS, CallerContext
from careercoach.models import IndustryInsight
from careercoach.services.errors import ResponseParseFailure
from careercoach.services.insights import (
    DEFAULT_INSIGHTS, compose_insights_prompt, get_industry_insights, parse_insights
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

GENERATED = {
    "salaryRanges": [{"role": "Quant Developer", "min": 120000, "max": 250000, "median": 180000, "location": "London"}],
    "growthRate": "8.5",
    "demandLevel": "High",
    "topSkills": ["Python", "Risk"],
    "marketOutlook": "Positive",
    "keyTrends": ["Open banking"],
    "recommendedSkills": ["Kubernetes"],
}


def generated_text(payload=GENERATED):
    return "```json\n" + json.dumps(payload) + "\n```"


def store_insight(db, industry, next_update, demand_level="Low"):
    insight = IndustryInsight(
        industry=industry,
        salary_ranges=[],
        growth_rate=1.0,
        demand_level=demand_level,
        top_skills=["COBOL"],
        market_outlook="Neutral",
        key_trends=[],
        recommended_skills=[],
        next_update=next_update
    )
    db.add(insight)
    db.commit()
    return insight


class TestParseInsights:
    def test_maps_fields(self):
        values = parse_insights(generated_text())

        assert values["growth_rate"] == 8.5
        assert values["salary_ranges"][0]["role"] == "Quant Developer"
        assert values["recommended_skills"] == ["Kubernetes"]

    def test_missing_field(self):
        payload = dict(GENERATED)
        del payload["keyTrends"]

        with pytest.raises(ResponseParseFailure):
            parse_insights(json.dumps(payload))

    @pytest.mark.parametrize("raw", ["not JSON at all", "[1, 2]", json.dumps({**GENERATED, "topSkills": "Python"})])
    def test_rejects_unusable_payloads(self, raw):
        with pytest.raises(ResponseParseFailure):
            parse_insights(raw)

    def test_prompt_names_industry(self):
        prompt = compose_insights_prompt("fintech")

        assert "state of the fintech industry" in prompt
        assert '"recommendedSkills"' in prompt


class TestGetIndustryInsights:
    def test_generates_and_caches(self, db, alice_ctx, gemini_client, fake_model):
        fake_model.outcomes.append(generated_text())

        first = get_industry_insights(db, alice_ctx, gemini_client, now=NOW)
        second = get_industry_insights(db, alice_ctx, gemini_client, now=NOW + timedelta(days=1))

        assert first["industry"] == "fintech"
        assert first["is_default"] is False
        assert first["top_skills"] == ["Python", "Risk"]
        assert second["top_skills"] == ["Python", "Risk"]
        assert len(fake_model.prompts) == 1
        assert "fintech" in fake_model.prompts[0]
        assert db.query(IndustryInsight).count() == 1

    def test_fresh_row_is_served_from_cache(self, db, alice_ctx, gemini_client, fake_model):
        store_insight(db, "fintech", NOW + timedelta(days=3))

        insights = get_industry_insights(db, alice_ctx, gemini_client, now=NOW)

        assert insights["demand_level"] == "Low"
        assert fake_model.prompts == []

    def test_expired_row_is_refreshed(self, db, alice_ctx, gemini_client, fake_model):
        store_insight(db, "fintech", NOW - timedelta(days=1))
        fake_model.outcomes.append(generated_text())

        insights = get_industry_insights(db, alice_ctx, gemini_client, now=NOW)

        assert insights["demand_level"] == "High"
        assert db.query(IndustryInsight).count() == 1
        db.expire_all()
        stored = db.query(IndustryInsight).one()
        assert stored.growth_rate == 8.5
        assert stored.next_update.replace(tzinfo=timezone.utc) == NOW + timedelta(days=7)

    def test_expired_row_kept_when_generation_fails(self, db, alice_ctx, gemini_client, fake_model):
        store_insight(db, "fintech", NOW - timedelta(days=1))
        fake_model.outcomes.append(google_exceptions.PermissionDenied("bad key"))

        insights = get_industry_insights(db, alice_ctx, gemini_client, now=NOW)

        assert insights["demand_level"] == "Low"
        assert insights["is_default"] is False

    def test_anonymous_gets_default(self, db, gemini_client, fake_model):
        insights = get_industry_insights(db, ANONYMOUS, gemini_client, now=NOW)

        assert insights["industry"] == "Technology"
        assert insights["is_default"] is True
        assert insights["top_skills"] == DEFAULT_INSIGHTS["top_skills"]
        assert fake_model.prompts == []

    def test_unknown_user_gets_default(self, db, gemini_client, fake_model):
        insights = get_industry_insights(db, CallerContext(user_id=9999), gemini_client, now=NOW)

        assert insights["is_default"] is True
        assert fake_model.prompts == []

    def test_generation_failure_falls_back_to_default(self, db, alice_ctx, gemini_client, fake_model):
        fake_model.outcomes.append("Sorry, I can't help with that.")

        insights = get_industry_insights(db, alice_ctx, gemini_client, now=NOW)

        assert insights["industry"] == "fintech"
        assert insights["is_default"] is True
        assert insights["next_update"] == NOW + timedelta(days=7)
        assert db.query(IndustryInsight).count() == 0

    def test_user_without_industry_uses_technology(self, db, bob_ctx, gemini_client, fake_model):
        fake_model.outcomes.append(generated_text())

        insights = get_industry_insights(db, bob_ctx, gemini_client, now=NOW)

        assert insights["industry"] == "Technology"
        assert insights["is_default"] is False


class TestInsightsRoute:
    def test_anonymous(self, client):
        response = client.get("/dashboard/insights")

        assert response.status_code == 200
        assert response.json()["is_default"] is True
        assert response.json()["industry"] == "Technology"

    def test_signed_in(self, client, alice, fake_model, auth_headers):
        fake_model.outcomes.append(generated_text())

        response = client.get("/dashboard/insights", headers=auth_headers("user_alice"))

        assert response.status_code == 200
        data = response.json()
        assert data["industry"] == "fintech"
        assert data["growth_rate"] == 8.5
        assert data["is_default"] is False
