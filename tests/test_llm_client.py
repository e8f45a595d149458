"""Tests for the credibility oracle wrapper (the Gemini model is faked)."""
import asyncio
import json

from credscan.schemas import GitHubProfile
from credscan.services.llm_client import CredibilityClient


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate_content_async(self, parts):
        self.prompts.append(parts)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


def _client(model):
    client = CredibilityClient(api_key=None)
    client.model = model
    return client


def test_unconfigured_oracle_is_neutral():
    result = asyncio.run(CredibilityClient(api_key=None).assess(cv_data={"name": "A"}))
    assert result.credibility_score == 50
    assert result.flags[0].category == "verification"
    assert result.suggested_questions


def test_scores_are_clamped_and_sources_filled():
    model = FakeModel(json.dumps({
        "credibilityScore": 140,
        "summary": "Strong, consistent evidence.",
        "flags": [{"type": "yellow", "category": "activity", "message": "Quiet last year", "severity": 40}],
        "suggestedQuestions": ["What did you build at Acme?"],
    }))
    profile = GitHubProfile(username="dev")

    result = asyncio.run(_client(model).assess(profile, None, None, "Dev", "Backend Engineer"))

    assert result.credibility_score == 100
    assert result.flags[0].severity == 10
    assert {(s.type, s.available) for s in result.sources} == {
        ("cv", False), ("linkedin", False), ("github", True),
    }
    assert result.analysis_date
    prompt = model.prompts[0][1]
    assert "Backend Engineer" in prompt
    assert '"username": "dev"' in prompt


def test_unparseable_response_falls_back():
    result = asyncio.run(_client(FakeModel("not json at all")).assess(cv_data={"name": "A"}))
    assert result.credibility_score == 50


def test_model_error_falls_back():
    result = asyncio.run(_client(FakeModel(error=RuntimeError("quota"))).assess(cv_data={"name": "A"}))
    assert result.credibility_score == 50
    assert result.flags[0].type == "yellow"
