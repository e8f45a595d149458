import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import google.generativeai as genai

from credscan import config
from credscan.constants import CREDIBILITY_SYSTEM_PROMPT
from credscan.schemas import AnalysisFlag, AnalysisResult, AnalysisSource, GitHubProfile

logger = logging.getLogger(__name__)


def fallback_result(reason: str = "Analysis could not be completed due to technical error.") -> AnalysisResult:
    """Neutral verdict used whenever the oracle is unavailable or returns garbage."""
    return AnalysisResult(
        credibility_score=50,
        summary=reason,
        flags=[AnalysisFlag(
            type="yellow",
            category="verification",
            message="Analysis could not be completed due to technical error",
            severity=5,
        )],
        suggested_questions=["Could you provide additional information about your background?"],
        analysis_date=datetime.now(timezone.utc).isoformat(),
    )


def _clamp_scores(raw: Dict[str, Any]) -> Dict[str, Any]:
    def clamp(value, low, high, default):
        try:
            return max(low, min(high, int(value)))
        except (TypeError, ValueError):
            return default

    raw["credibilityScore"] = clamp(raw.get("credibilityScore"), 0, 100, 50)
    for flag in raw.get("flags") or []:
        if isinstance(flag, dict):
            flag["severity"] = clamp(flag.get("severity"), 1, 10, 5)
    for source in raw.get("sources") or []:
        if isinstance(source, dict):
            source["score"] = clamp(source.get("score"), 0, 100, 0)
    return raw


class CredibilityClient:
    """
    Credibility oracle backed by Gemini in JSON mode.

    Takes the CV, LinkedIn and GitHub evidence bundles and returns an
    ``AnalysisResult``. Never raises: any failure produces ``fallback_result``.
    """

    def __init__(self, api_key: Optional[str] = config.GEMINI_API_KEY, model_name: str = config.GEMINI_MODEL):
        self.model = None
        if not api_key:
            logger.warning("GEMINI_API_KEY not set. Credibility analysis will return neutral results.")
            return
        try:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name, generation_config={"response_mime_type": "application/json"})
        except Exception as e:
            logger.error("Error configuring Gemini API: %s", e)

    @staticmethod
    def build_prompt(
        github_profile: Optional[GitHubProfile],
        cv_data: Optional[Dict[str, Any]],
        linkedin_data: Optional[Dict[str, Any]],
        name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> str:
        github_json = (
            github_profile.model_dump_json(by_alias=True, exclude={"repositories"}, indent=2)
            if github_profile else "Not provided"
        )
        segments = [
            f"--- CANDIDATE ---\nName: {name or 'Unknown'}\nRole: {role or 'Unknown'}",
            f"--- CV DATA ---\n{json.dumps(cv_data, indent=2) if cv_data else 'Not provided'}",
            f"--- LINKEDIN DATA ---\n{json.dumps(linkedin_data, indent=2) if linkedin_data else 'Not provided'}",
            f"--- GITHUB PROFILE ---\n{github_json}",
        ]
        return "\n\n".join(segments)

    async def assess(
        self,
        github_profile: Optional[GitHubProfile] = None,
        cv_data: Optional[Dict[str, Any]] = None,
        linkedin_data: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Runs the credibility judgment over the available evidence.

        Args:
            github_profile (Optional[GitHubProfile]): Output of ``process_github_account``.
            cv_data (Optional[Dict[str, Any]]): Structured CV record.
            linkedin_data (Optional[Dict[str, Any]]): Structured LinkedIn record.
            name (Optional[str]): Candidate name.
            role (Optional[str]): Role applied for.
        Returns:
            AnalysisResult: Score, flags and suggested questions.
        """
        if not self.model:
            return fallback_result("Credibility oracle is not configured.")

        prompt = self.build_prompt(github_profile, cv_data, linkedin_data, name, role)
        try:
            response = await self.model.generate_content_async([CREDIBILITY_SYSTEM_PROMPT, prompt])
            raw = json.loads(response.text)
            result = AnalysisResult.model_validate(_clamp_scores(raw))
        except ValueError as e:
            logger.error("Credibility oracle returned an unusable response: %s", e)
            return fallback_result()
        except Exception as e:
            logger.error("Credibility analysis failed: %s", e)
            return fallback_result()

        result.analysis_date = datetime.now(timezone.utc).isoformat()
        if not result.sources:
            result.sources = [
                AnalysisSource(type="cv", available=cv_data is not None),
                AnalysisSource(type="linkedin", available=linkedin_data is not None),
                AnalysisSource(type="github", available=github_profile is not None),
            ]
        return result
