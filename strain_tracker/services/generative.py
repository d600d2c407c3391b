"""
Generative-text helpers: effects summaries and strain-name ideas.

Failures never escape: once the retry budget is spent the caller gets a
fixed "unavailable" message as the result value.
"""
from typing import Any, Dict, List, Optional

from strain_tracker.core.config import settings
from strain_tracker.core.logging import log_error
from strain_tracker.services.retry_client import RetryClient, RequestSpec

ANALYSIS_SYSTEM_PROMPT = (
    "Act as an expert cannabis analyst. Review the user's observed effects and provide a "
    "concise, one-sentence summary of the general sentiment (e.g., highly positive, negative, "
    "mixed) and the key physical or mental outcomes (e.g., body relaxation, creativity boost, "
    "anxiety). Do not use disclaimers."
)

NAMING_SYSTEM_PROMPT = (
    "Act as a creative cannabis breeder and naming expert. Based on the provided flavor and "
    "effects, suggest 3 highly unique, evocative, and culturally relevant strain names. Format "
    "the response as a simple comma-separated list."
)

NO_NOTES_MESSAGE = "No notes to analyze."
ANALYSIS_FAILED_MESSAGE = "Analysis failed."
ANALYSIS_UNAVAILABLE_MESSAGE = "AI analysis unavailable due to an API error."
NAMING_NEEDS_INPUT_MESSAGE = "Please provide effects or flavor notes first."
NAMING_FAILED_MESSAGE = "Name generation failed."
NAMING_UNAVAILABLE_MESSAGE = "AI naming service unavailable."

FALLBACK_MESSAGES = frozenset(
    [
        NO_NOTES_MESSAGE,
        ANALYSIS_FAILED_MESSAGE,
        ANALYSIS_UNAVAILABLE_MESSAGE,
        NAMING_NEEDS_INPUT_MESSAGE,
        NAMING_FAILED_MESSAGE,
        NAMING_UNAVAILABLE_MESSAGE,
    ]
)


def extract_text(payload: Dict[str, Any]) -> Optional[str]:
    """First candidate's first text part, if the reply has one."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text or None


def split_suggestions(text: str) -> List[str]:
    return [name.strip() for name in text.split(",") if name.strip()]


class GenerativeTextService:
    """
    Thin wrapper over the ``generateContent`` endpoint.
    """

    def __init__(self, retry_client: Optional[RetryClient] = None):
        self.retry_client = retry_client or RetryClient()

    def _request(self, system_prompt: str, user_query: str, with_search: bool) -> RequestSpec:
        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": user_query}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
        }
        if with_search:
            payload["tools"] = [{"google_search": {}}]
        return RequestSpec(
            method="POST",
            url=f"{settings.GEMINI_BASE_URL}/models/{settings.GEMINI_MODEL}:generateContent",
            json=payload,
            headers={"Content-Type": "application/json"},
            params={"key": settings.GEMINI_API_KEY or ""},
        )

    async def _generate(
        self,
        system_prompt: str,
        user_query: str,
        with_search: bool,
        empty_reply: str,
        unavailable: str,
        operation: str,
    ) -> str:
        try:
            response = await self.retry_client.call(
                self._request(system_prompt, user_query, with_search)
            )
            text = extract_text(response.json())
        except Exception as e:
            log_error(f"Generative API {operation} failed", error=e, operation=operation)
            return unavailable
        return (text or empty_reply).strip()

    async def analyze_effects(self, effects_text: str) -> str:
        """One-sentence summary of free-text effects notes."""
        if not effects_text or not effects_text.strip():
            return NO_NOTES_MESSAGE
        return await self._generate(
            ANALYSIS_SYSTEM_PROMPT,
            f'Analyze the following effects notes: "{effects_text}"',
            with_search=True,
            empty_reply=ANALYSIS_FAILED_MESSAGE,
            unavailable=ANALYSIS_UNAVAILABLE_MESSAGE,
            operation="effects_analysis",
        )

    async def suggest_strain_names(self, effects: str, flavor: str) -> str:
        """Comma-separated list of three name ideas."""
        if not (effects or "").strip() and not (flavor or "").strip():
            return NAMING_NEEDS_INPUT_MESSAGE
        return await self._generate(
            NAMING_SYSTEM_PROMPT,
            f"Flavor profile: {flavor or 'N/A'}. Observed effects: {effects or 'N/A'}. "
            "Generate 3 names.",
            with_search=False,
            empty_reply=NAMING_FAILED_MESSAGE,
            unavailable=NAMING_UNAVAILABLE_MESSAGE,
            operation="name_suggestion",
        )
