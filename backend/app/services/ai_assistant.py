import json
import logging
import zlib
from collections.abc import Sequence

import anthropic

from app.config import Settings
from app.models.assistant import AssistantMode

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

FALLBACK_RESPONSES: dict[AssistantMode, list[str]] = {
    AssistantMode.MATCHING: [
        "Based on your profile, I recommend focusing on roles that match your top skills.",
        "You might want to adjust your matching preferences to see more relevant job opportunities.",
        "Your current match score could be improved by adding more details to your profile.",
        "I notice you haven't updated your skills recently. Would you like to review them?",
    ],
    AssistantMode.PROJECT_SETUP: [
        "To set up your project effectively, make sure to define clear milestones and deliverables.",
        "Consider breaking down your project into smaller tasks for better management.",
        "Don't forget to specify your preferred communication methods in the project setup.",
        "Setting clear payment terms upfront will help avoid misunderstandings later.",
    ],
    AssistantMode.PAYMENTS: [
        "Consider updating your payment method for faster processing.",
        "Review your pending payments to keep your projects moving.",
        "Setting up a default payment method makes checkout faster.",
        "Keep your billing details current to avoid failed payments.",
    ],
    AssistantMode.PROFILE: [
        "Adding a professional photo could increase your profile's visibility.",
        "Consider updating your portfolio with recent projects to attract more clients.",
        "Adding certifications to your skills section could strengthen your profile.",
        "Consider requesting feedback from past clients to build your reviews.",
    ],
    AssistantMode.MARKETPLACE: [
        "Consider filtering by rating to find the highest quality services in this category.",
        "Compare prices across similar listings before you book.",
        "Check the reviews on a listing to see what past customers thought.",
        "Would you like to save this search for future reference?",
    ],
    AssistantMode.GENERAL: [
        "How can I help you with JobMate today?",
        "I'm here to assist with any questions about the platform.",
        "Is there anything specific you'd like to know about using JobMate?",
        "I can help with matching, project setup, payments, and more. What do you need?",
    ],
}

MODE_PROMPTS: dict[AssistantMode, str] = {
    AssistantMode.MATCHING: (
        "Focus on helping the user find the best job matches based on their skills and preferences. "
        "Suggest ways to improve their match quality and visibility to customers."
    ),
    AssistantMode.PROJECT_SETUP: (
        "Help the user set up their project with clear milestones, deliverables and communication plans."
    ),
    AssistantMode.PAYMENTS: (
        "Assist with payment questions: invoicing, payment methods and billing history. "
        "Explain payment processes clearly."
    ),
    AssistantMode.PROFILE: (
        "Guide the user in improving their profile: bio, skills, portfolio and reviews."
    ),
    AssistantMode.MARKETPLACE: (
        "Help the user find relevant services and listings in the marketplace and compare options."
    ),
    AssistantMode.GENERAL: (
        "Provide general assistance with any part of the JobMate platform."
    ),
}


def fallback_response(mode: AssistantMode, query: str) -> str:
    """Static response for ``mode``, picked deterministically from the query text."""
    responses = FALLBACK_RESPONSES.get(mode, FALLBACK_RESPONSES[AssistantMode.GENERAL])
    return responses[zlib.crc32(query.encode("utf-8")) % len(responses)]


def fallback_suggestions(mode: AssistantMode) -> list[str]:
    responses = FALLBACK_RESPONSES.get(mode, FALLBACK_RESPONSES[AssistantMode.GENERAL])
    return responses[:SUGGESTION_COUNT]


def build_system_prompt(mode: AssistantMode, context: dict | None = None) -> str:
    prompt = (
        f"You are JobMate's AI Assistant, currently in {mode.replace('_', ' ').lower()} mode. "
        "Your goal is to provide helpful, concise and relevant information to the user.\n\n"
        f"{MODE_PROMPTS.get(mode, MODE_PROMPTS[AssistantMode.GENERAL])}"
    )
    if context:
        prompt += f"\nCurrent context: {json.dumps(context, default=str)}"
    return prompt + "\n\nKeep your responses concise, helpful, and professional."


def _parse_suggestions(text: str) -> list[str] | None:
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    items = [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    return items[:SUGGESTION_COUNT] or None


class AssistantLLM:
    """Claude-backed text generation for the assistant.

    Built once at startup. Without an API key no client is created and every
    call returns static content, so callers never need to check.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout: float = 20.0,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        if client is not None:
            self.client = client
        elif api_key:
            self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)
        else:
            logger.warning("Anthropic API key not configured, assistant will use fallback responses")
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _complete(self, system: str, messages: list[dict]) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=messages,
        )
        return response.content[0].text if response.content else ""

    async def generate_response(
        self,
        query: str,
        mode: AssistantMode,
        context: dict | None = None,
        history: Sequence[dict] = (),
    ) -> tuple[str, bool]:
        """Answer ``query``. Returns ``(content, ai_generated)``."""
        if not self.enabled:
            return fallback_response(mode, query), False

        messages = [{"role": turn["role"], "content": turn["content"]} for turn in history]
        # The conversation has to open with a user turn
        while messages and messages[0]["role"] != "user":
            messages.pop(0)
        messages.append({"role": "user", "content": query})

        try:
            content = await self._complete(build_system_prompt(mode, context), messages)
        except Exception:
            logger.exception("Assistant response generation failed, using fallback")
            return fallback_response(mode, query), False

        if not content.strip():
            logger.warning("Empty assistant response for mode %s, using fallback", mode)
            return fallback_response(mode, query), False
        return content.strip(), True

    async def contextual_suggestions(
        self, mode: AssistantMode, context: dict | None = None, profile_summary: str = ""
    ) -> list[str]:
        """Three short suggestions for the current view."""
        if not self.enabled:
            return fallback_suggestions(mode)

        prompt = (
            "Based on the following information, generate 3 helpful suggestions for the user:\n"
            f"- Current mode: {mode}\n"
            f"- Context: {json.dumps(context or {}, default=str)}\n"
        )
        if profile_summary:
            prompt += f"- User profile:\n{profile_summary}\n"
        prompt += (
            "\nReturn exactly 3 suggestions as a JSON array of strings. "
            "Each suggestion should be concise (max 100 characters) and directly actionable."
        )

        try:
            text = await self._complete(
                "You are a helpful assistant that generates contextual suggestions.",
                [{"role": "user", "content": prompt}],
            )
        except Exception:
            logger.exception("Contextual suggestion generation failed, using fallback")
            return fallback_suggestions(mode)

        suggestions = _parse_suggestions(text)
        if suggestions is None:
            logger.warning("Could not parse contextual suggestions for mode %s", mode)
            return fallback_suggestions(mode)
        return suggestions


def build_llm_client(settings: Settings) -> AssistantLLM:
    return AssistantLLM(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout_seconds,
    )
