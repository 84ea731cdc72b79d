from collections import Counter
from collections.abc import Sequence

from app.models.assistant import AssistantMode

ENGAGEMENT_THRESHOLD = 60
NEUTRAL_ENGAGEMENT = 50

# Checked in order; first prefix match wins
PATH_MODES: list[tuple[tuple[str, ...], AssistantMode]] = [
    (("/jobs", "/matching"), AssistantMode.MATCHING),
    (("/project",), AssistantMode.PROJECT_SETUP),
    (("/profile",), AssistantMode.PROFILE),
    (("/payment", "/billing"), AssistantMode.PAYMENTS),
    (("/marketplace",), AssistantMode.MARKETPLACE),
]


def engagement_score(interactions: int, helpful: int, chats: int) -> int:
    """0-100 engagement from recent interaction, helpful-feedback and chat counts."""
    score = min(interactions * 5, 50) + helpful * 10 + chats * 15
    return min(score, 100)


def llm_enabled(score: int) -> bool:
    return score > ENGAGEMENT_THRESHOLD


def predict_mode(path: str | None, recent_modes: Sequence[str] = ()) -> AssistantMode:
    """Guess the assistant mode from the current path, then from recent history."""
    path = (path or "").lower()
    for prefixes, mode in PATH_MODES:
        if path.startswith(prefixes):
            return mode

    valid = {m.value for m in AssistantMode}
    known = [m for m in recent_modes if m in valid]
    if known:
        return AssistantMode(Counter(known).most_common(1)[0][0])
    return AssistantMode.GENERAL
