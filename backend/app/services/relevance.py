"""Relevance scoring for assistant suggestions.

A candidate starts at ``BASE_SCORE`` and each rule in ``RULES`` contributes a
signed delta. The sum is clamped to [0, 100] once, after all rules ran.
"""
import logging
import re
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from app.schemas.assistant import AssistantContext, Suggestion, SuggestionDraft

logger = logging.getLogger(__name__)

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

CONTEXT_DIRECT_BONUS = 20
CONTEXT_PARTIAL_BONUS = 10
ACCEPTANCE_BONUS = 5
ACCEPTANCE_CAP = 15
SKILL_OVERLAP_MAX = 15
RECENCY_PENALTY = 25
RECENCY_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class LoggedSuggestion:
    title: str
    action: str
    context: str
    created_at: datetime


@dataclass
class ScoringState:
    """Per-user facts the rules read. Loaded fresh for every scoring call."""

    accepted: list[LoggedSuggestion] = field(default_factory=list)
    recent: list[LoggedSuggestion] = field(default_factory=list)
    skills: set[str] = field(default_factory=set)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Rule = Callable[[SuggestionDraft, ScoringState, AssistantContext], int]
StateLoader = Callable[[uuid.UUID], Awaitable[ScoringState]]


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _tokens(text: str | None) -> set[str]:
    return set(re.findall(r"[a-z0-9]+", (text or "").lower()))


def _skill_name(skill: str) -> str:
    return skill.replace("-", " ").strip().lower()


def context_match(candidate: SuggestionDraft, state: ScoringState, context: AssistantContext) -> int:
    target = (candidate.context or "").strip().lower()
    if not target:
        return 0

    page = (context.page or "").lower()
    mode = str(context.mode).lower()
    path = context.current_path.lower()
    if target in (page, mode) or target in path:
        return CONTEXT_DIRECT_BONUS

    if _tokens(target) & (_tokens(page) | _tokens(mode) | _tokens(path)):
        return CONTEXT_PARTIAL_BONUS
    return 0


def historical_acceptance(candidate: SuggestionDraft, state: ScoringState, context: AssistantContext) -> int:
    hits = 0
    for log in state.accepted:
        same_action = bool(candidate.action) and log.action == candidate.action
        same_context = bool(candidate.context) and log.context == candidate.context
        if same_action or same_context:
            hits += 1
    return min(hits * ACCEPTANCE_BONUS, ACCEPTANCE_CAP)


def skill_overlap(candidate: SuggestionDraft, state: ScoringState, context: AssistantContext) -> int:
    if not candidate.skills:
        return 0
    wanted = {_skill_name(s) for s in candidate.skills}
    have = set()
    for skill in state.skills:
        have.add(_skill_name(skill))
        have |= _tokens(skill)
    return round(SKILL_OVERLAP_MAX * len(wanted & have) / len(wanted))


def recency_penalty(candidate: SuggestionDraft, state: ScoringState, context: AssistantContext) -> int:
    cutoff = state.now - RECENCY_WINDOW
    for log in state.recent:
        if log.title != candidate.title:
            continue
        if candidate.context and log.context and log.context != candidate.context:
            continue
        if as_utc(log.created_at) > cutoff:
            return -RECENCY_PENALTY
    return 0


RULES: list[tuple[str, Rule]] = [
    ("context_match", context_match),
    ("historical_acceptance", historical_acceptance),
    ("skill_overlap", skill_overlap),
    ("recency_penalty", recency_penalty),
]


def clamp_score(value: float) -> int:
    return int(max(MIN_SCORE, min(MAX_SCORE, round(value))))


def score_candidate(candidate: SuggestionDraft, state: ScoringState, context: AssistantContext) -> int:
    total = BASE_SCORE + sum(rule(candidate, state, context) for _, rule in RULES)
    return clamp_score(total)


async def score_suggestions(
    user_id: uuid.UUID,
    candidates: Sequence[SuggestionDraft],
    context: AssistantContext,
    load_state: StateLoader,
    now: datetime | None = None,
) -> list[Suggestion]:
    """Score every candidate for ``user_id``.

    If the state loader fails, every candidate gets ``BASE_SCORE`` so the
    caller still has a list to show.
    """
    if not candidates:
        return []

    try:
        state = await load_state(user_id)
    except Exception:
        logger.exception("Failed to load scoring state for user %s, using neutral scores", user_id)
        return [
            Suggestion(**candidate.model_dump(), user_id=user_id, relevance_score=BASE_SCORE)
            for candidate in candidates
        ]

    if now is not None:
        state.now = now

    return [
        Suggestion(**candidate.model_dump(), user_id=user_id, relevance_score=score_candidate(candidate, state, context))
        for candidate in candidates
    ]


def filter_by_proactivity(suggestions: Sequence[Suggestion], level: int) -> list[Suggestion]:
    """1 keeps only priority-3 items, 2 keeps priority >= 2, 3 keeps everything."""
    if level <= 1:
        return [s for s in suggestions if s.priority >= 3]
    if level == 2:
        return [s for s in suggestions if s.priority >= 2]
    return list(suggestions)
