"""Rule-based assistant suggestions.

``SUGGESTION_RULES`` is a decision table evaluated top to bottom for the active
mode. Title, content and action URL are ``str.format`` templates filled from
the user's facts (see ``_facts``).
"""
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assistant import AssistantMode
from app.models.proposal import ProposalStatus
from app.models.user import UserRole
from app.schemas.assistant import AssistantContext, Suggestion, SuggestionDraft
from app.services.ai_assistant import AssistantLLM
from app.services.engagement import llm_enabled
from app.services.matcher import job_skills
from app.services.relevance import filter_by_proactivity, score_suggestions
from app.services.user_state import UserState, load_dismissed_titles, load_scoring_state, load_user_state

logger = logging.getLogger(__name__)

FEW_MATCHES = 3
SKILLS_TARGET = 5
NEW_ACCOUNT_DAYS = 7
LLM_TITLE_LENGTH = 60


class SuggestionRule(NamedTuple):
    name: str
    mode: AssistantMode
    condition: Callable[[UserState], bool]
    title: str
    content: str
    priority: int
    action_url: str | None = None
    context: str | None = None


def _is_specialist(state: UserState) -> bool:
    return state.role == UserRole.SPECIALIST


SUGGESTION_RULES: list[SuggestionRule] = [
    # Matching
    SuggestionRule(
        "add_skills", AssistantMode.MATCHING,
        lambda s: not s.skills,
        "Add skills to improve matches",
        "Adding relevant skills to your profile will help you get better job matches.",
        3, "/profile/skills", "job_matching",
    ),
    SuggestionRule(
        "top_match", AssistantMode.MATCHING,
        lambda s: bool(s.top_matches),
        "Top job match available",
        'We found a great match: "{top_match_title}". This job aligns well with your skills.',
        2, "/jobs/{top_match_id}", "job_matching",
    ),
    SuggestionRule(
        "expand_criteria", AssistantMode.MATCHING,
        lambda s: 0 < len(s.top_matches) < FEW_MATCHES,
        "Expand your matching criteria",
        "Consider adjusting your location preferences or adding more skills to see more job matches.",
        1, "/profile/preferences", "job_matching",
    ),
    SuggestionRule(
        "no_matches", AssistantMode.MATCHING,
        lambda s: bool(s.skills) and not s.top_matches,
        "No matches found",
        "Try expanding your search criteria or adding more skills to your profile.",
        2, "/profile/skills", "job_matching",
    ),
    SuggestionRule(
        "pending_proposal", AssistantMode.MATCHING,
        lambda s: s.last_proposal is not None and s.last_proposal.status == ProposalStatus.PENDING,
        "Your last proposal is pending",
        "Your proposal of {last_proposal_price} is still waiting for the customer. Keep browsing in the meantime.",
        1, "/jobs/{last_proposal_job_id}", "job_matching",
    ),
    # Project setup
    SuggestionRule(
        "first_job", AssistantMode.PROJECT_SETUP,
        lambda s: s.role != UserRole.SPECIALIST and s.open_jobs == 0,
        "First time posting a job?",
        "Here are some tips for creating an effective job posting that attracts the right specialists.",
        3, "/jobs/new", "job_creation",
    ),
    SuggestionRule(
        "review_completed", AssistantMode.PROJECT_SETUP,
        lambda s: s.unreviewed_completed_jobs > 0,
        "Review your completed jobs",
        "You have {unreviewed_completed_jobs} completed job{unreviewed_plural} waiting for your review.",
        3, "/jobs?status=completed", "job_review",
    ),
    SuggestionRule(
        "manage_projects", AssistantMode.PROJECT_SETUP,
        lambda s: s.open_jobs > 0,
        "Manage your open projects",
        "You have {open_jobs} open job{open_jobs_plural}. Check incoming proposals to keep things moving.",
        2, "/jobs?status=new", "job_management",
    ),
    SuggestionRule(
        "detailed_requirements", AssistantMode.PROJECT_SETUP,
        lambda s: True,
        "Add detailed requirements",
        "Jobs with clear requirements get more qualified proposals. Be specific about the skills needed.",
        2, None, "job_creation",
    ),
    SuggestionRule(
        "competitive_budget", AssistantMode.PROJECT_SETUP,
        lambda s: True,
        "Set a competitive budget",
        "A fair budget attracts more qualified specialists. Research market rates for similar services.",
        1, None, "job_creation",
    ),
    # Profile
    SuggestionRule(
        "complete_bio", AssistantMode.PROFILE,
        lambda s: not s.bio,
        "Complete your bio",
        "A professional bio helps clients understand your background and expertise.",
        3, "/profile", "profile_completion",
    ),
    SuggestionRule(
        "more_skills", AssistantMode.PROFILE,
        lambda s: len(s.skills) < SKILLS_TARGET,
        "Add more skills",
        "Profiles with 5 or more skills get more job matches. You have {skill_count} so far.",
        2, "/profile/skills", "skills_management",
    ),
    # Payments
    SuggestionRule(
        "payment_method", AssistantMode.PAYMENTS,
        lambda s: s.payment_methods == 0,
        "Set up payment method",
        "Add a payment method to streamline transactions on JobMate.",
        3, "/payments/methods", "payment_setup",
    ),
    SuggestionRule(
        "pending_payments", AssistantMode.PAYMENTS,
        lambda s: s.pending_payments > 0,
        "Pending payments",
        "You have {pending_payments} pending payment{pending_payments_plural} that require your attention.",
        3, "/payments", "payment_management",
    ),
    # Marketplace
    SuggestionRule(
        "list_services", AssistantMode.MARKETPLACE,
        lambda s: _is_specialist(s) and s.listings == 0,
        "List your services",
        "Start offering your services in the marketplace to attract more clients.",
        3, "/marketplace/my-services/new", "service_listing",
    ),
    SuggestionRule(
        "optimize_listings", AssistantMode.MARKETPLACE,
        lambda s: _is_specialist(s) and s.listings > 0,
        "Optimize your service listings",
        "Add detailed descriptions and clear pricing to make your services stand out.",
        2, "/marketplace/my-services", "service_optimization",
    ),
    SuggestionRule(
        "promote_services", AssistantMode.MARKETPLACE,
        _is_specialist,
        "Promote your services",
        "Boost visibility by sharing your services with your network.",
        1, None, "service_promotion",
    ),
    SuggestionRule(
        "browse_services", AssistantMode.MARKETPLACE,
        lambda s: not _is_specialist(s),
        "Browse top services",
        "Explore top-rated services in your areas of interest.",
        2, "/marketplace", "service_discovery",
    ),
    # General
    SuggestionRule(
        "welcome", AssistantMode.GENERAL,
        lambda s: s.account_age_days < NEW_ACCOUNT_DAYS,
        "Welcome to JobMate!",
        "Complete your profile to get personalized job matches and recommendations.",
        3, "/profile", "onboarding",
    ),
    SuggestionRule(
        "unread_notifications", AssistantMode.GENERAL,
        lambda s: s.unread_notifications > 0,
        "You have unread notifications",
        "{unread_notifications} notification{unread_plural} waiting for you.",
        2, "/notifications", "notifications",
    ),
    SuggestionRule(
        "explore_features", AssistantMode.GENERAL,
        lambda s: True,
        "Explore JobMate features",
        "Discover how JobMate can help you find work or talent in your field.",
        1, "/features", None,
    ),
    SuggestionRule(
        "join_community", AssistantMode.GENERAL,
        lambda s: True,
        "Join our community",
        "Connect with other professionals in our community forums and events.",
        1, "/community", None,
    ),
]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _facts(state: UserState) -> dict:
    top = state.top_match
    proposal = state.last_proposal
    return {
        "first_name": state.first_name,
        "skill_count": len(state.skills),
        "top_match_title": top.title if top else "",
        "top_match_id": top.id if top else "",
        "last_proposal_price": f"${proposal.price:,.2f}" if proposal else "",
        "last_proposal_job_id": proposal.job_id if proposal else "",
        "open_jobs": state.open_jobs,
        "open_jobs_plural": _plural(state.open_jobs),
        "unreviewed_completed_jobs": state.unreviewed_completed_jobs,
        "unreviewed_plural": _plural(state.unreviewed_completed_jobs),
        "pending_payments": state.pending_payments,
        "pending_payments_plural": _plural(state.pending_payments),
        "unread_notifications": state.unread_notifications,
        "unread_plural": _plural(state.unread_notifications),
    }


def evaluate_rules(
    state: UserState, mode: AssistantMode, rules: list[SuggestionRule] | None = None
) -> list[SuggestionDraft]:
    """Run the decision table for ``mode`` and render every rule that fires."""
    facts = _facts(state)
    drafts = []
    for rule in SUGGESTION_RULES if rules is None else rules:
        if rule.mode != mode:
            continue
        try:
            fired = rule.condition(state)
        except Exception:
            logger.exception("Suggestion rule %s failed", rule.name)
            continue
        if not fired:
            continue
        drafts.append(
            SuggestionDraft(
                title=rule.title.format(**facts),
                content=rule.content.format(**facts),
                mode=rule.mode,
                context=rule.context,
                action=rule.name,
                skills=job_skills(state.top_match) if rule.name == "top_match" else [],
                priority=rule.priority,
                action_url=rule.action_url.format(**facts) if rule.action_url else None,
            )
        )
    return drafts


def _llm_drafts(texts: list[str], context: AssistantContext) -> list[SuggestionDraft]:
    drafts = []
    for text in texts:
        title = text if len(text) <= LLM_TITLE_LENGTH else text[: LLM_TITLE_LENGTH - 3].rstrip() + "..."
        drafts.append(
            SuggestionDraft(
                title=title,
                content=text,
                mode=context.mode,
                context=context.page,
                action="llm_tip",
                priority=2,
                ai_generated=True,
            )
        )
    return drafts


async def generate_suggestions(
    db: AsyncSession,
    user_id: uuid.UUID,
    context: AssistantContext,
    llm: AssistantLLM,
    proactivity_level: int,
    engagement: int,
    now: datetime | None = None,
) -> list[Suggestion]:
    """Rule suggestions for the active mode, plus LLM tips for engaged users,
    scored, filtered by proactivity and sorted best first.

    A failed profile lookup degrades to an empty ``UserState``, so the mode's
    unconditional rules still come back with neutral scores.
    """
    try:
        state = await load_user_state(db, user_id, now)
    except Exception:
        logger.exception("Failed to load user state for %s, using defaults", user_id)
        await db.rollback()
        state = UserState(user_id=user_id)

    dismissed = await load_dismissed_titles(db, user_id)
    drafts = [d for d in evaluate_rules(state, context.mode) if d.title not in dismissed]

    if llm.enabled and llm_enabled(engagement):
        texts = await llm.contextual_suggestions(
            context.mode, context.model_dump(mode="json"), state.profile_summary()
        )
        drafts.extend(d for d in _llm_drafts(texts, context) if d.title not in dismissed)

    async def load_state(uid):
        try:
            return await load_scoring_state(db, uid, now)
        except Exception:
            await db.rollback()
            raise

    scored = await score_suggestions(user_id, drafts, context, load_state, now)
    visible = filter_by_proactivity(scored, proactivity_level)
    visible.sort(key=lambda s: (s.relevance_score, s.priority), reverse=True)
    logger.info("Generated %d of %d suggestions for user %s in %s mode", len(visible), len(drafts), user_id, context.mode)
    return visible
