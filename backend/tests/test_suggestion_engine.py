import uuid

import pytest

from app.models.assistant import AssistantMemoryLog, AssistantMode, InteractionType
from app.models.job import Job
from app.models.notification import Notification
from app.models.proposal import JobProposal, ProposalStatus
from app.models.user import UserRole
from app.schemas.assistant import build_context
from app.services import suggestion_engine
from app.services.ai_assistant import AssistantLLM
from app.services.relevance import ScoringState, skill_overlap
from app.services.suggestion_engine import SuggestionRule, evaluate_rules, generate_suggestions
from app.services.user_state import UserState
from conftest import FakeAnthropic, create_job, create_user


def _state(**kwargs) -> UserState:
    kwargs.setdefault("user_id", uuid.uuid4())
    kwargs.setdefault("account_age_days", 30)
    return UserState(**kwargs)


def _actions(drafts) -> list[str]:
    return [d.action for d in drafts]


def _job(title: str = "Fix fence", category_id: str = "other", subcategory: str = "") -> Job:
    return Job(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        title=title,
        category_id=category_id,
        subcategory=subcategory,
        lat=0.0,
        lng=0.0,
    )


class TestMatchingRules:
    def test_no_skills(self):
        drafts = evaluate_rules(_state(role=UserRole.SPECIALIST), AssistantMode.MATCHING)
        assert _actions(drafts) == ["add_skills"]
        assert drafts[0].priority == 3
        assert drafts[0].action_url == "/profile/skills"

    def test_skills_but_no_matches(self):
        drafts = evaluate_rules(_state(skills=["plumbing"]), AssistantMode.MATCHING)
        assert _actions(drafts) == ["no_matches"]

    def test_single_top_match(self):
        job = _job("Garden fence repair", category_id="carpentry")
        state = _state(skills=["carpentry"], top_matches=[(job, 80.0)])
        drafts = evaluate_rules(state, AssistantMode.MATCHING)

        assert _actions(drafts) == ["top_match", "expand_criteria"]
        top = drafts[0]
        assert "Garden fence repair" in top.content
        assert top.action_url == f"/jobs/{job.id}"
        assert top.skills == ["carpentry"]
        assert drafts[1].skills == []

    def test_many_matches_skip_expand(self):
        matches = [(_job(f"Job {i}"), 50.0) for i in range(3)]
        drafts = evaluate_rules(_state(skills=["x"], top_matches=matches), AssistantMode.MATCHING)
        assert "expand_criteria" not in _actions(drafts)

    def test_pending_proposal(self):
        proposal = JobProposal(job_id=uuid.uuid4(), specialist_id=uuid.uuid4(), price=1250.0, status=ProposalStatus.PENDING)
        drafts = evaluate_rules(_state(skills=["x"], last_proposal=proposal), AssistantMode.MATCHING)
        pending = next(d for d in drafts if d.action == "pending_proposal")
        assert "$1,250.00" in pending.content

    def test_accepted_proposal_is_quiet(self):
        proposal = JobProposal(job_id=uuid.uuid4(), specialist_id=uuid.uuid4(), price=10.0, status=ProposalStatus.ACCEPTED)
        drafts = evaluate_rules(_state(skills=["x"], last_proposal=proposal), AssistantMode.MATCHING)
        assert "pending_proposal" not in _actions(drafts)

    def test_top_match_declares_job_skills(self):
        job = _job("Burst pipe", category_id="plumbing", subcategory="gas-fitting")
        state = _state(skills=["plumbing", "welding"], top_matches=[(job, 70.0)])
        top = evaluate_rules(state, AssistantMode.MATCHING)[0]
        assert top.skills == ["plumbing", "gas fitting"]

    @pytest.mark.parametrize(
        "category_id,subcategory,expected",
        [
            ("plumbing", "", 15),
            ("plumbing", "gas-fitting", 8),
            ("piano", "tuning", 0),
            ("other", "", 0),
        ],
    )
    def test_top_match_skill_bonus_follows_the_job(self, category_id, subcategory, expected):
        job = _job("Piano tuning", category_id=category_id, subcategory=subcategory)
        state = _state(skills=["plumbing", "welding"], top_matches=[(job, 40.0)])
        top = evaluate_rules(state, AssistantMode.MATCHING)[0]

        scoring = ScoringState(skills=set(state.skills))
        assert skill_overlap(top, scoring, build_context(AssistantMode.MATCHING)) == expected


class TestOtherModes:
    def test_first_job_for_new_customer(self):
        drafts = evaluate_rules(_state(role=UserRole.CUSTOMER), AssistantMode.PROJECT_SETUP)
        assert _actions(drafts) == ["first_job", "detailed_requirements", "competitive_budget"]

    def test_open_and_completed_jobs(self):
        state = _state(role=UserRole.CUSTOMER, open_jobs=2, unreviewed_completed_jobs=1)
        drafts = evaluate_rules(state, AssistantMode.PROJECT_SETUP)
        by_action = {d.action: d for d in drafts}

        assert "first_job" not in by_action
        assert by_action["review_completed"].content == "You have 1 completed job waiting for your review."
        assert "2 open jobs" in by_action["manage_projects"].content

    def test_profile(self):
        drafts = evaluate_rules(_state(skills=["a", "b"]), AssistantMode.PROFILE)
        assert _actions(drafts) == ["complete_bio", "more_skills"]
        assert "You have 2 so far" in drafts[1].content

    def test_complete_profile_is_quiet(self):
        state = _state(bio="Licensed plumber", skills=["a", "b", "c", "d", "e"])
        assert evaluate_rules(state, AssistantMode.PROFILE) == []

    def test_payments(self):
        drafts = evaluate_rules(_state(payment_methods=0, pending_payments=3), AssistantMode.PAYMENTS)
        assert _actions(drafts) == ["payment_method", "pending_payments"]
        assert "3 pending payments" in drafts[1].content

    def test_marketplace_specialist_without_listings(self):
        drafts = evaluate_rules(_state(role=UserRole.SPECIALIST), AssistantMode.MARKETPLACE)
        assert _actions(drafts) == ["list_services", "promote_services"]

    def test_marketplace_customer(self):
        drafts = evaluate_rules(_state(role=UserRole.CUSTOMER), AssistantMode.MARKETPLACE)
        assert _actions(drafts) == ["browse_services"]

    def test_general_for_new_account(self):
        drafts = evaluate_rules(_state(account_age_days=2, unread_notifications=1), AssistantMode.GENERAL)
        assert _actions(drafts) == ["welcome", "unread_notifications", "explore_features", "join_community"]
        assert drafts[1].content == "1 notification waiting for you."

    def test_failing_rule_is_skipped(self):
        def broken(state):
            raise KeyError("missing fact")

        rules = [
            SuggestionRule("broken", AssistantMode.GENERAL, broken, "Broken", "...", 3),
            SuggestionRule("fine", AssistantMode.GENERAL, lambda s: True, "Fine", "...", 1),
        ]
        assert _actions(evaluate_rules(_state(), AssistantMode.GENERAL, rules)) == ["fine"]


class TestGenerateSuggestions:
    @pytest.mark.asyncio
    async def test_ranked_and_filtered(self, db_session, specialist, customer):
        await create_job(db_session, customer, "Plumbing emergency", category_id="handy-man")
        context = build_context(AssistantMode.MATCHING, current_path="/jobs", page="job_matching")

        suggestions = await generate_suggestions(
            db_session, specialist.id, context, AssistantLLM(api_key="", model="m"), proactivity_level=3, engagement=0
        )

        actions = _actions(suggestions)
        assert "top_match" in actions
        assert "add_skills" not in actions
        scores = [s.relevance_score for s in suggestions]
        assert scores == sorted(scores, reverse=True)
        assert all(s.user_id == specialist.id and 0 <= s.relevance_score <= 100 for s in suggestions)
        assert not any(s.ai_generated for s in suggestions)

    @pytest.mark.asyncio
    async def test_minimal_proactivity_keeps_high_priority(self, db_session, customer):
        context = build_context(AssistantMode.GENERAL, current_path="/")
        for i in range(2):
            db_session.add(Notification(user_id=customer.id, type="NEW_PROPOSAL", title=f"n{i}"))
        await db_session.commit()

        suggestions = await generate_suggestions(
            db_session, customer.id, context, AssistantLLM(api_key="", model="m"), proactivity_level=1, engagement=0
        )
        assert _actions(suggestions) == ["welcome"]

    @pytest.mark.asyncio
    async def test_recently_shown_sinks(self, db_session):
        user = await create_user(db_session, UserRole.CUSTOMER)
        db_session.add(
            AssistantMemoryLog(
                user_id=user.id,
                title="Explore JobMate features",
                action="explore_features",
                mode=AssistantMode.GENERAL,
                interaction_type=InteractionType.SUGGESTION_SHOWN,
            )
        )
        await db_session.commit()
        context = build_context(AssistantMode.GENERAL, current_path="/")

        suggestions = await generate_suggestions(
            db_session, user.id, context, AssistantLLM(api_key="", model="m"), proactivity_level=3, engagement=0
        )
        by_action = {s.action: s.relevance_score for s in suggestions}
        assert by_action["explore_features"] < by_action["join_community"]

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_uses_defaults(self, db_session, customer, monkeypatch):
        async def unavailable(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(suggestion_engine, "load_user_state", unavailable)
        user_id = customer.id
        context = build_context(AssistantMode.GENERAL, current_path="/")

        suggestions = await generate_suggestions(
            db_session, user_id, context, AssistantLLM(api_key="", model="m"), proactivity_level=3, engagement=0
        )
        assert set(_actions(suggestions)) == {"welcome", "explore_features", "join_community"}
        assert all(s.user_id == user_id and s.relevance_score == 50 for s in suggestions)

    @pytest.mark.asyncio
    async def test_dismissed_titles_are_dropped(self, db_session, customer):
        db_session.add(
            AssistantMemoryLog(
                user_id=customer.id,
                title="Join our community",
                action="join_community",
                mode=AssistantMode.GENERAL,
                interaction_type=InteractionType.SUGGESTION_DISMISSED,
            )
        )
        await db_session.commit()
        context = build_context(AssistantMode.GENERAL, current_path="/")

        suggestions = await generate_suggestions(
            db_session, customer.id, context, AssistantLLM(api_key="", model="m"), proactivity_level=3, engagement=0
        )
        actions = _actions(suggestions)
        assert "join_community" not in actions
        assert "explore_features" in actions

    @pytest.mark.asyncio
    async def test_llm_tips_for_engaged_users(self, db_session, customer):
        client = FakeAnthropic(text='["Post photos of the problem", "Mention access times", "Set a deadline"]')
        llm = AssistantLLM(api_key="", model="m", client=client)
        context = build_context(AssistantMode.PROJECT_SETUP, current_path="/projects", page="job_creation")

        engaged = await generate_suggestions(db_session, customer.id, context, llm, proactivity_level=3, engagement=80)
        tips = [s for s in engaged if s.ai_generated]
        assert len(tips) == 3
        assert all(t.action == "llm_tip" and t.context == "job_creation" for t in tips)

        quiet = await generate_suggestions(db_session, customer.id, context, llm, proactivity_level=3, engagement=40)
        assert not any(s.ai_generated for s in quiet)
        assert len(client.messages.calls) == 1
