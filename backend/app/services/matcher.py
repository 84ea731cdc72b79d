import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job import Job, JobStatus

logger = logging.getLogger(__name__)

MATCH_CANDIDATE_LIMIT = 200
GENERIC_CATEGORIES = {"", "other"}


def _tokenize(text: str) -> set[str]:
    """Break text into lowercase tokens for comparison."""
    return set(re.findall(r"[a-zA-Z0-9+#]+", text.lower()))


def compute_keyword_score(job_text: str, keywords: list[str]) -> float:
    """Score 0-100 based on what fraction of keywords appear in the job text."""
    if not keywords:
        return 0.0
    text_lower = job_text.lower()
    matches = sum(1 for kw in keywords if kw.lower() in text_lower)
    return (matches / len(keywords)) * 100


def compute_category_score(job: Job, skills: list[str]) -> float:
    """100 when any skill token names the job's category or subcategory."""
    job_tokens = _tokenize(f"{job.category_id} {job.subcategory}".replace("-", " "))
    skill_tokens = set()
    for skill in skills:
        skill_tokens |= _tokenize(skill)
    return 100.0 if job_tokens & skill_tokens else 0.0


def job_skills(job: Job) -> list[str]:
    """Skill names a job asks for, read from its category and subcategory slugs."""
    names = []
    for slug in (job.category_id, job.subcategory):
        name = (slug or "").replace("-", " ").strip().lower()
        if name not in GENERIC_CATEGORIES and name not in names:
            names.append(name)
    return names


def compute_match_score(job: Job, skills: list[str]) -> float:
    """Compute how well an open job fits a specialist's skills (0-100).

    Weights:
        - Skill keywords in title/description: 70%
        - Category match: 30%
    """
    job_text = f"{job.title} {job.description}"
    keyword_score = compute_keyword_score(job_text, skills)
    category_score = compute_category_score(job, skills)
    overall = (keyword_score * 0.70) + (category_score * 0.30)
    return round(min(overall, 100.0), 1)


async def find_matches_for_user(db: AsyncSession, skills: list[str], limit: int = 5) -> list[tuple[Job, float]]:
    """Best-scoring open jobs for the given skills, highest first."""
    if not skills:
        return []

    result = await db.execute(
        select(Job)
        .where(Job.status == JobStatus.NEW)
        .order_by(Job.created_at.desc())
        .limit(MATCH_CANDIDATE_LIMIT)
    )
    scored = [(job, compute_match_score(job, skills)) for job in result.scalars().all()]
    scored = [pair for pair in scored if pair[1] > 0]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
