from typing import Iterable, List, Optional, Sequence, Tuple

from resume_scanner.models.models import MatchMode, MatchStrategy, ParseOutcome, ResumeRecord, ScoreResult, SearchQuery
from resume_scanner.models.response import SearchHit

# Weight budget (sums to 100)
SKILLS_WEIGHT = 30.0
SKILL_YEARS_WEIGHT = 15.0
TOTAL_EXP_WEIGHT = 15.0
TEAM_LEAD_WEIGHT = 10.0
LOCATION_WEIGHT = 15.0
DESIGNATION_WEIGHT = 15.0

# Experience at which the baseline credit is full when no minimum is requested
BASELINE_FULL_YEARS = 20.0

LEADERSHIP_KEYWORDS = (
    "team lead", "technical lead", "tech lead", "lead developer", "lead engineer",
    "senior lead", "manager", "people manager", "leadership", "headed team",
    "led a team", "managed a team",
)


def contains_leadership(text: Optional[str]) -> bool:
    if not text or not text.strip():
        return False
    s = text.lower()
    return any(p in s for p in LEADERSHIP_KEYWORDS)


def value_matches(actual: str, desired: str, mode: MatchMode) -> bool:
    """Both values are expected trimmed and lower-cased."""
    if mode == MatchMode.EXACT:
        return actual == desired
    if mode == MatchMode.STARTS_WITH:
        return actual.startswith(desired)
    return desired in actual


def _score_multi_value(
    label: str,
    resume_value: Optional[str],
    requested: Sequence[str],
    mode: MatchMode,
    total_weight: float,
    explanations: List[str],
) -> Tuple[float, int]:
    """Award an equal share of ``total_weight`` for each requested value found."""
    actual = (resume_value or "").strip().lower()
    share = total_weight / len(requested)
    awarded = 0.0
    matched = 0
    for value in requested:
        if not value or not value.strip():
            continue
        if value_matches(actual, value.strip().lower(), mode):
            matched += 1
            awarded += share
            explanations.append(f"{label} '{value}' matched (+{share:.1f})")
        else:
            explanations.append(f"{label} '{value}' not matched (+0)")
    return awarded, matched


def _skills_component(record: ResumeRecord, query: SearchQuery, explanations: List[str]) -> float:
    if not query.skills:
        return 0.0
    resume_skills = [s.strip().lower() for s in record.skills if s and s.strip()]
    years = record.total_years_experience
    per_skill = SKILLS_WEIGHT / len(query.skills)
    per_skill_years = SKILL_YEARS_WEIGHT / len(query.skills)

    awarded = 0.0
    for sq in query.skills:
        wanted = (sq.name or "").strip().lower()
        if not any(wanted in rs or rs in wanted for rs in resume_skills):
            explanations.append(f"Skill '{sq.name}' not found (+0)")
            continue

        awarded += per_skill
        explanations.append(f"Skill '{sq.name}' matched (+{per_skill:.1f})")

        if sq.years is None:
            continue
        if years is not None and years >= sq.years:
            awarded += per_skill_years
            explanations.append(f"Skill-years for '{sq.name}' met (+{per_skill_years:.1f})")
        elif years is not None and years > 0:
            partial = per_skill_years * min(1.0, years / sq.years)
            awarded += partial
            explanations.append(f"Skill-years for '{sq.name}' partial (+{partial:.1f})")
    return awarded


def _experience_component(record: ResumeRecord, query: SearchQuery, explanations: List[str]) -> float:
    years = record.total_years_experience
    minimum = query.min_total_experience

    if minimum is None:
        if years is None:
            return 0.0
        partial = TOTAL_EXP_WEIGHT * min(1.0, years / BASELINE_FULL_YEARS)
        explanations.append(f"Total experience baseline (+{partial:.1f})")
        return partial

    if years is not None and years >= minimum:
        explanations.append(f"Total experience {years} >= {minimum} (+{TOTAL_EXP_WEIGHT:g})")
        return TOTAL_EXP_WEIGHT
    if years is not None and years > 0:
        partial = TOTAL_EXP_WEIGHT * min(1.0, years / minimum)
        explanations.append(f"Total experience partial credit (+{partial:.1f})")
        return partial
    explanations.append("Total experience missing or 0 (+0)")
    return 0.0


def _leadership_component(record: ResumeRecord, query: SearchQuery, explanations: List[str]) -> float:
    has_lead = contains_leadership(record.full_text)
    if query.require_team_lead:
        if has_lead:
            explanations.append(f"Leadership found (+{TEAM_LEAD_WEIGHT:g})")
            return TEAM_LEAD_WEIGHT
        explanations.append("Leadership not found (+0)")
        return 0.0
    if has_lead:
        bonus = TEAM_LEAD_WEIGHT * 0.5
        explanations.append(f"Leadership found (bonus +{bonus:.1f})")
        return bonus
    return 0.0


def score_resume(record: Optional[ResumeRecord], query: SearchQuery) -> ScoreResult:
    """
    Score a resume against a search query.

    Criteria are evaluated in a fixed order (skills, total experience,
    leadership, location, designation) and each one appends its lines to the
    explanation. A failed hard requirement on location or designation returns
    a score of 0 with a single explanation line.
    """
    if record is None:
        return ScoreResult(score=0, explanation=["No resume"])

    explanations: List[str] = []
    score = 0.0

    score += _skills_component(record, query, explanations)
    score += _experience_component(record, query, explanations)
    score += _leadership_component(record, query, explanations)

    if query.locations:
        total = len(query.locations)
        awarded, matched = _score_multi_value(
            "Location", record.location, query.locations, query.location_mode, LOCATION_WEIGHT, explanations
        )
        score += awarded
        if query.location_strategy == MatchStrategy.ALL and matched < total:
            if query.location_required:
                return ScoreResult(
                    score=0,
                    explanation=[f"Location requirement: all locations not matched. Matched: {matched}/{total}"],
                )
            explanations.append(f"Not all locations matched ({matched}/{total}), no location bonus awarded.")

    if query.designations:
        total = len(query.designations)
        awarded, matched = _score_multi_value(
            "Designation", record.designation, query.designations, query.designation_mode,
            DESIGNATION_WEIGHT, explanations,
        )
        score += awarded
        if query.designation_strategy == MatchStrategy.ALL and matched < total:
            if query.designation_required:
                return ScoreResult(
                    score=0,
                    explanation=[f"Designation requirement: all designations not matched. Matched: {matched}/{total}"],
                )
            explanations.append(f"Not all designations matched ({matched}/{total}), no designation bonus awarded.")
        if query.designation_required and matched == 0:
            return ScoreResult(
                score=0,
                explanation=[
                    "Designation required but no requested designations matched "
                    f"(resume designation: '{record.designation or 'unknown'}')."
                ],
            )

    final = int(round(max(0.0, min(100.0, score))))
    return ScoreResult(score=final, explanation=explanations)


def rank_resumes(outcomes: Iterable[ParseOutcome], query: SearchQuery) -> List[SearchHit]:
    """Score every successful outcome, drop those under ``min_score`` and sort best first."""
    hits: List[SearchHit] = []
    for outcome in outcomes:
        if not outcome.success or outcome.resume is None:
            continue
        result = score_resume(outcome.resume, query)
        if result.score < query.min_score:
            continue
        hits.append(SearchHit(
            file_path=outcome.file_path,
            score=result.score,
            explanation=result.explanation,
            resume=outcome.resume,
        ))
    hits.sort(key=lambda h: h.score, reverse=True)
    return hits
