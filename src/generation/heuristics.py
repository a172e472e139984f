"""
Deterministic fallbacks computed locally when the provider cannot produce
a valid payload.

Only prediction has one: its inputs are counts, so a smoothed rate is a
meaningful answer. The same input always yields the same output.
"""

import math
from typing import Any, Dict, List, Optional

from src.generation.prompts.prediction import pipeline_counts

NOT_APPLIED_STATUSES = {"interested", "saved", "wishlist", "bookmarked", "unknown"}
INTERVIEW_STATUSES = {"phone screen", "phone_screen", "interview", "interviewing", "offer", "accepted"}
OFFER_STATUSES = {"offer", "accepted"}

# Additive smoothing priors: 1 interview per 5 applications, 0.5 offers per 10
INTERVIEW_PRIOR = (1.0, 5.0)
OFFER_PRIOR = (0.5, 10.0)
ASSUMED_APPLICATIONS_PER_WEEK = 5.0


def heuristic_prediction(
    profile: Optional[Dict[str, Any]],
    jobs: List[Dict[str, Any]],
    skills: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Estimate search outcomes from application-pipeline counts.

    Args:
        profile: User profile (unused beyond presence; kept for parity with prompts)
        jobs: The user's tracked jobs with a status field
        skills: The user's skills (count feeds one factor)

    Returns:
        Payload satisfying the prediction contract, confidence "low"
    """
    counts = pipeline_counts(jobs)
    applied = sum(n for status, n in counts.items() if status not in NOT_APPLIED_STATUSES)
    interviews = sum(counts.get(status, 0) for status in INTERVIEW_STATUSES)
    offers = sum(counts.get(status, 0) for status in OFFER_STATUSES)

    interview_probability = (interviews + INTERVIEW_PRIOR[0]) / (applied + INTERVIEW_PRIOR[1])
    offer_probability = (offers + OFFER_PRIOR[0]) / (applied + OFFER_PRIOR[1])
    interview_probability = round(min(1.0, interview_probability), 4)
    offer_probability = round(min(interview_probability, offer_probability), 4)

    weeks = math.ceil(1.0 / max(offer_probability, 0.01) / ASSUMED_APPLICATIONS_PER_WEEK)
    expected_weeks = float(max(1, min(104, weeks)))

    skill_count = len(skills or [])
    factors = [
        {
            "name": "Application volume",
            "impact": "positive" if applied >= 20 else "negative" if applied < 5 else "neutral",
            "detail": f"{applied} applications submitted",
        },
        {
            "name": "Interview conversion",
            "impact": "positive" if applied and interviews / applied >= 0.2 else "neutral",
            "detail": f"{interviews} of {applied} applications reached interviews",
        },
        {
            "name": "Skills coverage",
            "impact": "positive" if skill_count >= 10 else "neutral",
            "detail": f"{skill_count} skills on profile",
        },
    ]

    recommendations: List[str] = []
    if applied < 10:
        recommendations.append("Increase application volume to at least 5 per week")
    if applied >= 10 and interviews == 0:
        recommendations.append("Tailor resumes to each posting to improve interview conversion")
    if interviews and not offers:
        recommendations.append("Practice interview stories for the roles reaching final rounds")
    if skill_count < 10:
        recommendations.append("Add relevant skills to your profile")
    if not recommendations:
        recommendations.append("Keep your current pace and follow up on open applications")

    return {
        "interview_probability": interview_probability,
        "offer_probability": offer_probability,
        "expected_weeks_to_offer": expected_weeks,
        "confidence": "low",
        "factors": factors,
        "recommendations": recommendations[:5],
        "summary": (
            f"Estimated from {applied} applications, {interviews} interviews and "
            f"{offers} offers using smoothed historical rates."
        ),
        "method": "heuristic",
    }

