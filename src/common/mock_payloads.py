"""
Deterministic sample payloads for the mock provider.

One payload per generation kind, each satisfying that kind's output
contract. Returned as deep copies so callers can mutate freely.
"""

import copy
from typing import Any, Dict

from src.common.types import GenerationKind

MOCK_TOKENS = 128

_PAYLOADS: Dict[str, Dict[str, Any]] = {
    GenerationKind.RESUME.value: {
        "summary": "Experienced software engineer with a track record of shipping reliable backend systems.",
        "bullets": [
            "Achieved 30% latency improvement by redesigning the caching layer",
            "Led a team of 5 engineers delivering a payments integration on schedule",
        ],
        "ordered_skills": ["Python", "PostgreSQL", "AWS", "Docker"],
        "emphasize_skills": ["Python", "AWS"],
        "add_skills": ["Kubernetes"],
        "ats_keywords": ["backend", "distributed systems", "microservices"],
        # sections.experience intentionally absent: filled from employment rows
        "sections": {},
    },
    GenerationKind.COVER_LETTER.value: {
        "sections": {
            "opening": "I am writing to express my interest in this role and your team's mission.",
            "body": [
                "In my current position I led the migration of core services to a cloud platform.",
                "I would bring the same ownership and care for quality to your engineering team.",
            ],
            "closing": "Thank you for your consideration. I look forward to speaking with you.",
        },
        "metadata": {"wordCount": 62, "tone": "professional"},
    },
    GenerationKind.SKILLS_OPTIMIZATION.value: {
        "summary": "Strong overlap on core backend skills; cloud orchestration is the main gap.",
        "matched_skills": ["Python", "PostgreSQL", "REST APIs"],
        "missing_skills": ["Kubernetes", "Terraform"],
        "emphasize_skills": ["Python", "System design"],
        "recommendations": [
            {"skill": "Kubernetes", "priority": "high", "action": "Complete a hands-on deployment project"},
            {"skill": "Terraform", "priority": "medium", "action": "Codify an existing environment"},
        ],
        "match_score": 72,
    },
    GenerationKind.COMPANY_RESEARCH.value: {
        "company_name": "Test Company",
        "industry": "Technology",
        "size": "201-500",
        "location": "Austin, TX",
        "founded": 2012,
        "website": "https://example.com",
        "mission": "Make reliable software accessible to every team.",
        "description": "Test Company builds developer tooling for mid-market engineering teams.",
        "news": [
            {
                "title": "Test Company Announces Q4 Growth",
                "summary": "Reported 15% year-over-year growth.",
                "date": "2024-01-15",
                "category": "general",
            }
        ],
        "recent_events": ["Opened a second engineering office"],
        "culture": {
            "type": "hybrid",
            "remote_policy": "hybrid",
            "values": ["Excellence", "Collaboration", "Customer focus"],
            "perks": ["Health insurance", "Learning budget"],
        },
        "leadership": [
            {"name": "Jane Smith", "title": "CEO & Founder"},
            {"name": "John Doe", "title": "CTO"},
        ],
        "products": ["Build Insights", "Deploy Guard"],
    },
    GenerationKind.SALARY_RESEARCH.value: {
        "currency": "USD",
        "range": {"min": 120000, "max": 165000, "median": 142000},
        "factors": ["Seniority level", "Metro area cost of labor", "Cloud platform experience"],
        "negotiation_tips": [
            "Anchor on the market median for the metro area",
            "Negotiate sign-on bonus if base is capped",
        ],
        "market_trend": "stable",
        "confidence": "medium",
        "summary": "Compensation for this role sits in the upper-middle band for the region.",
    },
    GenerationKind.PREDICTION.value: {
        "interview_probability": 0.35,
        "offer_probability": 0.12,
        "expected_weeks_to_offer": 8,
        "confidence": "medium",
        "factors": [
            {"name": "Application volume", "impact": "positive", "detail": "Steady weekly applications"},
            {"name": "Response rate", "impact": "neutral", "detail": "In line with market average"},
        ],
        "recommendations": [
            "Tailor resumes to each posting",
            "Follow up on applications after one week",
        ],
        "summary": "Current pipeline suggests a moderate chance of an offer within two months.",
    },
    GenerationKind.JOB_MATCH.value: {
        "match_score": 78,
        "breakdown": {"skills": 82, "experience": 75, "education": 80, "cultural_fit": 70},
        "skills_gaps": ["Kubernetes", "GraphQL"],
        "strengths": ["Backend architecture", "Team leadership"],
        "recommendations": ["Highlight cloud migration work", "Add a container orchestration project"],
        "reasoning": "Core engineering skills align well; some platform tooling is missing.",
    },
    GenerationKind.EXPERIENCE_TAILORING.value: {
        "roles": [
            {
                "role": "Senior Software Engineer",
                "company": "Acme Corp",
                "tailored_bullets": [
                    "Designed event-driven services processing 2M messages per day",
                    "Mentored 4 engineers on testing and code review practices",
                ],
                "relevance": 0.9,
            }
        ],
        "summary": "Emphasized distributed systems and mentorship for the target role.",
    },
}


def get_mock_payload(kind: str) -> Dict[str, Any]:
    """
    Return the sample payload for a kind.

    Unknown kinds get a minimal text-like payload so the mock provider
    never raises on its own.
    """
    payload = _PAYLOADS.get(kind)
    if payload is None:
        return {"text": "Mock response"}
    return copy.deepcopy(payload)
