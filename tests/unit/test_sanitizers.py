"""
Unit tests for src/generation/sanitizers.py

Tests post-validation normalizers:
- Probability and number clamping
- String list coercion
- Company size buckets
- Per-kind sanitizers (resume back-fill, cover letter, salary, job match)
"""

import pytest

from src.common.mock_payloads import get_mock_payload
from src.common.types import GenerationContext, GenerationKind
from src.generation.sanitizers import (
    clamp_number,
    coerce_string_list,
    experience_from_employment,
    normalize_company_size,
    normalize_probability,
    sanitize_company_research,
    sanitize_content,
    sanitize_cover_letter,
    sanitize_job_match,
    sanitize_prediction,
    sanitize_resume,
    sanitize_salary_research,
)

EMPLOYMENT = [
    {
        "id": "emp-1",
        "job_title": "Backend Engineer",
        "company_name": "Globex",
        "start_date": "2020-01-01",
        "current_position": True,
        "job_description": "Built ingestion services.\nCut latency by 40%.",
    },
    {
        "id": "emp-2",
        "job_title": "Developer",
        "company_name": "Initech",
        "start_date": "2017-03-01",
        "end_date": "2019-12-31",
        "job_description": "Maintained billing. Wrote the test suite.",
    },
]


# ===== TESTS: Primitive normalizers =====

class TestNormalizeProbability:
    """Tests for normalize_probability()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.35, 0.35),
            (42, 0.42),
            ("35%", 0.35),
            (2, 0.02),
            (100, 1.0),
            (1.4, 1.0),
            (150, 1.0),
            (-0.3, 0.0),
            (0, 0.0),
        ],
    )
    def test_normalizes(self, value, expected):
        assert normalize_probability(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "high", True, float("nan"), {}])
    def test_non_numeric_uses_default(self, value):
        assert normalize_probability(value, default=0.5) == 0.5


class TestClampNumber:
    """Tests for clamp_number()."""

    def test_clamps_both_ends(self):
        assert clamp_number(150, 0, 100) == 100
        assert clamp_number(-5, 0, 100) == 0

    def test_parses_numeric_strings(self):
        assert clamp_number("1,250", 0, 5000) == 1250

    def test_default_for_garbage(self):
        assert clamp_number("n/a", 0, 100, default=7) == 7


class TestCoerceStringList:
    """Tests for coerce_string_list()."""

    def test_keeps_primitives_only(self):
        assert coerce_string_list(["a", 3, None, {"x": 1}, ["b"], True, "  "]) == ["a", "3"]

    def test_bounds_items_and_length(self):
        result = coerce_string_list(["x" * 50] * 10, max_items=3, max_len=5)
        assert result == ["xxxxx"] * 3

    def test_non_list_is_empty(self):
        assert coerce_string_list("Python, SQL") == []


class TestNormalizeCompanySize:
    """Tests for company size bucketing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("201-500", "201-500"),
            ("1,000+", "1000+"),
            ("5000+", "1000+"),
            ("12000 employees", "1000+"),
            ("10+", "11-50"),
            ("51 - 200 employees", "51-200"),
            ("about 75 people", "51-200"),
            ("Mid-size company", "201-500"),
            ("Early-stage startup", "11-50"),
            ("Large enterprise", "1000+"),
            ("Large startup, 5000 employees", "1000+"),
            ("Startup of 30 people", "11-50"),
            ("Mid-sized firm", "201-500"),
            (350, "201-500"),
            (8, "1-10"),
        ],
    )
    def test_buckets(self, value, expected):
        assert normalize_company_size(value) == expected

    @pytest.mark.parametrize("value", [None, "", "unknown", "smaller than most", "Microscopic", 0, True, ["201-500"]])
    def test_unrecognized_is_none(self, value):
        assert normalize_company_size(value) is None


# ===== TESTS: Resume =====

class TestSanitizeResume:
    """Tests for resume normalization and experience back-fill."""

    def test_backfills_experience_from_employment(self):
        """Missing sections.experience is rebuilt from every employment row."""
        context = GenerationContext(user_id="u", profile={}, employment=EMPLOYMENT)
        payload = get_mock_payload(GenerationKind.RESUME.value)

        out = sanitize_resume(payload, context)

        rows = out["sections"]["experience"]
        assert [row["employment_id"] for row in rows] == ["emp-1", "emp-2"]
        assert rows[0]["role"] == "Backend Engineer"
        assert rows[0]["dates"] == "2020-Present"
        assert rows[0]["bullets"] == ["Built ingestion services.", "Cut latency by 40%."]
        assert rows[1]["dates"] == "2017-2019"
        assert rows[1]["bullets"] == ["Maintained billing.", "Wrote the test suite."]

    def test_keeps_provider_experience(self):
        context = GenerationContext(user_id="u", profile={}, employment=EMPLOYMENT)
        payload = {
            "summary": "s",
            "bullets": ["b"],
            "sections": {"experience": [{"role": "Lead", "bullets": ["Did X", 5, None]}]},
        }

        out = sanitize_resume(payload, context)

        assert len(out["sections"]["experience"]) == 1
        assert out["sections"]["experience"][0]["bullets"] == ["Did X", "5"]

    def test_without_employment_experience_is_empty(self):
        out = sanitize_resume({"summary": "s", "bullets": []}, GenerationContext(user_id="u", profile={}))
        assert out["sections"]["experience"] == []

    def test_skill_arrays_deduped_strings(self):
        out = sanitize_resume({"summary": "s", "bullets": [], "ordered_skills": ["Python", "python", {"n": 1}, "SQL"]})
        assert out["ordered_skills"] == ["Python", "SQL"]

    def test_does_not_mutate_input(self):
        payload = {"summary": " s ", "bullets": ["b"]}
        sanitize_resume(payload)
        assert payload == {"summary": " s ", "bullets": ["b"]}


class TestExperienceFromEmployment:
    """Tests for employment -> experience rows."""

    def test_skips_non_dict_rows(self):
        assert experience_from_employment(["junk", None]) == []


# ===== TESTS: Other kinds =====

class TestSanitizeCoverLetter:
    """Tests for cover letter normalization."""

    def test_recomputes_word_count(self):
        payload = {
            "sections": {"opening": "Hello there.", "body": ["One two three."], "closing": "Bye now."},
            "metadata": {"wordCount": 999},
        }
        out = sanitize_cover_letter(payload)
        assert out["metadata"]["wordCount"] == 7
        assert out["metadata"]["tone"] == "professional"

    def test_splits_string_body_into_paragraphs(self):
        payload = {"sections": {"opening": "Hi", "body": "First para.\n\nSecond para.", "closing": "Bye"}}
        out = sanitize_cover_letter(payload)
        assert out["sections"]["body"] == ["First para.", "Second para."]


class TestSanitizeSalaryResearch:
    """Tests for salary range ordering."""

    def test_swaps_inverted_range_and_clamps_median(self):
        payload = {"currency": "usd", "range": {"min": 150000, "max": 100000, "median": 200000}}
        out = sanitize_salary_research(payload)
        assert out["range"]["min"] == 100000
        assert out["range"]["max"] == 150000
        assert out["range"]["median"] == 150000
        assert out["currency"] == "USD"

    def test_negative_values_floor_at_zero(self):
        out = sanitize_salary_research({"range": {"min": -10, "max": 50}})
        assert out["range"]["min"] == 0


class TestSanitizePrediction:
    """Tests for prediction normalization."""

    def test_percent_scale_probabilities(self):
        out = sanitize_prediction({"interview_probability": 35, "offer_probability": 1.4, "expected_weeks_to_offer": 500})
        assert out["interview_probability"] == pytest.approx(0.35)
        assert out["offer_probability"] == 1.0
        assert out["expected_weeks_to_offer"] == 104

    def test_unknown_factor_impact_becomes_neutral(self):
        out = sanitize_prediction({"factors": [{"name": "Volume", "impact": "great"}]})
        assert out["factors"][0]["impact"] == "neutral"


class TestSanitizeJobMatch:
    """Tests for job match score clamping."""

    def test_scores_clamped_to_int_range(self):
        payload = {
            "match_score": 130.4,
            "breakdown": {"skills": -5, "experience": "75", "education": 80.6},
            "strengths": ["a", "b", "c", "d", "e", "f"],
        }
        out = sanitize_job_match(payload)
        assert out["match_score"] == 100
        assert out["breakdown"] == {"skills": 0, "experience": 75, "education": 81, "cultural_fit": 0}
        assert len(out["strengths"]) == 5


class TestSanitizeCompanyResearch:
    """Tests for company research normalization."""

    def test_size_founded_and_website(self):
        payload = get_mock_payload(GenerationKind.COMPANY_RESEARCH.value)
        payload.update({"size": "about 300 employees", "founded": 1200, "website": "acme.io"})

        out = sanitize_company_research(payload)

        assert out["size"] == "201-500"
        assert out["founded"] is None
        assert out["website"] == "https://acme.io"


class TestSanitizeContent:
    """Tests for the kind dispatch."""

    @pytest.mark.parametrize("kind", list(GenerationKind))
    def test_every_kind_has_sanitizer(self, kind):
        out = sanitize_content(kind, get_mock_payload(kind.value))
        assert isinstance(out, dict)
