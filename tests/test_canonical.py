"""Tests for canonical text, metadata extraction and enum lookup tables."""

import pytest

from api.errors import UnknownEnumValue, ValidationError
from api.models.schemas import CandidateRecord, JobRecord
from api.services.canonical import (
    candidate_from_metadata,
    candidate_metadata,
    candidate_text,
    job_from_metadata,
    job_metadata,
    job_text,
    split_list,
)
from api.services.enums import AVAILABILITY, EMPLOYMENT_TYPE


def make_candidate(**overrides) -> CandidateRecord:
    values = {
        "id": "0b6f4a52-8a0c-4f57-9df4-6a4f3f0e7f11",
        "first_name": "Ayse",
        "last_name": "Demir",
        "email": "ayse@example.com",
        "skills": ["Go", "SQL"],
        "experience": 5,
        "location": "Istanbul",
        "availability": "IMMEDIATE",
    }
    values.update(overrides)
    return CandidateRecord(**values)


def make_job(**overrides) -> JobRecord:
    values = {
        "id": "5d1c1b7e-3a51-4b1e-a0a4-0f4a3c2b9e22",
        "title": "Backend Engineer",
        "company": "Acme",
        "description": "Build Go services",
        "required_skills": ["Go", "Kubernetes"],
        "preferred_skills": ["SQL"],
        "experience_level": "MID",
        "location": "Istanbul",
        "remote_ok": True,
        "employment_type": "FULL_TIME",
    }
    values.update(overrides)
    return JobRecord(**values)


def test_candidate_text_field_order():
    text = candidate_text(make_candidate())
    assert text == (
        "Ayse Demir - Skills: Go, SQL - Experience: 5 years - "
        "Location: Istanbul - Availability: immediate"
    )


def test_job_text_field_order():
    text = job_text(make_job())
    assert text == (
        "Backend Engineer at Acme - Build Go services - "
        "Required skills: Go, Kubernetes - Preferred skills: SQL - "
        "Experience level: mid - Location: Istanbul - Remote work available - "
        "Employment type: full_time"
    )


def test_job_text_renders_on_site_phrase():
    assert "On-site work" in job_text(make_job(remote_ok=False))


def test_identical_fields_give_identical_text():
    first = make_candidate(id="11111111-1111-1111-1111-111111111111")
    second = make_candidate(id="22222222-2222-2222-2222-222222222222")
    assert candidate_text(first).encode() == candidate_text(second).encode()
    assert job_text(make_job()) == job_text(make_job())


def test_candidate_metadata_defaults_missing_salary_to_zero():
    metadata = candidate_metadata(make_candidate(salary_expectation=None))

    assert metadata["salary_expectation"] == 0
    assert metadata["skills"] == "Go,SQL"
    assert metadata["skills_count"] == 2
    assert metadata["availability"] == "immediate"
    assert all(isinstance(value, (str, int, float, bool)) for value in metadata.values())


def test_job_metadata_flattens_lists_and_defaults_salaries():
    metadata = job_metadata(make_job(preferred_skills=[], salary_max=90000))

    assert metadata["required_skills"] == "Go,Kubernetes"
    assert metadata["preferred_skills"] == ""
    assert metadata["preferred_skills_count"] == 0
    assert metadata["salary_min"] == 0
    assert metadata["salary_max"] == 90000
    assert metadata["remote_ok"] is True
    assert metadata["experience_level"] == "mid"
    assert metadata["employment_type"] == "full_time"


def test_summaries_split_lists_back():
    job = job_from_metadata("j1", job_metadata(make_job(preferred_skills=[])))
    assert job.required_skills == ["Go", "Kubernetes"]
    assert job.preferred_skills == []
    assert job.salary_min is None

    candidate = candidate_from_metadata(
        "c1", candidate_metadata(make_candidate(salary_expectation=80000))
    )
    assert candidate.skills == ["Go", "SQL"]
    assert candidate.salary_expectation == 80000


def test_split_list_handles_empty_values():
    assert split_list("") == []
    assert split_list(None) == []
    assert split_list("a,b") == ["a", "b"]


def test_enum_mapping_round_trip():
    assert AVAILABILITY.to_storage("within_week") == "WITHIN_WEEK"
    assert AVAILABILITY.to_external("WITHIN_WEEK") == "within_week"
    assert EMPLOYMENT_TYPE.normalize("Full_Time") == "full_time"


def test_unknown_enum_values_are_flagged():
    with pytest.raises(UnknownEnumValue):
        AVAILABILITY.to_external("SOMEDAY")
    with pytest.raises(UnknownEnumValue):
        AVAILABILITY.to_storage("someday")


def test_unknown_stored_availability_fails_canonicalization():
    with pytest.raises(ValidationError):
        candidate_text(make_candidate(availability="SOMEDAY"))
