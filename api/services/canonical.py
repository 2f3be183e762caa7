"""
Canonical text and metadata for candidates and jobs.

The canonical text is both the embedding input and the document stored in the
vector index, so it must be a pure function of the record: identical field
values always render to the same string.
"""

from typing import Dict, List, Union

from api.models.schemas import (
    CandidateRecord,
    CandidateSummary,
    JobRecord,
    JobSummary,
    MetadataValue,
)

from .enums import AVAILABILITY, EMPLOYMENT_TYPE, EXPERIENCE_LEVEL

LIST_DELIMITER = ","


def join_list(values: List[str]) -> str:
    return LIST_DELIMITER.join(values)


def split_list(value: Union[str, None]) -> List[str]:
    """Inverse of ``join_list``. An empty string is an empty list."""
    if not value:
        return []
    return [item for item in value.split(LIST_DELIMITER) if item]


def candidate_text(candidate: CandidateRecord) -> str:
    """
    Render a candidate as a single descriptive string.

    Args:
        candidate: Candidate record from the relational store

    Returns:
        Canonical text in fixed field order: name, skills, experience,
        location, availability
    """
    skills = ", ".join(candidate.skills)
    availability = AVAILABILITY.to_external(candidate.availability)
    return (
        f"{candidate.first_name} {candidate.last_name} - Skills: {skills} - "
        f"Experience: {candidate.experience} years - "
        f"Location: {candidate.location} - Availability: {availability}"
    )


def job_text(job: JobRecord) -> str:
    """
    Render a job position as a single descriptive string.

    Args:
        job: Job record from the relational store

    Returns:
        Canonical text in fixed field order: title, company, description,
        required skills, preferred skills, experience level, location,
        remote flag, employment type
    """
    required = ", ".join(job.required_skills)
    preferred = ", ".join(job.preferred_skills)
    remote = "Remote work available" if job.remote_ok else "On-site work"
    experience_level = EXPERIENCE_LEVEL.to_external(job.experience_level)
    employment_type = EMPLOYMENT_TYPE.to_external(job.employment_type)
    return (
        f"{job.title} at {job.company} - {job.description} - "
        f"Required skills: {required} - Preferred skills: {preferred} - "
        f"Experience level: {experience_level} - Location: {job.location} - "
        f"{remote} - Employment type: {employment_type}"
    )


def candidate_metadata(candidate: CandidateRecord) -> Dict[str, MetadataValue]:
    """Flat filter metadata for a candidate. Missing salary is stored as 0."""
    return {
        "first_name": candidate.first_name,
        "last_name": candidate.last_name,
        "email": candidate.email,
        "experience": candidate.experience,
        "location": candidate.location,
        "availability": AVAILABILITY.to_external(candidate.availability),
        "skills_count": len(candidate.skills),
        "salary_expectation": candidate.salary_expectation or 0,
        "skills": join_list(candidate.skills),
    }


def job_metadata(job: JobRecord) -> Dict[str, MetadataValue]:
    """Flat filter metadata for a job. Missing salary bounds are stored as 0."""
    return {
        "title": job.title,
        "company": job.company,
        "experience_level": EXPERIENCE_LEVEL.to_external(job.experience_level),
        "location": job.location,
        "remote_ok": job.remote_ok,
        "employment_type": EMPLOYMENT_TYPE.to_external(job.employment_type),
        "salary_min": job.salary_min or 0,
        "salary_max": job.salary_max or 0,
        "required_skills_count": len(job.required_skills),
        "preferred_skills_count": len(job.preferred_skills),
        "required_skills": join_list(job.required_skills),
        "preferred_skills": join_list(job.preferred_skills),
    }


def candidate_from_metadata(
    entity_id: str, metadata: Dict[str, MetadataValue]
) -> CandidateSummary:
    return CandidateSummary(
        id=entity_id,
        first_name=str(metadata.get("first_name", "")),
        last_name=str(metadata.get("last_name", "")),
        email=str(metadata.get("email", "")),
        skills=split_list(metadata.get("skills")),
        experience=int(metadata.get("experience", 0)),
        location=str(metadata.get("location", "")),
        availability=str(metadata.get("availability", "")),
        salary_expectation=metadata.get("salary_expectation") or None,
    )


def job_from_metadata(entity_id: str, metadata: Dict[str, MetadataValue]) -> JobSummary:
    return JobSummary(
        id=entity_id,
        title=str(metadata.get("title", "")),
        company=str(metadata.get("company", "")),
        required_skills=split_list(metadata.get("required_skills")),
        preferred_skills=split_list(metadata.get("preferred_skills")),
        experience_level=str(metadata.get("experience_level", "")),
        location=str(metadata.get("location", "")),
        remote_ok=bool(metadata.get("remote_ok", False)),
        salary_min=metadata.get("salary_min") or None,
        salary_max=metadata.get("salary_max") or None,
        employment_type=str(metadata.get("employment_type", "")),
    )
