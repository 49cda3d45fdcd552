from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _parse_tag_list(value) -> List[str]:
    """Accept a list, None, or a Postgres array literal like '{SQL,"Power BI"}'."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value if item is not None and str(item).strip()]

    value = str(value).strip()
    if value.startswith("{") and value.endswith("}"):
        value = value[1:-1]
    items = [item.strip().strip('"') for item in value.split(",")]
    return [item for item in items if item]


class JobStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"
    EXPIRED = "EXPIRED"


class JobPosting(BaseModel):
    """A job posting as read from the candidate store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    company: str = ""
    description: str = ""
    location: Optional[str] = None
    region: Optional[str] = None
    remote: bool = False
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    categories: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    status: JobStatus = JobStatus.ACTIVE
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value)

    @field_validator("company", "description", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return value or ""

    @field_validator("categories", "skills", mode="before")
    @classmethod
    def parse_tags(cls, value):
        return _parse_tag_list(value)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_active(self) -> bool:
        return self.status == JobStatus.ACTIVE


class UserProfile(BaseModel):
    """A job seeker's stored preferences and engagement history."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    desired_job_title: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    preferred_job_type: Optional[str] = None
    experience_level: Optional[str] = None
    desired_salary: Optional[float] = None
    skills: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    applied_job_ids: List[str] = Field(default_factory=list)
    saved_job_ids: List[str] = Field(default_factory=list)

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, value):
        return str(value)

    @field_validator("skills", "interests", mode="before")
    @classmethod
    def parse_tags(cls, value):
        return _parse_tag_list(value)

    @field_validator("applied_job_ids", "saved_job_ids", mode="before")
    @classmethod
    def parse_job_refs(cls, value):
        return [str(job_id) for job_id in _parse_tag_list(value)]
