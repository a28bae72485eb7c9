from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_skills(values) -> List[str]:
    """Lower-case, trim and de-duplicate skills, keeping first-seen order."""
    out: List[str] = []
    for v in values or []:
        s = str(v).strip().lower()
        if s and s not in out:
            out.append(s)
    return out


class _CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "").replace("-", "")
            for member in cls:
                if member.value == key:
                    return member
        return None


class MatchMode(_CaseInsensitiveEnum):
    """How a requested value is compared with the resume value"""
    NONE = "none"
    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "startswith"


class MatchStrategy(_CaseInsensitiveEnum):
    """Whether any or all requested values must match"""
    ANY = "any"
    ALL = "all"


class HeuristicFields(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    total_years_experience: Optional[int] = None
    location: Optional[str] = None
    designation: Optional[str] = None


class AIResumeFields(BaseModel):
    """Shape the model is prompted to return. Unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore")

    file_name: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: Optional[List[str]] = None
    total_years_experience: Optional[int] = None
    summary: Optional[str] = None


class ResumeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_name: str = ""
    full_text: str = ""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    total_years_experience: Optional[int] = None
    summary: Optional[str] = None
    location: Optional[str] = None
    designation: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        return normalize_skills(v)


class ParseOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_path: str
    success: bool
    resume: Optional[ResumeRecord] = None
    error_message: Optional[str] = None


class SkillQuery(BaseModel):
    name: str = ""
    years: Optional[int] = None


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    skills: List[SkillQuery] = Field(default_factory=list)
    min_total_experience: Optional[int] = None
    require_team_lead: bool = False
    min_score: int = Field(default=0, ge=0, le=100)

    locations: List[str] = Field(default_factory=list)
    location_mode: MatchMode = MatchMode.CONTAINS
    location_strategy: MatchStrategy = MatchStrategy.ANY
    location_required: bool = False

    designations: List[str] = Field(default_factory=list)
    designation_mode: MatchMode = MatchMode.CONTAINS
    designation_strategy: MatchStrategy = MatchStrategy.ANY
    designation_required: bool = False


class ScoreResult(BaseModel):
    score: int = Field(ge=0, le=100)
    explanation: List[str] = Field(default_factory=list)
