# models/response.py
from pydantic import BaseModel, Field
from typing import List, Optional

from resume_scanner.models.models import ResumeRecord


class SearchHit(BaseModel):
    file_path: str
    score: int
    explanation: List[str] = Field(default_factory=list)
    resume: ResumeRecord


class FileDeleteResponse(BaseModel):
    success: bool
    message: str


class ConnectionTestResponse(BaseModel):
    """Raw outcome of a single request against the AI deployment"""
    url: str
    status: int
    reason: Optional[str] = None
    response: str = ""
