import os

# keep log files out of the test run
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest

from resume_scanner.models.models import ResumeRecord
from resume_scanner.models.settings import AIServiceSettings


SAMPLE_RESUME = """Priya Sharma
Senior Software Engineer
Pune, Maharashtra
priya.sharma@example.com | +91 9876543210

Summary
Backend developer with 7 years of experience building Python and SQL services on AWS.
Worked as Team Lead for a group of five engineers.

Experience
Acme Corp 2016 - 2023
"""


@pytest.fixture
def sample_text():
    return SAMPLE_RESUME


@pytest.fixture
def ai_settings():
    return AIServiceSettings(
        endpoint="https://example.openai.azure.com/",
        api_key="secret",
        deployment_name="gpt-4o-mini",
        api_version="2024-02-01",
        retry_attempts=3,
        retry_delay=0.0,
    )


@pytest.fixture
def make_record():
    def _make(**overrides):
        data = {
            "file_name": "cv.txt",
            "full_text": "",
            "skills": [],
        }
        data.update(overrides)
        return ResumeRecord(**data)
    return _make
