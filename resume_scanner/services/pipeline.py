import asyncio
import json
import os
from typing import Awaitable, Callable, List, Optional, Sequence

from pydantic import ValidationError

from resume_scanner.helpers.heuristics import SKILL_KEYWORDS, extract_fields
from resume_scanner.helpers.parsing import extract_text
from resume_scanner.helpers.validators import is_valid_email, is_valid_phone
from resume_scanner.models.models import AIResumeFields, HeuristicFields, ParseOutcome, ResumeRecord, normalize_skills
from resume_scanner.models.settings import AIServiceSettings, ProcessingSettings
from resume_scanner.services.ai_client import AzureOpenAIClient
from resume_scanner.services.storage import LocalStorage
from resume_scanner.utils.cancellation import raise_if_cancelled
from resume_scanner.utils.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    OperationCancelled,
    TextExtractionError,
)
from resume_scanner.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)

TextExtractor = Callable[[str, Optional[asyncio.Event]], Awaitable[str]]


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_ai_fields(ai_json: Optional[str]) -> Optional[AIResumeFields]:
    """Decode the model's JSON; anything that is not a well-typed object gives None."""
    if _blank(ai_json):
        return None
    try:
        data = json.loads(ai_json)
        if not isinstance(data, dict):
            logger.debug("AI JSON is not an object; ignoring it")
            return None
        return AIResumeFields.model_validate(data)
    except (ValueError, RecursionError, ValidationError) as e:
        logger.debug(f"AI JSON rejected, keeping heuristic fields: {e}")
        return None


def merge_fields(file_name: str, full_text: str, heuristic: HeuristicFields, ai_json: Optional[str]) -> ResumeRecord:
    """
    Combine heuristic fields with the model's answer.

    The AI wins for name, skills, total years and summary when it supplied a
    value; email and phone additionally have to pass validation. Location and
    designation are heuristic only.
    """
    ai = parse_ai_fields(ai_json)

    name = heuristic.name
    email = heuristic.email
    phone = heuristic.phone
    skills = list(heuristic.skills)
    years = heuristic.total_years_experience
    summary = None

    if ai is not None:
        if not _blank(ai.name):
            name = ai.name
        if not _blank(ai.email) and is_valid_email(ai.email):
            email = ai.email
        if not _blank(ai.phone) and is_valid_phone(ai.phone):
            phone = ai.phone
        ai_skills = normalize_skills(ai.skills)
        if ai_skills:
            skills = ai_skills
        if ai.total_years_experience is not None:
            years = ai.total_years_experience
        if ai.summary is not None:
            summary = ai.summary

    return ResumeRecord(
        file_name=file_name,
        full_text=full_text,
        name=name,
        email=email,
        phone=phone,
        skills=skills,
        total_years_experience=years,
        summary=summary,
        location=heuristic.location,
        designation=heuristic.designation,
    )


class ResumeParser:
    """Text extraction -> heuristics -> optional AI enrichment -> merge, per file."""

    def __init__(
        self,
        ai_settings: AIServiceSettings,
        ai_client: Optional[AzureOpenAIClient] = None,
        storage: Optional[LocalStorage] = None,
        processing: Optional[ProcessingSettings] = None,
        text_extractor: Optional[TextExtractor] = None,
        skill_keywords: Sequence[str] = SKILL_KEYWORDS,
    ):
        self.ai_settings = ai_settings
        self.ai_client = ai_client or AzureOpenAIClient(ai_settings)
        self.storage = storage or LocalStorage()
        self.processing = processing or ProcessingSettings()
        self.text_extractor = text_extractor or extract_text
        self.skill_keywords = tuple(skill_keywords)

    async def _enrich(self, file_path: str, text: str, cancel_event: Optional[asyncio.Event]) -> Optional[str]:
        if not self.ai_settings.enabled:
            return None
        try:
            return await self.ai_client.enrich(
                self.ai_settings.api_key, text, self.ai_settings.max_prompt_length, cancel_event
            )
        except OperationCancelled:
            raise
        except (ExternalServiceError, ConfigurationError) as e:
            logger.warning(f"AI enrichment skipped for {file_path}: {e.message}")
            return None
        except Exception as e:
            logger.warning(f"AI enrichment failed for {file_path}, keeping heuristic fields: {e!r}", exc_info=True)
            return None

    async def parse_one(self, file_path: str, cancel_event: Optional[asyncio.Event] = None) -> ParseOutcome:
        """
        Parse a single resume file.

        Extraction failures give ``success=False``; AI failures only drop the
        enrichment. OperationCancelled is propagated to the caller.
        """
        raise_if_cancelled(cancel_event, "resume parsing")
        try:
            text = await self.text_extractor(file_path, cancel_event)
            heuristic = extract_fields(text, self.skill_keywords)
            ai_json = await self._enrich(file_path, text, cancel_event)
            record = merge_fields(os.path.basename(file_path), text, heuristic, ai_json)
        except OperationCancelled:
            raise
        except TextExtractionError as e:
            logger.warning(f"Could not extract text from {file_path}: {e.message}")
            return ParseOutcome(file_path=file_path, success=False, error_message=e.message)
        except Exception as e:
            logger.error(f"Unexpected error while parsing {file_path}: {e}", exc_info=True)
            return ParseOutcome(file_path=file_path, success=False, error_message=str(e))

        logger.debug(f"Parsed {file_path} (ai={'yes' if ai_json else 'no'})")
        return ParseOutcome(file_path=file_path, success=True, resume=record)

    async def parse_folder(self, folder_path: str, cancel_event: Optional[asyncio.Event] = None) -> List[ParseOutcome]:
        """
        Parse every file of a folder concurrently.

        Results come back in listing order. A cancelled batch raises
        OperationCancelled once every task has stopped.
        """
        files = self.storage.list_files(folder_path)
        if not files:
            return []

        semaphore = asyncio.Semaphore(self.processing.max_concurrent)

        async def run(path: str) -> ParseOutcome:
            async with semaphore:
                return await self.parse_one(path, cancel_event)

        with PerformanceMonitor(f"parse_folder({folder_path})", logger, threshold_ms=30000) as monitor:
            results = await asyncio.gather(*(run(p) for p in files), return_exceptions=True)

            for r in results:
                if isinstance(r, OperationCancelled):
                    raise r
            for r in results:
                if isinstance(r, BaseException):
                    raise r
                monitor.record(r.success)
        return list(results)
