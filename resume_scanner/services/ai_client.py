import asyncio
import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

import requests
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resume_scanner.helpers.json_recovery import extract_first_json_object
from resume_scanner.helpers.prompts import (
    CONNECTION_TEST_PROMPT,
    CONNECTION_TEST_SYSTEM_PROMPT,
    EXTRACT_PROMPT,
    SYSTEM_PROMPT,
)
from resume_scanner.models.settings import AIServiceSettings
from resume_scanner.utils.cancellation import raise_if_cancelled, run_unless_cancelled, sleep_unless_cancelled
from resume_scanner.utils.exceptions import ConfigurationError, ExternalServiceError, TransientServiceError
from resume_scanner.utils.logging_config import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "azure-openai"
TRANSIENT_STATUS_CODES = {429, 503}
MAX_RETRY_AFTER_SECONDS = 120


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After as seconds; accepts both delta-seconds and HTTP-date forms."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def extract_answer_json(body: str) -> Optional[str]:
    """
    Pull the structured answer out of a chat-completions response body.

    The assistant text (``choices[0].message.content``, or the legacy
    ``choices[0].text``) is searched for the first JSON object. When the body
    is not JSON or carries no such field, the raw body is searched instead.
    """
    try:
        envelope = json.loads(body)
    except (ValueError, RecursionError):
        envelope = None

    answer = _assistant_text(envelope)
    if answer is not None:
        found = extract_first_json_object(answer)
        return found.strip() if found else None

    found = extract_first_json_object(body)
    return found.strip() if found else None


def _assistant_text(envelope: Any) -> Optional[str]:
    if not isinstance(envelope, dict):
        return None
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    first = choices[0]
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str) and message["content"].strip():
        return message["content"]
    if isinstance(first.get("text"), str):
        return first["text"]
    return None


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(f"AI request failed (attempt {retry_state.attempt_number}): {exc}. Retrying in {wait:.1f}s")


class AzureOpenAIClient:
    """Chat-completions client that turns resume text into the extraction JSON."""

    def __init__(self, settings: AIServiceSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        # retry_delay * 2**attempt
        self._backoff = wait_exponential(multiplier=settings.retry_delay * 2)

    def build_url(self) -> str:
        endpoint = (self.settings.endpoint or "").strip().rstrip("/")
        if not endpoint:
            raise ConfigurationError("AI endpoint is not configured.", config_key="AZURE_OPENAI_ENDPOINT")
        deployment = (self.settings.deployment_name or "").strip()
        if not deployment:
            raise ConfigurationError("AI deployment name is not configured.", config_key="AZURE_OPENAI_DEPLOYMENT")
        api_version = self.settings.api_version or "2024-02-01"
        return f"{endpoint}/openai/deployments/{deployment}/chat/completions?api-version={api_version}"

    def build_headers(self, api_key: str) -> Dict[str, str]:
        if not api_key or not api_key.strip():
            raise ConfigurationError("AI api key is not configured.", config_key="AZURE_OPENAI_API_KEY")
        return {
            "api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _chat_payload(self, system: str, user: str) -> Dict[str, Any]:
        return {
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
        }

    def build_payload(self, resume_text: str) -> Dict[str, Any]:
        return self._chat_payload(SYSTEM_PROMPT, EXTRACT_PROMPT.format(resume=resume_text))

    async def enrich(
        self,
        api_key: str,
        raw_text: str,
        max_prompt_length: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """
        Ask the model for the structured resume JSON.

        Returns the recovered JSON object text, or None when the text is blank or
        the answer holds no JSON object. Raises ConfigurationError for a missing
        endpoint/key, ExternalServiceError when the endpoint keeps failing, and
        OperationCancelled when ``cancel_event`` fires.
        """
        if not raw_text or not raw_text.strip():
            return None
        raise_if_cancelled(cancel_event, "AI enrichment")

        headers = self.build_headers(api_key)
        url = self.build_url()

        limit = max_prompt_length or self.settings.max_prompt_length
        if len(raw_text) > limit:
            raw_text = raw_text[:limit]

        body = await self._post_with_retries(url, self.build_payload(raw_text), headers, cancel_event)
        extracted = extract_answer_json(body)
        if extracted is None:
            logger.info("AI response contained no JSON object")
        return extracted

    async def test_connection(self, api_key: str, cancel_event: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        """
        Send one small chat request to the configured deployment.

        No retries and no interpretation: the endpoint's status, reason and raw
        body are returned so a misconfigured deployment can be diagnosed.
        """
        headers = self.build_headers(api_key)
        url = self.build_url()
        payload = self._chat_payload(CONNECTION_TEST_SYSTEM_PROMPT, CONNECTION_TEST_PROMPT)
        try:
            resp = await self._post(url, payload, headers, cancel_event)
        except requests.RequestException as e:
            raise ExternalServiceError(
                f"Network error while calling AI endpoint {url}: {e}",
                service_name=SERVICE_NAME,
                cause=e,
            )
        logger.info(f"AI connection test against {url} returned {resp.status_code}")
        return {
            "url": url,
            "status": resp.status_code,
            "reason": resp.reason,
            "response": resp.text,
        }

    def _wait(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception()
        delay = getattr(exc, "retry_after", None)
        if delay is None:
            delay = self._backoff(retry_state)
        return min(delay, MAX_RETRY_AFTER_SECONDS)

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        cancel_event: Optional[asyncio.Event],
    ) -> requests.Response:
        raise_if_cancelled(cancel_event, "AI enrichment")
        return await run_unless_cancelled(
            asyncio.to_thread(self.session.post, url, json=payload, headers=headers, timeout=self.settings.timeout),
            cancel_event,
            "AI enrichment",
        )

    async def _post_once(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        cancel_event: Optional[asyncio.Event],
    ) -> str:
        resp = await self._post(url, payload, headers, cancel_event)
        status = resp.status_code
        if 200 <= status < 300:
            return resp.text

        message = f"AI endpoint {url} returned {status}. Body: {resp.text}"
        if status in TRANSIENT_STATUS_CODES:
            raise TransientServiceError(
                message,
                retry_after=parse_retry_after(resp.headers.get("Retry-After")),
                service_name=SERVICE_NAME,
                status_code=status,
            )
        raise ExternalServiceError(message, service_name=SERVICE_NAME, status_code=status)

    async def _post_with_retries(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        cancel_event: Optional[asyncio.Event],
    ) -> str:
        async def sleep(delay: float) -> None:
            await sleep_unless_cancelled(delay, cancel_event, "AI enrichment")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.retry_attempts),
            wait=self._wait,
            retry=retry_if_exception_type((requests.RequestException, TransientServiceError)),
            sleep=sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    body = await self._post_once(url, payload, headers, cancel_event)
        except requests.RequestException as e:
            raise ExternalServiceError(
                f"Network error while calling AI endpoint {url}: {e}",
                service_name=SERVICE_NAME,
                cause=e,
            )

        logger.debug(f"AI endpoint answered on attempt {attempt.retry_state.attempt_number}")
        return body
