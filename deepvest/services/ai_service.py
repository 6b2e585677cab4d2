"""Generative AI service: file transcription, free-form generation, project extraction.

Model calls go through LiteLLM, so any provider it supports can be configured
with AI_MODEL / AI_API_KEY / AI_API_BASE. Every call is bounded by
AI_TIMEOUT_SECONDS and LiteLLM retries transient failures AI_MAX_RETRIES
times. Failures are classified for the caller:

    not configured      AINotConfiguredError              503
    timed out           UpstreamTimeoutError              504
    provider error      UpstreamError                     502
    unusable answer     MalformedUpstreamResponseError    502
"""

import base64
import json
import logging
import re
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

from ..core.config import settings
from ..exceptions import (
    AINotConfiguredError,
    MalformedUpstreamResponseError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 50_000

SUPPORTED_MIME_TYPES = {
    "application/pdf": "PDF",
    "image/jpeg": "JPEG",
    "image/jpg": "JPG",
    "image/png": "PNG",
    "image/webp": "WebP",
    "image/gif": "GIF",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "PPTX",
    "application/msword": "DOC",
    "application/vnd.ms-powerpoint": "PPT",
    "text/plain": "TXT",
    "text/markdown": "MD",
}

# Sent as text instead of an inline file part.
_TEXT_MIME_TYPES = frozenset({"text/plain", "text/markdown"})

EXTRACT_SYSTEM_PROMPT = (
    "You extract structured data about a startup project from free text. "
    "Reply with a single JSON object and nothing else. Use these keys when the "
    "text supports them: name, slogan, description, status, country, city, "
    "website_urls, repository_urls, video_urls, team_members (a list of objects "
    "with name, email and positions). Omit keys you cannot fill."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class AIService:
    """Thin, typed wrapper over LiteLLM completions."""

    def __init__(self, http_client: Optional[httpx.Client] = None):
        self._http = http_client

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.ai_model and settings.ai_api_key)

    # --- model calls ---

    def _complete(self, messages: list, temperature: float = 0.1, max_tokens: int = 4096) -> str:
        if not self.is_configured():
            raise AINotConfiguredError()

        import litellm

        kwargs: dict = {
            "model": settings.ai_model,
            "api_key": settings.ai_api_key,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": settings.ai_timeout_seconds,
            "num_retries": settings.ai_max_retries,
        }
        if settings.ai_api_base:
            kwargs["api_base"] = settings.ai_api_base

        started = time.monotonic()
        try:
            response = litellm.completion(**kwargs)
        except (litellm.Timeout, httpx.TimeoutException, TimeoutError) as e:
            logger.warning("AI completion timed out: %s", e)
            raise UpstreamTimeoutError(timeout_seconds=settings.ai_timeout_seconds)
        except Exception as e:
            logger.exception("AI completion failed")
            raise UpstreamError(f"AI service error: {type(e).__name__}")

        logger.info(
            "AI completion finished",
            extra={"model": settings.ai_model, "duration_ms": round((time.monotonic() - started) * 1000)},
        )
        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            raise MalformedUpstreamResponseError()
        if not isinstance(text, str) or not text.strip():
            raise MalformedUpstreamResponseError("AI service returned no content")
        return text.strip()

    def generate_content(self, prompt: str) -> str:
        """Plain text generation from a single prompt."""
        _check_prompt(prompt)
        return self._complete([{"role": "user", "content": prompt}])

    def extract_project(self, text: str, prompt: Optional[str] = None) -> dict:
        """Ask the model for a JSON object describing the project in *text*.

        Raises:
            MalformedUpstreamResponseError: the answer is not a JSON object.
        """
        _check_prompt(text, field="text")
        user_content = text if not prompt else f"{prompt.strip()}\n\n{text}"
        answer = self._complete(
            [
                {"role": "system", "content": EXTRACT_SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            temperature=0.0,
        )
        return parse_json_object(answer)

    def transcribe(self, url: str, prompt: str) -> tuple[str, dict]:
        """Download the file at *url* and ask the model to transcribe it.

        Returns ``(result, metadata)``.
        """
        _check_prompt(prompt)
        if not self.is_configured():
            raise AINotConfiguredError()

        data, mime_type = self._download(url)
        if mime_type in _TEXT_MIME_TYPES:
            file_part = {"type": "text", "text": data.decode("utf-8", errors="replace")}
        else:
            encoded = base64.b64encode(data).decode("ascii")
            file_part = {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}

        result = self._complete([
            {"role": "user", "content": [{"type": "text", "text": prompt}, file_part]},
        ])
        metadata = {
            "file_size": len(data),
            "mime_type": mime_type,
            "model": settings.ai_model,
        }
        return result, metadata

    # --- file download ---

    def _download(self, url: str) -> tuple[bytes, str]:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("Only HTTP and HTTPS URLs are supported", field="url")

        client = self._http or httpx.Client()
        limit = settings.ai_max_file_bytes
        try:
            with client.stream(
                "GET",
                url,
                timeout=settings.ai_timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": "DeepVest-Transcription-Service/1.0"},
            ) as response:
                if response.status_code >= 400:
                    raise ValidationError(
                        f"Failed to download file: {response.status_code}", field="url"
                    )

                mime_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
                if mime_type not in SUPPORTED_MIME_TYPES:
                    raise ValidationError(f"Unsupported file type: {mime_type or 'unknown'}", field="url")

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > limit:
                    raise ValidationError(
                        f"File too large: {declared} bytes (max: {limit} bytes)", field="url"
                    )

                chunks = []
                size = 0
                for chunk in response.iter_bytes():
                    size += len(chunk)
                    if size > limit:
                        raise ValidationError(
                            f"File too large: more than {limit} bytes", field="url"
                        )
                    chunks.append(chunk)
        except httpx.TimeoutException:
            raise UpstreamTimeoutError("File download timed out", timeout_seconds=settings.ai_timeout_seconds)
        except httpx.HTTPError as e:
            raise ValidationError(f"File download failed: {type(e).__name__}", field="url")
        finally:
            if self._http is None:
                client.close()

        return b"".join(chunks), mime_type


def _check_prompt(prompt: str, field: str = "prompt") -> None:
    if not prompt or not prompt.strip():
        raise ValidationError(f"{field.capitalize()} is required", field=field)
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(f"{field.capitalize()} too long", field=field)


def parse_json_object(answer: str) -> dict:
    """Parse a model answer that should be a JSON object, tolerating code fences."""
    cleaned = _FENCE_RE.sub("", answer.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        raise MalformedUpstreamResponseError("AI service did not return valid JSON")
    if not isinstance(parsed, dict):
        raise MalformedUpstreamResponseError("AI service did not return a JSON object")
    return parsed
