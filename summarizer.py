"""Audio summarizer adapter using DashScope multimodal models.

The encoded recording is sent as a base64 data URI next to a fixed text
instruction; the model answers with a plain-text bullet summary in a single
non-streaming response.
"""

from __future__ import annotations

import logging
import os
from http import HTTPStatus

from errors import (
    AUTH_FAILED,
    MALFORMED_RESPONSE,
    SERVICE_ERROR,
    ServiceError,
    classify_exception,
    http_status_code,
)
from models import EncodedAudioPayload

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger("echonotes.summarizer")

SUMMARY_INSTRUCTION = "Provide a summary in simple ADHD/dyslexia-friendly bullet points only."


def resolve_api_key(api_key: str) -> str:
    return api_key or os.getenv("DASHSCOPE_API_KEY", "")


def check_response(response: object) -> None:
    """Raise ServiceError for a non-200 DashScope response."""
    status = getattr(response, "status_code", HTTPStatus.OK)
    if status == HTTPStatus.OK:
        return
    code = http_status_code(int(status))
    message = str(getattr(response, "message", "") or f"HTTP {status}")
    raise ServiceError(code, message, retryable=code != AUTH_FAILED)


class DashscopeSummarizer:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen-audio-turbo-latest",
        request_timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    @property
    def model(self) -> str:
        return self._model

    def summarize(self, payload: EncodedAudioPayload, instruction: str) -> str:
        if dashscope is None:
            raise ServiceError(SERVICE_ERROR, "dashscope is not installed")

        api_key = resolve_api_key(self._api_key)
        if not api_key:
            raise ServiceError(AUTH_FAILED, "No API key configured")

        logger.info(
            "requesting summary",
            extra={"event": "summary_request", "model": self._model, "payload_chars": len(payload)},
        )
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"audio": payload.as_data_uri()},
                            {"text": instruction},
                        ],
                    }
                ],
                result_format="message",
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            code, retryable = classify_exception(exc)
            raise ServiceError(code, str(exc), retryable=retryable) from exc

        check_response(response)
        text = self._extract_text(response).strip()
        if not text:
            raise ServiceError(MALFORMED_RESPONSE, "response contained no text", retryable=True)
        return text

    def _extract_text(self, response: object) -> str:
        """Pull the text parts out of a DashScope message response dict."""
        if not isinstance(response, dict):
            return ""
        output = response.get("output") or {}
        choices = output.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") or []
        if isinstance(content, str):
            return content
        parts = [str(item.get("text", "")) for item in content if isinstance(item, dict)]
        return "".join(parts)
