"""Single-shot text helpers: simplify a question, define a word."""

from __future__ import annotations

import logging

from errors import (
    AUTH_FAILED,
    ERROR_MESSAGES,
    INPUT_TOO_SHORT,
    MALFORMED_RESPONSE,
    SERVICE_ERROR,
    InputTooShortError,
    ServiceError,
    classify_exception,
)
from summarizer import check_response, resolve_api_key

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger("echonotes.focus")

MIN_QUESTION_CHARS = 10
DEFINE_FALLBACK_TEXT = "Could not define word."

SIMPLIFY_PROMPT = """A user with ADHD/Dyslexia has provided a complex concept.
1. Simplify: Rewrite into absolute simplest form.
2. Chunk: Break solution into max 5 bullet points.
3. Focus: Include a "Memory Hook" (analogy).
4. CRITICAL: DO NOT give the final answer. Provide the method.
5. Format: Use Markdown headings and lists.

Return format MUST include:
- Simplified Goal
- Your Action Plan
- Memory Hook

Original Question: "{question}\""""

DEFINE_PROMPT = (
    'Define the word/phrase: "{word}" for someone with ADHD.\n'
    "Use ONE simple sentence, make sure it is very easy to understand. "
    "Use an analogy if possible. Start with the word followed by a colon."
)


class FocusHelper:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen-plus",
        request_timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def simplify_question(self, question: str) -> str:
        if len(question.strip()) < MIN_QUESTION_CHARS:
            raise InputTooShortError(ERROR_MESSAGES[INPUT_TOO_SHORT])
        return self._generate(SIMPLIFY_PROMPT.format(question=question))

    def define_word(self, word: str) -> str:
        word = word.strip()
        if not word:
            return ""
        try:
            return self._generate(DEFINE_PROMPT.format(word=word))
        except ServiceError as exc:
            logger.warning(
                "definition failed: %s", exc, extra={"event": "define_failed", "code": exc.code}
            )
            return DEFINE_FALLBACK_TEXT

    def _generate(self, prompt: str) -> str:
        if dashscope is None:
            raise ServiceError(SERVICE_ERROR, "dashscope is not installed")
        api_key = resolve_api_key(self._api_key)
        if not api_key:
            raise ServiceError(AUTH_FAILED, "No API key configured")

        try:
            response = dashscope.Generation.call(
                api_key=api_key,
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                result_format="message",
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            code, retryable = classify_exception(exc)
            raise ServiceError(code, str(exc), retryable=retryable) from exc

        check_response(response)
        text = _message_text(response).strip()
        if not text:
            raise ServiceError(MALFORMED_RESPONSE, "response contained no text", retryable=True)
        return text


def _message_text(response: object) -> str:
    if not isinstance(response, dict):
        return ""
    choices = (response.get("output") or {}).get("choices") or []
    if not choices:
        return ""
    content = (choices[0].get("message") or {}).get("content", "")
    return content if isinstance(content, str) else ""
