"""Tests for DashscopeSummarizer."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from errors import AUTH_FAILED, MALFORMED_RESPONSE, NETWORK_ERROR, QUOTA_EXCEEDED, ServiceError
from models import EncodedAudioPayload
from summarizer import SUMMARY_INSTRUCTION, DashscopeSummarizer


class _Response(dict):
    """dict-shaped DashScope response with a status code."""

    def __init__(self, data: dict, status_code: int = 200, message: str = "") -> None:
        super().__init__(data)
        self.status_code = status_code
        self.message = message


def _ok(text: str) -> _Response:
    return _Response({"output": {"choices": [{"message": {"content": [{"text": text}]}}]}})


PAYLOAD = EncodedAudioPayload(data=b"UklGRg==" * 20, media_type="audio/wav")


@patch("summarizer.dashscope")
def test_summarize_sends_audio_and_instruction(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _ok("• Point one\n• Point two\n")

    summarizer = DashscopeSummarizer(api_key="test-key", model="qwen-audio-turbo-latest")
    text = summarizer.summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert text == "• Point one\n• Point two"
    kwargs = mock_ds.MultiModalConversation.call.call_args.kwargs
    assert kwargs["api_key"] == "test-key"
    assert kwargs["model"] == "qwen-audio-turbo-latest"
    content = kwargs["messages"][0]["content"]
    assert content[0]["audio"].startswith("data:audio/wav;base64,UklGRg==")
    assert content[1]["text"] == SUMMARY_INSTRUCTION


@patch("summarizer.dashscope")
def test_network_error_maps_correctly(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.side_effect = ConnectionError("network timeout")

    with pytest.raises(ServiceError) as info:
        DashscopeSummarizer(api_key="test-key").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert info.value.code == NETWORK_ERROR
    assert info.value.retryable is True


@patch("summarizer.dashscope")
def test_auth_error_maps_correctly(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.side_effect = Exception("401 Unauthorized: invalid api key")

    with pytest.raises(ServiceError) as info:
        DashscopeSummarizer(api_key="bad-key").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert info.value.code == AUTH_FAILED
    assert info.value.retryable is False


@patch("summarizer.dashscope")
def test_quota_status_maps_correctly(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _Response(
        {}, status_code=429, message="Throttling.RateQuota"
    )

    with pytest.raises(ServiceError) as info:
        DashscopeSummarizer(api_key="test-key").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert info.value.code == QUOTA_EXCEEDED
    assert "RateQuota" in str(info.value)


@patch("summarizer.dashscope")
def test_malformed_response_raises(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _Response({"output": {"choices": []}})

    with pytest.raises(ServiceError) as info:
        DashscopeSummarizer(api_key="test-key").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert info.value.code == MALFORMED_RESPONSE


@patch("summarizer.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_raises_auth_failed() -> None:
    with pytest.raises(ServiceError) as info:
        DashscopeSummarizer(api_key="").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert info.value.code == AUTH_FAILED


@patch("summarizer.dashscope")
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": "env-key"}, clear=False)
def test_api_key_falls_back_to_environment(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _ok("summary")

    DashscopeSummarizer(api_key="").summarize(PAYLOAD, SUMMARY_INSTRUCTION)

    assert mock_ds.MultiModalConversation.call.call_args.kwargs["api_key"] == "env-key"


@patch("summarizer.dashscope", None)
def test_dashscope_not_installed_raises() -> None:
    with pytest.raises(ServiceError, match="not installed"):
        DashscopeSummarizer(api_key="test-key").summarize(PAYLOAD, SUMMARY_INSTRUCTION)
