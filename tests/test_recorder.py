"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

import base64
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from errors import CaptureError
from models import CaptureHandle
from recorder import SoundDeviceRecorder


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

class _FakeNp:
    """Minimal numpy stand-in so recorder._on_audio doesn't bail."""

    class int16:
        pass

    @staticmethod
    def asarray(data, dtype=None):
        """Return an object with .tobytes() that gives raw PCM."""
        return data


class _FakeAudioInput:
    """Fake audio input similar to what sounddevice callback provides."""

    def __init__(self, n_samples: int = 1600) -> None:
        self._data = b"\x01\x00" * n_samples

    def tobytes(self) -> bytes:
        return self._data


# ---------------------------------------------------------------
# Permission
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_permission_granted_when_input_device_found(mock_sd: MagicMock) -> None:
    assert SoundDeviceRecorder().request_permission() is True
    mock_sd.query_devices.assert_called_once_with(kind="input")


@patch("recorder.sd")
def test_permission_denied_when_no_input_device(mock_sd: MagicMock) -> None:
    mock_sd.query_devices.side_effect = ValueError("No input device matching")
    assert SoundDeviceRecorder().request_permission() is False


@patch("recorder.sd", None)
def test_permission_denied_without_sounddevice() -> None:
    assert SoundDeviceRecorder().request_permission() is False


# ---------------------------------------------------------------
# Acquire / release
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_acquire_opens_voice_quality_stream(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()

    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["samplerate"] == 16000
    assert kwargs["channels"] == 1
    assert kwargs["dtype"] == "int16"
    mock_stream.start.assert_called_once()
    assert isinstance(handle, CaptureHandle)
    assert recorder.is_capturing

    recorder.stop_and_release(handle)
    mock_stream.stop.assert_called_once()
    mock_stream.close.assert_called_once()
    assert not recorder.is_capturing


@patch("recorder.sd")
def test_acquire_is_exclusive(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    with pytest.raises(CaptureError, match="already in use"):
        recorder.acquire()

    assert mock_sd.InputStream.call_count == 1
    recorder.stop_and_release(handle)


@patch("recorder.sd")
def test_acquire_wraps_stream_errors(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.side_effect = OSError("PortAudio error")

    recorder = SoundDeviceRecorder()
    with pytest.raises(CaptureError, match="failed to open microphone stream"):
        recorder.acquire()
    assert not recorder.is_capturing


def test_acquire_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    with pytest.raises(CaptureError, match="sounddevice is not installed"):
        SoundDeviceRecorder().acquire()


@patch("recorder.sd")
def test_stop_is_idempotent(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    first = recorder.stop_and_release(handle)
    second = recorder.stop_and_release(handle)

    assert first is not None
    assert second is None


def test_stop_without_acquire_returns_none() -> None:
    recorder = SoundDeviceRecorder()
    assert recorder.stop_and_release(CaptureHandle(capture_id=99)) is None


# ---------------------------------------------------------------
# Captured audio
# ---------------------------------------------------------------

@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_captured_audio_is_written_and_encoded(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    recorder._on_audio(_FakeAudioInput(1600), frames=1600, time_info=None, status=None)
    recorder._on_audio(_FakeAudioInput(1600), frames=1600, time_info=None, status=None)
    location = recorder.stop_and_release(handle)

    assert location is not None
    assert location.parent == tmp_path
    assert location.suffix == ".wav"

    payload = recorder.read_encoded(location)

    assert payload.media_type == "audio/wav"
    raw = base64.b64decode(payload.data)
    assert raw[:4] == b"RIFF"
    assert len(raw) == 44 + 3200 * 2
    assert not location.exists()


@patch("recorder.sd")
def test_silent_capture_encodes_below_threshold(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    location = recorder.stop_and_release(handle)
    assert location is not None
    payload = recorder.read_encoded(location)

    # header-only WAV
    assert len(payload) == 60
    assert len(payload) < 100


@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_callback_after_release_is_noop(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    location = recorder.stop_and_release(handle)
    recorder._on_audio(_FakeAudioInput(1600), frames=1600, time_info=None, status=None)

    assert location is not None
    assert len(base64.b64decode(recorder.read_encoded(location).data)) == 44


def test_discard_removes_file(tmp_path: Path) -> None:
    path = tmp_path / "x.wav"
    path.write_bytes(b"data")

    recorder = SoundDeviceRecorder()
    recorder.discard(path)
    recorder.discard(path)

    assert not path.exists()


# ---------------------------------------------------------------
# Failure paths
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_failed_wav_write_leaves_no_temp_file(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    handle = recorder.acquire()
    with patch("recorder._write_wav", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            recorder.stop_and_release(handle)

    assert list(tmp_path.iterdir()) == []
    assert not recorder.is_capturing


@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_audio_delivered_during_start_is_kept(mock_sd: MagicMock, tmp_path: Path) -> None:
    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    mock_stream = MagicMock()
    mock_stream.start.side_effect = lambda: recorder._on_audio(
        _FakeAudioInput(1600), frames=1600, time_info=None, status=None
    )
    mock_sd.InputStream.return_value = mock_stream

    handle = recorder.acquire()
    location = recorder.stop_and_release(handle)

    assert location is not None
    assert len(base64.b64decode(recorder.read_encoded(location).data)) == 44 + 1600 * 2


@patch("recorder.sd")
def test_failed_start_rolls_back(mock_sd: MagicMock, tmp_path: Path) -> None:
    mock_stream = MagicMock()
    mock_stream.start.side_effect = OSError("device unavailable")
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder(temp_dir=tmp_path)
    with pytest.raises(CaptureError, match="failed to start microphone stream"):
        recorder.acquire()

    assert not recorder.is_capturing
    mock_stream.close.assert_called_once()

    mock_sd.InputStream.return_value = MagicMock()
    handle = recorder.acquire()
    assert recorder.is_capturing
    recorder.stop_and_release(handle)
