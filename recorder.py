"""Microphone capture device backed by sounddevice."""

from __future__ import annotations

import base64
import itertools
import logging
import os
import tempfile
import threading
import time
import wave
from pathlib import Path
from typing import Any, Optional

from errors import CaptureError
from models import CaptureHandle, EncodedAudioPayload

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger("echonotes.recorder")

WAV_MEDIA_TYPE = "audio/wav"


def _write_wav(
    path: Path,
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> None:
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)


class SoundDeviceRecorder:
    """Voice-quality (16 kHz mono PCM16) capture into a temporary WAV file."""

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        temp_dir: Path | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._temp_dir = temp_dir
        self._stream: Any = None
        self._handle: Optional[CaptureHandle] = None
        self._pcm = bytearray()
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    @property
    def is_capturing(self) -> bool:
        return self._stream is not None

    def request_permission(self) -> bool:
        if sd is None:
            logger.warning("sounddevice is not installed", extra={"event": "permission_check"})
            return False
        try:
            sd.query_devices(kind="input")
        except Exception as exc:
            logger.warning(
                "no accessible input device: %s", exc, extra={"event": "permission_check"}
            )
            return False
        return True

    def acquire(self) -> CaptureHandle:
        with self._lock:
            if self._stream is not None:
                raise CaptureError("capture device is already in use")
            if sd is None:
                raise CaptureError("sounddevice is not installed")
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            try:
                stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
            except Exception as exc:
                raise CaptureError(f"failed to open microphone stream: {exc}") from exc
            self._pcm = bytearray()
            self._stream = stream
            try:
                stream.start()
            except Exception as exc:
                self._stream = None
                self._pcm = bytearray()
                stream.close()
                raise CaptureError(f"failed to start microphone stream: {exc}") from exc
            self._handle = CaptureHandle(
                capture_id=next(self._ids),
                started_at_ms=int(time.time() * 1000),
            )
            return self._handle

    def stop_and_release(self, handle: CaptureHandle) -> Optional[Path]:
        """Stop the stream and write the captured audio; None if nothing was captured."""
        with self._lock:
            if self._stream is None or handle != self._handle:
                return None
            stream = self._stream
            try:
                stream.stop()
            finally:
                stream.close()
                self._stream = None
                self._handle = None
            pcm = bytes(self._pcm)
            self._pcm = bytearray()

        fd, name = tempfile.mkstemp(prefix="echonotes-", suffix=".wav", dir=self._temp_dir)
        path = Path(name)
        os.close(fd)
        try:
            _write_wav(path, pcm, self.sample_rate, self.channels)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return path

    def read_encoded(self, location: Path) -> EncodedAudioPayload:
        try:
            raw = location.read_bytes()
        finally:
            self.discard(location)
        return EncodedAudioPayload(data=base64.b64encode(raw), media_type=WAV_MEDIA_TYPE)

    def discard(self, location: Path) -> None:
        try:
            location.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("could not remove %s: %s", location, exc, extra={"event": "discard"})

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if self._stream is None or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        self._pcm.extend(payload)
