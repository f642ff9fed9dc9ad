"""Main window and the Qt timer scheduler used by the reveal renderer."""

from __future__ import annotations

from typing import Callable

from models import SessionState

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import (
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QPlainTextEdit,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QHBoxLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QLineEdit = object  # type: ignore
    QPlainTextEdit = object  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

BUTTON_IDLE_STYLE = (
    "background: #007AFF; color: white; font-size: 18px; font-weight: 700;"
    "padding: 18px 40px; border-radius: 12px;"
)
BUTTON_RECORDING_STYLE = BUTTON_IDLE_STYLE.replace("#007AFF", "#CC0000")


class _QtTimerHandle:
    def __init__(self, timer: "QTimer") -> None:
        self._timer = timer

    def _fired(self) -> None:
        self._timer = None

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class QtTimerScheduler:
    """Single-shot QTimer per call, owned by ``parent``; Qt thread only."""

    def __init__(self, parent: object) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        if QTimer is None:
            raise RuntimeError("PySide6 is not installed")
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        handle = _QtTimerHandle(timer)
        timer.timeout.connect(handle._fired)
        timer.timeout.connect(callback)
        timer.timeout.connect(timer.deleteLater)
        timer.start(delay_ms)
        return handle


class CompanionWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("EchoNotes")
        self.setMinimumWidth(520)
        self.setStyleSheet("background: #FAF0E6; color: #333;")

        title = QLabel("🎧 Audio Companion")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 32px; font-weight: 800;")
        subtitle = QLabel("Tap to record your thoughts, get summary instantly.")
        subtitle.setAlignment(Qt.AlignCenter)
        subtitle.setStyleSheet("font-size: 16px; color: #666;")

        self.record_button = QPushButton("START RECORDING")
        self.record_button.setStyleSheet(BUTTON_IDLE_STYLE)
        self._status = QLabel("")
        self._status.setAlignment(Qt.AlignCenter)

        self._summary_title = QLabel("Focused Summary:")
        self._summary_title.setStyleSheet("font-size: 20px; font-weight: 800; color: #007AFF;")
        self._summary = QLabel("")
        self._summary.setWordWrap(True)
        self._summary.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self._summary.setStyleSheet(
            "background: #FFF; font-size: 16px; padding: 20px; border-radius: 16px;"
        )

        self.question_input = QPlainTextEdit()
        self.question_input.setPlaceholderText(
            "E.g., What are the kinetic and thermodynamic controls governing a substitution reaction?"
        )
        self.guide_button = QPushButton("Generate Focused Guide")
        self._guide = QLabel("")
        self._guide.setWordWrap(True)

        self.word_input = QLineEdit()
        self.word_input.setPlaceholderText("Type word here...")
        self.define_button = QPushButton("Define")
        self._definition = QLabel("")
        self._definition.setWordWrap(True)

        word_row = QHBoxLayout()
        word_row.addWidget(self.word_input)
        word_row.addWidget(self.define_button)

        layout = QVBoxLayout()
        layout.addWidget(title)
        layout.addWidget(subtitle)
        layout.addWidget(self.record_button)
        layout.addWidget(self._status)
        layout.addWidget(self._summary_title)
        layout.addWidget(self._summary)
        layout.addWidget(QLabel("Simplify your concept:"))
        layout.addWidget(self.question_input)
        layout.addWidget(self.guide_button)
        layout.addWidget(self._guide)
        layout.addWidget(QLabel("Stuck on a specific word?"))
        layout.addLayout(word_row)
        layout.addWidget(self._definition)
        self.setLayout(layout)

        self.set_session_state(SessionState.IDLE)

    def set_session_state(self, state: SessionState) -> None:
        recording = state == SessionState.RECORDING
        busy = state in (SessionState.FINALIZING, SessionState.TRANSCRIBING)
        self.record_button.setText("STOP & ANALYZE" if recording else "START RECORDING")
        self.record_button.setStyleSheet(BUTTON_RECORDING_STYLE if recording else BUTTON_IDLE_STYLE)
        self.record_button.setEnabled(not busy)
        if recording:
            self._status.setText("● Recording...")
        elif busy:
            self._status.setText("Processing your thoughts...")
        else:
            self._status.setText("")
        self._summary_title.setVisible(not busy)
        self._summary.setVisible(not busy)

    def set_summary_text(self, text: str) -> None:
        self._summary.setText(text)

    def set_guide_text(self, text: str) -> None:
        self._guide.setText(text)

    def set_definition_text(self, text: str) -> None:
        self._definition.setText(text)

    def set_guide_busy(self, busy: bool) -> None:
        self.guide_button.setEnabled(not busy)
        self.guide_button.setText("Working..." if busy else "Generate Focused Guide")

    def set_define_busy(self, busy: bool) -> None:
        self.define_button.setEnabled(not busy)
