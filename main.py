"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading

from config import JsonConfigStore
from errors import ERROR_MESSAGES, PERMISSION_DENIED, InputTooShortError, ServiceError
from focus_helpers import FocusHelper
from hotkey import GlobalHotkeyAdapter
from logging_setup import setup_app_logger
from models import SessionState
from recorder import SoundDeviceRecorder
from reveal import RevealRenderer
from session_controller import SessionController
from summarizer import DashscopeSummarizer
from window import CompanionWindow, QtTimerScheduler

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("echonotes.app")


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"      # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#007AFF"      # blue
ICON_ERROR = "#FF8800"     # orange


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    summary_signal = Signal(str)
    error_signal = Signal(str, str)  # code, message
    notice_signal = Signal(str, str)  # title, message
    guide_signal = Signal(str)
    definition_signal = Signal(str)
    toggle_signal = Signal()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.logger, self.log_path = setup_app_logger()
        self.config_store = JsonConfigStore()
        self.window = CompanionWindow()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.summary_signal.connect(self._on_summary_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.notice_signal.connect(self._on_notice_ui)
        self.ui.guide_signal.connect(self._on_guide_ui)
        self.ui.definition_signal.connect(self._on_definition_ui)
        self.ui.toggle_signal.connect(self.toggle_recording)

        scheduler = QtTimerScheduler(self.window)
        delay_ms = self.config_store.get_reveal_delay_ms()
        self.summary_reveal = RevealRenderer(
            scheduler, delay_ms=delay_ms, on_update=self.window.set_summary_text
        )
        self.guide_reveal = RevealRenderer(
            scheduler, delay_ms=delay_ms, on_update=self.window.set_guide_text
        )

        api_key = self.config_store.get_api_key()
        self.focus = FocusHelper(api_key=api_key)
        self.controller = SessionController(
            device=SoundDeviceRecorder(),
            summarizer=self._make_summarizer(api_key),
            min_payload_chars=self.config_store.get_min_payload_chars(),
            on_state_change=self._on_state_change,
            on_summary=self._on_summary,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.window.record_button.clicked.connect(self.toggle_recording)
        self.window.guide_button.clicked.connect(self._simplify_question)
        self.window.define_button.clicked.connect(self._define_word)

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("EchoNotes — Ready")
        self._setup_menu()
        self.tray.show()
        self.window.show()

    def _make_summarizer(self, api_key: str) -> DashscopeSummarizer:
        return DashscopeSummarizer(api_key=api_key, model=self.config_store.get_summary_model())

    def _setup_menu(self) -> None:
        menu = QMenu()

        show_action = QAction("Show Window", menu)
        show_action.triggered.connect(self.window.show)
        menu.addAction(show_action)

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        hotkey_action = QAction("Set Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.controller.replace_summarizer(self._make_summarizer(value))
        self.focus = FocusHelper(api_key=value)
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.f9"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def toggle_recording(self) -> None:
        state = self.controller.state
        if state == SessionState.RECORDING:
            # stop_session blocks on the network call, keep it off the Qt thread
            threading.Thread(target=self.controller.stop_session, daemon=True).start()
        elif not self.controller.is_busy:
            self.controller.start_session()

    # ------------------------------------------------------------------
    # Focus helpers (single-shot, worker thread)
    # ------------------------------------------------------------------

    def _simplify_question(self) -> None:
        question = self.window.question_input.toPlainText()
        self.window.set_guide_busy(True)
        self.guide_reveal.set_source("")
        threading.Thread(target=self._run_simplify, args=(question,), daemon=True).start()

    def _run_simplify(self, question: str) -> None:
        try:
            text = self.focus.simplify_question(question)
        except InputTooShortError as exc:
            self.ui.notice_signal.emit("Input Needed", str(exc))
            text = ""
        except ServiceError as exc:
            logger.warning("simplify failed: %s", exc, extra={"event": "simplify_failed", "code": exc.code})
            self.ui.notice_signal.emit("Error", "Check API key or network.")
            text = ""
        self.ui.guide_signal.emit(text)

    def _define_word(self) -> None:
        word = self.window.word_input.text()
        self.window.set_define_busy(True)
        self.window.set_definition_text("")
        threading.Thread(target=self._run_define, args=(word,), daemon=True).start()

    def _run_define(self, word: str) -> None:
        self.ui.definition_signal.emit(self.focus.define_word(word))

    # ------------------------------------------------------------------
    # Callbacks (may run on worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_summary(self, text: str) -> None:
        self.ui.summary_signal.emit(text)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(code, message)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        state = SessionState(to_state)
        self.window.set_session_state(state)
        if state == SessionState.RECORDING:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("EchoNotes — Recording...")
        elif state.is_busy:
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("EchoNotes — Processing...")
        elif state == SessionState.FAILED:
            self.tray.setIcon(_create_icon(ICON_ERROR))
            self.tray.setToolTip("EchoNotes — Ready")
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("EchoNotes — Ready")

    def _on_summary_ui(self, text: str) -> None:
        self.summary_reveal.set_source(text)

    def _on_guide_ui(self, text: str) -> None:
        self.window.set_guide_busy(False)
        self.guide_reveal.set_source(text)

    def _on_definition_ui(self, text: str) -> None:
        self.window.set_define_busy(False)
        self.window.set_definition_text(text)

    def _on_error_ui(self, code: str, message: str) -> None:
        if code == PERMISSION_DENIED:
            QMessageBox.warning(self.window, "Permission Required", ERROR_MESSAGES[PERMISSION_DENIED])
        else:
            self.tray.showMessage("EchoNotes", ERROR_MESSAGES.get(code, message))

    def _on_notice_ui(self, title: str, message: str) -> None:
        QMessageBox.warning(self.window, title, message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.logger.info("started", extra={"event": "app_start", "log_path": str(self.log_path)})
        try:
            self.hotkey.start(on_toggle=self._on_hotkey)
        except Exception as exc:
            self.logger.warning("hotkey disabled: %s", exc, extra={"event": "hotkey_disabled"})
        return self.app.exec()

    def _on_hotkey(self) -> None:
        # pynput calls back on its own thread
        self.ui.toggle_signal.emit()

    def quit(self) -> None:
        self.hotkey.stop()
        self.summary_reveal.close()
        self.guide_reveal.close()
        self.controller.reset()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
