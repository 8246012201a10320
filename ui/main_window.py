# ui/main_window.py
import logging
import random

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QComboBox, QLabel, QMessageBox, QPushButton, QStackedWidget,
)
from PySide6.QtCore import Qt, QTimer, Slot

from app.config import Settings
from core.session import SessionController
from ui.session_summary import SessionSummary
from ui.typing_view import TypingView
from utils.file_handler import (
    RANDOM_CATEGORY,
    load_last_category,
    load_text_items,
    pick_text,
    save_last_category,
    unique_categories,
)

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings, controller: SessionController, rng=None):
        super().__init__()
        self.setWindowTitle("Typerpunk")
        self.resize(1100, 640)
        self.settings = settings
        self.controller = controller
        self._rng = rng or random.Random()
        self.items = load_text_items(settings.texts_path)

        self.stack = QStackedWidget(self)
        self.menu = self._build_menu()
        self.view = TypingView(controller, refresh_ms=settings.refresh_interval_ms, parent=self)
        self.view.menuRequested.connect(self._back_to_menu)
        self.stack.addWidget(self.menu)
        self.stack.addWidget(self.view)
        self.setCentralWidget(self.stack)

        controller.finished.connect(self._on_finished)
        controller.engineError.connect(self._on_engine_error)
        controller.engineFault.connect(self._on_engine_fault)

        self.setStyleSheet(
            """
            QWidget { background: #1e1f22; color: #e5e7eb; }
            QPushButton, QComboBox {
                border: 1px solid rgba(255,255,255,0.10);
                border-radius: 9px;
                padding: 6px 12px;
            }
            QPushButton:hover { border-color: rgba(255,255,255,0.32); }
            """
        )

    # ---------------- Main menu ----------------
    def _build_menu(self) -> QWidget:
        page = QWidget(self)
        v = QVBoxLayout(page)
        v.setContentsMargins(16, 80, 16, 16)
        v.setSpacing(24)

        title = QLabel("typerpunk", page)
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 42px; color: #eab308;")
        v.addWidget(title)

        row = QHBoxLayout()
        row.addStretch(1)
        self.cmbCategory = QComboBox(page)
        self.cmbCategory.addItem(RANDOM_CATEGORY)
        self.cmbCategory.addItems(unique_categories(self.items))
        saved = load_last_category(self.settings.last_mode_path)
        idx = self.cmbCategory.findText(saved)
        self.cmbCategory.setCurrentIndex(idx if idx >= 0 else 0)
        self.cmbCategory.currentTextChanged.connect(self._on_category_changed)
        row.addWidget(self.cmbCategory)

        self.btnStart = QPushButton("Start", page)
        self.btnStart.clicked.connect(self.start_session)
        row.addWidget(self.btnStart)
        row.addStretch(1)
        v.addLayout(row)
        v.addStretch(1)
        return page

    @Slot(str)
    def _on_category_changed(self, category: str):
        save_last_category(category, self.settings.last_mode_path)

    # ---------------- Session flow ----------------
    def start_session(self):
        category = self.cmbCategory.currentText() or RANDOM_CATEGORY
        item = pick_text(self.items, category, self._rng)
        self.view.reset_labels()
        if not self.controller.start(item.content, item.attribution, category):
            self.stack.setCurrentWidget(self.menu)
            return
        self.stack.setCurrentWidget(self.view)
        self.view.setFocus()

    def _back_to_menu(self):
        self.controller.return_to_idle()
        self.stack.setCurrentWidget(self.menu)

    @Slot(object)
    def _on_finished(self, result):
        self.setWindowTitle(f"Typerpunk - {result.stats.wpm:.1f} WPM")
        # leave the publish chain before opening a modal loop
        QTimer.singleShot(0, lambda: self._show_summary(result))

    def _show_summary(self, result):
        dlg = SessionSummary(result, self)
        if dlg.exec():
            self.start_session()
        else:
            self._back_to_menu()

    @Slot(str)
    def _on_engine_error(self, msg: str):
        QMessageBox.warning(self, "Typing engine", f"Could not start a session:\n{msg}")

    @Slot(str)
    def _on_engine_fault(self, msg: str):
        self.statusBar().showMessage(msg, 4000)

    def closeEvent(self, ev):
        self.view.ticker.stop()
        self.controller.shutdown()
        super().closeEvent(ev)
