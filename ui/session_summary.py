# ui/session_summary.py
from __future__ import annotations
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QDialog, QGridLayout, QHBoxLayout, QLabel, QPushButton, QVBoxLayout
import pyqtgraph as pg

from app.state import SessionResult
from utils.graph_helper import draw_graph, setup_wpm_plot


class SessionSummary(QDialog):
    """
    Final stats plus the WPM-over-time graph for a finished session.
    Closing with "Play again" accepts the dialog; "Main menu" rejects it.
    """

    playAgain = Signal()
    mainMenu = Signal()

    def __init__(self, result: SessionResult, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Session Summary")
        self.resize(760, 480)
        self.session_result = result
        st = result.stats

        root = QVBoxLayout(self)

        grid = QGridLayout()
        grid.setHorizontalSpacing(28)
        rows = [
            ("WPM", f"{st.wpm:.1f}"),
            ("Raw", f"{st.raw_wpm:.1f}"),
            ("Accuracy", f"{st.accuracy:.1f}%"),
            ("Time", f"{st.time:.1f}s"),
            ("Characters", f"{st.correct_chars}/{st.incorrect_chars}/{st.total_chars}"),
            ("Best streak", str(st.best_streak)),
        ]
        self.values = {}
        for col, (name, val) in enumerate(rows):
            cap = QLabel(name, self)
            cap.setAlignment(Qt.AlignCenter)
            lab = QLabel(val, self)
            lab.setAlignment(Qt.AlignCenter)
            lab.setStyleSheet("font-size: 22px;")
            grid.addWidget(cap, 0, col)
            grid.addWidget(lab, 1, col)
            self.values[name] = lab
        root.addLayout(grid)

        self.plot = pg.PlotWidget()
        setup_wpm_plot(self.plot)
        draw_graph(self.plot, result.graph, st.time)
        root.addWidget(self.plot, stretch=1)

        if result.graph.synthetic:
            note = QLabel("Keystroke timings were unavailable; graph is approximated.", self)
            note.setObjectName("lblNote")
            root.addWidget(note)

        if result.attribution:
            attr = QLabel(f"- {result.attribution}", self)
            attr.setAlignment(Qt.AlignRight)
            root.addWidget(attr)

        row = QHBoxLayout()
        self.btnAgain = QPushButton("Play again", self)
        self.btnAgain.clicked.connect(self._on_again)
        self.btnMenu = QPushButton("Main menu", self)
        self.btnMenu.clicked.connect(self._on_menu)
        row.addStretch(1)
        row.addWidget(self.btnAgain)
        row.addWidget(self.btnMenu)
        root.addLayout(row)

    def _on_again(self):
        self.playAgain.emit()
        self.accept()

    def _on_menu(self):
        self.mainMenu.emit()
        self.reject()
