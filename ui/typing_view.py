from __future__ import annotations

from PySide6.QtCore import Qt, QTimer, Signal, Slot
from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout, QHBoxLayout, QSizePolicy

from app.state import SessionState, Stats
from core.chrono import LiveTicker
from core.session import SessionController
from ui.widgets import StatBlock


class TypingView(QWidget):
    """Renders the target text against the typed input and forwards keys to the controller."""

    menuRequested = Signal()

    def __init__(self, controller: SessionController, refresh_ms: int = 100, parent=None):
        super().__init__(parent)
        self.setFocusPolicy(Qt.StrongFocus)
        self.controller = controller

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 30, 0, 30)
        root.setSpacing(28)

        stats = QHBoxLayout()
        stats.setSpacing(40)
        self.blkWPM = StatBlock("wpm", "0", self)
        self.blkAcc = StatBlock("acc", "100%", self)
        self.blkTime = StatBlock("time", "0.0 s", self)
        for blk in (self.blkWPM, self.blkAcc, self.blkTime):
            stats.addWidget(blk)
        root.addLayout(stats)

        self.lblLine = QLabel("", self)
        self.lblLine.setObjectName("lblLine")
        self.lblLine.setTextFormat(Qt.RichText)
        self.lblLine.setWordWrap(True)
        self.lblLine.setAlignment(Qt.AlignCenter)
        self.lblLine.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.lblLine.setMinimumWidth(700)
        self.lblLine.setMinimumHeight(140)
        self.lblLine.setStyleSheet("font-size: 30px; line-height: 1.35;")
        root.addWidget(self.lblLine, stretch=1, alignment=Qt.AlignHCenter)

        self.lblAttribution = QLabel("", self)
        self.lblAttribution.setObjectName("lblAttribution")
        self.lblAttribution.setAlignment(Qt.AlignRight)
        root.addWidget(self.lblAttribution)

        self.lblHint = QLabel("esc: main menu   ctrl+backspace: delete word", self)
        self.lblHint.setObjectName("lblHint")
        self.lblHint.setAlignment(Qt.AlignCenter)
        root.addWidget(self.lblHint)

        self.ticker = LiveTicker(tick_ms=refresh_ms, callback=self._on_tick, parent=self)

        self._caret_on = True
        self._caret_timer = QTimer(self)
        self._caret_timer.setInterval(500)
        self._caret_timer.timeout.connect(self._toggle_caret)

        self._colors = {
            "ok": "#22c55e",
            "err": "#ef4444",
            "mut": "#9aa1a9",
            "caret": "#eab308",
            "word_bg": "rgba(234,179,8,0.10)",
            "err_ul": "rgba(239,68,68,0.9)",
        }

        controller.inputChanged.connect(self._on_input_changed)
        controller.statsChanged.connect(self._show_stats)
        controller.stateChanged.connect(self._on_state_changed)

    # ---------------- controller feedback ----------------
    @Slot(str)
    def _on_state_changed(self, state: str):
        if state == SessionState.RUNNING.value:
            s = self.controller.session
            self.lblAttribution.setText(f"- {s.attribution}" if s.attribution else "")
            self._caret_on = True
            self._caret_timer.start()
            self.ticker.start()
            self._render_line()
            self.setFocus()
        else:
            self.ticker.stop()
            self._caret_timer.stop()
            self._render_line()

    @Slot(str)
    def _on_input_changed(self, _text: str):
        self._caret_on = True
        self._render_line()

    def _on_tick(self):
        stats = self.controller.refresh()
        self.blkTime.set_value(f"{stats.time:0.1f} s")

    @Slot(object)
    def _show_stats(self, stats: Stats):
        self.blkWPM.set_value(f"{stats.wpm:0.0f}")
        self.blkAcc.set_value(f"{stats.accuracy:0.0f}%")
        self.blkTime.set_value(f"{stats.time:0.1f} s")

    def _toggle_caret(self):
        self._caret_on = not self._caret_on
        self._render_line()

    # ---------------- rendering ----------------
    def _render_line(self):
        s = self.controller.session
        tgt = s.target_text or ""
        typed = s.current_input or ""
        caret = min(len(typed), len(tgt))

        col_ok = self._colors["ok"]
        col_err = self._colors["err"]
        col_mut = self._colors["mut"]
        word_bg = self._colors["word_bg"]
        err_ul = self._colors["err_ul"]

        w_start = self._find_word_start(tgt, caret)
        w_end = self._find_word_end(tgt, caret)

        def span(txt: str, color: str | None = None, underline: bool = False, bg: str | None = None):
            style_bits = []
            if color:
                style_bits.append(f"color:{color}")
            if underline:
                style_bits.append(f"border-bottom:2px solid {err_ul}")
            if bg:
                style_bits.append(f"background:{bg}")
            txt = "&nbsp;" if txt == " " else (txt.replace("&", "&amp;").replace("<", "&lt;"))
            return f'<span style="{";".join(style_bits)}">{txt}</span>'

        parts: list[str] = []
        for idx, ch in enumerate(tgt):
            if idx < caret:
                if typed[idx] == ch:
                    parts.append(span(ch, col_ok))
                else:
                    parts.append(span(ch, col_err, underline=True))
            else:
                bg = word_bg if w_start <= idx < w_end else None
                parts.append(span(ch, col_mut, bg=bg))

        caret_col = self._colors["caret"] if self._caret_on else "transparent"
        parts.insert(caret, f'<span style="color:{caret_col}">|</span>')
        self.lblLine.setText("".join(parts))

    @staticmethod
    def _find_word_start(text: str, pos: int) -> int:
        i = max(0, min(pos, len(text)))
        while i > 0 and not text[i - 1].isspace():
            i -= 1
        return i

    @staticmethod
    def _find_word_end(text: str, pos: int) -> int:
        i = max(0, min(pos, len(text)))
        while i < len(text) and not text[i].isspace():
            i += 1
        return i

    # ---------------- input ----------------
    def keyPressEvent(self, ev):
        key = ev.key()
        if key == Qt.Key_Escape:
            self.menuRequested.emit()
            return
        if self.controller.state is not SessionState.RUNNING:
            return super().keyPressEvent(ev)

        mods = ev.modifiers()
        if key == Qt.Key_Backspace:
            word = bool(mods & (Qt.ControlModifier | Qt.AltModifier))
            self.controller.backspace(word_boundary=word)
            return
        if mods & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier):
            return super().keyPressEvent(ev)

        t = ev.text()
        if key in (Qt.Key_Return, Qt.Key_Enter):
            t = "\n"
        if t and (t >= " " or t in ("\t", "\n")):
            self.controller.type_char(t)
            return
        super().keyPressEvent(ev)

    def reset_labels(self):
        self.blkWPM.set_value("0")
        self.blkAcc.set_value("100%")
        self.blkTime.set_value("0.0 s")
        self.lblAttribution.setText("")
