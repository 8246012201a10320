from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget


class StatBlock(QWidget):
    """Small caption over a large value, e.g. "wpm" / "87"."""

    def __init__(self, caption: str, value: str = "", parent=None):
        super().__init__(parent)
        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.setSpacing(2)

        self.lblCaption = QLabel(caption, self)
        self.lblCaption.setObjectName("statCaption")
        self.lblCaption.setAlignment(Qt.AlignCenter)
        self.lblCaption.setStyleSheet("font-size: 13px; color: #9aa1a9;")

        self.lblValue = QLabel(value, self)
        self.lblValue.setObjectName("statValue")
        self.lblValue.setAlignment(Qt.AlignCenter)
        self.lblValue.setStyleSheet("font-size: 28px; color: #eab308;")

        lay.addWidget(self.lblCaption)
        lay.addWidget(self.lblValue)

    def value(self) -> str:
        return self.lblValue.text()

    def set_value(self, text: str):
        self.lblValue.setText(text)


__all__ = ["StatBlock"]
