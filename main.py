# main.py
from __future__ import annotations
import sys
import logging

from PySide6.QtWidgets import QApplication, QMessageBox

from app.config import Settings, load_settings
from core.serializer import InputSerializer
from core.session import SessionController
from core.threads import Workers
from ui.main_window import MainWindow


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.log_file, encoding="utf-8"),
        ],
    )

    # Log any uncaught exceptions rather than silently dying
    def excepthook(exctype, value, tb):
        logging.exception("Unhandled exception", exc_info=(exctype, value, tb))
        try:
            QMessageBox.critical(
                None, "Application Error", f"{exctype.__name__}: {value}"
            )
        except Exception:
            pass
        sys.exit(1)

    sys.excepthook = excepthook


def build_controller(settings: Settings) -> SessionController:
    serializer = InputSerializer(
        pool=Workers.pool if settings.async_engine else None,
        retries=settings.engine_retries,
        stall_timeout_ms=settings.stall_timeout_ms,
    )
    return SessionController(serializer=serializer)


def main() -> int:
    settings = load_settings()
    setup_logging(settings)
    logging.getLogger(__name__).info("Starting with %s", settings)

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Typerpunk")
    app.setOrganizationName("Typerpunk")

    controller = build_controller(settings)
    win = MainWindow(settings, controller)
    win.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
